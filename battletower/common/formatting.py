import typing as t

import discord
from redbot.core.utils.chat_formatting import humanize_number

from .models import RosterEntity, StreakRecord


def format_evs(evs: dict[str, int]) -> str:
    if not evs:
        return "None"
    return " / ".join(f"**{value}** {stat}" for stat, value in evs.items())


def member_embed(member: RosterEntity, title: str, color: discord.Color) -> discord.Embed:
    name = member.species
    if member.gender:
        name += f" ({member.gender})"
    if member.shiny:
        name += " ✨"
    embed = discord.Embed(title=title, description=f"## {name}", color=color)
    embed.add_field(name="Item", value=member.item or "No Item")
    embed.add_field(name="Ability", value=member.ability)
    embed.add_field(name="Tera Type", value=member.tera_type or "Normal")
    embed.add_field(name="Nature", value=member.nature or "Serious")
    embed.add_field(name="Moves", value="\n".join(f"- {move}" for move in member.moves), inline=False)
    embed.add_field(name="EVs", value=format_evs(member.evs), inline=False)
    return embed


def team_embeds(members: t.Sequence[RosterEntity], title: str, color: discord.Color) -> list[discord.Embed]:
    embeds = []
    for idx, member in enumerate(members):
        embed = member_embed(member, title, color)
        embed.set_footer(text=f"Page {idx + 1}/{len(members)}")
        embeds.append(embed)
    return embeds


def leaderboard_lines(entries: t.Sequence[tuple[str, StreakRecord]]) -> list[str]:
    lines = []
    for rank, (name, record) in enumerate(entries, start=1):
        lines.append(
            f"**{rank}.** {name}: current `{humanize_number(record.current)}`, best `{humanize_number(record.best)}`"
        )
    return lines
