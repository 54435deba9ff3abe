import logging
import typing as t

import discord
from redbot.core import commands
from redbot.core.utils.chat_formatting import humanize_list
from redbot.core.utils.menus import DEFAULT_CONTROLS, menu

from ..abc import MixinMeta
from ..common.constants import (
    DEFAULT_FORMAT,
    DEFAULT_LEADERBOARD_SIZE,
    GROWTH_INTERVAL,
    MAX_TEAM_SIZE,
)
from ..common.errors import (
    AlreadyActiveError,
    BattleCreationFailedError,
    PoolUnavailableError,
)
from ..common.formatting import leaderboard_lines, team_embeds

log = logging.getLogger("red.vrt.battletower.commands.user")


class User(MixinMeta):
    @commands.group(name="bt", aliases=["battletower"], invoke_without_command=True)
    async def bt(self, ctx: commands.Context):
        """Battle Tower commands"""
        await ctx.send_help()

    @bt.command(name="start")
    @commands.cooldown(1, 5, commands.BucketType.user)
    async def bt_start(self, ctx: commands.Context):
        """Start a new Battle Tower match or resume your current run

        Your team starts with 1 random rental Pokémon and gains another for every 5 wins.
        """
        try:
            async with ctx.typing():
                matchup, handle = await self.engine.start_run(
                    ctx.author.id,
                    self.host,
                    battle_format=self.settings.get("battle_format", DEFAULT_FORMAT),
                    player_name=ctx.author.display_name,
                )
        except (AlreadyActiveError, PoolUnavailableError, BattleCreationFailedError) as e:
            return await ctx.send(e.message)

        self.run_channels[ctx.author.id] = ctx.channel.id
        txt = f"Starting a Battle Tower match with a team of {len(matchup.team)} Pokémon..."
        if matchup.grew:
            txt += f"\n**{matchup.team[-1].species}** joined your team!"
        elif matchup.exhausted:
            txt += "\nThere were no new Pokémon left to add to your team, you'll keep your current roster."
        if handle.jump_url:
            txt += f"\n{handle.jump_url}"
        await ctx.send(txt)

    @bt.command(name="viewteam")
    async def bt_viewteam(self, ctx: commands.Context, team_id: t.Optional[str] = None):
        """View your current team, or one of the rental teams

        Use `[p]bt teamlist` to see the available rental teams.
        """
        if team_id is None:
            team = self.engine.tracker.team(ctx.author.id)
            if not team:
                txt = f"You do not have an active Battle Tower team. Use `{ctx.clean_prefix}bt start` to begin a run."
                return await ctx.send(txt)
            title = "Your Current Battle Tower Team"
            members = team
        else:
            rental = self.engine.pools.get_team(team_id)
            if not rental:
                txt = f"Team `{team_id}` not found. Use `{ctx.clean_prefix}bt teamlist` to see available teams."
                return await ctx.send(txt)
            title = f"{rental.name} Team"
            members = list(rental.members)

        embeds = team_embeds(members, title, await self.bot.get_embed_color(ctx))
        if not embeds:
            return await ctx.send("That team has no members.")
        if len(embeds) == 1:
            return await ctx.send(embed=embeds[0])
        await menu(ctx, embeds, DEFAULT_CONTROLS)

    @bt.command(name="teamlist")
    async def bt_teamlist(self, ctx: commands.Context):
        """Show the rental teams that make up the Pokémon pool"""
        teams = self.engine.pools.teams()
        if not teams:
            return await ctx.send("There are no rental Pokémon pools available at this time.")
        desc = (
            f"Your team starts with 1 random Pokémon from these teams, and a new one is added "
            f"for every {GROWTH_INTERVAL} wins until you reach a full team of {MAX_TEAM_SIZE}.\n\n"
        )
        desc += "\n".join(f"- **{team.name}** (`{team.id}`): {len(team.members)} Pokémon" for team in teams)
        embed = discord.Embed(
            title="Available Rental Pokémon Pools",
            description=desc,
            color=await self.bot.get_embed_color(ctx),
        )
        embed.set_footer(text=f"Use {ctx.clean_prefix}bt start to begin your battle.")
        await ctx.send(embed=embed)

    @bt.command(name="streak")
    async def bt_streak(self, ctx: commands.Context, *, user: t.Optional[discord.User] = None):
        """Check the current and max win streak of a player"""
        user = user or ctx.author
        record = self.engine.ledger.get(user.id)
        await ctx.send(
            f"{user.display_name} has a current win streak of {record.current} and a max win streak of {record.best}."
        )

    @bt.command(name="top", aliases=["lb", "leaderboard"])
    async def bt_top(self, ctx: commands.Context):
        """View the top win streaks"""
        entries = self.engine.ledger.leaderboard(self.settings.get("leaderboard_size", DEFAULT_LEADERBOARD_SIZE))
        if not entries:
            return await ctx.send("There are no win streaks to display yet.")
        named = []
        for user_id, record in entries:
            user = self.bot.get_user(user_id)
            named.append((user.display_name if user else str(user_id), record))
        embed = discord.Embed(
            title="Battle Tower Leaderboard",
            description="\n".join(leaderboard_lines(named)),
            color=await self.bot.get_embed_color(ctx),
        )
        active = self.engine.tracker.active_players()
        if active:
            names = [u.display_name for uid in active if (u := self.bot.get_user(uid))]
            if names:
                embed.set_footer(text=f"Currently climbing: {humanize_list(names)}")
        await ctx.send(embed=embed)
