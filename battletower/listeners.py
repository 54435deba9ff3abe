import logging
import typing as t
from contextlib import suppress

import discord
from redbot.core import commands

from .abc import MixinMeta
from .common.engine import Resolution

log = logging.getLogger("red.vrt.battletower.listeners")


class Listeners(MixinMeta):
    @commands.Cog.listener()
    async def on_battle_end(
        self,
        battle_id: str,
        winner_id: t.Optional[int],
        participant_ids: t.Sequence[int],
    ):
        resolution = self.engine.resolve(battle_id, winner_id, participant_ids)
        if resolution is None:
            return
        await self.save()
        self.bot.dispatch("battletower_result", resolution)
        await self.announce(resolution)

    async def announce(self, resolution: Resolution) -> None:
        channel_id = self.run_channels.pop(resolution.player_id, None)
        if not channel_id or not self.settings.get("announce_results", True):
            return
        channel = self.bot.get_channel(channel_id)
        if not channel:
            return
        user = self.bot.get_user(resolution.player_id)
        name = user.display_name if user else str(resolution.player_id)
        if resolution.won:
            embed = discord.Embed(
                title=f"Congratulations, {name}! You've won!",
                description=(
                    f"Current Win Streak: **{resolution.streak}** (Max: **{resolution.best}**)\n"
                    f"Your team size for the next battle will be **{resolution.next_team_size}**.\n"
                    "Use `bt start` to start your next battle."
                ),
                color=discord.Color.green(),
            )
        else:
            embed = discord.Embed(
                title="Defeat!",
                description=f"{name}, your Battle Tower run has ended.\nUse `bt start` to try again.",
                color=discord.Color.red(),
            )
        with suppress(discord.HTTPException):
            await channel.send(embed=embed)
