import logging

import discord
from redbot.core import commands
from redbot.core.utils.chat_formatting import box

from ..abc import MixinMeta
from ..common.constants import MAX_LEADERBOARD_SIZE

log = logging.getLogger("red.vrt.battletower.commands.admin")


class Admin(MixinMeta):
    @commands.group(name="btset")
    @commands.is_owner()
    async def btset(self, ctx: commands.Context):
        """Configure the Battle Tower"""
        pass

    @btset.command(name="view")
    async def btset_view(self, ctx: commands.Context):
        """View the current Battle Tower settings"""
        pools = self.engine.pools
        host = self.host
        rental = f"{len(pools.rental.teams)} teams, {len(pools.rental)} Pokémon"
        if pools.rental.error:
            rental += f" ({pools.rental.error})"
        opponent = f"{len(pools.opponent.teams)} teams, {len(pools.opponent)} Pokémon"
        if pools.opponent.error:
            opponent += f" ({pools.opponent.error})"
        txt = (
            f"Battle Format: {self.settings.get('battle_format')}\n"
            f"Leaderboard Size: {self.settings.get('leaderboard_size')}\n"
            f"Announce Results: {self.settings.get('announce_results')}\n"
            f"Battle Host: {type(host).__name__ if host else 'None'}\n"
            f"Rental Pool: {rental}\n"
            f"Opponent Pool: {opponent}\n"
            f"Players With Streaks: {len(self.engine.ledger)}\n"
            f"Players In Battle: {len(self.engine.tracker.active_players())}"
        )
        embed = discord.Embed(
            title="Battle Tower Settings",
            description=box(txt, lang="py"),
            color=await self.bot.get_embed_color(ctx),
        )
        await ctx.send(embed=embed)

    @btset.command(name="reload")
    async def btset_reload(self, ctx: commands.Context):
        """Reload the rental and opponent team files

        Custom `rentalteams.json` and `botteams.json` files placed in the cog's data folder take priority over the bundled ones.
        """
        async with ctx.typing():
            await self.reload_pools()
        pools = self.engine.pools
        lines = []
        for pool in (pools.rental, pools.opponent):
            line = f"{pool.role.title()} pool: {len(pool.teams)} teams, {len(pool)} Pokémon"
            if pool.error:
                line += f" - {pool.error}"
            lines.append(line)
        await ctx.send(box("\n".join(lines)))

    @btset.command(name="format")
    async def btset_format(self, ctx: commands.Context, battle_format: str):
        """Set the battle format requested from the battle host"""
        self.settings["battle_format"] = battle_format
        await self.config.battle_format.set(battle_format)
        await ctx.send(f"Battle format set to `{battle_format}`")

    @btset.command(name="topsize")
    async def btset_topsize(self, ctx: commands.Context, size: commands.Range[int, 1, MAX_LEADERBOARD_SIZE]):
        """Set how many players are shown on the leaderboard"""
        self.settings["leaderboard_size"] = size
        await self.config.leaderboard_size.set(size)
        await ctx.send(f"The leaderboard will now show the top {size} players")

    @btset.command(name="announce")
    async def btset_announce(self, ctx: commands.Context):
        """Toggle posting battle results in the channel the run was started from"""
        toggle = not self.settings.get("announce_results", True)
        self.settings["announce_results"] = toggle
        await self.config.announce_results.set(toggle)
        await ctx.send(f"Battle results will {'now' if toggle else 'no longer'} be announced")

    @btset.command(name="resetstreak")
    async def btset_resetstreak(self, ctx: commands.Context, user: discord.User):
        """Reset a player's current win streak and end their run

        Their max streak is kept.
        """
        if self.engine.tracker.in_battle(user.id):
            return await ctx.send(f"{user.display_name} is in a battle right now, try again once it's over.")
        self.engine.reset_player(user.id)
        await self.save()
        await ctx.send(f"Reset the current win streak for {user.display_name}")

    @btset.command(name="unlock")
    async def btset_unlock(self, ctx: commands.Context, user: discord.User):
        """Release a player stuck in a battle that never finished

        Their streak and team are kept. If the battle does end later, its result is ignored.
        """
        if not self.engine.release(user.id):
            return await ctx.send(f"{user.display_name} is not in a Battle Tower battle.")
        self.run_channels.pop(user.id, None)
        log.info(f"{ctx.author} released {user} from their battle")
        await ctx.send(f"{user.display_name} can now start a new Battle Tower battle")
