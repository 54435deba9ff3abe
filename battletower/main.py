"""
Battle Tower - A single-player win streak ladder.

Players rent a random team, battle a bot opponent that scales with their streak,
and gain a new team member for every 5 consecutive wins.
"""

import asyncio
import json
import logging
import typing as t
from io import BytesIO
from pathlib import Path
from uuid import uuid4

from redbot.core import Config, commands
from redbot.core.bot import Red
from redbot.core.data_manager import bundled_data_path, cog_data_path

from .abc import CompositeMetaClass
from .commands import Commands
from .common.constants import (
    BOT_TEAMS_FILE,
    DATA_FILE,
    DEFAULT_FORMAT,
    DEFAULT_LEADERBOARD_SIZE,
    RENTAL_TEAMS_FILE,
)
from .common.engine import BattleTowerEngine
from .common.errors import PersistenceError
from .common.host import BattleHost
from .common.ledger import StreakLedger, load_ledger, save_ledger
from .listeners import Listeners

log = logging.getLogger("red.vrt.battletower")
RequestType = t.Literal["discord_deleted_user", "owner", "user", "user_strict"]


class BattleTower(Commands, Listeners, commands.Cog, metaclass=CompositeMetaClass):
    """
    Climb the Battle Tower!

    Start with one rental Pokémon and battle the tower's bot. Every 5 wins adds a
    new member to your team, up to a full team of 6. One loss and the run is over.
    """

    __author__ = "[vertyco](https://github.com/vertyco/vrt-cogs)"
    __version__ = "0.1.0"

    def __init__(self, bot: Red):
        super().__init__()
        self.bot: Red = bot
        self.config = Config.get_conf(self, 117117104, force_registration=True)
        self.config.register_global(
            battle_format=DEFAULT_FORMAT,
            leaderboard_size=DEFAULT_LEADERBOARD_SIZE,
            announce_results=True,
        )
        self.settings: dict[str, t.Any] = {}

        self.engine = BattleTowerEngine()
        self.host: t.Optional[BattleHost] = None

        self.data_path: Path = cog_data_path(self)
        self.db_path: Path = self.data_path / DATA_FILE
        self.io_lock: asyncio.Lock = asyncio.Lock()
        self.initialized: bool = False

        # Channel each run was started from {user_id: channel_id}
        self.run_channels: dict[int, int] = {}

    def format_help_for_context(self, ctx: commands.Context):
        helpcmd = super().format_help_for_context(ctx)
        txt = "Version: {}\nAuthor: {}".format(self.__version__, self.__author__)
        return f"{helpcmd}\n\n{txt}"

    async def red_get_data_for_user(self, *, user_id: int) -> t.MutableMapping[str, BytesIO]:
        if user_id not in self.engine.ledger:
            return {}
        record = self.engine.ledger.get(user_id)
        return {"data.json": BytesIO(json.dumps({str(user_id): record.dump(False)}).encode())}

    async def red_delete_data_for_user(self, *, requester: RequestType, user_id: int):
        self.run_channels.pop(user_id, None)
        if self.engine.forget(user_id):
            await self.save()
            log.info(f"Deleted data for user {user_id}")

    async def cog_load(self) -> None:
        asyncio.create_task(self.initialize())

    async def cog_unload(self) -> None:
        await self.save()
        self.bot.dispatch("battletower_cog_remove")

    async def initialize(self) -> None:
        await self.bot.wait_until_red_ready()
        self.settings = await self.config.all()
        await self.reload_pools()
        await self.load_streaks()
        self.initialized = True
        log.info("BattleTower initialized")
        # Let battle host cogs know they can register now
        self.bot.dispatch("battletower_cog_add", self)

    async def load_streaks(self) -> None:
        try:
            self.engine.ledger = await asyncio.to_thread(load_ledger, self.db_path)
        except PersistenceError as e:
            # Keep the unreadable file around so the next save doesn't destroy it
            backup = self.db_path.with_name(f"{self.db_path.stem}-corrupt-{uuid4().fields[0]}.json")
            log.error(f"{e.message}, starting with an empty ledger. Moved the bad file to {backup.name}")
            self.engine.ledger = StreakLedger()
            try:
                self.db_path.replace(backup)
            except OSError as err:
                log.error("Failed to move the unreadable streak file", exc_info=err)

    async def save(self) -> bool:
        if not self.initialized:
            log.error("Attempted to save before cog was initialized")
            return False
        try:
            async with self.io_lock:
                await asyncio.to_thread(save_ledger, self.engine.ledger, self.db_path)
            log.debug("Streaks saved")
            return True
        except PersistenceError as e:
            log.error(f"Failed to save streaks: {e.message}", exc_info=e)
        except Exception as e:
            log.error("Failed to save streaks", exc_info=e)
        return False

    def pool_source(self, filename: str) -> t.Optional[Path]:
        """Prefer a definition file in the cog's data folder over the bundled one"""
        custom = self.data_path / filename
        if custom.exists():
            return custom
        bundled = bundled_data_path(self) / filename
        if bundled.exists():
            return bundled
        return None

    async def reload_pools(self) -> None:
        rental_src = self.pool_source(RENTAL_TEAMS_FILE)
        bot_src = self.pool_source(BOT_TEAMS_FILE)
        await asyncio.to_thread(self.engine.pools.reload, rental_src, bot_src)

    # -------------------------- BATTLE HOST API --------------------------
    def register_battle_host(self, host: BattleHost) -> None:
        """Allow a battle simulation cog to host Battle Tower matches

        Only one host is active at a time, registering replaces the previous one.
        """
        if not isinstance(host, BattleHost):
            raise TypeError("Battle hosts must subclass BattleHost")
        if self.host is not None and self.host is not host:
            log.warning(f"Replacing battle host {type(self.host).__name__} with {type(host).__name__}")
        self.host = host
        log.info(f"Registered battle host {type(host).__name__}")

    def unregister_battle_host(self) -> None:
        if self.host is None:
            return
        log.info(f"Unregistered battle host {type(self.host).__name__}")
        self.host = None
