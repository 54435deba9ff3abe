import typing as t
from abc import ABC, ABCMeta, abstractmethod
from pathlib import Path

from discord.ext.commands.cog import CogMeta
from redbot.core import Config
from redbot.core.bot import Red

from .common.engine import BattleTowerEngine
from .common.host import BattleHost


class CompositeMetaClass(CogMeta, ABCMeta):
    """Type detection"""


class MixinMeta(ABC):
    """Type hinting"""

    def __init__(self, *_args):
        self.bot: Red
        self.config: Config
        self.settings: dict[str, t.Any]
        self.engine: BattleTowerEngine
        self.host: t.Optional[BattleHost]
        self.data_path: Path
        self.run_channels: dict[int, int]

    @abstractmethod
    async def save(self) -> bool:
        """Write the streak ledger to disk"""
        raise NotImplementedError

    @abstractmethod
    async def reload_pools(self) -> None:
        """Reload the rental and opponent pools from their definition files"""
        raise NotImplementedError
