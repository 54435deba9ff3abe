import typing as t
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from .models import RosterEntity


@dataclass(frozen=True)
class BattleSide:
    user_id: int
    team: list[RosterEntity] = field(default_factory=list)

    def export(self) -> dict[str, t.Any]:
        return {"user_id": self.user_id, "team": [member.export() for member in self.team]}


@dataclass(frozen=True)
class BattleHandle:
    battle_id: str
    channel_id: t.Optional[int] = None
    jump_url: t.Optional[str] = None


class BattleHost(ABC):
    """Interface a battle simulation cog implements to host Battle Tower matches

    When a battle finishes the host must dispatch the `battle_end` event:

    ```python
    bot.dispatch("battle_end", battle_id, winner_id, participant_ids)
    ```
    `winner_id` is None for a draw.
    """

    # Identity of the bot side of every Battle Tower battle
    opponent_id: int
    opponent_name: str = "Battle Tower"

    def is_online(self) -> bool:
        return True

    @abstractmethod
    async def create_battle(
        self,
        sides: list[BattleSide],
        battle_format: str,
        title: str,
    ) -> t.Optional[BattleHandle]:
        """Create the battle room. Return None if the battle could not be created."""
        raise NotImplementedError
