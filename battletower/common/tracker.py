from __future__ import annotations

import logging
import typing as t
from enum import Enum

from .errors import AlreadyActiveError, IllegalTransitionError
from .models import RosterEntity

log = logging.getLogger("red.vrt.battletower.tracker")


class RunState(str, Enum):
    IDLE = "idle"
    TEAM_READY = "team_ready"
    IN_BATTLE = "in_battle"


class RunSessionTracker:
    """Per-player run state and the cached roster for the run.

    In-memory only, a restart drops every run and every lock.

    IDLE -> TEAM_READY   a team was generated or grown
    TEAM_READY -> IN_BATTLE   the host created the battle
    IN_BATTLE -> IDLE   the battle ended (either outcome)
    """

    def __init__(self):
        self.teams: dict[int, list[RosterEntity]] = {}  # {user_id: roster}
        self.states: dict[int, RunState] = {}  # {user_id: state}, IDLE players are not stored
        self.battles: dict[int, str] = {}  # {user_id: battle_id}

    def state(self, player_id: int) -> RunState:
        return self.states.get(player_id, RunState.IDLE)

    def in_battle(self, player_id: int) -> bool:
        return self.state(player_id) is RunState.IN_BATTLE

    def team(self, player_id: int) -> t.Optional[list[RosterEntity]]:
        return self.teams.get(player_id)

    def battle_id(self, player_id: int) -> t.Optional[str]:
        return self.battles.get(player_id)

    def player_for_battle(self, battle_id: str) -> t.Optional[int]:
        for player_id, bid in self.battles.items():
            if bid == battle_id:
                return player_id
        return None

    def active_players(self) -> list[int]:
        return [pid for pid, state in self.states.items() if state is RunState.IN_BATTLE]

    def set_team(self, player_id: int, team: list[RosterEntity]) -> None:
        if self.in_battle(player_id):
            raise AlreadyActiveError("You are already in a Battle Tower battle.")
        self.teams[player_id] = list(team)
        self.states[player_id] = RunState.TEAM_READY

    def enter_battle(self, player_id: int, battle_id: str) -> None:
        state = self.state(player_id)
        if state is not RunState.TEAM_READY:
            raise IllegalTransitionError(f"Cannot enter a battle from the {state.value} state")
        self.states[player_id] = RunState.IN_BATTLE
        self.battles[player_id] = battle_id
        log.debug(f"{player_id} entered battle {battle_id}")

    def finish_battle(self, player_id: int, battle_id: str) -> bool:
        if not self.in_battle(player_id) or self.battles.get(player_id) != battle_id:
            return False
        del self.battles[player_id]
        self.states.pop(player_id, None)
        log.debug(f"{player_id} finished battle {battle_id}")
        return True

    def clear_team(self, player_id: int) -> None:
        self.teams.pop(player_id, None)
        if not self.in_battle(player_id):
            self.states.pop(player_id, None)

    def release(self, player_id: int) -> bool:
        """Force a player out of their battle, keeping their team. Returns True if they were locked."""
        was_locked = self.in_battle(player_id)
        self.battles.pop(player_id, None)
        self.states.pop(player_id, None)
        return was_locked

    def forget(self, player_id: int) -> None:
        self.teams.pop(player_id, None)
        self.states.pop(player_id, None)
        self.battles.pop(player_id, None)
