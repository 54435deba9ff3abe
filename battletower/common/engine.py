from __future__ import annotations

import asyncio
import logging
import random
import typing as t
from dataclasses import dataclass, field

from .constants import DEFAULT_FORMAT
from .errors import (
    AlreadyActiveError,
    BattleCreationFailedError,
    GrowthExhaustedError,
    PoolUnavailableError,
)
from .host import BattleHandle, BattleHost, BattleSide
from .ledger import StreakLedger
from .models import RosterEntity
from .pools import PoolRegistry
from .teams import generate_team, grow_for_streak, opponent_team, required_size
from .tracker import RunSessionTracker

log = logging.getLogger("red.vrt.battletower.engine")


@dataclass
class Matchup:
    """Rosters resolved for a start request, before the battle exists"""

    player_id: int
    streak: int
    team: list[RosterEntity]
    opponent: list[RosterEntity]
    grew: bool = False
    exhausted: bool = False


@dataclass
class Resolution:
    player_id: int
    battle_id: str
    won: bool
    streak: int
    best: int
    next_team_size: int
    reset_players: list[int] = field(default_factory=list)


class BattleTowerEngine:
    """Owns the pools, the streak ledger and the run tracker

    Every mutation happens synchronously inside one call so the event loop never
    observes a half-applied update.
    """

    def __init__(
        self,
        pools: t.Optional[PoolRegistry] = None,
        ledger: t.Optional[StreakLedger] = None,
        tracker: t.Optional[RunSessionTracker] = None,
        rng: t.Optional[random.Random] = None,
    ):
        self.pools = pools if pools is not None else PoolRegistry()
        self.ledger = ledger if ledger is not None else StreakLedger()
        self.tracker = tracker if tracker is not None else RunSessionTracker()
        self.rng = rng if rng is not None else random.Random()
        self._start_locks: dict[int, asyncio.Lock] = {}

    def _resolve_team(self, player_id: int, streak: int) -> tuple[list[RosterEntity], bool, bool]:
        """Work out the player's roster for the next battle without storing it

        Returns (team, grew, exhausted)
        """
        team = self.tracker.team(player_id)
        if not team or streak == 0:
            fresh = generate_team(1, self.pools.rental.aggregate, self.rng)
            if not fresh:
                raise PoolUnavailableError("The rental pool is empty, please try again later or contact staff.")
            return fresh, False, False

        try:
            grown = grow_for_streak(team, streak, self.pools.rental.aggregate, self.rng)
        except GrowthExhaustedError as e:
            log.warning(f"Could not grow the team for {player_id} at streak {streak}: {e.message}")
            return list(team), False, True
        return grown, len(grown) > len(team), False

    def prepare(self, player_id: int) -> Matchup:
        """Resolve both rosters for a start request and mark the player's team ready

        Raises:
            AlreadyActiveError: the player is already in a battle
            PoolUnavailableError: the rental or opponent pool is empty
        """
        if self.tracker.in_battle(player_id):
            raise AlreadyActiveError("You are already in a Battle Tower battle.")

        streak = self.ledger.current(player_id)
        team, grew, exhausted = self._resolve_team(player_id, streak)
        opponent = opponent_team(streak, self.pools.opponent.aggregate, self.rng)
        if not opponent:
            raise PoolUnavailableError("Failed to find an opponent team, please try again later or contact staff.")

        # Nothing is stored until both rosters exist
        self.tracker.set_team(player_id, team)
        return Matchup(player_id, streak, team, opponent, grew=grew, exhausted=exhausted)

    async def start_run(
        self,
        player_id: int,
        host: t.Optional[BattleHost],
        battle_format: str = DEFAULT_FORMAT,
        player_name: t.Optional[str] = None,
    ) -> tuple[Matchup, BattleHandle]:
        """Start or resume a run and create the battle through the host

        Starts for the same player run one at a time, and the player is only
        locked once the host confirms the battle exists.
        """
        if host is None or not host.is_online():
            raise BattleCreationFailedError("The Battle Tower host is currently offline.")

        lock = self._start_locks.setdefault(player_id, asyncio.Lock())
        async with lock:
            matchup = self.prepare(player_id)
            sides = [
                BattleSide(player_id, matchup.team),
                BattleSide(host.opponent_id, matchup.opponent),
            ]
            title = f"Battle Tower: {player_name or 'Challenger'} vs. {host.opponent_name}"
            handle = await host.create_battle(sides, battle_format, title)
            if handle is None:
                raise BattleCreationFailedError("Failed to create the battle room.")

            self.tracker.set_team(player_id, matchup.team)
            self.tracker.enter_battle(player_id, handle.battle_id)
        log.info(f"{player_id} started battle {handle.battle_id} at streak {matchup.streak}")
        return matchup, handle

    def resolve(
        self,
        battle_id: str,
        winner_id: t.Optional[int],
        participant_ids: t.Sequence[int],
    ) -> t.Optional[Resolution]:
        """Apply a finished battle to the ledger and the tracker

        Signals for battles that are not being tracked are ignored.
        """
        player_id = self.tracker.player_for_battle(battle_id)
        if player_id is None or player_id not in participant_ids:
            log.debug(f"Ignoring end signal for untracked battle {battle_id}")
            return None

        reset = []
        won = winner_id is not None and winner_id == player_id
        if won:
            self.ledger.record_win(player_id)
            for other in participant_ids:
                if other == player_id:
                    continue
                self.ledger.reset(other)
                self.tracker.clear_team(other)
                reset.append(other)
        else:
            self.ledger.reset(player_id)
            self.tracker.clear_team(player_id)

        self.tracker.finish_battle(player_id, battle_id)
        record = self.ledger.get(player_id)
        log.info(f"Battle {battle_id} resolved for {player_id}: {'win' if won else 'loss'}, streak {record.current}")
        return Resolution(
            player_id=player_id,
            battle_id=battle_id,
            won=won,
            streak=record.current,
            best=record.best,
            next_team_size=required_size(record.current),
            reset_players=reset,
        )

    def release(self, player_id: int) -> bool:
        return self.tracker.release(player_id)

    def reset_player(self, player_id: int) -> None:
        self.ledger.reset(player_id)
        self.tracker.clear_team(player_id)

    def forget(self, player_id: int) -> bool:
        lock = self._start_locks.get(player_id)
        if lock is not None and not lock.locked():
            del self._start_locks[player_id]
        self.tracker.forget(player_id)
        return self.ledger.clear(player_id)
