import logging
import typing as t
from pathlib import Path

import orjson
from pydantic import ValidationError

from .errors import PoolLoadError
from .models import RentalTeam, RosterEntity, to_id

log = logging.getLogger("red.vrt.battletower.pools")

PoolRole = t.Literal["rental", "opponent"]


class Pool:
    """Immutable set of named teams plus the flattened view used for sampling"""

    __slots__ = ("role", "_teams", "aggregate", "error")

    def __init__(self, role: PoolRole, teams: t.Iterable[RentalTeam] = (), error: t.Optional[str] = None):
        self.role = role
        teams = list(teams)
        self._teams: dict[str, RentalTeam] = {}
        for team in teams:
            if team.key in self._teams:
                log.warning(f"Duplicate {role} team id '{team.id}', lookups will return the last one")
            self._teams[team.key] = team
        # Every team contributes members, even when its id is shadowed for lookups
        self.aggregate: tuple[RosterEntity, ...] = tuple(m for team in teams for m in team.members)
        self.error = error

    def __len__(self) -> int:
        return len(self.aggregate)

    def __bool__(self) -> bool:
        return bool(self.aggregate)

    def __repr__(self) -> str:
        return f"<Pool role={self.role} teams={len(self._teams)} members={len(self.aggregate)}>"

    @property
    def teams(self) -> list[RentalTeam]:
        return list(self._teams.values())

    def get_team(self, team_id: str) -> t.Optional[RentalTeam]:
        return self._teams.get(to_id(team_id))


def load_pool(path: t.Optional[Path], role: PoolRole) -> Pool:
    """Build a pool from a JSON definition file

    A missing file is not an error, it just yields an empty pool.

    Raises:
        PoolLoadError: the file exists but could not be read or parsed
    """
    if path is None or not path.exists():
        log.warning(f"No {role} team definitions found at {path}, the {role} pool will be empty")
        return Pool(role, error="definition file not found")
    try:
        raw = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as e:
        raise PoolLoadError(f"Could not read {path.name}: {e}") from e
    if not isinstance(raw, list):
        raise PoolLoadError(f"{path.name} must contain a list of teams")
    try:
        teams = [RentalTeam.load(i) for i in raw]
    except ValidationError as e:
        raise PoolLoadError(f"{path.name} contains an invalid team: {e.error_count()} error(s)") from e
    pool = Pool(role, teams)
    log.info(f"Loaded {len(pool.teams)} {role} teams ({len(pool)} members) from {path.name}")
    return pool


def load_pools(player_source: t.Optional[Path], opponent_source: t.Optional[Path]) -> tuple[Pool, Pool]:
    pools = []
    for path, role in ((player_source, "rental"), (opponent_source, "opponent")):
        try:
            pools.append(load_pool(path, role))
        except PoolLoadError as e:
            log.error(f"Failed to load the {role} pool, it will be unavailable: {e.message}")
            pools.append(Pool(role, error=e.message))
    return pools[0], pools[1]


class PoolRegistry:
    """Holds the rental and opponent pools

    Both pools live in a single tuple so a reload swaps them together and
    readers never see one new pool next to one old pool.
    """

    def __init__(self, rental: t.Optional[Pool] = None, opponent: t.Optional[Pool] = None):
        if rental is None:
            rental = Pool("rental")
        if opponent is None:
            opponent = Pool("opponent")
        self._pools: tuple[Pool, Pool] = (rental, opponent)

    @property
    def rental(self) -> Pool:
        return self._pools[0]

    @property
    def opponent(self) -> Pool:
        return self._pools[1]

    def swap(self, rental: Pool, opponent: Pool) -> None:
        self._pools = (rental, opponent)

    def reload(self, player_source: t.Optional[Path], opponent_source: t.Optional[Path]) -> tuple[Pool, Pool]:
        rental, opponent = load_pools(player_source, opponent_source)
        self.swap(rental, opponent)
        return rental, opponent

    def aggregate(self, role: PoolRole) -> tuple[RosterEntity, ...]:
        return self.rental.aggregate if role == "rental" else self.opponent.aggregate

    def teams(self) -> list[RentalTeam]:
        return self.rental.teams

    def get_team(self, team_id: str) -> t.Optional[RentalTeam]:
        return self.rental.get_team(team_id)
