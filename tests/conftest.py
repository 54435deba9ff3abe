import random
import typing as t
from itertools import count

import pytest

from battletower.common.engine import BattleTowerEngine
from battletower.common.host import BattleHandle, BattleHost, BattleSide
from battletower.common.models import RentalTeam, RosterEntity
from battletower.common.pools import Pool, PoolRegistry

BOT_ID = 999


def make_member(species: str, **kwargs) -> RosterEntity:
    kwargs.setdefault("ability", "Pressure")
    kwargs.setdefault("moves", ["Tackle"])
    return RosterEntity(species=species, **kwargs)


def make_pool(role: str, *species: str, team_id: str = "main") -> Pool:
    team = RentalTeam(id=team_id, name=team_id.title(), members=[make_member(s) for s in species])
    return Pool(role, [team])


class FakeHost(BattleHost):
    opponent_id = BOT_ID
    opponent_name = "Tower Bot"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.created: list[tuple[list[BattleSide], str, str]] = []
        self._ids = count(1)

    async def create_battle(self, sides, battle_format, title) -> t.Optional[BattleHandle]:
        if self.fail:
            return None
        self.created.append((sides, battle_format, title))
        return BattleHandle(battle_id=f"battle-{next(self._ids)}")


@pytest.fixture
def rental_species() -> list[str]:
    return ["Pikachu", "Bulbasaur", "Charmander", "Squirtle", "Eevee", "Snorlax", "Gengar", "Lapras"]


@pytest.fixture
def engine(rental_species) -> BattleTowerEngine:
    pools = PoolRegistry(
        make_pool("rental", *rental_species),
        make_pool("opponent", "Mewtwo", "Lugia", "Ho-Oh", "Rayquaza", "Kyogre", "Groudon", "Dialga"),
    )
    return BattleTowerEngine(pools=pools, rng=random.Random(1234))


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()
