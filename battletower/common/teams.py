from __future__ import annotations

import random
import typing as t

from .constants import GROWTH_INTERVAL, MAX_TEAM_SIZE
from .errors import GrowthExhaustedError
from .models import RosterEntity

Team = list[RosterEntity]


def required_size(streak: int) -> int:
    """Team size for a given win streak.

    Starts at 1 and gains one slot for every 5 wins, capped at 6.
    """
    if streak < 0:
        raise ValueError(f"Streak cannot be negative: {streak}")
    return min(MAX_TEAM_SIZE, streak // GROWTH_INTERVAL + 1)


def generate_team(
    size: int,
    pool: t.Sequence[RosterEntity],
    rng: random.Random | None = None,
) -> Team | None:
    """Draw up to `size` members from the pool without replacement.

    Pool indices are shuffled and a prefix is taken, skipping any species already
    drawn since the same creature may be listed under several rental teams.

    Returns None only when the pool is empty. A pool smaller than `size` gives a
    smaller team.
    """
    if not pool:
        return None
    rng = rng or random
    indices = list(range(len(pool)))
    rng.shuffle(indices)

    target = min(size, len(pool))
    team: Team = []
    species: set[str] = set()
    for idx in indices:
        if len(team) >= target:
            break
        member = pool[idx]
        if member.species in species:
            continue
        species.add(member.species)
        team.append(member)
    return team


def grow_team(
    team: t.Sequence[RosterEntity],
    pool: t.Sequence[RosterEntity],
    rng: random.Random | None = None,
) -> Team | None:
    """Return a copy of the team with one new species appended.

    Returns None if every species in the pool is already on the team.
    """
    rng = rng or random
    owned = {member.species for member in team}
    available = [member for member in pool if member.species not in owned]
    if not available:
        return None
    return [*team, rng.choice(available)]


def opponent_team(
    streak: int,
    pool: t.Sequence[RosterEntity],
    rng: random.Random | None = None,
) -> Team | None:
    return generate_team(required_size(streak), pool, rng)


def grow_for_streak(
    team: t.Sequence[RosterEntity],
    streak: int,
    pool: t.Sequence[RosterEntity],
    rng: random.Random | None = None,
) -> Team:
    """Add one member if the streak calls for a bigger team.

    Growth is one member per call even when several brackets were skipped.

    Raises:
        GrowthExhaustedError: the team needs to grow but the pool has no new species
    """
    if required_size(streak) <= len(team):
        return list(team)
    grown = grow_team(team, pool, rng)
    if grown is None:
        raise GrowthExhaustedError(f"No species left to add to a team of {len(team)}")
    return grown
