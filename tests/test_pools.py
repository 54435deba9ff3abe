import json
from pathlib import Path

import pytest
from conftest import make_pool

from battletower.common.errors import PoolLoadError
from battletower.common.pools import PoolRegistry, load_pool, load_pools

BUNDLED = Path(__file__).parent.parent / "battletower" / "data"

TEAMS = [
    {
        "id": "Team One",
        "name": "Team One",
        "pokemons": [
            {
                "species": "Pikachu",
                "ability": "Static",
                "item": "Light Ball",
                "moves": ["Thunderbolt", "Volt Tackle"],
                "evs": {"atk": 252, "spe": 252},
                "teraType": "Electric",
                "shiny": True,
            },
            {"species": "Eevee", "ability": "Adaptability", "moves": ["Last Resort"], "evs": {}},
        ],
    },
    {
        "id": "two",
        "name": "Two",
        "pokemons": [{"species": "Snorlax", "ability": "Thick Fat", "moves": ["Rest"], "evs": {"hp": 252}}],
    },
]


def write(tmp_path, name, data) -> Path:
    path = tmp_path / name
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    return path


def test_load_pool(tmp_path):
    pool = load_pool(write(tmp_path, "rental.json", TEAMS), "rental")
    assert len(pool) == 3
    assert [team.key for team in pool.teams] == ["teamone", "two"]
    assert pool.get_team("TEAM-ONE").name == "Team One"
    pikachu = pool.aggregate[0]
    assert pikachu.tera_type == "Electric"
    assert pikachu.moves == ("Thunderbolt", "Volt Tackle")
    assert pool.error is None


def test_export_uses_definition_keys(tmp_path):
    pool = load_pool(write(tmp_path, "rental.json", TEAMS), "rental")
    payload = pool.aggregate[0].export()
    assert payload["teraType"] == "Electric"
    assert payload["moves"] == ["Thunderbolt", "Volt Tackle"]
    assert "gender" not in payload


def test_missing_source_is_empty(tmp_path):
    pool = load_pool(tmp_path / "nope.json", "opponent")
    assert not pool
    assert pool.error


def test_malformed_json_raises(tmp_path):
    with pytest.raises(PoolLoadError):
        load_pool(write(tmp_path, "bad.json", "[{"), "rental")


def test_not_a_list_raises(tmp_path):
    with pytest.raises(PoolLoadError):
        load_pool(write(tmp_path, "bad.json", {"id": "x"}), "rental")


def test_member_without_moves_raises(tmp_path):
    data = [{"id": "x", "name": "X", "pokemons": [{"species": "Ditto", "ability": "Imposter", "moves": []}]}]
    with pytest.raises(PoolLoadError):
        load_pool(write(tmp_path, "bad.json", data), "rental")


def test_load_pools_degrades_to_empty(tmp_path):
    good = write(tmp_path, "good.json", TEAMS)
    bad = write(tmp_path, "bad.json", "garbage")
    rental, opponent = load_pools(good, bad)
    assert len(rental) == 3
    assert len(opponent) == 0
    assert opponent.error


def test_registry_reload_swaps_both(tmp_path):
    registry = PoolRegistry(make_pool("rental", "A"), make_pool("opponent", "B"))
    old_rental = registry.rental
    registry.reload(write(tmp_path, "r.json", TEAMS), write(tmp_path, "o.json", TEAMS[1:]))
    assert registry.rental is not old_rental
    assert len(registry.aggregate("rental")) == 3
    assert [m.species for m in registry.aggregate("opponent")] == ["Snorlax"]
    # The old pool object is untouched for anyone still holding it
    assert [m.species for m in old_rental.aggregate] == ["A"]


def test_bundled_definitions_load():
    rental, opponent = load_pools(BUNDLED / "rentalteams.json", BUNDLED / "botteams.json")
    assert rental.error is None and opponent.error is None
    assert len(rental.teams) >= 1 and len(opponent.teams) >= 1
    assert len({m.species for m in opponent.aggregate}) >= 6


def test_duplicate_team_ids_keep_all_members(tmp_path):
    data = [
        {"id": "dupe", "name": "First", "pokemons": [{"species": "Pikachu", "ability": "Static", "moves": ["Surf"]}]},
        {"id": "DUPE", "name": "Second", "pokemons": [{"species": "Eevee", "ability": "Run Away", "moves": ["Bite"]}]},
    ]
    pool = load_pool(write(tmp_path, "rental.json", data), "rental")
    assert [m.species for m in pool.aggregate] == ["Pikachu", "Eevee"]
    assert pool.get_team("dupe").name == "Second"
