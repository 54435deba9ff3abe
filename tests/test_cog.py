import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from conftest import BOT_ID

from battletower.common.ledger import StreakLedger, load_ledger
from battletower.listeners import Listeners
from battletower.main import BattleTower

PLAYER = 1


def make_cog(engine, db_path, **kwargs) -> SimpleNamespace:
    cog = SimpleNamespace(
        engine=engine,
        db_path=db_path,
        initialized=True,
        io_lock=asyncio.Lock(),
        bot=MagicMock(),
        **kwargs,
    )
    cog.save = BattleTower.save.__get__(cog)
    cog.load_streaks = BattleTower.load_streaks.__get__(cog)
    return cog


def test_save_writes_ledger(engine, tmp_path):
    engine.ledger.record_win(PLAYER)
    cog = make_cog(engine, tmp_path / "data.json")
    assert asyncio.run(cog.save())
    assert load_ledger(cog.db_path).current(PLAYER) == 1


def test_failed_save_is_logged_and_keeps_records(engine, tmp_path, caplog):
    engine.ledger.record_win(PLAYER)
    cog = make_cog(engine, tmp_path / "missing" / "data.json")
    assert asyncio.run(cog.save()) is False
    assert engine.ledger.current(PLAYER) == 1
    assert "Failed to save streaks" in caplog.text


def test_save_before_initialized(engine, tmp_path):
    cog = make_cog(engine, tmp_path / "data.json")
    cog.initialized = False
    assert asyncio.run(cog.save()) is False
    assert not cog.db_path.exists()


def test_load_streaks_missing_file(engine, tmp_path):
    cog = make_cog(engine, tmp_path / "data.json")
    asyncio.run(cog.load_streaks())
    assert len(engine.ledger) == 0
    assert list(tmp_path.iterdir()) == []


def test_corrupt_streak_file_is_moved_aside(engine, tmp_path):
    db_path = tmp_path / "data.json"
    db_path.write_text("{not json")
    engine.ledger.record_win(PLAYER)
    cog = make_cog(engine, db_path)
    asyncio.run(cog.load_streaks())

    assert isinstance(engine.ledger, StreakLedger)
    assert len(engine.ledger) == 0
    assert not db_path.exists()
    backups = list(tmp_path.glob("data-corrupt-*.json"))
    assert len(backups) == 1
    assert backups[0].read_text() == "{not json"


def make_listener(engine, tmp_path) -> SimpleNamespace:
    cog = make_cog(engine, tmp_path / "data.json", settings={}, run_channels={})
    cog.save = AsyncMock(return_value=True)
    cog.announce = AsyncMock()
    cog.on_battle_end = Listeners.on_battle_end.__get__(cog)
    return cog


def test_win_signal_saves_once_and_dispatches(engine, host, tmp_path):
    _, handle = asyncio.run(engine.start_run(PLAYER, host))
    cog = make_listener(engine, tmp_path)
    asyncio.run(cog.on_battle_end(handle.battle_id, PLAYER, [PLAYER, BOT_ID]))

    assert engine.ledger.current(PLAYER) == 1
    cog.save.assert_awaited_once()
    cog.bot.dispatch.assert_called_once()
    event, resolution = cog.bot.dispatch.call_args.args
    assert event == "battletower_result"
    assert resolution.won and resolution.streak == 1
    cog.announce.assert_awaited_once_with(resolution)


def test_untracked_signal_does_nothing(engine, tmp_path):
    cog = make_listener(engine, tmp_path)
    asyncio.run(cog.on_battle_end("unknown", PLAYER, [PLAYER, BOT_ID]))
    cog.save.assert_not_awaited()
    cog.bot.dispatch.assert_not_called()
    cog.announce.assert_not_awaited()
