import logging
import typing as t
from pathlib import Path

from .errors import PersistenceError
from .models import DB, StreakRecord

log = logging.getLogger("red.vrt.battletower.ledger")


class StreakLedger:
    """Current and best win streak per player"""

    def __init__(self):
        self.records: dict[int, StreakRecord] = {}  # {user_id: StreakRecord}

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, player_id: int) -> bool:
        return player_id in self.records

    def get(self, player_id: int) -> StreakRecord:
        """Get a player's record without creating one"""
        return self.records.get(player_id) or StreakRecord()

    def current(self, player_id: int) -> int:
        return self.get(player_id).current

    def record_win(self, player_id: int) -> StreakRecord:
        record = self.records.setdefault(player_id, StreakRecord())
        record.current += 1
        if record.current > record.best:
            record.best = record.current
        return record

    def reset(self, player_id: int) -> None:
        if record := self.records.get(player_id):
            record.current = 0

    def clear(self, player_id: int) -> bool:
        return self.records.pop(player_id, None) is not None

    def leaderboard(self, limit: t.Optional[int] = None) -> list[tuple[int, StreakRecord]]:
        # Stable sort, ties keep the order players first won in
        ranked = sorted(self.records.items(), key=lambda i: (i[1].best, i[1].current), reverse=True)
        return ranked if limit is None else ranked[:limit]

    def snapshot(self) -> DB:
        return DB(
            win_streaks=[(uid, rec.current) for uid, rec in self.records.items()],
            max_win_streaks=[(uid, rec.best) for uid, rec in self.records.items()],
        )

    @classmethod
    def from_snapshot(cls, db: DB) -> "StreakLedger":
        ledger = cls()
        for uid, streak in db.win_streaks:
            ledger.records.setdefault(uid, StreakRecord()).current = max(0, streak)
        for uid, streak in db.max_win_streaks:
            ledger.records.setdefault(uid, StreakRecord()).best = max(0, streak)
        for uid, record in ledger.records.items():
            if record.best < record.current:
                log.warning(f"Best streak for {uid} was lower than their current streak, repairing")
                record.best = record.current
        return ledger


def load_ledger(path: Path) -> StreakLedger:
    """Read the ledger from disk, a missing file is an empty ledger

    Raises:
        PersistenceError: the file exists but could not be read or validated
    """
    if not path.exists():
        log.info("No existing streak data found, starting fresh")
        return StreakLedger()
    try:
        db = DB.from_file(path)
    except (OSError, ValueError) as e:
        raise PersistenceError(f"Could not load {path.name}: {e}") from e
    ledger = StreakLedger.from_snapshot(db)
    log.info(f"Loaded streaks for {len(ledger)} players")
    return ledger


def save_ledger(ledger: StreakLedger, path: Path) -> None:
    """Write a complete snapshot of the ledger

    Raises:
        PersistenceError: the snapshot could not be written
    """
    try:
        ledger.snapshot().to_file(path)
    except OSError as e:
        raise PersistenceError(f"Could not save {path.name}: {e}") from e
