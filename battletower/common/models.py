import logging
import os
import re
import typing as t
from pathlib import Path
from uuid import uuid4

from pydantic import ConfigDict, Field

from . import Base

log = logging.getLogger("red.vrt.battletower.models")


def to_id(text: str) -> str:
    """Normalize a team name or id the way lookups expect it (lowercase alphanumerics)"""
    return re.sub(r"[^a-z0-9]", "", str(text).lower())


class RosterEntity(Base):
    """One rentable creature. Frozen once loaded from a definition file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    species: str
    ability: str
    item: t.Optional[str] = None
    moves: tuple[str, ...] = Field(min_length=1)
    evs: dict[str, int] = {}
    ivs: t.Optional[dict[str, int]] = None
    nature: t.Optional[str] = None
    tera_type: t.Optional[str] = Field(default=None, alias="teraType")
    gender: t.Optional[str] = None
    shiny: t.Optional[bool] = None

    def export(self) -> dict[str, t.Any]:
        """Payload handed to the battle host, using the definition file key names"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RentalTeam(Base):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    members: tuple[RosterEntity, ...] = Field(default=(), alias="pokemons")

    @property
    def key(self) -> str:
        return to_id(self.id)


class StreakRecord(Base):
    current: int = 0
    best: int = 0


class DB(Base):
    """Durable snapshot of the streak ledger

    Two ordered lists of (user_id, streak) pairs. Run state is never stored here.
    """

    win_streaks: list[tuple[int, int]] = []
    max_win_streaks: list[tuple[int, int]] = []

    @classmethod
    def from_file(cls, path: Path) -> "DB":
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        if not path.is_file():
            raise IsADirectoryError(f"Path is not a file: {path}")
        return cls.model_validate_json(path.read_text(encoding="utf-8"))

    def to_file(self, path: Path) -> None:
        dump = self.model_dump_json(indent=2)
        # Write to a temp file first so a crash mid-write never truncates the real one
        tmp_path = path.parent / f"{path.stem}-{uuid4().fields[0]}.tmp"
        with tmp_path.open(encoding="utf-8", mode="w") as fs:
            fs.write(dump)
            fs.flush()
            os.fsync(fs.fileno())

        tmp_path.replace(path)

        # Directory fsync (Unix only)
        o_directory = getattr(os, "O_DIRECTORY", None)
        if o_directory is not None:
            fd = os.open(path.parent, o_directory)
            try:
                os.fsync(fd)
            finally:
                os.close(fd)
