from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

from queuecast.clock import FixedClock
from queuecast.config import Settings
from queuecast.persistence import ProgramStore
from queuecast.registry import ProgramRegistry

DAY_ZERO = dt.datetime(2026, 1, 5, 20, 0, tzinfo=dt.timezone.utc)


def make_show(root: Path, name: str, count: int, *, suffix: str = ".mkv") -> Path:
    show = root / name
    show.mkdir(parents=True, exist_ok=True)
    for number in range(1, count + 1):
        (show / f"{name}.S01E{number:02d}{suffix}").write_bytes(b"")
    return show


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(DAY_ZERO)


@pytest.fixture
def symlink_dir(tmp_path: Path) -> Path:
    path = tmp_path / "this-week"
    path.mkdir()
    return path.resolve()


@pytest.fixture
def settings(tmp_path: Path, symlink_dir: Path) -> Settings:
    return Settings(symlink_dir=symlink_dir, database_path=tmp_path / "queuecast.db")


@pytest.fixture
def store(settings: Settings) -> ProgramStore:
    program_store = ProgramStore(settings.database_path)
    yield program_store
    program_store.close()


@pytest.fixture
def registry(store: ProgramStore, settings: Settings, clock: FixedClock) -> ProgramRegistry:
    return ProgramRegistry(store, settings, clock)


@pytest.fixture
def shows_root(tmp_path: Path) -> Path:
    root = tmp_path / "shows"
    root.mkdir()
    return root.resolve()
