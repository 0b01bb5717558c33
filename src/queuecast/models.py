from __future__ import annotations

import datetime as dt
import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, NamedTuple, Optional

DEFAULT_CADENCE = dt.timedelta(days=7)


class ProgramStatus(str, enum.Enum):
    READY = "ready"
    RUNNING = "running"
    FINISHED = "finished"
    STOPPED = "stopped"


class EpisodeKey(NamedTuple):
    """Ordering key for an episode file: season, then episode, then name.

    Parsers fill ``name`` with the filename; enumeration swaps in the path
    relative to the show directory so files in different folders never tie.
    """

    season: int
    episode: int
    name: str


@dataclass(slots=True, frozen=True)
class Episode:
    path: Path
    key: EpisodeKey

    @property
    def label(self) -> str:
        return f"S{self.key.season:02d}E{self.key.episode:02d}"


@dataclass(slots=True)
class EpisodeSet:
    source_dir: Path
    episodes: List[Episode] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.episodes)

    def __getitem__(self, index: int) -> Episode:
        return self.episodes[index]


@dataclass(slots=True)
class Program:
    id: str
    name: str
    source_dir: Path
    start_reference: dt.datetime
    cadence: dt.timedelta = DEFAULT_CADENCE
    last_emitted_index: Optional[int] = None
    offset: int = 0
    status: ProgramStatus = ProgramStatus.READY
    added_at: Optional[dt.datetime] = None
    last_update: Optional[dt.datetime] = None

    @property
    def cadence_days(self) -> float:
        return self.cadence.total_seconds() / 86400


@dataclass(slots=True)
class ProgramSummary:
    """Read-only view of a program for listings."""

    program: Program
    episode_count: Optional[int] = None
    due_index: Optional[int] = None
    next_advance: Optional[dt.datetime] = None
    problem: Optional[str] = None


class SyncOutcome(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(slots=True)
class ProgramResult:
    program_id: str
    name: str
    outcome: SyncOutcome
    episode_path: Optional[Path] = None
    index: Optional[int] = None
    episode_count: Optional[int] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class UpdateReport:
    results: List[ProgramResult] = field(default_factory=list)

    def add(self, result: ProgramResult) -> None:
        self.results.append(result)

    @property
    def failures(self) -> List[ProgramResult]:
        return [result for result in self.results if not result.ok]

    @property
    def exit_code(self) -> int:
        return 1 if self.failures else 0

    def count(self, outcome: SyncOutcome) -> int:
        return sum(1 for result in self.results if result.outcome is outcome)
