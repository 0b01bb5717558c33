"""Exception hierarchy for queuecast.

Errors raised while processing a single program are caught by the updater and
attached to that program's result; they never abort a whole pass.
"""

from __future__ import annotations

from pathlib import Path


class QueuecastError(Exception):
    """Base exception for all queuecast errors."""


class ConfigError(QueuecastError):
    """Invalid or incomplete configuration."""


class EnumerationError(QueuecastError):
    """A program's source directory could not be turned into an episode list."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class DirectoryUnreadable(EnumerationError):
    """Source directory is missing, not a directory, or cannot be listed."""


class EnumerationEmpty(EnumerationError):
    """Source directory contains no recognizable episode files."""


class ScheduleError(QueuecastError):
    """The due episode could not be computed."""


class NoEpisodesAvailable(ScheduleError):
    """Raised when asked to schedule a program with zero episodes."""


class SyncError(QueuecastError):
    """The output symlink could not be brought in line with the due episode."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class SyncDirNotWritable(SyncError):
    """The symlink directory is missing or cannot be written."""


class SyncUnexpectedEntry(SyncError):
    """Something other than a symlink occupies the program's link name."""


class RegistryError(QueuecastError):
    """Program registry errors."""


class DuplicatePath(RegistryError):
    """A program already tracks the given source directory."""


class ProgramNotFound(RegistryError):
    """No program matches the given id."""


class AmbiguousProgram(RegistryError):
    """An id prefix matches more than one program."""


class PersistFailure(RegistryError):
    """Program state could not be written to or read from the store."""
