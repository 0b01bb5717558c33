"""Persistence layer for tracked programs.

Public API:
- ProgramStore: SQLite-backed store for program records

Example:
    from queuecast.persistence import ProgramStore

    store = ProgramStore(Path("/path/to/queuecast.db"))
    store.save(program)
"""

from .program_store import ProgramStore

__all__ = [
    "ProgramStore",
]
