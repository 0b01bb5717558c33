"""SQLite-backed store for tracked programs.

Every write runs in its own transaction, so an interrupted process leaves
each program either in its old or its new state, never half-written. The
store does not coordinate concurrent processes.
"""

from __future__ import annotations

import datetime as dt
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

from ..errors import PersistFailure
from ..models import Program, ProgramStatus
from ..utils import ensure_aware

if TYPE_CHECKING:
    from collections.abc import Iterator


def _adapt_datetime(value: dt.datetime) -> str:
    """Convert datetime to ISO format string for SQLite storage."""
    return ensure_aware(value).isoformat()


def _convert_datetime(data: bytes) -> dt.datetime:
    """Convert ISO format string from SQLite to an aware datetime."""
    return ensure_aware(dt.datetime.fromisoformat(data.decode("utf-8")))


sqlite3.register_adapter(dt.datetime, _adapt_datetime)
sqlite3.register_converter("TIMESTAMP", _convert_datetime)


class ProgramStore:
    """SQLite-backed store for :class:`~queuecast.models.Program` records.

    Example:
        store = ProgramStore(Path("~/.config/queuecast/queuecast.db").expanduser())
        for program in store.load_all():
            print(program.id, program.name)
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path) -> None:
        """Initialize the store with the given database path.

        Args:
            db_path: Path to the SQLite database file
        """
        self._db_path = db_path
        self._connection: sqlite3.Connection | None = None
        try:
            self._init_db()
        except (sqlite3.Error, OSError) as exc:
            raise PersistFailure(f"Unable to open program database {db_path}: {exc}") from exc

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _get_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = sqlite3.connect(self._db_path, detect_types=sqlite3.PARSE_DECLTYPES)
            self._connection.row_factory = sqlite3.Row
        return self._connection

    def _init_db(self) -> None:
        """Initialize database schema."""
        conn = self._get_connection()
        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """)
            row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
            current_version = row["version"] if row else 0
            if current_version < self.SCHEMA_VERSION:
                self._migrate_schema(conn, current_version)

    def _migrate_schema(self, conn: sqlite3.Connection, from_version: int) -> None:
        if from_version < 1:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS programs (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    source_dir TEXT UNIQUE NOT NULL,
                    start_reference TIMESTAMP NOT NULL,
                    cadence_seconds REAL NOT NULL,
                    last_emitted_index INTEGER,
                    skip_offset INTEGER NOT NULL DEFAULT 0,
                    status TEXT NOT NULL DEFAULT 'ready',
                    added_at TIMESTAMP,
                    last_update TIMESTAMP
                )
            """)
        conn.execute("DELETE FROM schema_version")
        conn.execute("INSERT INTO schema_version (version) VALUES (?)", (self.SCHEMA_VERSION,))

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    @staticmethod
    def _row_to_program(row: sqlite3.Row) -> Program:
        return Program(
            id=row["id"],
            name=row["name"],
            source_dir=Path(row["source_dir"]),
            start_reference=row["start_reference"],
            cadence=dt.timedelta(seconds=row["cadence_seconds"]),
            last_emitted_index=row["last_emitted_index"],
            offset=row["skip_offset"],
            status=ProgramStatus(row["status"]),
            added_at=row["added_at"],
            last_update=row["last_update"],
        )

    def _query(self, sql: str, params: tuple = ()) -> Iterator[Program]:
        try:
            rows = self._get_connection().execute(sql, params).fetchall()
        except (sqlite3.Error, OSError) as exc:
            raise PersistFailure(f"Unable to read programs: {exc}") from exc
        for row in rows:
            yield self._row_to_program(row)

    def load_all(self) -> list[Program]:
        return list(self._query("SELECT * FROM programs ORDER BY added_at, id"))

    def get(self, program_id: str) -> Program | None:
        return next(self._query("SELECT * FROM programs WHERE id = ?", (program_id,)), None)

    def find_by_source(self, source_dir: Path) -> Program | None:
        return next(self._query("SELECT * FROM programs WHERE source_dir = ?", (str(source_dir),)), None)

    def find_by_prefix(self, prefix: str) -> list[Program]:
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return list(self._query("SELECT * FROM programs WHERE id LIKE ? ESCAPE '\\' ORDER BY id", (f"{escaped}%",)))

    def save(self, program: Program) -> None:
        """Insert or replace a program record."""
        try:
            conn = self._get_connection()
            with conn:
                conn.execute(
                    """
                    INSERT INTO programs (
                        id, name, source_dir, start_reference, cadence_seconds,
                        last_emitted_index, skip_offset, status, added_at, last_update
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        name = excluded.name,
                        source_dir = excluded.source_dir,
                        start_reference = excluded.start_reference,
                        cadence_seconds = excluded.cadence_seconds,
                        last_emitted_index = excluded.last_emitted_index,
                        skip_offset = excluded.skip_offset,
                        status = excluded.status,
                        added_at = excluded.added_at,
                        last_update = excluded.last_update
                    """,
                    (
                        program.id,
                        program.name,
                        str(program.source_dir),
                        program.start_reference,
                        program.cadence.total_seconds(),
                        program.last_emitted_index,
                        program.offset,
                        program.status.value,
                        program.added_at,
                        program.last_update,
                    ),
                )
        except (sqlite3.Error, OSError) as exc:
            raise PersistFailure(f"Unable to save program {program.id}: {exc}") from exc

    def delete(self, program_id: str) -> bool:
        """Delete a program record.

        Returns:
            True if a record was deleted, False if it did not exist
        """
        try:
            conn = self._get_connection()
            with conn:
                cursor = conn.execute("DELETE FROM programs WHERE id = ?", (program_id,))
        except (sqlite3.Error, OSError) as exc:
            raise PersistFailure(f"Unable to delete program {program_id}: {exc}") from exc
        return cursor.rowcount > 0
