"""Program registry: the only read/write path to tracked programs.

Every mutation is written straight through to the store, so a process that
dies between commands never loses a completed change.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import AmbiguousProgram, DuplicatePath, EnumerationError, ProgramNotFound
from .file_discovery import enumerate_episodes
from .logging_utils import render_fields_block
from .models import Program, ProgramStatus, ProgramSummary
from .schedule import compute_target_index, next_advance_at
from .symlinks import remove_links
from .utils import ensure_aware, hash_text

if TYPE_CHECKING:
    from .clock import Clock
    from .config import Settings
    from .persistence import ProgramStore

LOGGER = logging.getLogger(__name__)

ID_LENGTH = 8


class ProgramRegistry:
    def __init__(self, store: ProgramStore, settings: Settings, clock: Clock) -> None:
        self.store = store
        self.settings = settings
        self.clock = clock

    def _generate_id(self, source_dir: Path) -> str:
        digest = hash_text(str(source_dir))
        length = ID_LENGTH
        while self.store.get(digest[:length]) is not None:
            length += 2
        return digest[:length]

    def add(
        self,
        source_dir: Path,
        *,
        name: str | None = None,
        start: dt.datetime | None = None,
        cadence: dt.timedelta | None = None,
    ) -> Program:
        """Start tracking ``source_dir``.

        The directory must already contain at least one recognizable episode.

        Raises:
            DuplicatePath: another program already tracks the directory
            DirectoryUnreadable, EnumerationEmpty: the directory has no usable episodes
        """
        resolved = source_dir.expanduser().resolve()
        existing = self.store.find_by_source(resolved)
        if existing is not None:
            raise DuplicatePath(f"{resolved} is already tracked as {existing.id} ({existing.name})")

        episodes = enumerate_episodes(resolved, extensions=self.settings.video_extensions)
        cadence = cadence if cadence is not None else self.settings.cadence
        if cadence <= dt.timedelta(0):
            raise ValueError("cadence must be positive")

        now = self.clock.now()
        program = Program(
            id=self._generate_id(resolved),
            name=(name or resolved.name).strip() or resolved.name,
            source_dir=resolved,
            start_reference=ensure_aware(start) if start is not None else now,
            cadence=cadence,
            added_at=now,
        )
        self.store.save(program)
        LOGGER.info(
            render_fields_block(
                "Program Added",
                {
                    "Id": program.id,
                    "Name": program.name,
                    "Source": program.source_dir,
                    "Episodes": len(episodes),
                    "Cadence (days)": f"{program.cadence_days:g}",
                },
            )
        )
        return program

    def get(self, program_id: str) -> Program:
        program = self.store.get(program_id)
        if program is None:
            raise ProgramNotFound(f"No program with id '{program_id}'")
        return program

    def resolve(self, reference: str) -> Program:
        """Look a program up by full id or a unique id prefix."""
        reference = reference.strip().lower()
        program = self.store.get(reference)
        if program is not None:
            return program
        matches = self.store.find_by_prefix(reference) if reference else []
        if not matches:
            raise ProgramNotFound(f"No program matches '{reference}'")
        if len(matches) > 1:
            ids = ", ".join(match.id for match in matches)
            raise AmbiguousProgram(f"'{reference}' matches several programs: {ids}")
        return matches[0]

    def list_programs(self, status: ProgramStatus | None = None) -> list[Program]:
        programs = self.store.load_all()
        if status is None:
            return programs
        return [program for program in programs if program.status is status]

    def summarize(self, program: Program) -> ProgramSummary:
        """Describe where a program stands without touching any state."""
        now = self.clock.now()
        try:
            episodes = enumerate_episodes(program.source_dir, extensions=self.settings.video_extensions)
        except EnumerationError as exc:
            return ProgramSummary(program=program, problem=str(exc))
        due_index = compute_target_index(
            program.start_reference,
            program.cadence,
            program.last_emitted_index,
            len(episodes),
            now,
            offset=program.offset,
        )
        next_advance = None
        if due_index < len(episodes) - 1 and program.status is not ProgramStatus.STOPPED:
            next_advance = next_advance_at(program.start_reference, program.cadence, now)
        return ProgramSummary(
            program=program,
            episode_count=len(episodes),
            due_index=due_index,
            next_advance=next_advance,
        )

    def save(self, program: Program) -> None:
        self.store.save(program)

    def remove(self, program_id: str) -> Program:
        """Forget a program and delete its symlink(s) from the symlink directory."""
        program = self.get(program_id)
        removed_links: list[Path] = []
        if self.settings.symlink_dir is not None:
            removed_links = remove_links(program.id, self.settings.symlink_dir)
        self.store.delete(program.id)
        LOGGER.info(
            render_fields_block(
                "Program Removed",
                {
                    "Id": program.id,
                    "Name": program.name,
                    "Links Removed": [str(path) for path in removed_links] or "none",
                },
            )
        )
        return program

    def _update(self, program: Program, **changes: object) -> Program:
        updated = replace(program, **changes)
        self.store.save(updated)
        return updated

    def stop(self, program_id: str) -> Program:
        return self._update(self.get(program_id), status=ProgramStatus.STOPPED)

    def resume(self, program_id: str) -> Program:
        program = self.get(program_id)
        if program.status is not ProgramStatus.STOPPED:
            return program
        status = ProgramStatus.READY if program.last_emitted_index is None else ProgramStatus.RUNNING
        return self._update(program, status=status)

    def skip(self, program_id: str, count: int = 1) -> Program:
        """Move the schedule ``count`` periods ahead of wall-clock time."""
        if count < 1:
            raise ValueError("skip count must be at least 1")
        program = self.get(program_id)
        return self._update(program, offset=program.offset + count)

    def restart(self, program_id: str) -> Program:
        """Rewind a program to its first episode, starting now."""
        program = self.get(program_id)
        return self._update(
            program,
            start_reference=self.clock.now(),
            last_emitted_index=None,
            offset=0,
            status=ProgramStatus.READY,
        )

    def move(self, program_id: str, source_dir: Path) -> Program:
        """Point a program at a new source directory, keeping its id and schedule."""
        program = self.get(program_id)
        resolved = source_dir.expanduser().resolve()
        existing = self.store.find_by_source(resolved)
        if existing is not None and existing.id != program.id:
            raise DuplicatePath(f"{resolved} is already tracked as {existing.id} ({existing.name})")
        enumerate_episodes(resolved, extensions=self.settings.video_extensions)
        return self._update(program, source_dir=resolved)

    def rename(self, program_id: str, name: str) -> Program:
        name = name.strip()
        if not name:
            raise ValueError("program name must not be empty")
        return self._update(self.get(program_id), name=name)
