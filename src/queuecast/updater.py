from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import ConfigError, PersistFailure, QueuecastError
from .file_discovery import enumerate_episodes
from .logging_utils import render_fields_block
from .models import Program, ProgramResult, ProgramStatus, SyncOutcome, UpdateReport
from .schedule import compute_target_index, is_finished
from .symlinks import sync_link

if TYPE_CHECKING:
    from .clock import Clock
    from .config import Settings
    from .registry import ProgramRegistry

LOGGER = logging.getLogger(__name__)


class Updater:
    """Runs one pass over the registry, linking each program's due episode.

    Programs are handled one at a time. A program's new state is written only
    after its link is in place, and a failure on one program is recorded on
    its result without stopping the rest of the pass.
    """

    def __init__(self, registry: ProgramRegistry, settings: Settings, clock: Clock) -> None:
        self.registry = registry
        self.settings = settings
        self.clock = clock

    @staticmethod
    def _format_log(event: str, fields: Mapping[str, object] | None = None) -> str:
        return render_fields_block(event, fields or {}, pad_top=True)

    def _require_symlink_dir(self) -> Path:
        symlink_dir = self.settings.symlink_dir
        if symlink_dir is None:
            raise ConfigError("Symlink directory not configured. Use 'queuecast config symlink-dir <path>' to set it.")
        return symlink_dir

    def run(self, program_id: str | None = None) -> UpdateReport:
        """Update every program, or only ``program_id`` when given."""
        symlink_dir = self._require_symlink_dir()
        if program_id is not None:
            programs = [self.registry.resolve(program_id)]
        else:
            programs = self.registry.list_programs()

        report = UpdateReport()
        for program in programs:
            report.add(self.update_program(program, symlink_dir))

        LOGGER.info(
            self._format_log(
                "Update Complete",
                {
                    "Programs": len(report.results),
                    "Created": report.count(SyncOutcome.CREATED),
                    "Updated": report.count(SyncOutcome.UPDATED),
                    "Unchanged": report.count(SyncOutcome.UNCHANGED),
                    "Skipped": report.count(SyncOutcome.SKIPPED),
                    "Failed": len(report.failures),
                },
            )
        )
        return report

    def update_program(self, program: Program, symlink_dir: Path) -> ProgramResult:
        if program.status is ProgramStatus.STOPPED:
            LOGGER.debug(self._format_log("Skipping Stopped Program", {"Id": program.id, "Name": program.name}))
            return ProgramResult(program_id=program.id, name=program.name, outcome=SyncOutcome.SKIPPED)

        try:
            return self._update_program(program, symlink_dir)
        except QueuecastError as exc:
            level = logging.ERROR if isinstance(exc, PersistFailure) else logging.WARNING
            LOGGER.log(
                level,
                self._format_log(
                    "Program Update Failed",
                    {
                        "Id": program.id,
                        "Name": program.name,
                        "Error": f"{type(exc).__name__}: {exc}",
                    },
                ),
            )
            return ProgramResult(
                program_id=program.id,
                name=program.name,
                outcome=SyncOutcome.FAILED,
                error=exc,
            )

    def _update_program(self, program: Program, symlink_dir: Path) -> ProgramResult:
        now = self.clock.now()
        episodes = enumerate_episodes(program.source_dir, extensions=self.settings.video_extensions)
        index = compute_target_index(
            program.start_reference,
            program.cadence,
            program.last_emitted_index,
            len(episodes),
            now,
            offset=program.offset,
        )
        episode = episodes[index]
        sync = sync_link(program.id, episode.path, symlink_dir)

        finished = is_finished(program.start_reference, program.cadence, len(episodes), now, offset=program.offset)
        status = ProgramStatus.FINISHED if finished and index == len(episodes) - 1 else ProgramStatus.RUNNING

        changed = (
            sync.outcome is not SyncOutcome.UNCHANGED
            or index != program.last_emitted_index
            or status is not program.status
        )
        if changed:
            self.registry.save(replace(program, last_emitted_index=index, status=status, last_update=now))

        log_fields = {
            "Id": program.id,
            "Name": program.name,
            "Episode": f"{index + 1}/{len(episodes)} ({episode.key.name})",
            "Link": sync.link_path,
            "Outcome": sync.outcome.value,
        }
        if sync.outcome is SyncOutcome.UNCHANGED:
            LOGGER.debug(self._format_log("Program Up To Date", log_fields))
        else:
            LOGGER.info(self._format_log("Program Linked", log_fields))

        return ProgramResult(
            program_id=program.id,
            name=program.name,
            outcome=sync.outcome,
            episode_path=episode.path,
            index=index,
            episode_count=len(episodes),
        )
