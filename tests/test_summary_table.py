from __future__ import annotations

import datetime as dt
import io
from pathlib import Path

import pytest
from rich.console import Console

from queuecast.errors import SyncUnexpectedEntry
from queuecast.models import (
    Program,
    ProgramResult,
    ProgramStatus,
    ProgramSummary,
    SyncOutcome,
    UpdateReport,
)
from queuecast.summary_table import (
    DIM_COLOR,
    ERROR_COLOR,
    ERROR_SYMBOL,
    IGNORE_SYMBOL,
    SKIP_SYMBOL,
    SUCCESS_COLOR,
    SUCCESS_SYMBOL,
    WARNING_SYMBOL,
    SummaryTableRenderer,
)

START = dt.datetime(2026, 1, 5, 20, 0, tzinfo=dt.timezone.utc)


@pytest.fixture
def buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def renderer(buffer: io.StringIO) -> SummaryTableRenderer:
    return SummaryTableRenderer(Console(file=buffer, width=200, color_system=None))


def _program(**overrides) -> Program:
    values = dict(
        id="3fa9c2e1",
        name="Some Show",
        source_dir=Path("/media/shows/Some Show"),
        start_reference=START,
    )
    values.update(overrides)
    return Program(**values)


class TestFormatting:
    """Test outcome and status markup helpers."""

    @pytest.mark.parametrize(
        ("outcome", "symbol", "color"),
        [
            (SyncOutcome.CREATED, SUCCESS_SYMBOL, SUCCESS_COLOR),
            (SyncOutcome.UPDATED, SUCCESS_SYMBOL, SUCCESS_COLOR),
            (SyncOutcome.UNCHANGED, IGNORE_SYMBOL, DIM_COLOR),
            (SyncOutcome.SKIPPED, SKIP_SYMBOL, "yellow"),
            (SyncOutcome.FAILED, ERROR_SYMBOL, ERROR_COLOR),
        ],
    )
    def test_format_outcome(self, outcome: SyncOutcome, symbol: str, color: str) -> None:
        """Test format outcome."""
        assert SummaryTableRenderer.format_outcome(outcome) == f"[{color}]{symbol} {outcome.value}[/{color}]"

    def test_every_status_has_a_color(self) -> None:
        """Test every status has a color."""
        for status in ProgramStatus:
            assert status.value in SummaryTableRenderer.format_status(status)


class TestUpdateReport:
    """Tests for update report."""

    def test_empty_report(self, renderer: SummaryTableRenderer, buffer: io.StringIO) -> None:
        """Test empty report."""
        renderer.render_update_report(UpdateReport())
        assert "No programs registered." in buffer.getvalue()

    def test_successful_report(self, renderer: SummaryTableRenderer, buffer: io.StringIO) -> None:
        """Test successful report."""
        report = UpdateReport()
        report.add(
            ProgramResult(
                program_id="3fa9c2e1",
                name="Some Show",
                outcome=SyncOutcome.UPDATED,
                episode_path=Path("/media/shows/Some Show/Some.Show.S01E03.mkv"),
                index=2,
                episode_count=10,
            )
        )
        report.add(ProgramResult(program_id="77aa0011", name="Paused", outcome=SyncOutcome.SKIPPED))

        renderer.render_update_report(report)

        text = buffer.getvalue()
        assert "Some.Show.S01E03.mkv" in text
        assert "3/10" in text
        assert "stopped" in text
        assert "All programs up to date" in text

    def test_failure_detail_is_shown(self, renderer: SummaryTableRenderer, buffer: io.StringIO) -> None:
        """Test failure detail is shown."""
        report = UpdateReport()
        report.add(
            ProgramResult(
                program_id="3fa9c2e1",
                name="Some Show",
                outcome=SyncOutcome.FAILED,
                error=SyncUnexpectedEntry("/links/3fa9c2e1.mkv is a regular file [keep]"),
            )
        )

        renderer.render_update_report(report)

        text = buffer.getvalue()
        assert "SyncUnexpectedEntry" in text
        assert "[keep]" in text
        assert "1 program(s) failed" in text


class TestProgramList:
    """Tests for program list."""

    def test_lists_programs_with_position_and_next_advance(
        self, renderer: SummaryTableRenderer, buffer: io.StringIO
    ) -> None:
        """Test lists programs with position and next advance."""
        program = _program(status=ProgramStatus.RUNNING, cadence=dt.timedelta(days=3.5))
        summary = ProgramSummary(
            program=program,
            episode_count=12,
            due_index=4,
            next_advance=START + dt.timedelta(days=17.5),
        )

        renderer.render_program_list([summary])

        text = buffer.getvalue()
        assert "3fa9c2e1" in text
        assert "running" in text
        assert "5/12" in text
        assert "3.5d" in text

    def test_problem_is_flagged(self, renderer: SummaryTableRenderer, buffer: io.StringIO) -> None:
        """Test problem is flagged."""
        summary = ProgramSummary(program=_program(), problem="directory is gone")

        renderer.render_program_list([summary])

        text = buffer.getvalue()
        assert WARNING_SYMBOL in text
        assert "directory is gone" in text

    def test_no_programs(self, renderer: SummaryTableRenderer, buffer: io.StringIO) -> None:
        """Test no programs."""
        renderer.render_program_list([])
        assert "No programs registered." in buffer.getvalue()
