from __future__ import annotations

from typing import Iterable, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .models import ProgramStatus, ProgramSummary, SyncOutcome, UpdateReport
from .utils import format_timestamp

# Color constants for status indicators
SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"
DIM_COLOR = "dim"

# Symbol/emoji indicators for quick scanning
SUCCESS_SYMBOL = "✓"
WARNING_SYMBOL = "⚠"
ERROR_SYMBOL = "✗"
SKIP_SYMBOL = "⊘"
IGNORE_SYMBOL = "○"

_OUTCOME_STYLES: dict[SyncOutcome, tuple[str, str]] = {
    SyncOutcome.CREATED: (SUCCESS_SYMBOL, SUCCESS_COLOR),
    SyncOutcome.UPDATED: (SUCCESS_SYMBOL, SUCCESS_COLOR),
    SyncOutcome.UNCHANGED: (IGNORE_SYMBOL, DIM_COLOR),
    SyncOutcome.SKIPPED: (SKIP_SYMBOL, WARNING_COLOR),
    SyncOutcome.FAILED: (ERROR_SYMBOL, ERROR_COLOR),
}

_STATUS_COLORS: dict[ProgramStatus, str] = {
    ProgramStatus.READY: "cyan",
    ProgramStatus.RUNNING: SUCCESS_COLOR,
    ProgramStatus.FINISHED: DIM_COLOR,
    ProgramStatus.STOPPED: WARNING_COLOR,
}


class SummaryTableRenderer:
    """Renders update results and program listings as Rich Tables."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    @staticmethod
    def format_outcome(outcome: SyncOutcome) -> str:
        symbol, color = _OUTCOME_STYLES[outcome]
        return f"[{color}]{symbol} {outcome.value}[/{color}]"

    @staticmethod
    def format_status(status: ProgramStatus) -> str:
        color = _STATUS_COLORS[status]
        return f"[{color}]{status.value}[/{color}]"

    def build_update_table(self, report: UpdateReport) -> Table:
        table = Table(title="Update Results", title_style="bold", show_lines=False)
        table.add_column("Id", style="cyan", no_wrap=True)
        table.add_column("Program")
        table.add_column("Outcome", no_wrap=True)
        table.add_column("Episode", justify="right", no_wrap=True)
        table.add_column("Detail")

        for result in report.results:
            if result.index is not None and result.episode_count is not None:
                position = f"{result.index + 1}/{result.episode_count}"
            else:
                position = "-"
            if result.error is not None:
                detail = f"[{ERROR_COLOR}]{escape(type(result.error).__name__)}: {escape(str(result.error))}[/{ERROR_COLOR}]"
            elif result.episode_path is not None:
                detail = escape(result.episode_path.name)
            else:
                detail = f"[{DIM_COLOR}]stopped[/{DIM_COLOR}]"
            table.add_row(
                result.program_id,
                escape(result.name),
                self.format_outcome(result.outcome),
                position,
                detail,
            )
        return table

    def render_update_report(self, report: UpdateReport) -> None:
        if not report.results:
            self.console.print(f"[{DIM_COLOR}]No programs registered.[/{DIM_COLOR}]")
            return
        self.console.print(self.build_update_table(report))
        failures = len(report.failures)
        if failures:
            self.console.print(f"[{ERROR_COLOR}]{ERROR_SYMBOL} {failures} program(s) failed[/{ERROR_COLOR}]")
        else:
            self.console.print(f"[{SUCCESS_COLOR}]{SUCCESS_SYMBOL} All programs up to date[/{SUCCESS_COLOR}]")

    def build_program_table(self, summaries: Iterable[ProgramSummary]) -> Table:
        table = Table(title="Programs", title_style="bold")
        table.add_column("Id", style="cyan", no_wrap=True)
        table.add_column("Name")
        table.add_column("Status", no_wrap=True)
        table.add_column("Episode", justify="right", no_wrap=True)
        table.add_column("Every", justify="right", no_wrap=True)
        table.add_column("Next Advance", no_wrap=True)
        table.add_column("Source")

        for summary in summaries:
            program = summary.program
            if summary.problem is not None:
                position = f"[{WARNING_COLOR}]{WARNING_SYMBOL}[/{WARNING_COLOR}]"
                source = f"{escape(str(program.source_dir))}\n[{WARNING_COLOR}]{escape(summary.problem)}[/{WARNING_COLOR}]"
            else:
                position = f"{(summary.due_index or 0) + 1}/{summary.episode_count}"
                source = escape(str(program.source_dir))
            table.add_row(
                program.id,
                escape(program.name),
                self.format_status(program.status),
                position,
                f"{program.cadence_days:g}d",
                format_timestamp(summary.next_advance),
                source,
            )
        return table

    def render_program_list(self, summaries: list[ProgramSummary]) -> None:
        if not summaries:
            self.console.print(f"[{DIM_COLOR}]No programs registered.[/{DIM_COLOR}]")
            return
        self.console.print(self.build_program_table(summaries))
