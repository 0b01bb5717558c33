from __future__ import annotations

import argparse
import datetime as dt
import logging
import sys
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from .clock import Clock, SystemClock
from .config import (
    CONFIG_KEYS,
    ConfigStore,
    Settings,
    apply_env_overrides,
    normalize_key,
    resolve_config_path,
    set_config_value,
)
from .errors import ConfigError, QueuecastError
from .logging_utils import configure_logging
from .models import ProgramStatus
from .persistence import ProgramStore
from .registry import ProgramRegistry
from .summary_table import ERROR_COLOR, SUCCESS_COLOR, SUCCESS_SYMBOL, SummaryTableRenderer
from .updater import Updater
from .utils import ensure_aware, ensure_directory
from .version import __version__

LOGGER = logging.getLogger(__name__)

CONSOLE = Console()

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def build_clock() -> Clock:
    return SystemClock()


def _setup_logging(args: argparse.Namespace) -> None:
    level = args.log_level or ("DEBUG" if args.verbose else "WARNING")
    configure_logging(level, console_level=args.console_level, log_file=args.log_file)


def _load_settings(args: argparse.Namespace) -> tuple[ConfigStore, Settings]:
    store = ConfigStore(resolve_config_path(args.config))
    return store, store.load()


@contextmanager
def _open_registry(settings: Settings) -> Iterator[ProgramRegistry]:
    if settings.database_path is None:
        raise ConfigError("Database path not configured. Use 'queuecast config database-path <path>' to set it.")
    store = ProgramStore(settings.database_path)
    try:
        yield ProgramRegistry(store, settings, build_clock())
    finally:
        store.close()


def _success(message: str) -> None:
    CONSOLE.print(f"[{SUCCESS_COLOR}]{SUCCESS_SYMBOL}[/{SUCCESS_COLOR}] {message}")


def _parse_start(value: str) -> dt.datetime:
    try:
        parsed = dt.datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid ISO date/time: {value}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return ensure_aware(parsed)


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a number: {value}") from exc
    if number <= 0:
        raise argparse.ArgumentTypeError("must be greater than zero")
    return number


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an integer: {value}") from exc
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


# Extra status names accepted by `list`
STATUS_ALIASES = {"ran": ProgramStatus.FINISHED}


def _parse_status_filter(value: str | None) -> ProgramStatus | None:
    if not value:
        return None
    return STATUS_ALIASES.get(value) or ProgramStatus(value)


def run_add(args: argparse.Namespace) -> int:
    _, settings = _load_settings(args)
    cadence = dt.timedelta(days=args.cadence_days) if args.cadence_days is not None else None
    with _open_registry(settings) as registry:
        program = registry.add(args.directory, name=args.name, start=args.start, cadence=cadence)
    _success(f"Added program '{escape(program.name)}' with id [cyan]{program.id}[/cyan]")
    return EXIT_OK


def run_list(args: argparse.Namespace) -> int:
    _, settings = _load_settings(args)
    status = _parse_status_filter(args.status)
    with _open_registry(settings) as registry:
        summaries = [registry.summarize(program) for program in registry.list_programs(status)]
    SummaryTableRenderer(CONSOLE).render_program_list(summaries)
    return EXIT_OK


def run_update(args: argparse.Namespace) -> int:
    _, settings = _load_settings(args)
    settings = apply_env_overrides(settings)
    with _open_registry(settings) as registry:
        report = Updater(registry, settings, registry.clock).run(args.program)
    SummaryTableRenderer(CONSOLE).render_update_report(report)
    return report.exit_code


def run_remove(args: argparse.Namespace) -> int:
    _, settings = _load_settings(args)
    with _open_registry(settings) as registry:
        program = registry.remove(registry.resolve(args.program).id)
    _success(f"Removed program '{escape(program.name)}'")
    return EXIT_OK


def run_stop(args: argparse.Namespace) -> int:
    _, settings = _load_settings(args)
    with _open_registry(settings) as registry:
        program = registry.stop(registry.resolve(args.program).id)
    _success(f"Stopped program '{escape(program.name)}'")
    return EXIT_OK


def run_resume(args: argparse.Namespace) -> int:
    _, settings = _load_settings(args)
    with _open_registry(settings) as registry:
        program = registry.resume(registry.resolve(args.program).id)
    _success(f"Program '{escape(program.name)}' is {program.status.value}")
    return EXIT_OK


def run_skip(args: argparse.Namespace) -> int:
    _, settings = _load_settings(args)
    with _open_registry(settings) as registry:
        program = registry.skip(registry.resolve(args.program).id, args.count)
    _success(f"Skipped {args.count} episode(s) for program '{escape(program.name)}'")
    return EXIT_OK


def run_restart(args: argparse.Namespace) -> int:
    _, settings = _load_settings(args)
    with _open_registry(settings) as registry:
        program = registry.restart(registry.resolve(args.program).id)
    _success(f"Restarted program '{escape(program.name)}' from its first episode")
    return EXIT_OK


def run_move(args: argparse.Namespace) -> int:
    _, settings = _load_settings(args)
    with _open_registry(settings) as registry:
        program = registry.move(registry.resolve(args.program).id, args.directory)
    _success(f"Program '{escape(program.name)}' now reads from {escape(str(program.source_dir))}")
    return EXIT_OK


def run_rename(args: argparse.Namespace) -> int:
    _, settings = _load_settings(args)
    with _open_registry(settings) as registry:
        program = registry.rename(registry.resolve(args.program).id, args.name)
    _success(f"Program {program.id} renamed to '{escape(program.name)}'")
    return EXIT_OK


def run_config(args: argparse.Namespace) -> int:
    store, settings = _load_settings(args)
    values = settings.to_dict()

    if args.key is None:
        for key in CONFIG_KEYS:
            CONSOLE.print(f"[cyan]{key.replace('_', '-')}[/cyan] = {escape(str(values[key]))}")
        return EXIT_OK

    name = normalize_key(args.key)
    if args.value is None:
        CONSOLE.print(escape(str(values[name])))
        return EXIT_OK

    updated = set_config_value(settings, name, args.value)
    if name == "symlink_dir" and updated.symlink_dir is not None:
        try:
            ensure_directory(updated.symlink_dir)
        except OSError as exc:
            raise ConfigError(f"Unable to create symlink directory {updated.symlink_dir}: {exc}") from exc
    store.save(updated)
    _success(f"Set {name.replace('_', '-')} to {escape(str(updated.to_dict()[name]))}")
    return EXIT_OK


def _add_program_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("program", help="Program id (a unique prefix is enough)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="queuecast",
        description="Link this week's episode of every tracked show into one directory.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, default=None, help="Path to the YAML config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-level", default=None, help="Log level for all handlers")
    parser.add_argument("--console-level", default=None, help="Log level for console output only")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    add = subparsers.add_parser("add", help="Start tracking a show directory")
    add.add_argument("directory", type=Path)
    add.add_argument("--name", default=None, help="Display name (defaults to the directory name)")
    add.add_argument("--cadence-days", type=_positive_float, default=None, help="Days between episodes")
    add.add_argument("--start", type=_parse_start, default=None, help="ISO date/time of week zero (default: now)")
    add.set_defaults(handler=run_add)

    list_parser = subparsers.add_parser("list", help="List tracked programs")
    list_parser.add_argument(
        "status",
        nargs="?",
        choices=[*(status.value for status in ProgramStatus), *STATUS_ALIASES],
        help="Only show programs with this status ('ran' is an alias for finished)",
    )
    list_parser.set_defaults(handler=run_list)

    update = subparsers.add_parser("update", help="Point every program's link at its due episode")
    update.add_argument("program", nargs="?", default=None, help="Only update this program")
    update.set_defaults(handler=run_update)

    for name, handler, help_text in (
        ("remove", run_remove, "Stop tracking a program and delete its link"),
        ("stop", run_stop, "Exclude a program from updates"),
        ("resume", run_resume, "Include a stopped program in updates again"),
        ("restart", run_restart, "Rewind a program to its first episode"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        _add_program_argument(sub)
        sub.set_defaults(handler=handler)

    skip = subparsers.add_parser("skip", help="Advance a program by COUNT episodes")
    _add_program_argument(skip)
    skip.add_argument("count", nargs="?", type=_positive_int, default=1)
    skip.set_defaults(handler=run_skip)

    move = subparsers.add_parser("move", help="Point a program at a new source directory")
    _add_program_argument(move)
    move.add_argument("directory", type=Path)
    move.set_defaults(handler=run_move)

    rename = subparsers.add_parser("rename", help="Change a program's display name")
    _add_program_argument(rename)
    rename.add_argument("name")
    rename.set_defaults(handler=run_rename)

    config = subparsers.add_parser("config", help="Show or change settings")
    config.add_argument("key", nargs="?", default=None, help=", ".join(k.replace("_", "-") for k in CONFIG_KEYS))
    config.add_argument("value", nargs="?", default=None)
    config.set_defaults(handler=run_config)

    return parser


def dispatch(args: argparse.Namespace) -> int:
    handler: Callable[[argparse.Namespace], int] = args.handler
    try:
        return handler(args)
    except ConfigError as exc:
        CONSOLE.print(f"[{ERROR_COLOR}]Configuration error:[/{ERROR_COLOR}] {escape(str(exc))}")
        return EXIT_CONFIG
    except (QueuecastError, ValueError) as exc:
        CONSOLE.print(f"[{ERROR_COLOR}]Error:[/{ERROR_COLOR}] {escape(str(exc))}")
        return EXIT_FAILURE


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        _setup_logging(args)
    except ValueError as exc:
        parser.error(str(exc))
    return dispatch(args)


if __name__ == "__main__":
    sys.exit(main())
