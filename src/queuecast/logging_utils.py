from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from textwrap import wrap
from typing import Union

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_WRAP_WIDTH = 100
DEFAULT_LABEL_WIDTH = 18
DEFAULT_INDENT = "    "
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s\n%(message)s\n"

FieldMapping = Union[Mapping[str, object], Sequence[tuple[str, object]]]


def _stringify(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (list, tuple, set)):
        return ", ".join(_stringify(item) for item in value)
    return str(value)


def render_fields_block(
    title: str,
    fields: FieldMapping,
    *,
    pad_top: bool = True,
    wrap_width: int = DEFAULT_WRAP_WIDTH,
) -> str:
    """Render a titled block of ``label: value`` lines for multi-line log records."""
    items = list(fields.items()) if isinstance(fields, Mapping) else list(fields)
    lines: list[str] = [""] if pad_top else []
    lines.append(title)
    lines.append("-" * len(title))

    if items:
        label_width = max(min(max(len(str(key)) for key, _ in items), DEFAULT_LABEL_WIDTH), 8)
        value_width = max(wrap_width - len(DEFAULT_INDENT) - label_width - 4, 32)
        for key, value in items:
            wrapped = wrap(_stringify(value), width=value_width) or [""]
            lines.append(f"{DEFAULT_INDENT}{str(key):<{label_width}}: {wrapped[0]}")
            for continuation in wrapped[1:]:
                lines.append(f"{DEFAULT_INDENT}{'':<{label_width}}  {continuation}")

    return "\n".join(lines).rstrip()


def _coerce_level(level: int | str | None, default: int) -> int:
    if level is None:
        return default
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def configure_logging(
    level: int | str | None = logging.INFO,
    *,
    console_level: int | str | None = None,
    log_file: Path | None = None,
    console: Console | None = None,
) -> None:
    """Install console (rich) and optional file handlers on the root logger.

    Existing handlers are replaced so repeated calls do not duplicate output.
    """
    file_level = _coerce_level(level, logging.INFO)
    console_threshold = _coerce_level(console_level, file_level)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(min(file_level, console_threshold))

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    console_handler.setLevel(console_threshold)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(file_handler)
