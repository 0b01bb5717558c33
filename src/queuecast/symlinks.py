"""Keep one symlink per program pointed at its due episode.

Links live directly in the configured symlink directory and are named after
the program id plus the episode's suffix (``3fa9c2e1.mkv``), so renaming a
show or its directory never orphans a link. Replacement goes through a
temporary link and ``os.replace`` so the directory always holds a valid link
for the program.
"""

from __future__ import annotations

import errno
import logging
import os
import secrets
from dataclasses import dataclass
from pathlib import Path

from .errors import SyncDirNotWritable, SyncError, SyncUnexpectedEntry
from .logging_utils import render_fields_block
from .models import SyncOutcome

LOGGER = logging.getLogger(__name__)

_PERMISSION_ERRNOS = {errno.EACCES, errno.EPERM, errno.EROFS}


@dataclass(frozen=True)
class SyncResult:
    link_path: Path
    target: Path
    outcome: SyncOutcome
    removed: tuple[Path, ...] = ()


def link_name_for(program_id: str, episode_path: Path) -> str:
    return f"{program_id}{episode_path.suffix.lower()}"


def _check_symlink_dir(symlink_dir: Path) -> None:
    if not symlink_dir.is_dir():
        raise SyncDirNotWritable(f"Symlink directory does not exist: {symlink_dir}", path=symlink_dir)
    if not os.access(symlink_dir, os.W_OK | os.X_OK):
        raise SyncDirNotWritable(f"Symlink directory is not writable: {symlink_dir}", path=symlink_dir)


def _read_link(path: Path) -> Path | None:
    """Return the link target, or None when ``path`` does not exist.

    Raises SyncUnexpectedEntry if something other than a symlink is there.
    """
    try:
        return Path(os.readlink(path))
    except FileNotFoundError:
        return None
    except OSError as exc:
        if exc.errno == errno.EINVAL:
            raise SyncUnexpectedEntry(
                f"Refusing to replace {path}: it exists and is not a symlink",
                path=path,
            ) from exc
        raise SyncError(f"Unable to inspect {path}: {exc}", path=path) from exc


def _points_at(link_path: Path, current: Path, target: Path) -> bool:
    if not current.is_absolute():
        current = link_path.parent / current
    return os.path.normpath(current) == os.path.normpath(target)


def _wrap_os_error(exc: OSError, path: Path) -> SyncError:
    if exc.errno in _PERMISSION_ERRNOS:
        return SyncDirNotWritable(f"Cannot write to {path.parent}: {exc}", path=path)
    return SyncError(f"Unable to update {path}: {exc}", path=path)


def _program_links(program_id: str, symlink_dir: Path) -> list[Path]:
    candidates = [symlink_dir / program_id, *symlink_dir.glob(f"{program_id}.*")]
    return [path for path in candidates if path.is_symlink()]


def _replace_link(link_path: Path, target: Path) -> None:
    tmp_path = link_path.with_name(f".{link_path.name}.{secrets.token_hex(4)}.tmp")
    try:
        os.symlink(target, tmp_path)
        os.replace(tmp_path, link_path)
    except OSError:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise


def sync_link(program_id: str, target: Path, symlink_dir: Path) -> SyncResult:
    """Make ``symlink_dir/<id><suffix>`` point at ``target``.

    A link that already points at ``target`` is left alone: no filesystem
    writes happen and its timestamps stay put.
    """
    _check_symlink_dir(symlink_dir)
    link_path = symlink_dir / link_name_for(program_id, target)
    current = _read_link(link_path)

    if current is not None and _points_at(link_path, current, target):
        outcome = SyncOutcome.UNCHANGED
    else:
        try:
            if current is None:
                os.symlink(target, link_path)
                outcome = SyncOutcome.CREATED
            else:
                _replace_link(link_path, target)
                outcome = SyncOutcome.UPDATED
        except FileExistsError as exc:
            raise SyncUnexpectedEntry(
                f"Refusing to replace {link_path}: it appeared while linking",
                path=link_path,
            ) from exc
        except OSError as exc:
            raise _wrap_os_error(exc, link_path) from exc

        LOGGER.debug(
            render_fields_block(
                "Symlink Updated" if outcome is SyncOutcome.UPDATED else "Symlink Created",
                {
                    "Link": link_path,
                    "Target": target,
                    "Previous": current,
                },
            )
        )

    stale = [path for path in _program_links(program_id, symlink_dir) if path != link_path]
    removed = tuple(_unlink_all(stale))
    return SyncResult(link_path=link_path, target=target, outcome=outcome, removed=removed)


def _unlink_all(paths: list[Path]) -> list[Path]:
    removed: list[Path] = []
    for path in paths:
        try:
            path.unlink()
        except FileNotFoundError:
            continue
        except OSError as exc:
            raise _wrap_os_error(exc, path) from exc
        LOGGER.debug(render_fields_block("Removed Stale Symlink", {"Link": path}))
        removed.append(path)
    return removed


def remove_links(program_id: str, symlink_dir: Path) -> list[Path]:
    """Delete every symlink belonging to ``program_id``; regular files are never touched."""
    if not symlink_dir.is_dir():
        return []
    return _unlink_all(_program_links(program_id, symlink_dir))
