"""Episode discovery for a program's source directory.

Scans a show directory (including season subdirectories), filters out files
that are not episodes (resource forks, samples, foreign extensions, broken
links) and orders the rest by the key the filename parsers extract.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Sequence
from pathlib import Path

from .errors import DirectoryUnreadable, EnumerationEmpty
from .logging_utils import render_fields_block
from .models import Episode, EpisodeSet
from .parsers import (
    DEFAULT_PARSERS,
    EpisodeKeyParser,
    parse_episode_key,
    season_from_directory,
    with_default_season,
)

LOGGER = logging.getLogger(__name__)

# Regular expression pattern to detect sample/demo files
SAMPLE_FILENAME_PATTERN = re.compile(r"(?<![a-z0-9])sample(?![a-z0-9])")


def skip_reason_for_source_file(path: Path, extensions: Iterable[str]) -> str | None:
    """Check if a file should be left out of the episode list.

    Args:
        path: Path to the candidate file
        extensions: Lower-case suffixes (with leading dot) that count as video

    Returns:
        A string describing why the file is skipped, or None if it is a candidate
    """
    name = path.name
    if name.startswith("._") and len(name) > 2:
        return "macOS resource fork (._ prefix)"
    if path.suffix.lower() not in set(extensions):
        return "not a video extension"
    if SAMPLE_FILENAME_PATTERN.search(name.lower()):
        return "sample file"
    return None


def _walk_files(source_dir: Path) -> Iterable[Path]:
    def _raise(exc: OSError) -> None:
        raise exc

    for root, dirnames, filenames in os.walk(source_dir, onerror=_raise, followlinks=False):
        dirnames.sort()
        for filename in sorted(filenames):
            yield Path(root) / filename


def _parsers_for(
    directory: Path,
    source_dir: Path,
    parsers: Sequence[EpisodeKeyParser],
    chains: dict[Path, Sequence[EpisodeKeyParser]],
) -> Sequence[EpisodeKeyParser]:
    """Parser chain for files in ``directory``.

    Inside a season folder, filenames without a season token take the
    folder's season instead of the parsers' default.
    """
    if directory not in chains:
        season = season_from_directory(directory.name) if directory != source_dir else None
        chains[directory] = parsers if season is None else with_default_season(parsers, season)
    return chains[directory]


def enumerate_episodes(
    source_dir: Path,
    *,
    extensions: Sequence[str],
    parsers: Sequence[EpisodeKeyParser] = DEFAULT_PARSERS,
) -> EpisodeSet:
    """Return the ordered episodes found under ``source_dir``.

    Raises:
        DirectoryUnreadable: the directory is missing, not a directory, or cannot be listed
        EnumerationEmpty: no file yields an episode key
    """
    if not source_dir.exists():
        raise DirectoryUnreadable(f"Source directory does not exist: {source_dir}", path=source_dir)
    if not source_dir.is_dir():
        raise DirectoryUnreadable(f"Source path is not a directory: {source_dir}", path=source_dir)

    normalized_extensions = {ext.lower() for ext in extensions}
    episodes: list[Episode] = []
    chains: dict[Path, Sequence[EpisodeKeyParser]] = {}
    try:
        for path in _walk_files(source_dir):
            skip_reason = skip_reason_for_source_file(path, normalized_extensions)
            if skip_reason is None and not path.is_file():
                skip_reason = "broken symlink" if path.is_symlink() else "not a regular file"
            if skip_reason is None:
                key = parse_episode_key(path.name, _parsers_for(path.parent, source_dir, parsers, chains))
                if key is None:
                    skip_reason = "no season/episode number in filename"
                else:
                    key = key._replace(name=path.relative_to(source_dir).as_posix())
                    episodes.append(Episode(path=path.resolve(), key=key))
                    continue

            LOGGER.debug(
                render_fields_block(
                    "Skipping Source File",
                    {
                        "Source": path,
                        "Reason": skip_reason,
                    },
                )
            )
    except OSError as exc:
        raise DirectoryUnreadable(f"Unable to read {source_dir}: {exc}", path=source_dir) from exc

    if not episodes:
        raise EnumerationEmpty(f"No episode files found in {source_dir}", path=source_dir)

    episodes.sort(key=lambda episode: episode.key)
    return EpisodeSet(source_dir=source_dir, episodes=episodes)
