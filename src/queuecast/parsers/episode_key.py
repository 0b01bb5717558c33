"""Filename to episode ordering key strategies.

A parser is any callable that takes a filename and returns an
:class:`~queuecast.models.EpisodeKey` or ``None`` when it does not recognise
the naming convention. :func:`parse_episode_key` tries a chain of parsers and
returns the first hit, so extra conventions can be added by passing a longer
chain without touching the scheduler.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from pathlib import PurePath
from typing import Callable, Optional, Sequence

from ..models import EpisodeKey

EpisodeKeyParser = Callable[[str], Optional[EpisodeKey]]

DEFAULT_SEASON = 1

# Season folder names: "Season 02", "Season.2", "Series 3", "S02", "Specials"
SEASON_DIRECTORY_PATTERN = re.compile(r"^(?:season|series|s)[ ._-]*(?P<season>\d{1,3})$", re.IGNORECASE)
SPECIALS_DIRECTORY_PATTERN = re.compile(r"^specials?$", re.IGNORECASE)


def _coerce_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class RegexKeyParser:
    """Match a compiled pattern against the file stem.

    The pattern must define an ``episode`` group and may define a ``season``
    group; when it does not, ``default_season`` is used.
    """

    name: str
    pattern: re.Pattern[str]
    default_season: int = DEFAULT_SEASON

    def __call__(self, filename: str) -> Optional[EpisodeKey]:
        stem = PurePath(filename).stem
        match = self.pattern.search(stem)
        if not match:
            return None
        groups = match.groupdict()
        episode = _coerce_int(groups.get("episode"))
        if episode is None:
            return None
        season = _coerce_int(groups.get("season"))
        if season is None:
            season = self.default_season
        return EpisodeKey(season=season, episode=episode, name=filename)


SEASON_EPISODE_PARSER = RegexKeyParser(
    "sxxeyy",
    re.compile(r"(?<![a-z0-9])s(?P<season>\d{1,3})[ ._-]?e(?P<episode>\d{1,4})(?!\d)", re.IGNORECASE),
)

CROSS_PARSER = RegexKeyParser(
    "nxnn",
    re.compile(r"(?<![a-z0-9])(?P<season>\d{1,2})x(?P<episode>\d{1,3})(?![a-z0-9])", re.IGNORECASE),
)

SPELLED_PARSER = RegexKeyParser(
    "spelled",
    re.compile(
        r"season[ ._-]*(?P<season>\d{1,3})[ ._,-]*(?:episode|ep)[ ._-]*(?P<episode>\d{1,4})(?!\d)",
        re.IGNORECASE,
    ),
)

EPISODE_ONLY_PARSER = RegexKeyParser(
    "episode-only",
    re.compile(r"(?<![a-z0-9])(?:episode|ep|e)[ ._-]*(?P<episode>\d{1,4})(?!\d)", re.IGNORECASE),
)

LEADING_NUMBER_PARSER = RegexKeyParser(
    "leading-number",
    re.compile(r"^(?P<episode>\d{1,3})(?=$|[ ._-])"),
)

DEFAULT_PARSERS: tuple[EpisodeKeyParser, ...] = (
    SEASON_EPISODE_PARSER,
    CROSS_PARSER,
    SPELLED_PARSER,
    EPISODE_ONLY_PARSER,
    LEADING_NUMBER_PARSER,
)


def season_from_directory(name: str) -> Optional[int]:
    """Return the season number a folder name stands for, if any."""
    name = name.strip()
    if SPECIALS_DIRECTORY_PATTERN.match(name):
        return 0
    match = SEASON_DIRECTORY_PATTERN.match(name)
    if not match:
        return None
    return int(match.group("season"))


def with_default_season(
    parsers: Sequence[EpisodeKeyParser],
    season: int,
) -> tuple[EpisodeKeyParser, ...]:
    """Copy ``parsers`` so that season-less matches land in ``season``.

    Only :class:`RegexKeyParser` entries carry a default season; other
    callables are passed through unchanged.
    """
    return tuple(
        replace(parser, default_season=season) if isinstance(parser, RegexKeyParser) else parser
        for parser in parsers
    )


def parse_episode_key(
    filename: str,
    parsers: Sequence[EpisodeKeyParser] = DEFAULT_PARSERS,
) -> Optional[EpisodeKey]:
    """Return the key from the first parser that recognises ``filename``."""
    for parser in parsers:
        key = parser(filename)
        if key is not None:
            return key
    return None
