from .episode_key import (
    DEFAULT_PARSERS,
    EpisodeKeyParser,
    RegexKeyParser,
    parse_episode_key,
    season_from_directory,
    with_default_season,
)

__all__ = [
    "DEFAULT_PARSERS",
    "EpisodeKeyParser",
    "RegexKeyParser",
    "parse_episode_key",
    "season_from_directory",
    "with_default_season",
]
