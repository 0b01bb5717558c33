"""queuecast core package.

queuecast tracks TV-show directories and keeps one symlink per show pointed at
the episode due this week:

- **file_discovery**: scan a show directory into an ordered episode list
- **parsers**: pluggable filename -> (season, episode) key strategies
- **schedule**: pure due-episode calculation from elapsed time
- **symlinks**: idempotent, atomic per-program link reconciliation
- **registry**: add/remove/list programs backed by the SQLite store
- **updater**: one pass over every program with per-program results
- **cli**: command-line entry point

The main entry point for a pass is the ``Updater`` class.
"""

from .updater import Updater
from .version import __version__

__all__ = [
    "__version__",
    "Updater",
]
