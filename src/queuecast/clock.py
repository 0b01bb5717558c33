"""Time sources for the scheduler.

Everything that needs "now" takes a clock so passes can be replayed at any
instant in tests.
"""

from __future__ import annotations

import datetime as dt
from typing import Protocol

from .utils import ensure_aware, utc_now


class Clock(Protocol):
    def now(self) -> dt.datetime: ...


class SystemClock:
    def now(self) -> dt.datetime:
        return utc_now()


class FixedClock:
    """Clock frozen at a given instant; ``advance`` moves it forward."""

    def __init__(self, instant: dt.datetime) -> None:
        self._instant = ensure_aware(instant)

    def now(self) -> dt.datetime:
        return self._instant

    def set(self, instant: dt.datetime) -> None:
        self._instant = ensure_aware(instant)

    def advance(self, delta: dt.timedelta) -> None:
        self._instant += delta
