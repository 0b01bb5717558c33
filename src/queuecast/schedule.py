"""Which episode is due right now.

The due index is derived from wall-clock time elapsed since a program's start
reference rather than from a counter bumped on every run. Running twice in
the same period, or missing several periods and catching up later, both land
on the same index.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

from .errors import NoEpisodesAvailable
from .utils import ensure_aware


def _validate_cadence(cadence: dt.timedelta) -> None:
    if cadence <= dt.timedelta(0):
        raise ValueError(f"cadence must be positive, got {cadence}")


def elapsed_periods(
    start_reference: dt.datetime,
    cadence: dt.timedelta,
    now: dt.datetime,
) -> int:
    """Whole cadence periods between ``start_reference`` and ``now``, never negative."""
    _validate_cadence(cadence)
    delta = ensure_aware(now) - ensure_aware(start_reference)
    if delta <= dt.timedelta(0):
        return 0
    return delta // cadence


def compute_target_index(
    start_reference: dt.datetime,
    cadence: dt.timedelta,
    last_emitted_index: Optional[int],
    episode_count: int,
    now: dt.datetime,
    *,
    offset: int = 0,
) -> int:
    """Return the index of the episode due at ``now``.

    ``offset`` is the number of periods the user skipped ahead. The result is
    capped at the final episode and never falls below ``last_emitted_index``
    unless fewer episodes exist than that index allows.
    """
    if episode_count <= 0:
        raise NoEpisodesAvailable("No episodes available to schedule")

    last_index = episode_count - 1
    periods = elapsed_periods(start_reference, cadence, now) + max(offset, 0)
    target = min(periods, last_index)

    if last_emitted_index is not None and target < last_emitted_index:
        target = min(last_emitted_index, last_index)
    return target


def next_advance_at(
    start_reference: dt.datetime,
    cadence: dt.timedelta,
    now: dt.datetime,
) -> dt.datetime:
    """Instant at which the next period begins."""
    start = ensure_aware(start_reference)
    return start + cadence * (elapsed_periods(start, cadence, now) + 1)


def is_finished(
    start_reference: dt.datetime,
    cadence: dt.timedelta,
    episode_count: int,
    now: dt.datetime,
    *,
    offset: int = 0,
) -> bool:
    """True once the final episode's period has fully elapsed."""
    if episode_count <= 0:
        return False
    periods = elapsed_periods(start_reference, cadence, now) + max(offset, 0)
    return periods >= episode_count
