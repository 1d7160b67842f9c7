# athletrack/services/streak.py
"""Consecutive-day streak helpers. Pure functions over calendar days."""
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Set

from athletrack.utils.helpers import local_day

ONE_DAY = timedelta(days=1)


def to_days(timestamps: Iterable[datetime], offset_minutes: Optional[int] = None) -> Set[date]:
    """Collapse timestamps into the set of local calendar days they fall on."""
    return {local_day(ts, offset_minutes) for ts in timestamps if ts is not None}


def calculate_streak(days: Iterable[date], as_of: date) -> int:
    """
    Count consecutive days with activity walking back from `as_of`.

    A missing `as_of` is not a break on its own: if the streak is still zero
    the walk steps back one more day before giving up, so a user who trained
    every day through yesterday keeps their streak until today ends.
    """
    day_set = set(days)
    streak = 0
    current = as_of

    while True:
        if current in day_set:
            streak += 1
            current -= ONE_DAY
        elif streak == 0:
            current -= ONE_DAY
            if current not in day_set:
                break
        else:
            break

    return streak


def longest_streak(days: Iterable[date]) -> int:
    ordered = sorted(set(days))
    if not ordered:
        return 0

    best = run = 1
    for prev, cur in zip(ordered, ordered[1:]):
        run = run + 1 if cur - prev == ONE_DAY else 1
        best = max(best, run)
    return best
