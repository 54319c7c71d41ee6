# analysis/consistency.py

import math
from datetime import date, timedelta
from typing import Iterable, Mapping

CONSISTENCY_WINDOW_DAYS = 30
VELOCITY_WINDOW_DAYS = 14


def round_half_up(x: float) -> int:
    """Python's round() is banker's rounding; scores round .5 up."""
    return int(math.floor(x + 0.5))


def active_days(activity: Mapping, today: date, window: int = CONSISTENCY_WINDOW_DAYS) -> int:
    """Days in [today - window + 1, today] with minutes_studied > 0."""
    count = 0
    for i in range(window):
        record = activity.get(today - timedelta(days=i))
        if record is not None and record.minutes_studied > 0:
            count += 1
    return count


def consistency_score(activity: Mapping, today: date) -> int:
    days = active_days(activity, today)
    return min(100, round_half_up(days / CONSISTENCY_WINDOW_DAYS * 100))


def study_streak(session_dates: Iterable[date], today: date) -> int:
    """
    Consecutive-day streak ending today or yesterday.

    The first (most recent) date may be 0 or 1 days before today; every
    following date must be exactly one day before the previous one.
    """
    dates = sorted(set(session_dates), reverse=True)
    streak = 0
    previous = None
    for d in dates:
        if previous is None:
            if (today - d).days not in (0, 1):
                break
        elif (previous - d).days != 1:
            break
        streak += 1
        previous = d
    return streak


def learning_velocity(session_dates: Iterable[date], today: date) -> float:
    """Sessions per week over the last 14 days (today included), one decimal place."""
    cutoff = today - timedelta(days=VELOCITY_WINDOW_DAYS - 1)
    recent = sum(1 for d in session_dates if d >= cutoff)
    return round_half_up(recent / 2 * 10) / 10
