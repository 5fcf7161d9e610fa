# taskhub/stats/scoring.py

"""
Pure scoring helpers for the statistics aggregator.

Nothing here touches the database; the functions take plain numbers and
datetimes so they can run inside mapper events as well as in services.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from typing import Any

STREAK_WINDOW = 10

COMPLETION_POINTS = 50
STREAK_POINTS_PER_DAY = 2
STREAK_POINTS_CAP = 30
OVERDUE_PENALTY_PER_TASK = 5
OVERDUE_PENALTY_CAP = 20
ACTIVITY_POINTS = 20
ACTIVITY_DECAY_PER_DAY = 2


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def days_between(earlier: datetime, later: datetime) -> int:
    """Whole days elapsed from earlier to later (never negative)."""
    return max(0, (later - earlier).days)


def calculate_productivity_score(
    *,
    completion_rate: float,
    current_streak: int,
    overdue_tasks: int,
    days_since_last_activity: int,
    total_tasks: int | None = None,
) -> int:
    """
    Score in [0, 100]:

        completion (0-50) + streak (0-30) - overdue penalty (0-20) + activity (0-20)

    A user without any task scores 0.
    """
    if total_tasks == 0:
        return 0

    completion_score = (completion_rate / 100) * COMPLETION_POINTS
    streak_score = min(current_streak * STREAK_POINTS_PER_DAY, STREAK_POINTS_CAP)
    overdue_penalty = min(overdue_tasks * OVERDUE_PENALTY_PER_TASK, OVERDUE_PENALTY_CAP)
    activity_score = max(0, ACTIVITY_POINTS - days_since_last_activity * ACTIVITY_DECAY_PER_DAY)

    raw = completion_score + streak_score - overdue_penalty + activity_score
    return round_half_up(min(100, max(0, raw)))


def calculate_current_streak(completion_times: Iterable[datetime]) -> int:
    """
    Run of completions each dated exactly one calendar day before the previous.

    completion_times must be ordered newest first. The walk starts on the
    day of the most recent completion and stops at the first entry that is
    not the preceding day, a second completion on the same day included.
    """
    streak = 0
    last_day: date | None = None

    for completed_at in completion_times:
        day = completed_at.date()
        if last_day is None:
            last_day = day
            streak = 1
            continue
        if day == last_day - timedelta(days=1):
            streak += 1
            last_day = day
        else:
            break

    return streak


def calculate_completion_rate(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up(completed / total * 100)


def calculate_average_completion_hours(pairs: Iterable[tuple[datetime, datetime]]) -> float:
    """Mean (completed_at - created_at) in hours, rounded to 2 decimals."""
    durations = [(done - created).total_seconds() for created, done in pairs]
    if not durations:
        return 0.0
    hours = sum(durations) / len(durations) / 3600
    return round(hours, 2)


def productivity_level(score: int) -> str:
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "average"
    return "needs-improvement"


def completion_percentage(stats: Any) -> float:
    total = stats.total_tasks or 0
    return (stats.completed_tasks / total) * 100 if total > 0 else 0.0
