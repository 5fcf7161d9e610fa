# taskhub/task/recurrence.py

"""
Next-occurrence arithmetic for repeating tasks.

The successor of a completed occurrence is found by advancing start_at by the
pattern's step. Every other timestamp of the task (due_at, reminders) is
moved by the very same delta so relative offsets survive.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta

from taskhub.models.task import RecurrencePattern


def add_months(value: datetime, months: int) -> datetime:
    """Calendar month step; the day is clamped to the target month's end."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def next_start(start_at: datetime, pattern: str, interval: int = 1) -> datetime | None:
    interval = max(1, int(interval or 1))
    if pattern == RecurrencePattern.DAILY.value:
        return start_at + timedelta(days=interval)
    if pattern == RecurrencePattern.WEEKLY.value:
        return start_at + timedelta(days=7 * interval)
    if pattern == RecurrencePattern.MONTHLY.value:
        return add_months(start_at, interval)
    if pattern == RecurrencePattern.YEARLY.value:
        return add_months(start_at, 12 * interval)
    return None


@dataclass(frozen=True)
class Occurrence:
    start_at: datetime
    due_at: datetime | None
    reminders: list[datetime]
    count: int | None


def plan_next_occurrence(
    *,
    start_at: datetime,
    due_at: datetime | None,
    reminders: list[datetime],
    pattern: str,
    interval: int = 1,
    end_date: datetime | None = None,
    count: int | None = None,
) -> Occurrence | None:
    """
    Schedule of the occurrence following the given one, or None when the
    series is over (pattern none, past end_date, or count exhausted).
    """
    if not pattern or pattern == RecurrencePattern.NONE.value:
        return None

    nxt = next_start(start_at, pattern, interval)
    if nxt is None:
        return None

    if end_date is not None and nxt > end_date:
        return None
    if count is not None and count <= 1:
        return None

    delta = nxt - start_at
    return Occurrence(
        start_at=nxt,
        due_at=due_at + delta if due_at is not None else None,
        reminders=[r + delta for r in reminders or []],
        count=count - 1 if count is not None else None,
    )
