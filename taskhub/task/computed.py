# taskhub/task/computed.py

"""Read-time task properties. Computed from the row, never stored."""

from __future__ import annotations

import math
from datetime import datetime, timedelta

from taskhub.clock import utcnow

DAY_SECONDS = 24 * 60 * 60


def is_overdue(task, now: datetime | None = None) -> bool:
    if task.due_at is None or task.status == "completed":
        return False
    return task.due_at < (now or utcnow())


def days_until_due(task, now: datetime | None = None) -> int | None:
    if task.due_at is None:
        return None
    delta = task.due_at - (now or utcnow())
    return math.ceil(delta.total_seconds() / DAY_SECONDS)


def days_since_completion(task, now: datetime | None = None) -> int | None:
    if task.completed_at is None:
        return None
    delta = (now or utcnow()) - task.completed_at
    return math.floor(delta.total_seconds() / DAY_SECONDS)


def is_reminder_due(task, now: datetime | None = None, window_minutes: int = 5) -> bool:
    """True when a reminder fell inside the trailing window."""
    now = now or utcnow()
    window_start = now - timedelta(minutes=window_minutes)
    return any(window_start <= r <= now for r in task.reminders or [])
