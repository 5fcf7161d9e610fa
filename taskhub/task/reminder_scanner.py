# taskhub/task/reminder_scanner.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from taskhub.clock import utcnow
from taskhub.models.task import Task, TaskStatus
from taskhub.task.computed import is_reminder_due

logger = logging.getLogger("taskhub.reminders")


def find_due_reminders(
    db: Session,
    now: Optional[datetime] = None,
    window_minutes: int = 5,
) -> list[tuple[Task, datetime]]:
    """(task, reminder) pairs for every open task whose reminder fell in [now - window, now]."""
    now = now or utcnow()
    window_start = now - timedelta(minutes=window_minutes)

    open_tasks = db.query(Task).filter(Task.status != TaskStatus.COMPLETED.value).all()

    due: list[tuple[Task, datetime]] = []
    for task in open_tasks:
        if not is_reminder_due(task, now, window_minutes):
            continue
        due.extend((task, r) for r in task.reminders if window_start <= r <= now)
    return due


def scan_once(
    session_factory: Callable[[], Session],
    *,
    now: Optional[datetime] = None,
    window_minutes: int = 5,
) -> int:
    db = session_factory()
    try:
        due = find_due_reminders(db, now, window_minutes)
        for task, reminder in due:
            logger.info(
                "reminder_due",
                extra={
                    "user_id": task.user_id,
                    "task_id": task.id,
                    "title": task.title,
                    "reminder": reminder.isoformat(),
                },
            )
        return len(due)
    finally:
        db.close()


async def run_reminder_scanner(
    session_factory: Callable[[], Session],
    *,
    interval_seconds: float = 60.0,
    window_minutes: int = 5,
) -> None:
    """
    Polling loop over all users' open tasks.

    Every interval_seconds the trailing window is re-queried, so a reminder
    may be reported more than once. Nothing is delivered; due reminders are
    logged. To stop the scanner, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))

    while True:
        try:
            await asyncio.to_thread(scan_once, session_factory, window_minutes=window_minutes)
        except Exception:
            logger.exception("reminder_scan_failed")

        await asyncio.sleep(sleep_s)
