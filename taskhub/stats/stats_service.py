# taskhub/stats/stats_service.py

"""
Statistics aggregator.

Stats rows are rebuilt from scratch out of the user's tasks and groups on
every recompute, never incremented, so running a recompute twice (or two
at once) converges on the same row. productivity_score and longest_streak
are maintained by the Stats mapper events.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from taskhub import database
from taskhub.clock import utcnow
from taskhub.database import commit
from taskhub.models.group import Group
from taskhub.models.stats import Stats
from taskhub.models.task import Task, TaskPriority, TaskStatus
from taskhub.models.user import User
from taskhub.stats.scoring import (
    STREAK_WINDOW,
    calculate_average_completion_hours,
    calculate_completion_rate,
    calculate_current_streak,
    round_half_up,
)

logger = logging.getLogger("taskhub.stats")

AVERAGE_SAMPLE_SIZE = 50


def _find_stats(db: Session, user_id: int) -> Optional[Stats]:
    return db.query(Stats).filter(Stats.user_id == user_id).first()


def recompute_user_stats(db: Session, *, user_id: int, now: Optional[datetime] = None) -> Stats:
    now = now or utcnow()

    tasks = (
        db.query(Task)
        .filter(Task.user_id == user_id, Task.status != TaskStatus.DRAFT.value)
        .all()
    )
    completed = sorted(
        (t for t in tasks if t.status == TaskStatus.COMPLETED.value and t.completed_at is not None),
        key=lambda t: t.completed_at,
        reverse=True,
    )

    by_status = {status.value: 0 for status in TaskStatus}
    by_priority = {priority.value: 0 for priority in TaskPriority}
    for task in tasks:
        by_status[task.status] = by_status.get(task.status, 0) + 1
        by_priority[task.priority] = by_priority.get(task.priority, 0) + 1

    total = len(tasks)
    completed_count = by_status[TaskStatus.COMPLETED.value]
    overdue = sum(
        1
        for t in tasks
        if t.due_at is not None and t.due_at < now and t.status != TaskStatus.COMPLETED.value
    )
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    stats = _find_stats(db, user_id)
    if stats is None:
        stats = Stats(user_id=user_id, created_at=now)
        db.add(stats)

    activity_marks = [t.updated_at for t in tasks if t.updated_at is not None]

    stats.total_tasks = total
    stats.completed_tasks = completed_count
    stats.pending_tasks = by_status[TaskStatus.PENDING.value]
    stats.in_progress_tasks = by_status[TaskStatus.IN_PROGRESS.value]
    stats.overdue_tasks = overdue
    stats.high_priority_tasks = by_priority[TaskPriority.HIGH.value]
    stats.medium_priority_tasks = by_priority[TaskPriority.MEDIUM.value]
    stats.low_priority_tasks = by_priority[TaskPriority.LOW.value]
    stats.total_groups = db.query(Group).filter(Group.user_id == user_id).count()
    stats.completion_rate = calculate_completion_rate(completed_count, total)
    stats.average_completion_time = calculate_average_completion_hours(
        (t.created_at, t.completed_at)
        for t in completed[:AVERAGE_SAMPLE_SIZE]
        if t.created_at is not None
    )
    stats.current_streak = calculate_current_streak(t.completed_at for t in completed[:STREAK_WINDOW])
    stats.weekly_completed = sum(1 for t in completed if t.completed_at >= week_ago)
    stats.monthly_completed = sum(1 for t in completed if t.completed_at >= month_ago)
    stats.last_activity = max(activity_marks) if activity_marks else (stats.last_activity or now)
    stats.last_updated = now

    commit(db)
    db.refresh(stats)

    logger.info(
        "stats_recomputed",
        extra={
            "user_id": user_id,
            "total_tasks": stats.total_tasks,
            "productivity_score": stats.productivity_score,
        },
    )
    return stats


def get_or_create_stats(db: Session, *, user_id: int, now: Optional[datetime] = None) -> Stats:
    stats = _find_stats(db, user_id)
    if stats is None:
        stats = recompute_user_stats(db, user_id=user_id, now=now)
    return stats


def reset_user_stats(db: Session, *, user_id: int, now: Optional[datetime] = None) -> Stats:
    """Drop the row (streak high-water mark included) and rebuild it."""
    stats = _find_stats(db, user_id)
    if stats is not None:
        db.delete(stats)
        commit(db)
    logger.info("stats_reset", extra={"user_id": user_id})
    return recompute_user_stats(db, user_id=user_id, now=now)


def refresh_user_stats(user_id: int, session_factory: Optional[Callable[[], Session]] = None) -> None:
    """
    Background entry point, scheduled after successful mutations.

    Runs on its own session; any failure is logged and dropped.
    """
    db = (session_factory or database.SessionLocal)()
    try:
        recompute_user_stats(db, user_id=user_id)
    except Exception:
        db.rollback()
        logger.exception("stats_refresh_failed", extra={"user_id": user_id})
    finally:
        db.close()


# ==========================
#  RANKING
# ==========================
def get_user_rank(db: Session, *, user_id: int) -> dict:
    stats = _find_stats(db, user_id)
    if stats is None:
        return {"rank": None, "totalUsers": 0, "percentile": 0}

    higher = db.query(Stats).filter(Stats.productivity_score > stats.productivity_score).count()
    total_users = db.query(Stats).count()
    rank = higher + 1

    return {
        "rank": rank,
        "totalUsers": total_users,
        "percentile": round_half_up((total_users - rank) / total_users * 100),
    }


def get_leaderboard(db: Session, *, limit: int = 10) -> list[dict]:
    rows = (
        db.query(Stats, User)
        .join(User, User.id == Stats.user_id)
        .order_by(
            Stats.productivity_score.desc(),
            Stats.completed_tasks.desc(),
            Stats.current_streak.desc(),
            Stats.user_id.asc(),
        )
        .limit(limit)
        .all()
    )

    return [
        {
            "user_id": user.id,
            "name": user.name,
            "email": user.email,
            "productivity_score": stats.productivity_score,
            "completed_tasks": stats.completed_tasks,
            "total_tasks": stats.total_tasks,
            "completion_rate": stats.completion_rate,
            "current_streak": stats.current_streak,
            "weekly_completed": stats.weekly_completed,
        }
        for stats, user in rows
    ]


# ==========================
#  HISTORY
# ==========================
def get_stats_history(
    db: Session, *, user_id: int, days: int = 7, now: Optional[datetime] = None
) -> list[dict]:
    """Tasks completed and created per calendar day, oldest day first, today included."""
    today = (now or utcnow()).date()
    first_day = today - timedelta(days=days - 1)
    since = datetime.combine(first_day, datetime.min.time())

    completed = Counter(
        completed_at.date()
        for (completed_at,) in db.query(Task.completed_at).filter(
            Task.user_id == user_id,
            Task.status == TaskStatus.COMPLETED.value,
            Task.completed_at >= since,
        )
    )
    created = Counter(
        created_at.date()
        for (created_at,) in db.query(Task.created_at).filter(
            Task.user_id == user_id,
            Task.status != TaskStatus.DRAFT.value,
            Task.created_at >= since,
        )
    )

    history = []
    for offset in range(days):
        day = first_day + timedelta(days=offset)
        history.append(
            {"date": day.isoformat(), "completedTasks": completed[day], "createdTasks": created[day]}
        )
    return history
