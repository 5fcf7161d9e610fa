# taskhub/task/task_service.py

"""
Task lifecycle: creation, status transitions, recurrence expansion, bulk
operations and retention cleanup, plus the read helpers the task, completed
and calendar routers need.

Every mutation that can change how many tasks a group holds is followed by
a group count fixup. Fixups and recurrence expansion are side effects: their
failures are logged and never reach the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from taskhub.clock import utcnow
from taskhub.config import COMPLETED_RETENTION_DAYS
from taskhub.database import commit, paginate
from taskhub.errors import AlreadyCompletedError, NotCompletedError, ValidationError
from taskhub.group.group_service import refresh_group_task_count
from taskhub.models.group import Group
from taskhub.models.task import RecurrencePattern, Task, TaskPriority, TaskStatus
from taskhub.ownership import EntityKind, get_owned
from taskhub.schemas.task_schema import TaskCreate, TaskUpdate
from taskhub.task.recurrence import plan_next_occurrence

logger = logging.getLogger("taskhub.tasks")

COMPLETED = TaskStatus.COMPLETED.value
PENDING = TaskStatus.PENDING.value


# ==========================
#  HELPERS
# ==========================
def resolve_group(db: Session, user_id: int, group_id: Optional[int]) -> Group:
    """The group a task is about to point at; must exist and belong to user_id."""
    if group_id is None:
        raise ValidationError("Group is required")
    group = db.get(Group, group_id)
    if group is None or group.user_id != user_id:
        raise ValidationError("Invalid or inaccessible group", group_id=group_id)
    return group


def _fix_group_counts(db: Session, group_ids: Iterable[Optional[int]]) -> None:
    for group_id in sorted({g for g in group_ids if g is not None}):
        refresh_group_task_count(db, group_id)


# ==========================
#  CRUD
# ==========================
def create_task(
    db: Session,
    *,
    user_id: int,
    data: TaskCreate,
    now: Optional[datetime] = None,
) -> Task:
    now = now or utcnow()
    group = resolve_group(db, user_id, data.group_id)

    recurrence = data.recurrence
    task = Task(
        user_id=user_id,
        title=data.title,
        description=data.description,
        status=data.status,
        priority=data.priority or TaskPriority.MEDIUM.value,
        group_id=group.id,
        tags=data.tags,
        is_important=data.is_important,
        is_all_day=data.is_all_day,
        start_at=data.start_at or now,
        # legacy dueDate is only honoured when dueAt is absent
        due_at=data.due_at or data.due_date,
        reminders=data.reminders,
        estimated_minutes=data.estimated_minutes,
        actual_minutes=data.actual_minutes,
    )
    if data.status == COMPLETED:
        task.completed_at = now
    if recurrence is not None:
        task.recurrence_pattern = recurrence.pattern
        task.recurrence_interval = recurrence.interval
        task.recurrence_end_date = recurrence.end_date
        task.recurrence_count = recurrence.count

    db.add(task)
    commit(db)
    db.refresh(task)

    _fix_group_counts(db, [task.group_id])
    logger.info("task_created", extra={"user_id": user_id, "task_id": task.id, "group_id": task.group_id})
    return task


def get_task(db: Session, *, user_id: int, task_id: int) -> Task:
    return get_owned(db, EntityKind.TASK, task_id, user_id)


def list_tasks(
    db: Session,
    *,
    user_id: int,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    group_id: Optional[int] = None,
    is_important: Optional[bool] = None,
    page: int = 1,
    limit: int = 50,
) -> dict:
    query = db.query(Task).filter(Task.user_id == user_id)
    if status is not None:
        query = query.filter(Task.status == status)
    if priority is not None:
        query = query.filter(Task.priority == priority)
    if group_id is not None:
        query = query.filter(Task.group_id == group_id)
    if is_important is not None:
        query = query.filter(Task.is_important == is_important)

    query = query.order_by(Task.created_at.desc(), Task.id.desc())
    tasks, pagination = paginate(query, page, limit)
    return {"tasks": tasks, "pagination": pagination}


_PLAIN_FIELDS = (
    "title",
    "description",
    "priority",
    "tags",
    "is_important",
    "is_all_day",
    "start_at",
    "reminders",
    "estimated_minutes",
    "actual_minutes",
)


def update_task(
    db: Session,
    *,
    user_id: int,
    task_id: int,
    data: TaskUpdate,
    now: Optional[datetime] = None,
) -> Task:
    now = now or utcnow()
    task = get_task(db, user_id=user_id, task_id=task_id)
    changes = data.model_dump(exclude_unset=True)

    old_group_id = task.group_id
    old_status = task.status

    if changes.get("group_id") is not None and changes["group_id"] != old_group_id:
        task.group_id = resolve_group(db, user_id, changes["group_id"]).id

    for field in _PLAIN_FIELDS:
        if field in changes and (changes[field] is not None or field == "description"):
            setattr(task, field, changes[field])

    # due_date mirrors due_at, cleared values included
    if "due_at" in changes:
        task.due_at = task.due_date = changes["due_at"]
    elif changes.get("due_date") is not None:
        task.due_at = task.due_date = changes["due_date"]

    if data.recurrence is not None:
        task.recurrence_pattern = data.recurrence.pattern
        task.recurrence_interval = data.recurrence.interval
        task.recurrence_end_date = data.recurrence.end_date
        task.recurrence_count = data.recurrence.count

    became_completed = False
    if data.status is not None and data.status != old_status:
        task.status = data.status
        if data.status == COMPLETED:
            task.completed_at = now
            became_completed = True
        else:
            task.completed_at = None

    commit(db)
    db.refresh(task)

    if became_completed:
        _expand_quietly(db, task)
    _fix_group_counts(db, [old_group_id, task.group_id])

    logger.info(
        "task_updated",
        extra={"user_id": user_id, "task_id": task.id, "fields": sorted(changes)},
    )
    return task


def delete_task(db: Session, *, user_id: int, task_id: int) -> None:
    task = get_task(db, user_id=user_id, task_id=task_id)
    group_id = task.group_id

    db.delete(task)
    commit(db)

    _fix_group_counts(db, [group_id])
    logger.info("task_deleted", extra={"user_id": user_id, "task_id": task_id})


# ==========================
#  COMPLETION LIFECYCLE
# ==========================
def complete_task(
    db: Session,
    *,
    user_id: int,
    task_id: int,
    now: Optional[datetime] = None,
) -> Task:
    """
    Mark a task completed. Reminders that already fired are dropped, future
    ones are kept. A repeating task spawns its next occurrence afterwards.
    """
    now = now or utcnow()
    task = get_task(db, user_id=user_id, task_id=task_id)

    if task.status == COMPLETED:
        raise AlreadyCompletedError("Task is already completed", task_id=task_id)

    task.status = COMPLETED
    task.completed_at = now
    task.reminders = [r for r in task.reminders or [] if r > now]

    commit(db)
    db.refresh(task)

    successor = _expand_quietly(db, task)
    if successor is not None:
        _fix_group_counts(db, [successor.group_id])

    logger.info("task_completed", extra={"user_id": user_id, "task_id": task.id})
    return task


def revive_task(db: Session, *, user_id: int, task_id: int) -> Task:
    """Back to pending. An in-progress task that got completed is not restored to in-progress."""
    task = get_task(db, user_id=user_id, task_id=task_id)

    if task.status != COMPLETED:
        raise NotCompletedError("Task is not completed", task_id=task_id)

    task.status = PENDING
    task.completed_at = None

    commit(db)
    db.refresh(task)
    logger.info("task_revived", extra={"user_id": user_id, "task_id": task.id})
    return task


def toggle_completion(
    db: Session,
    *,
    user_id: int,
    task_id: int,
    now: Optional[datetime] = None,
) -> Task:
    task = get_task(db, user_id=user_id, task_id=task_id)
    if task.status == COMPLETED:
        return revive_task(db, user_id=user_id, task_id=task_id)
    return complete_task(db, user_id=user_id, task_id=task_id, now=now)


def expand_recurrence(db: Session, task: Task) -> Optional[Task]:
    """Create the next occurrence of a repeating task, or None if the series ended."""
    if not task.recurrence_pattern or task.recurrence_pattern == RecurrencePattern.NONE.value:
        return None

    occurrence = plan_next_occurrence(
        start_at=task.start_at or task.created_at,
        due_at=task.due_at,
        reminders=list(task.reminders or []),
        pattern=task.recurrence_pattern,
        interval=task.recurrence_interval,
        end_date=task.recurrence_end_date,
        count=task.recurrence_count,
    )
    if occurrence is None:
        return None

    successor = Task(
        user_id=task.user_id,
        title=task.title,
        description=task.description,
        status=PENDING,
        priority=task.priority,
        group_id=task.group_id,
        tags=list(task.tags or []),
        is_important=task.is_important,
        is_all_day=task.is_all_day,
        start_at=occurrence.start_at,
        due_at=occurrence.due_at,
        reminders=occurrence.reminders,
        recurrence_pattern=task.recurrence_pattern,
        recurrence_interval=task.recurrence_interval,
        recurrence_end_date=task.recurrence_end_date,
        recurrence_count=occurrence.count,
        inbox_ref=task.inbox_ref,
        draft_ref=task.draft_ref,
        estimated_minutes=task.estimated_minutes,
    )
    db.add(successor)
    commit(db)
    db.refresh(successor)

    logger.info(
        "recurrence_expanded",
        extra={"task_id": task.id, "successor_id": successor.id, "pattern": task.recurrence_pattern},
    )
    return successor


def _expand_quietly(db: Session, task: Task) -> Optional[Task]:
    try:
        return expand_recurrence(db, task)
    except Exception:
        db.rollback()
        logger.exception("recurrence_expansion_failed", extra={"task_id": task.id})
        return None


# ==========================
#  BULK + RETENTION
# ==========================
def bulk_complete(
    db: Session,
    *,
    user_id: int,
    task_ids: list[int],
    now: Optional[datetime] = None,
) -> int:
    """
    Complete every listed task the user owns that is not completed yet.

    Unlike complete_task this clears all reminders and does not expand
    repeating tasks.
    """
    if not task_ids:
        return 0
    now = now or utcnow()

    modified = (
        db.query(Task)
        .filter(Task.id.in_(task_ids), Task.user_id == user_id, Task.status != COMPLETED)
        .update(
            {Task.status: COMPLETED, Task.completed_at: now, Task.reminders: []},
            synchronize_session="fetch",
        )
    )
    commit(db)

    logger.info("tasks_bulk_completed", extra={"user_id": user_id, "modified": modified})
    return modified


def bulk_revive(db: Session, *, user_id: int, task_ids: list[int]) -> int:
    if not task_ids:
        return 0

    modified = (
        db.query(Task)
        .filter(Task.id.in_(task_ids), Task.user_id == user_id, Task.status == COMPLETED)
        .update({Task.status: PENDING, Task.completed_at: None}, synchronize_session="fetch")
    )
    commit(db)

    logger.info("tasks_bulk_revived", extra={"user_id": user_id, "modified": modified})
    return modified


def cleanup_completed(
    db: Session,
    *,
    user_id: int,
    days_old: int = COMPLETED_RETENTION_DAYS,
    now: Optional[datetime] = None,
) -> int:
    """Permanently delete completed tasks finished more than days_old days ago."""
    now = now or utcnow()
    cutoff = now - timedelta(days=days_old)

    stale = (
        db.query(Task)
        .filter(Task.user_id == user_id, Task.status == COMPLETED, Task.completed_at < cutoff)
        .all()
    )
    group_ids = {t.group_id for t in stale}
    for task in stale:
        db.delete(task)
    commit(db)

    _fix_group_counts(db, group_ids)
    logger.info("completed_tasks_cleaned", extra={"user_id": user_id, "deleted": len(stale), "days_old": days_old})
    return len(stale)


# ==========================
#  QUERIES
# ==========================
def get_task_stats(db: Session, *, user_id: int, group_id: Optional[int] = None) -> dict:
    """Task counts by status: {pending, in-progress, completed, total}."""
    query = db.query(Task.status, func.count(Task.id)).filter(Task.user_id == user_id)
    if group_id is not None:
        query = query.filter(Task.group_id == group_id)

    counts = {PENDING: 0, TaskStatus.IN_PROGRESS.value: 0, COMPLETED: 0}
    total = 0
    for status, count in query.group_by(Task.status).all():
        total += count
        if status in counts:
            counts[status] = count
    counts["total"] = total
    return counts


def get_completed_tasks(
    db: Session,
    *,
    user_id: int,
    group_id: Optional[int] = None,
    days_ago: Optional[int] = None,
    page: int = 1,
    limit: int = 50,
    now: Optional[datetime] = None,
) -> dict:
    query = db.query(Task).filter(Task.user_id == user_id, Task.status == COMPLETED)
    if group_id is not None:
        query = query.filter(Task.group_id == group_id)
    if days_ago is not None:
        since = (now or utcnow()) - timedelta(days=days_ago)
        query = query.filter(Task.completed_at >= since)

    query = query.order_by(Task.completed_at.desc(), Task.id.desc())
    tasks, pagination = paginate(query, page, limit)
    return {"tasks": tasks, "pagination": pagination}


def get_completion_stats(db: Session, *, user_id: int, now: Optional[datetime] = None) -> dict:
    """Completion totals plus avg/min/max days from start to completion."""
    now = now or utcnow()
    completed = db.query(Task).filter(Task.user_id == user_id, Task.status == COMPLETED)

    durations = [
        (t.completed_at - t.start_at).total_seconds() / 86400
        for t in completed.filter(Task.start_at.isnot(None), Task.completed_at.isnot(None)).all()
    ]

    return {
        "totalCompleted": completed.count(),
        "completedThisWeek": completed.filter(Task.completed_at >= now - timedelta(days=7)).count(),
        "completedThisMonth": completed.filter(Task.completed_at >= now - timedelta(days=30)).count(),
        "completionTimes": {
            "avgCompletionTime": sum(durations) / len(durations) if durations else 0,
            "minCompletionTime": min(durations) if durations else 0,
            "maxCompletionTime": max(durations) if durations else 0,
        },
    }


def get_calendar_tasks(db: Session, *, user_id: int, start: datetime, end: datetime) -> list[Task]:
    """Tasks starting in, due in, or spanning the whole [start, end] range."""
    if end < start:
        raise ValidationError("End date must be after start date")

    return (
        db.query(Task)
        .filter(
            Task.user_id == user_id,
            or_(
                and_(Task.start_at >= start, Task.start_at <= end),
                and_(Task.due_at >= start, Task.due_at <= end),
                and_(Task.start_at <= start, Task.due_at >= end),
            ),
        )
        .order_by(Task.start_at.asc(), Task.id.asc())
        .all()
    )


def get_upcoming_reminders(
    db: Session,
    *,
    user_id: int,
    hours: int = 24,
    now: Optional[datetime] = None,
) -> list[Task]:
    now = now or utcnow()
    threshold = now + timedelta(hours=hours)

    # reminders are a JSON column, the time window is applied here
    candidates = (
        db.query(Task)
        .filter(Task.user_id == user_id, Task.status != COMPLETED)
        .all()
    )
    upcoming = [t for t in candidates if any(now <= r <= threshold for r in t.reminders or [])]
    upcoming.sort(key=lambda t: min(r for r in t.reminders if now <= r <= threshold))
    return upcoming


# ==========================
#  CALENDAR EDITS
# ==========================
def update_task_dates(
    db: Session,
    *,
    user_id: int,
    task_id: int,
    start_at: datetime,
    due_at: Optional[datetime] = None,
    is_all_day: Optional[bool] = None,
) -> Task:
    task = get_task(db, user_id=user_id, task_id=task_id)

    task.start_at = start_at
    if due_at is not None:
        task.due_at = task.due_date = due_at
    if is_all_day is not None:
        task.is_all_day = is_all_day

    commit(db)
    db.refresh(task)
    return task


def add_reminder(db: Session, *, user_id: int, task_id: int, at: datetime) -> Task:
    task = get_task(db, user_id=user_id, task_id=task_id)

    reminders = list(task.reminders or [])
    if at not in reminders:
        task.reminders = reminders + [at]
        commit(db)
        db.refresh(task)
    return task


def remove_reminder(db: Session, *, user_id: int, task_id: int, index: int) -> Task:
    task = get_task(db, user_id=user_id, task_id=task_id)

    reminders = list(task.reminders or [])
    if index < 0 or index >= len(reminders):
        raise ValidationError("Invalid reminder index", index=index)

    del reminders[index]
    task.reminders = reminders
    commit(db)
    db.refresh(task)
    return task
