# taskhub/models/task.py

from __future__ import annotations

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, event
from sqlalchemy.orm import validates

from taskhub.clock import utcnow
from taskhub.database import Base, DateTimeList, StringList


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    # legacy rows only; drafts live in their own table now
    DRAFT = "draft"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500


class RecurrencePattern(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    description = Column(String(DESCRIPTION_MAX_LENGTH), nullable=True)
    status = Column(String, default=TaskStatus.PENDING.value, nullable=False, index=True)
    priority = Column(String, default=TaskPriority.MEDIUM.value, nullable=False)

    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
    tags = Column(StringList, default=list, nullable=False)
    is_important = Column(Boolean, default=False, nullable=False)
    is_all_day = Column(Boolean, default=False, nullable=False)

    start_at = Column(DateTime, default=utcnow, nullable=True)
    due_at = Column(DateTime, nullable=True, index=True)
    # legacy alias of due_at
    due_date = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True, index=True)
    reminders = Column(DateTimeList, default=list, nullable=False)

    recurrence_pattern = Column(String, default=RecurrencePattern.NONE.value, nullable=False)
    recurrence_interval = Column(Integer, default=1, nullable=False)
    recurrence_end_date = Column(DateTime, nullable=True)
    recurrence_count = Column(Integer, nullable=True)

    # promotion back-references
    inbox_ref = Column(Integer, ForeignKey("inbox_items.id", ondelete="SET NULL"), nullable=True)
    draft_ref = Column(Integer, ForeignKey("drafts.id", ondelete="SET NULL"), nullable=True)

    estimated_minutes = Column(Integer, nullable=True)
    actual_minutes = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @validates("reminders")
    def _sort_reminders(self, key, value):
        return sorted(set(value or []))

    @validates("tags")
    def _dedupe_tags(self, key, value):
        seen: list[str] = []
        for tag in value or []:
            tag = str(tag).strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


def normalize_task(task: Task) -> None:
    """Bring a task in line with its invariants before it is written."""
    now = utcnow()

    if task.status == TaskStatus.COMPLETED.value:
        if task.completed_at is None:
            task.completed_at = now
    elif task.completed_at is not None:
        task.completed_at = None

    # legacy dueDate -> dueAt, then keep the alias in sync
    if task.due_date is not None and task.due_at is None:
        task.due_at = task.due_date
    task.due_date = task.due_at

    if task.due_at is not None and task.start_at is None:
        task.start_at = now


@event.listens_for(Task, "before_insert")
def _task_before_insert(mapper, connection, target: Task) -> None:
    normalize_task(target)


@event.listens_for(Task, "before_update")
def _task_before_update(mapper, connection, target: Task) -> None:
    normalize_task(target)
