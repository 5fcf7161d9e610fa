# taskhub/schemas/task_schema.py

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from taskhub.clock import to_naive_utc
from taskhub.task.computed import is_overdue as task_is_overdue

Status = Literal["pending", "in-progress", "completed"]
Priority = Literal["low", "medium", "high"]
Pattern = Literal["none", "daily", "weekly", "monthly", "yearly"]


def _naive(value):
    if isinstance(value, list):
        return [to_naive_utc(v) for v in value]
    return to_naive_utc(value)


# --------- Recurrence ----------
class RecurrenceIn(BaseModel):
    pattern: Pattern = "none"
    interval: int = Field(default=1, ge=1)
    end_date: Optional[datetime] = None
    count: Optional[int] = Field(default=None, ge=1)

    normalize_dates = field_validator("end_date")(_naive)


# --------- Base schema (common fields) ----------
class TaskBase(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    priority: Priority = "medium"
    tags: list[str] = Field(default_factory=list)
    is_important: bool = False
    is_all_day: bool = False

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Task title is required")
        return value


# --------- For CREATE ----------
class TaskCreate(TaskBase):
    status: Status = "pending"
    group_id: Optional[int] = None
    start_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    # legacy alias, folded into due_at
    due_date: Optional[datetime] = None
    reminders: list[datetime] = Field(default_factory=list)
    recurrence: Optional[RecurrenceIn] = None
    estimated_minutes: Optional[int] = Field(default=None, ge=0)
    actual_minutes: Optional[int] = Field(default=None, ge=0)

    normalize_dates = field_validator("start_at", "due_at", "due_date", "reminders")(_naive)


# --------- For UPDATE (PATCH/PUT) ----------
class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    status: Optional[Status] = None
    priority: Optional[Priority] = None
    group_id: Optional[int] = None
    tags: Optional[list[str]] = None
    is_important: Optional[bool] = None
    is_all_day: Optional[bool] = None
    start_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    reminders: Optional[list[datetime]] = None
    recurrence: Optional[RecurrenceIn] = None
    estimated_minutes: Optional[int] = Field(default=None, ge=0)
    actual_minutes: Optional[int] = Field(default=None, ge=0)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Title cannot be empty")
        return value

    normalize_dates = field_validator("start_at", "due_at", "due_date", "reminders")(_naive)


class TaskStatusUpdate(BaseModel):
    status: Status


class TaskDatesUpdate(BaseModel):
    start_at: datetime
    due_at: Optional[datetime] = None
    is_all_day: Optional[bool] = None

    normalize_dates = field_validator("start_at", "due_at")(_naive)


class ReminderCreate(BaseModel):
    reminder_time: datetime

    normalize_dates = field_validator("reminder_time")(_naive)


class TaskIds(BaseModel):
    task_ids: list[int] = Field(min_length=1)


# --------- Extra fields accepted when promoting to a task ----------
class TaskExtras(BaseModel):
    priority: Optional[Priority] = None
    group_id: Optional[int] = None
    due_at: Optional[datetime] = None
    start_at: Optional[datetime] = None
    tags: Optional[list[str]] = None
    reminders: Optional[list[datetime]] = None
    is_important: Optional[bool] = None
    estimated_minutes: Optional[int] = Field(default=None, ge=0)

    normalize_dates = field_validator("start_at", "due_at", "reminders")(_naive)


# --------- For READ (responses) ----------
class TaskRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    group_id: int
    tags: list[str] = Field(default_factory=list)
    is_important: bool
    is_all_day: bool
    start_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    reminders: list[datetime] = Field(default_factory=list)
    recurrence_pattern: str
    recurrence_interval: int
    recurrence_end_date: Optional[datetime] = None
    recurrence_count: Optional[int] = None
    inbox_ref: Optional[int] = None
    draft_ref: Optional[int] = None
    estimated_minutes: Optional[int] = None
    actual_minutes: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def is_overdue(self) -> bool:
        return task_is_overdue(self)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class TaskPage(BaseModel):
    tasks: list[TaskRead]
    pagination: Pagination


class TaskCounts(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pending: int = 0
    in_progress: int = Field(default=0, alias="in-progress")
    completed: int = 0
    total: int = 0


class CountResult(BaseModel):
    count: int
