# taskhub/task/calendar_router.py

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from taskhub.auth.auth_router import get_current_user_id
from taskhub.clock import to_naive_utc
from taskhub.database import get_db
from taskhub.schemas.task_schema import ReminderCreate, TaskDatesUpdate, TaskRead
from taskhub.task import task_service

router = APIRouter(
    prefix="/calendar",
    tags=["calendar"],
)


@router.get("/tasks", response_model=list[TaskRead])
def get_calendar_tasks(
    start: datetime,
    end: datetime,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return task_service.get_calendar_tasks(
        db, user_id=user_id, start=to_naive_utc(start), end=to_naive_utc(end)
    )


@router.get("/reminders", response_model=list[TaskRead])
def get_upcoming_reminders(
    hours: int = Query(24, ge=1, le=168),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return task_service.get_upcoming_reminders(db, user_id=user_id, hours=hours)


# drag & drop in the calendar view
@router.put("/tasks/{task_id}/dates", response_model=TaskRead)
def update_task_dates(
    task_id: int,
    data: TaskDatesUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return task_service.update_task_dates(
        db,
        user_id=user_id,
        task_id=task_id,
        start_at=data.start_at,
        due_at=data.due_at,
        is_all_day=data.is_all_day,
    )


@router.post("/tasks/{task_id}/reminders", response_model=TaskRead)
def add_reminder(
    task_id: int,
    data: ReminderCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return task_service.add_reminder(db, user_id=user_id, task_id=task_id, at=data.reminder_time)


@router.delete("/tasks/{task_id}/reminders/{index}", response_model=TaskRead)
def remove_reminder(
    task_id: int,
    index: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return task_service.remove_reminder(db, user_id=user_id, task_id=task_id, index=index)
