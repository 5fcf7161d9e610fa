# taskhub/task/task_router.py

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from taskhub.auth.auth_router import get_current_user_id
from taskhub.database import get_db
from taskhub.schemas.task_schema import (
    Priority,
    Status,
    TaskCounts,
    TaskCreate,
    TaskPage,
    TaskRead,
    TaskStatusUpdate,
    TaskUpdate,
)
from taskhub.stats.stats_service import refresh_user_stats
from taskhub.task import task_service

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
)


# ==========================
#  CREATE TASK
# ==========================
@router.post("/", response_model=TaskRead, status_code=201)
def create_task(
    data: TaskCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    task = task_service.create_task(db, user_id=user_id, data=data)
    background_tasks.add_task(refresh_user_stats, user_id)
    return task


# ==========================
#  LIST TASKS
# ==========================
@router.get("/", response_model=TaskPage)
def list_tasks(
    status: Optional[Status] = None,
    priority: Optional[Priority] = None,
    group_id: Optional[int] = None,
    is_important: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return task_service.list_tasks(
        db,
        user_id=user_id,
        status=status,
        priority=priority,
        group_id=group_id,
        is_important=is_important,
        page=page,
        limit=limit,
    )


@router.get("/stats", response_model=TaskCounts)
def get_task_stats(
    group_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return task_service.get_task_stats(db, user_id=user_id, group_id=group_id)


# ==========================
#  SINGLE TASK
# ==========================
@router.get("/{task_id}", response_model=TaskRead)
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return task_service.get_task(db, user_id=user_id, task_id=task_id)


@router.patch("/{task_id}", response_model=TaskRead)
@router.put("/{task_id}", response_model=TaskRead)
def update_task(
    task_id: int,
    data: TaskUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    task = task_service.update_task(db, user_id=user_id, task_id=task_id, data=data)
    background_tasks.add_task(refresh_user_stats, user_id)
    return task


@router.patch("/{task_id}/status", response_model=TaskRead)
def update_status(
    task_id: int,
    data: TaskStatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    task = task_service.update_task(
        db, user_id=user_id, task_id=task_id, data=TaskUpdate(status=data.status)
    )
    background_tasks.add_task(refresh_user_stats, user_id)
    return task


@router.delete("/{task_id}", status_code=204)
def delete_task(
    task_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    task_service.delete_task(db, user_id=user_id, task_id=task_id)
    background_tasks.add_task(refresh_user_stats, user_id)
    return
