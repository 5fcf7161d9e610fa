# taskhub/task/completed_router.py

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from taskhub.auth.auth_router import get_current_user_id
from taskhub.config import COMPLETED_RETENTION_DAYS
from taskhub.database import get_db
from taskhub.schemas.task_schema import CountResult, TaskIds, TaskPage, TaskRead
from taskhub.stats.stats_service import refresh_user_stats
from taskhub.task import task_service

router = APIRouter(
    prefix="/completed",
    tags=["completed"],
)


@router.get("/", response_model=TaskPage)
def get_completed_tasks(
    group_id: Optional[int] = None,
    days_ago: Optional[int] = Query(None, ge=1, le=365),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return task_service.get_completed_tasks(
        db, user_id=user_id, group_id=group_id, days_ago=days_ago, page=page, limit=limit
    )


@router.get("/stats")
def get_completion_stats(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return task_service.get_completion_stats(db, user_id=user_id)


# ==========================
#  BULK + CLEANUP
# ==========================
@router.post("/bulk", response_model=CountResult)
def bulk_complete(
    data: TaskIds,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    count = task_service.bulk_complete(db, user_id=user_id, task_ids=data.task_ids)
    background_tasks.add_task(refresh_user_stats, user_id)
    return {"count": count}


@router.post("/bulk-revive", response_model=CountResult)
def bulk_revive(
    data: TaskIds,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    count = task_service.bulk_revive(db, user_id=user_id, task_ids=data.task_ids)
    background_tasks.add_task(refresh_user_stats, user_id)
    return {"count": count}


@router.delete("/cleanup", response_model=CountResult)
def cleanup_completed(
    background_tasks: BackgroundTasks,
    days_old: int = Query(COMPLETED_RETENTION_DAYS, ge=1, le=365),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    count = task_service.cleanup_completed(db, user_id=user_id, days_old=days_old)
    background_tasks.add_task(refresh_user_stats, user_id)
    return {"count": count}


# ==========================
#  SINGLE TASK TRANSITIONS
# ==========================
@router.post("/{task_id}", response_model=TaskRead)
def complete_task(
    task_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    task = task_service.complete_task(db, user_id=user_id, task_id=task_id)
    background_tasks.add_task(refresh_user_stats, user_id)
    return task


@router.post("/{task_id}/revive", response_model=TaskRead)
def revive_task(
    task_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    task = task_service.revive_task(db, user_id=user_id, task_id=task_id)
    background_tasks.add_task(refresh_user_stats, user_id)
    return task


@router.post("/{task_id}/toggle", response_model=TaskRead)
def toggle_completion(
    task_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    task = task_service.toggle_completion(db, user_id=user_id, task_id=task_id)
    background_tasks.add_task(refresh_user_stats, user_id)
    return task
