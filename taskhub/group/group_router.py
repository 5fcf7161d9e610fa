# taskhub/group/group_router.py

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from taskhub.auth.auth_router import get_current_user_id
from taskhub.database import get_db
from taskhub.group import group_service
from taskhub.schemas.group_schema import GroupComplete, GroupCreate, GroupRead, GroupUpdate, MoveTasks
from taskhub.schemas.task_schema import CountResult, TaskCounts
from taskhub.stats.stats_service import refresh_user_stats
from taskhub.task import task_service

router = APIRouter(
    prefix="/groups",
    tags=["groups"],
)


# ==========================
#  CREATE GROUP
# ==========================
@router.post("/", response_model=GroupRead, status_code=201)
def create_group(
    data: GroupCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    group = group_service.create_group(db, user_id=user_id, data=data)
    background_tasks.add_task(refresh_user_stats, user_id)
    return group


# ==========================
#  GET ALL GROUPS
# ==========================
@router.get("/", response_model=list[GroupRead])
def get_all_groups(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return group_service.list_groups(db, user_id)


# ==========================
#  MOVE TASKS BETWEEN GROUPS
# ==========================
@router.post("/move-tasks", response_model=CountResult)
def move_tasks(
    data: MoveTasks,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    count = group_service.move_tasks(
        db, user_id=user_id, task_ids=data.task_ids, target_group_id=data.target_group_id
    )
    background_tasks.add_task(refresh_user_stats, user_id)
    return {"count": count}


# ==========================
#  GET GROUP BY ID
# ==========================
@router.get("/{group_id}", response_model=GroupRead)
def get_group(
    group_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return group_service.get_group(db, user_id, group_id)


@router.get("/{group_id}/stats", response_model=TaskCounts)
def get_group_stats(
    group_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    group = group_service.get_group(db, user_id, group_id)
    return task_service.get_task_stats(db, user_id=user_id, group_id=group.id)


# ==========================
#  UPDATE GROUP (PATCH)
# ==========================
@router.patch("/{group_id}", response_model=GroupRead)
@router.put("/{group_id}", response_model=GroupRead)
def update_group(
    group_id: int,
    data: GroupUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return group_service.update_group(db, user_id=user_id, group_id=group_id, data=data)


# ==========================
#  DELETE GROUP
# ==========================
@router.delete("/{group_id}", status_code=204)
def delete_group(
    group_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    group_service.delete_group(db, user_id=user_id, group_id=group_id)
    background_tasks.add_task(refresh_user_stats, user_id)
    return


# ==========================
#  GROUP COMPLETION
# ==========================
@router.post("/{group_id}/complete", response_model=GroupRead)
def mark_group_completed(
    group_id: int,
    data: Optional[GroupComplete] = None,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return group_service.mark_group_completed(
        db, user_id=user_id, group_id=group_id, end_goal=data.end_goal if data else None
    )


@router.post("/{group_id}/uncomplete", response_model=GroupRead)
def unmark_group_completed(
    group_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return group_service.unmark_group_completed(db, user_id=user_id, group_id=group_id)
