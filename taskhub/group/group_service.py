# taskhub/group/group_service.py

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from taskhub.clock import utcnow
from taskhub.database import commit
from taskhub.errors import ValidationError
from taskhub.models.group import Group
from taskhub.models.task import Task
from taskhub.ownership import EntityKind, get_owned
from taskhub.schemas.group_schema import GroupCreate, GroupUpdate

logger = logging.getLogger("taskhub.groups")

DEFAULT_GROUPS = (
    {"name": "Personal", "icon": "🏠", "color": "#10B981"},
    {"name": "Work", "icon": "💼", "color": "#3B82F6"},
    {"name": "Shopping", "icon": "🛒", "color": "#8B5CF6"},
    {"name": "Ideas", "icon": "💡", "color": "#F59E0B"},
)


# ==========================
#  TASK COUNT CACHE
# ==========================
def update_task_count(db: Session, group_id: int) -> int:
    """Recount the tasks pointing at group_id and store it on the group."""
    task_count = db.query(Task).filter(Task.group_id == group_id).count()
    group = db.get(Group, group_id)
    if group is None:
        return task_count
    group.task_count = task_count
    commit(db)
    return task_count


def refresh_group_task_count(db: Session, group_id: Optional[int]) -> Optional[int]:
    """update_task_count for side-effect callers: failures are logged, never raised."""
    if group_id is None:
        return None
    try:
        return update_task_count(db, group_id)
    except Exception:
        db.rollback()
        logger.exception("group_task_count_failed", extra={"group_id": group_id})
        return None


# ==========================
#  DEFAULT GROUPS
# ==========================
def create_default_groups(db: Session, user_id: int) -> list[Group]:
    groups = [Group(user_id=user_id, is_default=True, **preset) for preset in DEFAULT_GROUPS]
    db.add_all(groups)
    commit(db)
    for group in groups:
        db.refresh(group)
    logger.info("default_groups_created", extra={"user_id": user_id, "count": len(groups)})
    return groups


def first_default_group(db: Session, user_id: int) -> Optional[Group]:
    """The owner's fallback group: first default one, else the oldest."""
    return (
        db.query(Group)
        .filter(Group.user_id == user_id)
        .order_by(Group.is_default.desc(), Group.id.asc())
        .first()
    )


# ==========================
#  CRUD
# ==========================
def list_groups(db: Session, user_id: int) -> list[Group]:
    return (
        db.query(Group)
        .filter(Group.user_id == user_id)
        .order_by(Group.is_default.desc(), Group.created_at.asc(), Group.id.asc())
        .all()
    )


def get_group(db: Session, user_id: int, group_id: int) -> Group:
    return get_owned(db, EntityKind.GROUP, group_id, user_id)


def create_group(db: Session, *, user_id: int, data: GroupCreate) -> Group:
    group = Group(
        user_id=user_id,
        name=data.name,
        description=data.description,
        color=data.color,
        icon=data.icon,
        end_goal=data.end_goal,
        expected_date=data.expected_date,
        is_default=False,
    )
    db.add(group)
    commit(db)
    db.refresh(group)
    logger.info("group_created", extra={"user_id": user_id, "group_id": group.id})
    return group


def update_group(db: Session, *, user_id: int, group_id: int, data: GroupUpdate) -> Group:
    group = get_group(db, user_id, group_id)

    # "is not None" so an empty description can still be saved
    if data.name is not None:
        name = data.name.strip()
        if not name:
            raise ValidationError("Group name must be between 1 and 50 characters")
        group.name = name
    if data.description is not None:
        group.description = data.description
    if data.color is not None:
        group.color = data.color
    if data.icon is not None:
        group.icon = data.icon
    if data.end_goal is not None:
        group.end_goal = data.end_goal
    if data.expected_date is not None:
        group.expected_date = data.expected_date

    commit(db)
    db.refresh(group)
    return group


def delete_group(db: Session, *, user_id: int, group_id: int) -> None:
    group = get_group(db, user_id, group_id)

    if group.is_default:
        raise ValidationError("Cannot delete default groups", group_id=group_id)

    task_count = db.query(Task).filter(Task.group_id == group_id).count()
    if task_count > 0:
        raise ValidationError(
            f"Cannot delete group with {task_count} tasks. Move or delete tasks first.",
            group_id=group_id,
        )

    db.delete(group)
    commit(db)
    logger.info("group_deleted", extra={"user_id": user_id, "group_id": group_id})


# ==========================
#  MOVE TASKS BETWEEN GROUPS
# ==========================
def move_tasks(db: Session, *, user_id: int, task_ids: list[int], target_group_id: int) -> int:
    target = get_group(db, user_id, target_group_id)

    tasks = db.query(Task).filter(Task.id.in_(task_ids), Task.user_id == user_id).all()
    source_group_ids = {t.group_id for t in tasks if t.group_id != target.id}

    modified = 0
    for task in tasks:
        if task.group_id != target.id:
            task.group_id = target.id
            modified += 1
    commit(db)

    for group_id in sorted(source_group_ids):
        refresh_group_task_count(db, group_id)
    refresh_group_task_count(db, target.id)

    logger.info(
        "tasks_moved",
        extra={"user_id": user_id, "target_group_id": target.id, "modified": modified},
    )
    return modified


# ==========================
#  GROUP COMPLETION
# ==========================
def mark_group_completed(
    db: Session,
    *,
    user_id: int,
    group_id: int,
    end_goal: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Group:
    group = get_group(db, user_id, group_id)

    group.is_completed = True
    group.completed_at = now or utcnow()
    group.completed_by = user_id
    if end_goal is not None:
        group.end_goal = end_goal

    commit(db)
    db.refresh(group)
    logger.info("group_completed", extra={"user_id": user_id, "group_id": group_id})
    return group


def unmark_group_completed(db: Session, *, user_id: int, group_id: int) -> Group:
    group = get_group(db, user_id, group_id)

    group.is_completed = False
    group.completed_at = None
    group.completed_by = None

    commit(db)
    db.refresh(group)
    return group
