# taskhub/promotion/promotion_service.py

"""
Inbox -> Draft -> Task promotion.

Each public function is one unit of work on the session: every row it
touches is written by a single commit, and any failure rolls the whole
session back. A caller never sees a promoted source without its target,
nor a target whose source is still unpromoted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from taskhub.clock import utcnow
from taskhub.database import unit_of_work
from taskhub.draft.draft_service import get_draft
from taskhub.errors import AlreadyPromotedError, CannotPromoteError, ValidationError
from taskhub.group.group_service import first_default_group, refresh_group_task_count
from taskhub.inbox.inbox_service import get_item
from taskhub.models.draft import Draft
from taskhub.models.inbox_item import InboxItem
from taskhub.models.task import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    Task,
    TaskPriority,
    TaskStatus,
)
from taskhub.schemas.task_schema import TaskExtras
from taskhub.task.task_service import resolve_group

logger = logging.getLogger("taskhub.promotion")


@dataclass
class PromotionResult:
    task: Optional[Task] = None
    draft: Optional[Draft] = None
    inbox_item: Optional[InboxItem] = None


# ==========================
#  GUARDS + BUILDERS (no commit)
# ==========================
def _check_item(item: InboxItem) -> None:
    if item.is_promoted:
        raise AlreadyPromotedError("Inbox item has already been promoted", item_id=item.id)


def _check_draft(draft: Draft) -> None:
    if draft.is_promoted:
        raise AlreadyPromotedError("Draft has already been promoted", draft_id=draft.id)
    if not (draft.title or "").strip():
        raise CannotPromoteError("Draft cannot be promoted without a title", draft_id=draft.id)


def _mark_promoted(source, now: datetime) -> None:
    source.is_promoted = True
    source.promoted_at = now


def _draft_from_item(item: InboxItem) -> Draft:
    return Draft(
        user_id=item.user_id,
        title=item.title,
        notes=item.notes or "",
        source="inbox",
        inbox_ref=item.id,
    )


def _check_task_fields(title: str, description: str) -> None:
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Task title must be at most {TITLE_MAX_LENGTH} characters", length=len(title)
        )
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Task description must be at most {DESCRIPTION_MAX_LENGTH} characters",
            length=len(description),
        )


def _task_group_id(db: Session, user_id: int, extra: TaskExtras) -> int:
    if extra.group_id is not None:
        return resolve_group(db, user_id, extra.group_id).id

    fallback = first_default_group(db, user_id)
    if fallback is None:
        raise ValidationError("Group is required")
    return fallback.id


def _build_task(
    db: Session,
    *,
    user_id: int,
    title: str,
    description: str,
    inbox_ref: Optional[int],
    draft_ref: Optional[int],
    extra: Optional[TaskExtras],
    now: datetime,
) -> Task:
    extra = extra or TaskExtras()
    title = title.strip()
    description = description or ""
    _check_task_fields(title, description)

    return Task(
        user_id=user_id,
        title=title,
        description=description,
        status=TaskStatus.PENDING.value,
        priority=extra.priority or TaskPriority.MEDIUM.value,
        group_id=_task_group_id(db, user_id, extra),
        tags=extra.tags or [],
        is_important=bool(extra.is_important),
        start_at=extra.start_at or now,
        due_at=extra.due_at,
        reminders=extra.reminders or [],
        estimated_minutes=extra.estimated_minutes,
        inbox_ref=inbox_ref,
        draft_ref=draft_ref,
    )


# ==========================
#  PROMOTION PATHS
# ==========================
def promote_inbox_to_draft(
    db: Session,
    *,
    user_id: int,
    item_id: int,
    now: Optional[datetime] = None,
) -> PromotionResult:
    now = now or utcnow()
    item = get_item(db, user_id=user_id, item_id=item_id)
    _check_item(item)

    with unit_of_work(db):
        draft = _draft_from_item(item)
        db.add(draft)
        _mark_promoted(item, now)

    db.refresh(draft)
    db.refresh(item)
    logger.info("inbox_promoted_to_draft", extra={"user_id": user_id, "item_id": item.id, "draft_id": draft.id})
    return PromotionResult(draft=draft, inbox_item=item)


def promote_draft_to_task(
    db: Session,
    *,
    user_id: int,
    draft_id: int,
    extra: Optional[TaskExtras] = None,
    now: Optional[datetime] = None,
) -> PromotionResult:
    """Exactly one task for exactly one draft, or neither."""
    now = now or utcnow()
    draft = get_draft(db, user_id=user_id, draft_id=draft_id)
    _check_draft(draft)

    with unit_of_work(db):
        task = _build_task(
            db,
            user_id=user_id,
            title=draft.title,
            description=draft.notes,
            inbox_ref=draft.inbox_ref,
            draft_ref=draft.id,
            extra=extra,
            now=now,
        )
        db.add(task)
        _mark_promoted(draft, now)

    db.refresh(task)
    db.refresh(draft)
    refresh_group_task_count(db, task.group_id)

    logger.info("draft_promoted", extra={"user_id": user_id, "draft_id": draft.id, "task_id": task.id})
    return PromotionResult(task=task, draft=draft)


def promote_inbox_to_task(
    db: Session,
    *,
    user_id: int,
    item_id: int,
    via_draft: bool = False,
    extra: Optional[TaskExtras] = None,
    now: Optional[datetime] = None,
) -> PromotionResult:
    """
    Inbox item straight to a task, or through an intermediate draft when
    via_draft is set. Both paths commit once; the item is marked promoted
    at the very end.
    """
    now = now or utcnow()
    item = get_item(db, user_id=user_id, item_id=item_id)
    _check_item(item)
    if not (item.title or "").strip():
        raise CannotPromoteError("Inbox item cannot be promoted without a title", item_id=item.id)

    draft: Optional[Draft] = None
    with unit_of_work(db):
        if via_draft:
            draft = _draft_from_item(item)
            db.add(draft)
            # the draft id is needed for draft_ref
            db.flush()
            task = _build_task(
                db,
                user_id=user_id,
                title=draft.title,
                description=draft.notes,
                inbox_ref=item.id,
                draft_ref=draft.id,
                extra=extra,
                now=now,
            )
            _mark_promoted(draft, now)
        else:
            task = _build_task(
                db,
                user_id=user_id,
                title=item.title,
                description=item.notes,
                inbox_ref=item.id,
                draft_ref=None,
                extra=extra,
                now=now,
            )
        db.add(task)
        _mark_promoted(item, now)

    db.refresh(task)
    db.refresh(item)
    if draft is not None:
        db.refresh(draft)
    refresh_group_task_count(db, task.group_id)

    logger.info(
        "inbox_promoted_to_task",
        extra={
            "user_id": user_id,
            "item_id": item.id,
            "task_id": task.id,
            "draft_id": draft.id if draft is not None else None,
        },
    )
    return PromotionResult(task=task, draft=draft, inbox_item=item)
