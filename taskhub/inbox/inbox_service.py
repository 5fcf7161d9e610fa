# taskhub/inbox/inbox_service.py

from __future__ import annotations

import logging
import random
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from taskhub.clock import utcnow
from taskhub.config import (
    SAFE_DELETE_BASE_DELAY_SECONDS,
    SAFE_DELETE_MAX_DELAY_SECONDS,
    SAFE_DELETE_MAX_RETRIES,
)
from taskhub.database import commit
from taskhub.errors import AlreadyPromotedError, NotFoundError, TransientStoreError
from taskhub.models.inbox_item import InboxItem
from taskhub.ownership import EntityKind, get_owned
from taskhub.schemas.inbox_schema import InboxItemCreate, InboxItemUpdate

logger = logging.getLogger("taskhub.inbox")

BACKOFF_JITTER = 0.2
RECENT_PROMOTIONS = 5


@dataclass
class DeleteOutcome:
    success: bool
    message: str
    attempts: int
    operation_id: str
    item: Optional[InboxItem] = None


# ==========================
#  CRUD
# ==========================
def create_item(db: Session, *, user_id: int, data: InboxItemCreate) -> InboxItem:
    item = InboxItem(user_id=user_id, title=data.title, notes=(data.notes or "").strip())
    db.add(item)
    commit(db)
    db.refresh(item)
    logger.info("inbox_item_created", extra={"user_id": user_id, "item_id": item.id})
    return item


def list_items(
    db: Session,
    *,
    user_id: int,
    exclude_promoted: bool = False,
    limit: Optional[int] = None,
) -> list[InboxItem]:
    query = db.query(InboxItem).filter(InboxItem.user_id == user_id, InboxItem.is_deleted.is_(False))
    if exclude_promoted:
        query = query.filter(InboxItem.is_promoted.is_(False))
    query = query.order_by(InboxItem.created_at.desc(), InboxItem.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def get_item(db: Session, *, user_id: int, item_id: int) -> InboxItem:
    """Owned, not soft-deleted inbox item."""
    item = get_owned(db, EntityKind.INBOX_ITEM, item_id, user_id)
    if item.is_deleted:
        raise NotFoundError("Inbox item not found", kind="inbox_item", id=item_id)
    return item


def update_item(db: Session, *, user_id: int, item_id: int, data: InboxItemUpdate) -> InboxItem:
    item = get_item(db, user_id=user_id, item_id=item_id)
    if item.is_promoted:
        raise AlreadyPromotedError("Cannot edit a promoted inbox item", item_id=item_id)

    if data.title is not None:
        item.title = data.title.strip()
    if data.notes is not None:
        item.notes = data.notes.strip()

    commit(db)
    db.refresh(item)
    return item


# ==========================
#  DELETION
# ==========================
def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Exponential backoff with up to 20% jitter, capped at max_delay."""
    delay = base_delay * 2 ** (attempt - 1)
    jitter = delay * BACKOFF_JITTER * random.random()
    return min(delay + jitter, max_delay)


def safe_delete(
    db: Session,
    *,
    user_id: int,
    item_id: int,
    max_retries: int = SAFE_DELETE_MAX_RETRIES,
    base_delay: float = SAFE_DELETE_BASE_DELAY_SECONDS,
    max_delay: float = SAFE_DELETE_MAX_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    now: Optional[datetime] = None,
) -> DeleteOutcome:
    """
    Soft delete an inbox item, retrying transient store failures.

    A missing or foreign item raises NotFoundError straight away. Storage
    errors are retried up to max_retries attempts; once exhausted the
    failure is returned as a DeleteOutcome rather than raised.
    """
    max_retries = max(1, max_retries)
    operation_id = f"delete_{uuid.uuid4().hex[:12]}"
    logger.info(
        "safe_delete_started",
        extra={"operation_id": operation_id, "user_id": user_id, "item_id": item_id},
    )

    last_error: Optional[Exception] = None
    for attempt in range(1, max_retries + 1):
        try:
            item = get_item(db, user_id=user_id, item_id=item_id)
            item.is_deleted = True
            item.deleted_at = now or utcnow()
            item.deleted_by = user_id
            commit(db)
            db.refresh(item)
        except OperationalError as exc:
            db.rollback()
            last_error = exc
        except TransientStoreError as exc:
            last_error = exc
        else:
            logger.info(
                "inbox_item_soft_deleted",
                extra={"operation_id": operation_id, "item_id": item_id, "attempts": attempt},
            )
            return DeleteOutcome(
                success=True,
                message="Item deleted successfully",
                attempts=attempt,
                operation_id=operation_id,
                item=item,
            )

        logger.warning(
            "safe_delete_retryable_error",
            extra={
                "operation_id": operation_id,
                "item_id": item_id,
                "attempt": attempt,
                "error": str(last_error),
            },
        )
        if attempt < max_retries:
            sleep(backoff_delay(attempt, base_delay, max_delay))

    logger.error(
        "safe_delete_exhausted",
        extra={"operation_id": operation_id, "item_id": item_id, "attempts": max_retries},
    )
    return DeleteOutcome(
        success=False,
        message=f"Could not delete item after {max_retries} attempts. Please try again later.",
        attempts=max_retries,
        operation_id=operation_id,
    )


def hard_delete(db: Session, *, user_id: int, item_id: int) -> None:
    """Permanently remove the row, soft-deleted or not."""
    item = get_owned(db, EntityKind.INBOX_ITEM, item_id, user_id)
    db.delete(item)
    commit(db)
    logger.info("inbox_item_hard_deleted", extra={"user_id": user_id, "item_id": item_id})


def bulk_delete(db: Session, *, user_id: int, item_ids: list[int]) -> int:
    deleted = (
        db.query(InboxItem)
        .filter(InboxItem.id.in_(item_ids), InboxItem.user_id == user_id)
        .delete(synchronize_session="fetch")
    )
    commit(db)
    logger.info("inbox_items_bulk_deleted", extra={"user_id": user_id, "deleted": deleted})
    return deleted


# ==========================
#  STATS
# ==========================
def get_inbox_stats(db: Session, *, user_id: int) -> dict:
    live = db.query(InboxItem).filter(InboxItem.user_id == user_id, InboxItem.is_deleted.is_(False))

    total = live.count()
    promoted = live.filter(InboxItem.is_promoted.is_(True)).count()
    recent = (
        live.filter(InboxItem.is_promoted.is_(True))
        .order_by(InboxItem.promoted_at.desc(), InboxItem.id.desc())
        .limit(RECENT_PROMOTIONS)
        .all()
    )

    return {
        "total": total,
        "unpromoted": total - promoted,
        "promoted": promoted,
        "promotionRate": (promoted / total) * 100 if total else 0,
        "recentPromotions": [
            {"id": item.id, "title": item.title, "promoted_at": item.promoted_at} for item in recent
        ],
    }
