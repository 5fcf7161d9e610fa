# taskhub/draft/draft_service.py

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from taskhub.database import commit, paginate
from taskhub.errors import AlreadyPromotedError, ValidationError
from taskhub.models.draft import DRAFT_SOURCES, Draft
from taskhub.ownership import EntityKind, get_owned
from taskhub.schemas.draft_schema import DraftCreate, DraftUpdate

logger = logging.getLogger("taskhub.drafts")


def can_promote(draft: Draft) -> bool:
    return not draft.is_promoted and bool((draft.title or "").strip())


def create_draft(db: Session, *, user_id: int, data: DraftCreate) -> Draft:
    draft = Draft(
        user_id=user_id,
        title=data.title,
        notes=(data.notes or "").strip(),
        source=data.source,
        inbox_ref=data.inbox_ref,
    )
    db.add(draft)
    commit(db)
    db.refresh(draft)
    logger.info("draft_created", extra={"user_id": user_id, "draft_id": draft.id, "source": draft.source})
    return draft


def list_drafts(
    db: Session,
    *,
    user_id: int,
    source: Optional[str] = None,
    is_promoted: Optional[bool] = None,
    page: int = 1,
    limit: int = 50,
) -> dict:
    query = db.query(Draft).filter(Draft.user_id == user_id)
    if source is not None:
        query = query.filter(Draft.source == source)
    if is_promoted is not None:
        query = query.filter(Draft.is_promoted.is_(is_promoted))

    drafts, pagination = paginate(query.order_by(Draft.created_at.desc(), Draft.id.desc()), page, limit)
    return {"drafts": drafts, "pagination": pagination}


def get_draft(db: Session, *, user_id: int, draft_id: int) -> Draft:
    return get_owned(db, EntityKind.DRAFT, draft_id, user_id)


def update_draft(db: Session, *, user_id: int, draft_id: int, data: DraftUpdate) -> Draft:
    draft = get_draft(db, user_id=user_id, draft_id=draft_id)
    if draft.is_promoted:
        raise AlreadyPromotedError("Cannot update promoted draft", draft_id=draft_id)

    if data.title is not None:
        title = data.title.strip()
        if not title:
            raise ValidationError("Title is required", draft_id=draft_id)
        draft.title = title
    if data.notes is not None:
        draft.notes = data.notes.strip()
    if data.source is not None:
        draft.source = data.source

    commit(db)
    db.refresh(draft)
    return draft


def delete_draft(db: Session, *, user_id: int, draft_id: int) -> None:
    draft = get_draft(db, user_id=user_id, draft_id=draft_id)
    db.delete(draft)
    commit(db)
    logger.info("draft_deleted", extra={"user_id": user_id, "draft_id": draft_id})


def bulk_delete(
    db: Session,
    *,
    user_id: int,
    draft_ids: list[int],
    delete_promoted: bool = False,
) -> int:
    """Delete the listed drafts; promoted ones are skipped unless delete_promoted."""
    query = db.query(Draft).filter(Draft.id.in_(draft_ids), Draft.user_id == user_id)
    if not delete_promoted:
        query = query.filter(Draft.is_promoted.is_(False))

    deleted = query.delete(synchronize_session="fetch")
    commit(db)
    logger.info("drafts_bulk_deleted", extra={"user_id": user_id, "deleted": deleted})
    return deleted


def get_draft_stats(db: Session, *, user_id: int) -> dict:
    rows = (
        db.query(Draft.source, Draft.is_promoted, func.count(Draft.id))
        .filter(Draft.user_id == user_id)
        .group_by(Draft.source, Draft.is_promoted)
        .all()
    )

    by_source = {source: 0 for source in DRAFT_SOURCES}
    promoted = unpromoted = 0
    for source, is_promoted, count in rows:
        if source in by_source:
            by_source[source] += count
        if is_promoted:
            promoted += count
        else:
            unpromoted += count

    return {
        "total": promoted + unpromoted,
        "promoted": promoted,
        "unpromoted": unpromoted,
        "bySource": by_source,
    }
