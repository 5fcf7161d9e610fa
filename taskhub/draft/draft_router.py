# taskhub/draft/draft_router.py

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from taskhub.auth.auth_router import get_current_user_id
from taskhub.database import get_db
from taskhub.draft import draft_service
from taskhub.promotion import promotion_service
from taskhub.schemas.draft_schema import (
    DraftCreate,
    DraftIds,
    DraftPage,
    DraftRead,
    DraftStats,
    DraftUpdate,
    PromotionRead,
    Source,
)
from taskhub.schemas.task_schema import CountResult, TaskExtras
from taskhub.stats.stats_service import refresh_user_stats

router = APIRouter(
    prefix="/drafts",
    tags=["drafts"],
)


@router.post("/", response_model=DraftRead, status_code=201)
def create_draft(
    data: DraftCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return draft_service.create_draft(db, user_id=user_id, data=data)


@router.get("/", response_model=DraftPage)
def list_drafts(
    source: Optional[Source] = None,
    is_promoted: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return draft_service.list_drafts(
        db, user_id=user_id, source=source, is_promoted=is_promoted, page=page, limit=limit
    )


@router.get("/stats", response_model=DraftStats)
def get_draft_stats(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return draft_service.get_draft_stats(db, user_id=user_id)


@router.post("/bulk-delete", response_model=CountResult)
def bulk_delete(
    data: DraftIds,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    count = draft_service.bulk_delete(
        db, user_id=user_id, draft_ids=data.ids, delete_promoted=data.delete_promoted
    )
    return {"count": count}


@router.get("/{draft_id}", response_model=DraftRead)
def get_draft(
    draft_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return draft_service.get_draft(db, user_id=user_id, draft_id=draft_id)


@router.patch("/{draft_id}", response_model=DraftRead)
@router.put("/{draft_id}", response_model=DraftRead)
def update_draft(
    draft_id: int,
    data: DraftUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return draft_service.update_draft(db, user_id=user_id, draft_id=draft_id, data=data)


@router.delete("/{draft_id}", status_code=204)
def delete_draft(
    draft_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    draft_service.delete_draft(db, user_id=user_id, draft_id=draft_id)
    return


@router.post("/{draft_id}/promote", response_model=PromotionRead)
def promote_draft(
    draft_id: int,
    background_tasks: BackgroundTasks,
    extra: Optional[TaskExtras] = None,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    result = promotion_service.promote_draft_to_task(
        db, user_id=user_id, draft_id=draft_id, extra=extra
    )
    background_tasks.add_task(refresh_user_stats, user_id)
    return PromotionRead.model_validate(result)
