# taskhub/inbox/inbox_router.py

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from taskhub.auth.auth_router import get_current_user_id
from taskhub.database import get_db
from taskhub.inbox import inbox_service
from taskhub.promotion import promotion_service
from taskhub.schemas.draft_schema import InboxPromotion, PromotionRead
from taskhub.schemas.inbox_schema import (
    DeleteOutcomeRead,
    InboxIds,
    InboxItemCreate,
    InboxItemRead,
    InboxItemUpdate,
    InboxStats,
)
from taskhub.schemas.task_schema import CountResult
from taskhub.stats.stats_service import refresh_user_stats

router = APIRouter(
    prefix="/inbox",
    tags=["inbox"],
)


# ==========================
#  CAPTURE
# ==========================
@router.post("/", response_model=InboxItemRead, status_code=201)
@router.post("/quick", response_model=InboxItemRead, status_code=201)
def create_item(
    data: InboxItemCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return inbox_service.create_item(db, user_id=user_id, data=data)


@router.get("/", response_model=list[InboxItemRead])
def list_items(
    exclude_promoted: bool = False,
    limit: Optional[int] = Query(None, ge=1, le=200),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return inbox_service.list_items(
        db, user_id=user_id, exclude_promoted=exclude_promoted, limit=limit
    )


@router.get("/stats", response_model=InboxStats)
def get_inbox_stats(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return inbox_service.get_inbox_stats(db, user_id=user_id)


@router.post("/bulk-delete", response_model=CountResult)
def bulk_delete(
    data: InboxIds,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return {"count": inbox_service.bulk_delete(db, user_id=user_id, item_ids=data.item_ids)}


# ==========================
#  SINGLE ITEM
# ==========================
@router.get("/{item_id}", response_model=InboxItemRead)
def get_item(
    item_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return inbox_service.get_item(db, user_id=user_id, item_id=item_id)


@router.patch("/{item_id}", response_model=InboxItemRead)
@router.put("/{item_id}", response_model=InboxItemRead)
def update_item(
    item_id: int,
    data: InboxItemUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return inbox_service.update_item(db, user_id=user_id, item_id=item_id, data=data)


@router.delete("/{item_id}", response_model=DeleteOutcomeRead)
def soft_delete_item(
    item_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    outcome = inbox_service.safe_delete(db, user_id=user_id, item_id=item_id)
    body = {
        "success": outcome.success,
        "message": outcome.message,
        "attempts": outcome.attempts,
        "operation_id": outcome.operation_id,
    }
    if not outcome.success:
        raise HTTPException(status_code=503, detail=body)
    return body


@router.delete("/{item_id}/permanent", status_code=204)
def hard_delete_item(
    item_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    inbox_service.hard_delete(db, user_id=user_id, item_id=item_id)
    return


# ==========================
#  PROMOTION
# ==========================
@router.post("/{item_id}/promote", response_model=PromotionRead)
def promote_to_task(
    item_id: int,
    background_tasks: BackgroundTasks,
    data: Optional[InboxPromotion] = None,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    data = data or InboxPromotion()
    result = promotion_service.promote_inbox_to_task(
        db, user_id=user_id, item_id=item_id, via_draft=data.via_draft, extra=data.task
    )
    background_tasks.add_task(refresh_user_stats, user_id)
    return PromotionRead.model_validate(result)


@router.post("/{item_id}/promote-to-draft", response_model=PromotionRead)
def promote_to_draft(
    item_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    result = promotion_service.promote_inbox_to_draft(db, user_id=user_id, item_id=item_id)
    return PromotionRead.model_validate(result)
