# taskhub/review/review_router.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from taskhub.auth.auth_router import get_current_user_id
from taskhub.database import get_db
from taskhub.review import review_service
from taskhub.schemas.review_schema import WeeklyReview

router = APIRouter(
    prefix="/review",
    tags=["review"],
)


@router.get("/weekly", response_model=WeeklyReview)
def get_weekly_review(
    week_offset: int = Query(0, alias="weekOffset", ge=-52, le=0),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return review_service.get_weekly_review(db, user_id=user_id, week_offset=week_offset)


@router.get("/insights")
def get_insights(
    week_offset: int = Query(0, alias="weekOffset", ge=-52, le=0),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return review_service.get_insights(db, user_id=user_id, week_offset=week_offset)


@router.get("/trends")
def get_trends(
    weeks: int = Query(4, ge=2, le=12),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return review_service.get_trends(db, user_id=user_id, weeks=weeks)


@router.get("/quick-stats")
def get_quick_stats(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return review_service.get_quick_stats(db, user_id=user_id)
