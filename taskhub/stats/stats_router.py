# taskhub/stats/stats_router.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from taskhub.auth.auth_router import get_current_user_id
from taskhub.database import get_db
from taskhub.schemas.stats_schema import HistoryDay, LeaderboardEntry, StatsRead, UserRank
from taskhub.stats import stats_service

router = APIRouter(
    prefix="/stats",
    tags=["stats"],
)


@router.get("/", response_model=StatsRead)
def get_stats(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return stats_service.get_or_create_stats(db, user_id=user_id)


@router.get("/rank", response_model=UserRank)
def get_rank(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return stats_service.get_user_rank(db, user_id=user_id)


@router.get("/history", response_model=list[HistoryDay])
def get_history(
    days: int = Query(7, ge=1, le=90),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return stats_service.get_stats_history(db, user_id=user_id, days=days)


@router.post("/update", response_model=StatsRead)
def update_stats(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return stats_service.recompute_user_stats(db, user_id=user_id)


@router.post("/reset", response_model=StatsRead)
def reset_stats(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return stats_service.reset_user_stats(db, user_id=user_id)


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
def get_leaderboard(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return stats_service.get_leaderboard(db, limit=limit)
