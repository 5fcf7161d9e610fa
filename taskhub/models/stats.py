# taskhub/models/stats.py

from __future__ import annotations

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, event

from taskhub.clock import utcnow
from taskhub.database import Base
from taskhub.stats.scoring import calculate_productivity_score, days_between


class Stats(Base):
    __tablename__ = "stats"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True, index=True)

    # task counts
    total_tasks = Column(Integer, default=0, nullable=False)
    completed_tasks = Column(Integer, default=0, nullable=False)
    pending_tasks = Column(Integer, default=0, nullable=False)
    in_progress_tasks = Column(Integer, default=0, nullable=False)
    overdue_tasks = Column(Integer, default=0, nullable=False)

    # priority breakdown
    high_priority_tasks = Column(Integer, default=0, nullable=False)
    medium_priority_tasks = Column(Integer, default=0, nullable=False)
    low_priority_tasks = Column(Integer, default=0, nullable=False)

    total_groups = Column(Integer, default=0, nullable=False)

    completion_rate = Column(Integer, default=0, nullable=False)  # percent
    average_completion_time = Column(Float, default=0.0, nullable=False)  # hours
    productivity_score = Column(Integer, default=0, nullable=False, index=True)

    current_streak = Column(Integer, default=0, nullable=False)
    longest_streak = Column(Integer, default=0, nullable=False)

    weekly_completed = Column(Integer, default=0, nullable=False)
    monthly_completed = Column(Integer, default=0, nullable=False)

    last_updated = Column(DateTime, default=utcnow, nullable=False)
    last_activity = Column(DateTime, default=utcnow, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


def apply_productivity_score(stats: Stats) -> None:
    """productivity_score is never set by hand; it follows the counters."""
    reference = stats.last_updated or utcnow()
    stats.productivity_score = calculate_productivity_score(
        completion_rate=stats.completion_rate or 0,
        current_streak=stats.current_streak or 0,
        overdue_tasks=stats.overdue_tasks or 0,
        days_since_last_activity=days_between(stats.last_activity or reference, reference),
        total_tasks=stats.total_tasks or 0,
    )
    stats.longest_streak = max(stats.longest_streak or 0, stats.current_streak or 0)


@event.listens_for(Stats, "before_insert")
def _stats_before_insert(mapper, connection, target: Stats) -> None:
    apply_productivity_score(target)


@event.listens_for(Stats, "before_update")
def _stats_before_update(mapper, connection, target: Stats) -> None:
    apply_productivity_score(target)
