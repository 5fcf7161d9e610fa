# taskhub/schemas/stats_schema.py

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, computed_field

from taskhub.stats.scoring import productivity_level


class StatsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    in_progress_tasks: int
    overdue_tasks: int
    high_priority_tasks: int
    medium_priority_tasks: int
    low_priority_tasks: int
    total_groups: int
    completion_rate: int
    average_completion_time: float
    productivity_score: int
    current_streak: int
    longest_streak: int
    weekly_completed: int
    monthly_completed: int
    last_updated: datetime
    last_activity: datetime

    @computed_field
    @property
    def productivity_level(self) -> str:
        return productivity_level(self.productivity_score)


class UserRank(BaseModel):
    rank: Optional[int] = None
    totalUsers: int
    percentile: int


class LeaderboardEntry(BaseModel):
    user_id: int
    name: Optional[str] = None
    email: str
    productivity_score: int
    completed_tasks: int
    total_tasks: int
    completion_rate: int
    current_streak: int
    weekly_completed: int


class HistoryDay(BaseModel):
    date: str
    completedTasks: int
    createdTasks: int
