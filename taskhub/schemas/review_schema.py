# taskhub/schemas/review_schema.py

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from taskhub.schemas.task_schema import TaskRead


class DayPattern(BaseModel):
    date: str
    dayName: str
    count: int
    timeSpent: int
    taskIds: list[int]


class GroupShare(BaseModel):
    group_id: Optional[int] = None
    name: str
    color: str
    icon: str
    count: int


class ProductiveDay(BaseModel):
    day: Optional[str] = None
    count: int


class WeeklyReview(BaseModel):
    weekStart: datetime
    weekEnd: datetime
    weekOffset: int
    isCurrentWeek: bool
    period: str
    totalCompleted: int
    totalCreated: int
    completionRate: float
    totalTimeSpent: int
    averageTimePerTask: int
    priorityBreakdown: dict[str, int]
    groupBreakdown: list[GroupShare]
    dailyPattern: list[DayPattern]
    mostProductiveDay: ProductiveDay
    dailyAverage: float
    weeklyGoalProgress: float
    complexityAnalysis: dict[str, int]
    tasks: list[TaskRead]
