# taskhub/review/review_service.py

"""
Weekly review built from completed tasks.

Weeks run Sunday 00:00 to the next Sunday 00:00 (UTC, exclusive end).
Everything here is read-only and derived from live task rows.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, time, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from taskhub.clock import utcnow
from taskhub.config import WEEKLY_GOAL_TASKS
from taskhub.errors import ValidationError
from taskhub.models.group import Group
from taskhub.models.task import Task, TaskPriority, TaskStatus
from taskhub.stats import stats_service

logger = logging.getLogger("taskhub.review")

MAX_WEEKS_BACK = 52
MIN_TREND_WEEKS = 2
MAX_TREND_WEEKS = 12
MAX_RECOMMENDATIONS = 4

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
NO_GROUP = {"name": "No Group", "color": "#6B7280", "icon": "📋"}

COMPLETED = TaskStatus.COMPLETED.value
# ties go to the more urgent priority
PRIORITY_ORDER = (TaskPriority.HIGH.value, TaskPriority.MEDIUM.value, TaskPriority.LOW.value)


def week_range(now: datetime, week_offset: int = 0) -> tuple[datetime, datetime]:
    """[start, end) of the Sunday-based week week_offset weeks from now."""
    days_since_sunday = (now.weekday() + 1) % 7
    start = datetime.combine(now.date() - timedelta(days=days_since_sunday), time.min)
    start += timedelta(weeks=week_offset)
    return start, start + timedelta(days=7)


def _check_week_offset(week_offset: int) -> None:
    if not -MAX_WEEKS_BACK <= week_offset <= 0:
        raise ValidationError(
            f"Week offset must be between -{MAX_WEEKS_BACK} and 0", week_offset=week_offset
        )


def _completed_between(db: Session, user_id: int, start: datetime, end: datetime) -> list[Task]:
    return (
        db.query(Task)
        .filter(
            Task.user_id == user_id,
            Task.status == COMPLETED,
            Task.completed_at >= start,
            Task.completed_at < end,
        )
        .order_by(Task.completed_at.desc(), Task.id.desc())
        .all()
    )


def _minutes(tasks: list[Task]) -> int:
    return sum(t.estimated_minutes or 0 for t in tasks)


def _priority_counts(tasks: list[Task]) -> dict[str, int]:
    counts = {p: 0 for p in PRIORITY_ORDER}
    for task in tasks:
        priority = task.priority or TaskPriority.MEDIUM.value
        counts[priority] = counts.get(priority, 0) + 1
    return counts


def _top_priority(tasks: list[Task]) -> str:
    if not tasks:
        return TaskPriority.MEDIUM.value
    counts = _priority_counts(tasks)
    return max(PRIORITY_ORDER, key=lambda p: (counts[p], -PRIORITY_ORDER.index(p)))


def _most_productive_day(tasks: list[Task]) -> dict:
    counts = Counter(DAY_NAMES[(t.completed_at.weekday() + 1) % 7] for t in tasks)
    if not counts:
        return {"day": None, "count": 0}
    day = max(DAY_NAMES, key=lambda name: (counts[name], -DAY_NAMES.index(name)))
    return {"day": day, "count": counts[day]}


def _goal_progress(completed: int) -> float:
    return min(completed / WEEKLY_GOAL_TASKS * 100, 100.0)


def _group_breakdown(db: Session, user_id: int, tasks: list[Task]) -> list[dict]:
    counts = Counter(t.group_id for t in tasks)
    groups = {
        g.id: g
        for g in db.query(Group).filter(Group.user_id == user_id, Group.id.in_(list(counts))).all()
    }

    breakdown = []
    for group_id, count in counts.most_common():
        group = groups.get(group_id)
        if group is None:
            entry = {"group_id": None, **NO_GROUP}
        else:
            entry = {"group_id": group.id, "name": group.name, "color": group.color, "icon": group.icon}
        breakdown.append({**entry, "count": count})
    return breakdown


def _daily_pattern(start: datetime, tasks: list[Task]) -> list[dict]:
    pattern = []
    for offset in range(7):
        day = (start + timedelta(days=offset)).date()
        day_tasks = [t for t in tasks if t.completed_at.date() == day]
        pattern.append(
            {
                "date": day.isoformat(),
                "dayName": DAY_NAMES[offset][:3],
                "count": len(day_tasks),
                "timeSpent": _minutes(day_tasks),
                "taskIds": [t.id for t in day_tasks],
            }
        )
    return pattern


# ==========================
#  WEEKLY REVIEW
# ==========================
def get_weekly_review(
    db: Session,
    *,
    user_id: int,
    week_offset: int = 0,
    now: Optional[datetime] = None,
) -> dict:
    _check_week_offset(week_offset)
    start, end = week_range(now or utcnow(), week_offset)

    completed = _completed_between(db, user_id, start, end)
    created = (
        db.query(Task)
        .filter(
            Task.user_id == user_id,
            Task.status != TaskStatus.DRAFT.value,
            Task.created_at >= start,
            Task.created_at < end,
        )
        .count()
    )
    total_minutes = _minutes(completed)
    last_day = end - timedelta(days=1)

    logger.debug(
        "weekly_review_built",
        extra={"user_id": user_id, "week_offset": week_offset, "completed": len(completed)},
    )
    return {
        "weekStart": start,
        "weekEnd": end,
        "weekOffset": week_offset,
        "isCurrentWeek": week_offset == 0,
        "period": f"{start:%b %d} - {last_day:%b %d, %Y}",
        "totalCompleted": len(completed),
        "totalCreated": created,
        "completionRate": round(len(completed) / created * 100, 1) if created else 0.0,
        "totalTimeSpent": total_minutes,
        "averageTimePerTask": round(total_minutes / len(completed)) if completed else 0,
        "priorityBreakdown": _priority_counts(completed),
        "groupBreakdown": _group_breakdown(db, user_id, completed),
        "dailyPattern": _daily_pattern(start, completed),
        "mostProductiveDay": _most_productive_day(completed),
        "dailyAverage": round(len(completed) / 7, 1),
        "weeklyGoalProgress": _goal_progress(len(completed)),
        "complexityAnalysis": {
            "hasEstimates": sum(1 for t in completed if t.estimated_minutes),
            "hasDescriptions": sum(1 for t in completed if (t.description or "").strip()),
            "hasReminders": sum(1 for t in completed if t.reminders),
            "isImportant": sum(1 for t in completed if t.is_important),
        },
        "tasks": completed,
    }


# ==========================
#  INSIGHTS
# ==========================
def _recommendations(current: list[Task], previous: list[Task]) -> list[dict]:
    done, before = len(current), len(previous)
    recs = []

    if done >= 8:
        recs.append({"type": "achievement", "title": "Outstanding Performance",
                     "message": f"You completed {done} tasks this week."})
    elif done >= 5:
        recs.append({"type": "positive", "title": "Great Progress",
                     "message": f"{done} completed tasks shows solid productivity."})
    elif done >= 2:
        recs.append({"type": "improvement", "title": "Room for Growth",
                     "message": "Try breaking larger tasks into smaller chunks."})
    else:
        recs.append({"type": "focus", "title": "Get Started",
                     "message": "Focus on completing small, achievable tasks first."})

    if done > before:
        recs.append({"type": "trend", "title": "Upward Trend",
                     "message": f"{done - before} more tasks completed than the week before."})
    elif done < before:
        recs.append({"type": "trend", "title": "Refocus",
                     "message": f"{before - done} fewer tasks completed than the week before."})

    if done and not any(t.priority == TaskPriority.HIGH.value for t in current):
        recs.append({"type": "priority", "title": "Priority Focus",
                     "message": "No high-priority tasks completed this week."})

    return recs[:MAX_RECOMMENDATIONS]


def get_insights(
    db: Session,
    *,
    user_id: int,
    week_offset: int = 0,
    now: Optional[datetime] = None,
) -> dict:
    """Compare a week against the one before it and describe its patterns."""
    _check_week_offset(week_offset)
    start, end = week_range(now or utcnow(), week_offset)

    current = _completed_between(db, user_id, start, end)
    previous = _completed_between(db, user_id, start - timedelta(days=7), start)
    done, before = len(current), len(previous)

    hours = [t.completed_at.hour for t in current]
    average_hour = f"{round(sum(hours) / len(hours)):02d}:00" if hours else None

    return {
        "productivity": {
            "currentWeek": done,
            "previousWeek": before,
            "trend": "up" if done > before else "down" if done < before else "stable",
            "improvement": done - before,
        },
        "patterns": {
            "mostProductiveDay": _most_productive_day(current)["day"],
            "preferredPriority": _top_priority(current),
            "averageCompletionHour": average_hour,
            "priorityBreakdown": _priority_counts(current),
            "groupBreakdown": _group_breakdown(db, user_id, current),
        },
        "recommendations": _recommendations(current, previous),
    }


# ==========================
#  TRENDS
# ==========================
def _week_label(weeks_ago: int) -> str:
    if weeks_ago == 0:
        return "Current"
    if weeks_ago == 1:
        return "Last"
    return f"{weeks_ago} ago"


def get_trends(
    db: Session,
    *,
    user_id: int,
    weeks: int = 4,
    now: Optional[datetime] = None,
) -> dict:
    """Per-week completion counts, oldest week first."""
    if not MIN_TREND_WEEKS <= weeks <= MAX_TREND_WEEKS:
        raise ValidationError(
            f"Weeks must be between {MIN_TREND_WEEKS} and {MAX_TREND_WEEKS}", weeks=weeks
        )
    now = now or utcnow()

    trends = []
    for weeks_ago in range(weeks - 1, -1, -1):
        start, end = week_range(now, -weeks_ago)
        tasks = _completed_between(db, user_id, start, end)
        priorities = _priority_counts(tasks)
        trends.append(
            {
                "weekStart": start,
                "weekEnd": end,
                "weekLabel": _week_label(weeks_ago),
                "completed": len(tasks),
                "totalTime": _minutes(tasks),
                "highPriority": priorities[TaskPriority.HIGH.value],
                "mediumPriority": priorities[TaskPriority.MEDIUM.value],
                "lowPriority": priorities[TaskPriority.LOW.value],
            }
        )

    total = sum(week["completed"] for week in trends)
    best = trends[0]
    for week in trends[1:]:
        if week["completed"] > best["completed"]:
            best = week

    return {
        "trends": trends,
        "summary": {
            "totalWeeks": weeks,
            "averageCompletion": round(total / weeks, 1),
            "bestWeek": best,
            "totalCompleted": total,
        },
    }


# ==========================
#  QUICK STATS
# ==========================
def _daily_streak(db: Session, user_id: int, today: datetime) -> int:
    """Consecutive days, ending today, with at least one completion."""
    days = {
        completed_at.date()
        for (completed_at,) in db.query(Task.completed_at)
        .filter(Task.user_id == user_id, Task.status == COMPLETED, Task.completed_at.isnot(None))
        .all()
    }

    streak = 0
    day = today.date()
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def get_quick_stats(db: Session, *, user_id: int, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    start, end = week_range(now)
    completed = _completed_between(db, user_id, start, end)

    return {
        "completedThisWeek": len(completed),
        "dailyAverage": round(len(completed) / 7, 1),
        "totalTime": _minutes(completed),
        "goalProgress": _goal_progress(len(completed)),
        "topPriority": _top_priority(completed),
        "streak": _daily_streak(db, user_id, now),
        "weeklyRank": stats_service.get_user_rank(db, user_id=user_id),
    }
