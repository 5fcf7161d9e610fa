# tests/test_stats.py

from __future__ import annotations

from datetime import timedelta

from taskhub.models.group import Group
from taskhub.models.stats import Stats
from taskhub.models.task import Task
from taskhub.schemas.task_schema import TaskCreate
from taskhub.stats import stats_service
from taskhub.stats.scoring import calculate_productivity_score, days_between
from taskhub.task import task_service

from conftest import NOW


def _task(db, user, group, *, status="pending", priority="medium", created_at=None,
          completed_at=None, due_at=None) -> Task:
    created_at = created_at or NOW - timedelta(days=2)
    task = Task(
        user_id=user.id,
        group_id=group.id,
        title=f"{status} {priority}",
        status=status,
        priority=priority,
        start_at=created_at,
        due_at=due_at,
        completed_at=completed_at,
        created_at=created_at,
        updated_at=completed_at or created_at,
    )
    db.add(task)
    db.commit()
    return task


def _seed(db, user, group) -> None:
    _task(db, user, group, status="completed", priority="high",
          created_at=NOW - timedelta(hours=3), completed_at=NOW - timedelta(hours=1))
    _task(db, user, group, status="completed", priority="low",
          created_at=NOW - timedelta(days=1, hours=1), completed_at=NOW - timedelta(days=1))
    _task(db, user, group, status="completed", priority="medium",
          created_at=NOW - timedelta(days=10, hours=4), completed_at=NOW - timedelta(days=10))
    _task(db, user, group, status="pending", priority="high", due_at=NOW - timedelta(days=1))
    _task(db, user, group, status="in-progress", priority="medium", due_at=NOW + timedelta(days=1))
    # legacy draft-status rows are not counted anywhere
    _task(db, user, group, status="draft", priority="low")


def test_ship_v1_scenario(db, user, work) -> None:
    task = task_service.create_task(
        db,
        user_id=user.id,
        data=TaskCreate(title="Ship v1", group_id=work.id, due_at=NOW + timedelta(days=1)),
        now=NOW,
    )

    done = task_service.complete_task(db, user_id=user.id, task_id=task.id, now=NOW)
    stats = stats_service.recompute_user_stats(db, user_id=user.id, now=NOW)

    assert done.status == "completed"
    assert done.completed_at == NOW
    assert db.get(Group, work.id).task_count == 1
    assert stats.completed_tasks == 1
    assert stats.total_tasks == 1


def test_counters_are_rebuilt_from_tasks(db, user, groups, work) -> None:
    _seed(db, user, work)

    stats = stats_service.recompute_user_stats(db, user_id=user.id, now=NOW)

    assert stats.total_tasks == 5
    assert stats.completed_tasks == 3
    assert stats.pending_tasks == 1
    assert stats.in_progress_tasks == 1
    assert stats.overdue_tasks == 1
    assert stats.high_priority_tasks == 2
    assert stats.medium_priority_tasks == 2
    assert stats.low_priority_tasks == 1
    assert stats.total_groups == 4
    assert stats.completion_rate == 60
    assert stats.average_completion_time == 2.33
    assert stats.weekly_completed == 2
    assert stats.monthly_completed == 3
    assert stats.current_streak == 2
    assert stats.longest_streak == 2
    assert stats.last_activity == NOW - timedelta(hours=1)
    assert stats.last_updated == NOW


def test_score_follows_the_counters(db, user, groups, work) -> None:
    _seed(db, user, work)

    stats = stats_service.recompute_user_stats(db, user_id=user.id, now=NOW)

    # 30 (60% done) + 4 (2-day streak) - 5 (1 overdue) + 20 (active today)
    assert stats.productivity_score == 49
    assert stats.productivity_score == calculate_productivity_score(
        completion_rate=stats.completion_rate,
        current_streak=stats.current_streak,
        overdue_tasks=stats.overdue_tasks,
        days_since_last_activity=days_between(stats.last_activity, stats.last_updated),
        total_tasks=stats.total_tasks,
    )


def test_recompute_is_idempotent(db, user, groups, work) -> None:
    _seed(db, user, work)

    first = stats_service.recompute_user_stats(db, user_id=user.id, now=NOW)
    snapshot = (first.total_tasks, first.completed_tasks, first.productivity_score, first.current_streak)
    second = stats_service.recompute_user_stats(db, user_id=user.id, now=NOW)

    assert (second.total_tasks, second.completed_tasks, second.productivity_score, second.current_streak) == snapshot
    assert db.query(Stats).filter(Stats.user_id == user.id).count() == 1


def test_longest_streak_never_decreases(db, user, groups, work) -> None:
    _seed(db, user, work)
    stats = stats_service.recompute_user_stats(db, user_id=user.id, now=NOW)
    assert stats.longest_streak == 2

    # the two recent completions are revived, breaking the streak
    for task in db.query(Task).filter(Task.completed_at >= NOW - timedelta(days=2)).all():
        task_service.revive_task(db, user_id=user.id, task_id=task.id)

    stats = stats_service.recompute_user_stats(db, user_id=user.id, now=NOW)
    assert stats.current_streak == 1
    assert stats.longest_streak == 2


def test_user_without_tasks(db, user) -> None:
    stats = stats_service.recompute_user_stats(db, user_id=user.id, now=NOW)

    assert stats.total_tasks == 0
    assert stats.completion_rate == 0
    assert stats.productivity_score == 0
    assert stats.last_activity == NOW


def test_get_or_create_is_lazy(db, user, groups, work) -> None:
    assert db.query(Stats).count() == 0

    created = stats_service.get_or_create_stats(db, user_id=user.id, now=NOW)
    again = stats_service.get_or_create_stats(db, user_id=user.id, now=NOW)

    assert created.id == again.id
    assert db.query(Stats).count() == 1


def test_reset_drops_the_streak_high_water_mark(db, user, groups, work) -> None:
    _seed(db, user, work)
    stats_service.recompute_user_stats(db, user_id=user.id, now=NOW)
    db.query(Task).filter(Task.status == "completed").delete()
    db.commit()

    stats = stats_service.reset_user_stats(db, user_id=user.id, now=NOW)

    assert stats.completed_tasks == 0
    assert stats.longest_streak == 0


def test_refresh_uses_its_own_session(db, user, groups, work, session_factory) -> None:
    _seed(db, user, work)

    stats_service.refresh_user_stats(user.id, session_factory=session_factory)

    stats = db.query(Stats).filter(Stats.user_id == user.id).one()
    assert stats.total_tasks == 5


def test_refresh_swallows_failures(user, caplog) -> None:
    class BrokenSession:
        def query(self, *args):
            raise RuntimeError("boom")

        def rollback(self):
            pass

        def close(self):
            pass

    stats_service.refresh_user_stats(user.id, session_factory=BrokenSession)

    assert "stats_refresh_failed" in caplog.text


# ==========================
#  RANKING
# ==========================
def _stats_row(db, user, *, score_rate, completed=0, streak=0) -> Stats:
    stats = Stats(
        user_id=user.id,
        total_tasks=10,
        completed_tasks=completed,
        completion_rate=score_rate,
        current_streak=streak,
        last_activity=NOW,
        last_updated=NOW,
    )
    db.add(stats)
    db.commit()
    return stats


def test_rank_and_percentile(db, make_user) -> None:
    ana = make_user("ana@example.com", "Ana")
    bob = make_user("bob@example.com", "Bob")
    cid = make_user("cid@example.com", "Cid")
    dee = make_user("dee@example.com", "Dee")
    _stats_row(db, ana, score_rate=100)
    _stats_row(db, bob, score_rate=60)
    _stats_row(db, cid, score_rate=20)
    _stats_row(db, dee, score_rate=0)

    assert stats_service.get_user_rank(db, user_id=ana.id) == {"rank": 1, "totalUsers": 4, "percentile": 75}
    assert stats_service.get_user_rank(db, user_id=cid.id) == {"rank": 3, "totalUsers": 4, "percentile": 25}
    assert stats_service.get_user_rank(db, user_id=dee.id)["percentile"] == 0


def test_rank_without_stats_row(db, user) -> None:
    assert stats_service.get_user_rank(db, user_id=user.id) == {"rank": None, "totalUsers": 0, "percentile": 0}


def test_leaderboard_order(db, make_user) -> None:
    ana = make_user("ana@example.com", "Ana")
    bob = make_user("bob@example.com", "Bob")
    cid = make_user("cid@example.com", "Cid")
    _stats_row(db, ana, score_rate=40, completed=4)
    _stats_row(db, bob, score_rate=80, completed=8)
    # same score as ana, more completions
    _stats_row(db, cid, score_rate=40, completed=6)

    board = stats_service.get_leaderboard(db, limit=2)

    assert [row["name"] for row in board] == ["Bob", "Cid"]
    assert board[0]["productivity_score"] > board[1]["productivity_score"]


def test_history_counts_real_tasks_per_day(db, user, groups, work) -> None:
    _seed(db, user, work)

    history = stats_service.get_stats_history(db, user_id=user.id, days=3, now=NOW)

    assert [day["date"] for day in history] == ["2026-03-08", "2026-03-09", "2026-03-10"]
    assert [day["completedTasks"] for day in history] == [0, 1, 1]
    # the legacy draft row is not a created task
    assert [day["createdTasks"] for day in history] == [2, 1, 1]


def test_history_for_a_new_user_is_all_zeros(db, user) -> None:
    history = stats_service.get_stats_history(db, user_id=user.id, now=NOW)

    assert len(history) == 7
    assert history[-1]["date"] == "2026-03-10"
    assert all(day["completedTasks"] == day["createdTasks"] == 0 for day in history)
