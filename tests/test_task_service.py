# tests/test_task_service.py

from __future__ import annotations

from datetime import timedelta

import pytest

from taskhub.errors import (
    AccessDeniedError,
    AlreadyCompletedError,
    NotCompletedError,
    NotFoundError,
    ValidationError,
)
from taskhub.models.group import Group
from taskhub.models.task import Task
from taskhub.schemas.task_schema import RecurrenceIn, TaskCreate, TaskUpdate
from taskhub.task import task_service

from conftest import NOW


def _create(db, user, group, now=NOW, **fields) -> Task:
    fields.setdefault("title", "Write report")
    data = TaskCreate(group_id=group.id, **fields)
    return task_service.create_task(db, user_id=user.id, data=data, now=now)


def _all_tasks_consistent(db) -> bool:
    return all((t.completed_at is not None) == (t.status == "completed") for t in db.query(Task).all())


# ==========================
#  CREATE
# ==========================
def test_create_applies_defaults(db, user, work) -> None:
    task = _create(db, user, work)

    assert task.status == "pending"
    assert task.priority == "medium"
    assert task.start_at == NOW
    assert task.completed_at is None
    assert task.recurrence_pattern == "none"
    assert db.get(Group, work.id).task_count == 1


def test_legacy_due_date_becomes_due_at(db, user, work) -> None:
    due = NOW + timedelta(days=2)
    task = _create(db, user, work, due_date=due)

    assert task.due_at == due
    assert task.due_date == due
    assert task.start_at is not None


def test_reminders_are_sorted_and_deduplicated(db, user, work) -> None:
    r1, r2 = NOW + timedelta(hours=1), NOW + timedelta(hours=5)
    task = _create(db, user, work, reminders=[r2, r1, r2])

    assert task.reminders == [r1, r2]


def test_create_requires_a_group(db, user, groups) -> None:
    with pytest.raises(ValidationError, match="Group is required"):
        task_service.create_task(db, user_id=user.id, data=TaskCreate(title="No group"), now=NOW)


def test_create_rejects_foreign_group(db, user, groups, other_groups) -> None:
    with pytest.raises(ValidationError, match="Invalid or inaccessible group"):
        _create(db, user, other_groups[0])


def test_create_completed_task_gets_completed_at(db, user, work) -> None:
    task = _create(db, user, work, status="completed")
    assert task.completed_at == NOW


# ==========================
#  COMPLETE / REVIVE
# ==========================
def test_complete_drops_only_past_reminders(db, user, work) -> None:
    past = NOW - timedelta(hours=1)
    future = NOW + timedelta(hours=1)
    task = _create(db, user, work, reminders=[past, NOW, future])

    done = task_service.complete_task(db, user_id=user.id, task_id=task.id, now=NOW)

    assert done.status == "completed"
    assert done.completed_at == NOW
    assert done.reminders == [future]


def test_complete_twice_fails(db, user, work) -> None:
    task = _create(db, user, work)
    task_service.complete_task(db, user_id=user.id, task_id=task.id, now=NOW)

    with pytest.raises(AlreadyCompletedError):
        task_service.complete_task(db, user_id=user.id, task_id=task.id, now=NOW)


def test_complete_foreign_task_looks_missing(db, user, work, other_user) -> None:
    task = _create(db, user, work)

    with pytest.raises(NotFoundError) as excinfo:
        task_service.complete_task(db, user_id=other_user.id, task_id=task.id, now=NOW)
    assert isinstance(excinfo.value, AccessDeniedError)
    assert excinfo.value.message == "Task not found"

    with pytest.raises(NotFoundError):
        task_service.complete_task(db, user_id=user.id, task_id=9999, now=NOW)


def test_revive_always_returns_to_pending(db, user, work) -> None:
    task = _create(db, user, work, status="in-progress")
    task_service.complete_task(db, user_id=user.id, task_id=task.id, now=NOW)

    revived = task_service.revive_task(db, user_id=user.id, task_id=task.id)

    assert revived.status == "pending"
    assert revived.completed_at is None


def test_revive_requires_completed_task(db, user, work) -> None:
    task = _create(db, user, work)
    with pytest.raises(NotCompletedError):
        task_service.revive_task(db, user_id=user.id, task_id=task.id)


def test_toggle_dispatches_on_status(db, user, work) -> None:
    task = _create(db, user, work)

    assert task_service.toggle_completion(db, user_id=user.id, task_id=task.id, now=NOW).status == "completed"
    assert task_service.toggle_completion(db, user_id=user.id, task_id=task.id, now=NOW).status == "pending"
    assert _all_tasks_consistent(db)


# ==========================
#  RECURRENCE
# ==========================
def test_completing_repeating_task_creates_one_successor(db, user, work) -> None:
    due = NOW + timedelta(hours=6)
    reminder = NOW + timedelta(hours=5)
    task = _create(
        db, user, work, due_at=due, reminders=[reminder], recurrence=RecurrenceIn(pattern="daily")
    )

    task_service.complete_task(db, user_id=user.id, task_id=task.id, now=NOW)

    successors = db.query(Task).filter(Task.id != task.id).all()
    assert len(successors) == 1
    nxt = successors[0]
    delta = timedelta(days=1)
    assert nxt.status == "pending"
    assert nxt.completed_at is None
    assert nxt.start_at == NOW + delta
    assert nxt.due_at == due + delta
    assert nxt.reminders == [reminder + delta]
    assert nxt.recurrence_pattern == "daily"
    assert db.get(Group, work.id).task_count == 2


def test_last_occurrence_has_no_successor(db, user, work) -> None:
    task = _create(db, user, work, recurrence=RecurrenceIn(pattern="weekly", count=1))

    task_service.complete_task(db, user_id=user.id, task_id=task.id, now=NOW)

    assert db.query(Task).count() == 1


def test_successor_count_is_decremented(db, user, work) -> None:
    task = _create(db, user, work, recurrence=RecurrenceIn(pattern="monthly", count=3))

    task_service.complete_task(db, user_id=user.id, task_id=task.id, now=NOW)

    nxt = db.query(Task).filter(Task.id != task.id).one()
    assert nxt.recurrence_count == 2


def test_expansion_failure_does_not_fail_completion(db, user, work, monkeypatch) -> None:
    task = _create(db, user, work, recurrence=RecurrenceIn(pattern="daily"))

    def boom(**kwargs):
        raise RuntimeError("calendar exploded")

    monkeypatch.setattr(task_service, "plan_next_occurrence", boom)
    done = task_service.complete_task(db, user_id=user.id, task_id=task.id, now=NOW)

    assert done.status == "completed"
    assert db.query(Task).count() == 1


def test_status_update_into_completed_expands(db, user, work) -> None:
    task = _create(db, user, work, recurrence=RecurrenceIn(pattern="daily", interval=3))

    task_service.update_task(
        db, user_id=user.id, task_id=task.id, data=TaskUpdate(status="completed"), now=NOW
    )

    assert db.query(Task).count() == 2
    assert db.query(Task).filter(Task.status == "pending").one().start_at == NOW + timedelta(days=3)


# ==========================
#  UPDATE / DELETE
# ==========================
def test_update_keeps_completed_at_in_sync(db, user, work) -> None:
    task = _create(db, user, work)

    task = task_service.update_task(db, user_id=user.id, task_id=task.id, data=TaskUpdate(status="in-progress"))
    assert task.completed_at is None

    task = task_service.update_task(
        db, user_id=user.id, task_id=task.id, data=TaskUpdate(status="completed"), now=NOW
    )
    assert task.completed_at == NOW

    task = task_service.update_task(db, user_id=user.id, task_id=task.id, data=TaskUpdate(status="pending"))
    assert task.completed_at is None
    assert _all_tasks_consistent(db)


def test_update_moving_group_fixes_both_counts(db, user, groups, work) -> None:
    personal = next(g for g in groups if g.name == "Personal")
    task = _create(db, user, work)

    task_service.update_task(db, user_id=user.id, task_id=task.id, data=TaskUpdate(group_id=personal.id))

    assert db.get(Group, work.id).task_count == 0
    assert db.get(Group, personal.id).task_count == 1


def test_update_partial_fields(db, user, work) -> None:
    task = _create(db, user, work, description="old", tags=["a"])

    updated = task_service.update_task(
        db,
        user_id=user.id,
        task_id=task.id,
        data=TaskUpdate(title="  New title ", priority="high", tags=["b", "b", "c"]),
    )

    assert updated.title == "New title"
    assert updated.priority == "high"
    assert updated.tags == ["b", "c"]
    assert updated.description == "old"


def test_update_can_clear_the_due_date(db, user, work) -> None:
    task = _create(db, user, work, due_at=NOW + timedelta(days=1))

    cleared = task_service.update_task(db, user_id=user.id, task_id=task.id, data=TaskUpdate(due_at=None))

    assert cleared.due_at is None
    assert cleared.due_date is None
    db.expire_all()
    assert db.get(Task, task.id).due_at is None


def test_legacy_due_date_update_moves_due_at(db, user, work) -> None:
    task = _create(db, user, work, due_at=NOW + timedelta(days=1))
    later = NOW + timedelta(days=4)

    moved = task_service.update_task(db, user_id=user.id, task_id=task.id, data=TaskUpdate(due_date=later))

    assert moved.due_at == later
    assert moved.due_date == later


def test_group_count_after_three_creates_and_one_delete(db, user, work) -> None:
    tasks = [_create(db, user, work, title=f"Task {i}") for i in range(3)]

    task_service.delete_task(db, user_id=user.id, task_id=tasks[0].id)

    assert db.get(Group, work.id).task_count == 2


# ==========================
#  BULK + RETENTION
# ==========================
def test_bulk_complete_only_touches_owned_tasks(db, user, work, other_user, other_groups) -> None:
    reminder = NOW + timedelta(days=1)
    mine = [_create(db, user, work, title=f"Mine {i}", reminders=[reminder]) for i in range(5)]
    theirs = [_create(db, other_user, other_groups[0], title=f"Theirs {i}") for i in range(2)]

    modified = task_service.bulk_complete(
        db, user_id=user.id, task_ids=[t.id for t in mine + theirs], now=NOW
    )

    assert modified == 5
    for task in mine:
        db.refresh(task)
        assert task.status == "completed"
        assert task.completed_at == NOW
        assert task.reminders == []
    for task in theirs:
        db.refresh(task)
        assert task.status == "pending"
    assert db.query(Task).count() == 7


def test_bulk_complete_skips_already_completed(db, user, work) -> None:
    done = _create(db, user, work, status="completed")
    open_task = _create(db, user, work)

    assert task_service.bulk_complete(db, user_id=user.id, task_ids=[done.id, open_task.id], now=NOW) == 1
    assert task_service.bulk_complete(db, user_id=user.id, task_ids=[], now=NOW) == 0


def test_bulk_revive(db, user, work) -> None:
    a = _create(db, user, work, status="completed")
    b = _create(db, user, work)

    assert task_service.bulk_revive(db, user_id=user.id, task_ids=[a.id, b.id]) == 1
    db.refresh(a)
    assert a.status == "pending"
    assert a.completed_at is None


def test_cleanup_deletes_only_old_completed(db, user, work) -> None:
    old = _create(db, user, work, title="old")
    recent = _create(db, user, work, title="recent")
    pending = _create(db, user, work, title="pending")
    task_service.complete_task(db, user_id=user.id, task_id=old.id, now=NOW - timedelta(days=45))
    task_service.complete_task(db, user_id=user.id, task_id=recent.id, now=NOW - timedelta(days=3))

    deleted = task_service.cleanup_completed(db, user_id=user.id, days_old=30, now=NOW)

    assert deleted == 1
    remaining = {t.title for t in db.query(Task).all()}
    assert remaining == {"recent", "pending"}
    assert db.get(Group, work.id).task_count == 2
    assert pending.id is not None


# ==========================
#  QUERIES
# ==========================
def test_task_stats_by_status(db, user, groups, work) -> None:
    personal = next(g for g in groups if g.name == "Personal")
    _create(db, user, work)
    _create(db, user, work, status="in-progress")
    _create(db, user, personal, status="completed")

    assert task_service.get_task_stats(db, user_id=user.id) == {
        "pending": 1,
        "in-progress": 1,
        "completed": 1,
        "total": 3,
    }
    assert task_service.get_task_stats(db, user_id=user.id, group_id=personal.id)["total"] == 1


def test_completed_tasks_are_paginated_newest_first(db, user, work) -> None:
    for i in range(5):
        task = _create(db, user, work, title=f"T{i}")
        task_service.complete_task(db, user_id=user.id, task_id=task.id, now=NOW - timedelta(days=i))

    page = task_service.get_completed_tasks(db, user_id=user.id, page=1, limit=2, now=NOW)

    assert [t.title for t in page["tasks"]] == ["T0", "T1"]
    assert page["pagination"] == {"page": 1, "limit": 2, "total": 5, "totalPages": 3}

    recent = task_service.get_completed_tasks(db, user_id=user.id, days_ago=2, now=NOW)
    assert recent["pagination"]["total"] == 3


def test_calendar_matches_three_overlap_rules(db, user, work) -> None:
    start, end = NOW, NOW + timedelta(days=7)
    _create(db, user, work, title="starts inside", start_at=NOW + timedelta(days=1))
    _create(
        db, user, work, title="due inside",
        start_at=NOW - timedelta(days=10), due_at=NOW + timedelta(days=2),
    )
    _create(
        db, user, work, title="spans range",
        start_at=NOW - timedelta(days=1), due_at=NOW + timedelta(days=8),
    )
    _create(db, user, work, title="outside", start_at=NOW + timedelta(days=20))

    titles = {t.title for t in task_service.get_calendar_tasks(db, user_id=user.id, start=start, end=end)}

    assert titles == {"starts inside", "due inside", "spans range"}


def test_upcoming_reminders_window(db, user, work) -> None:
    soon = _create(db, user, work, title="soon", reminders=[NOW + timedelta(hours=2)])
    _create(db, user, work, title="later", reminders=[NOW + timedelta(hours=30)])
    _create(db, user, work, title="past", reminders=[NOW - timedelta(hours=1)])
    finished = _create(db, user, work, title="finished", reminders=[NOW + timedelta(hours=1)])
    task_service.update_task(
        db, user_id=user.id, task_id=finished.id, data=TaskUpdate(status="completed"), now=NOW
    )

    upcoming = task_service.get_upcoming_reminders(db, user_id=user.id, hours=24, now=NOW)

    assert [t.id for t in upcoming] == [soon.id]


# ==========================
#  CALENDAR EDITS
# ==========================
def test_add_reminder_keeps_order_and_ignores_duplicates(db, user, work) -> None:
    late = NOW + timedelta(hours=8)
    early = NOW + timedelta(hours=1)
    task = _create(db, user, work, reminders=[late])

    task_service.add_reminder(db, user_id=user.id, task_id=task.id, at=early)
    task = task_service.add_reminder(db, user_id=user.id, task_id=task.id, at=late)

    assert task.reminders == [early, late]


def test_remove_reminder_by_index(db, user, work) -> None:
    r1, r2 = NOW + timedelta(hours=1), NOW + timedelta(hours=2)
    task = _create(db, user, work, reminders=[r1, r2])

    task = task_service.remove_reminder(db, user_id=user.id, task_id=task.id, index=0)
    assert task.reminders == [r2]

    with pytest.raises(ValidationError, match="Invalid reminder index"):
        task_service.remove_reminder(db, user_id=user.id, task_id=task.id, index=5)


def test_update_task_dates(db, user, work) -> None:
    task = _create(db, user, work)
    new_start = NOW + timedelta(days=3)

    task = task_service.update_task_dates(
        db, user_id=user.id, task_id=task.id, start_at=new_start, due_at=new_start + timedelta(hours=1), is_all_day=True
    )

    assert task.start_at == new_start
    assert task.due_at == new_start + timedelta(hours=1)
    assert task.is_all_day is True
