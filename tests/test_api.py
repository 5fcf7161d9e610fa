# tests/test_api.py

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from taskhub import database
from taskhub.auth.auth_router import get_current_user_id
from taskhub.clock import utcnow
from taskhub.database import get_db
from taskhub.main import app
from taskhub.models.stats import Stats
from taskhub.models.task import Task


@pytest.fixture()
def client(session_factory, monkeypatch):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    # background stats refreshes open their own session
    monkeypatch.setattr(database, "SessionLocal", session_factory)
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def as_user(client, user, groups):
    app.dependency_overrides[get_current_user_id] = lambda: user.id
    return client


def test_root(client) -> None:
    assert client.get("/").json() == {"message": "TaskHub backend running"}


def test_task_lifecycle_over_http(as_user, db, user, work) -> None:
    due = (utcnow() + timedelta(days=1)).isoformat()
    created = as_user.post("/tasks/", json={"title": "Ship v1", "group_id": work.id, "due_at": due})
    assert created.status_code == 201
    task = created.json()
    assert task["status"] == "pending"
    assert task["is_overdue"] is False

    done = as_user.post(f"/completed/{task['id']}")
    assert done.status_code == 200
    assert done.json()["status"] == "completed"
    assert done.json()["completed_at"] is not None

    again = as_user.post(f"/completed/{task['id']}")
    assert again.status_code == 400
    assert again.json()["error_type"] == "AlreadyCompletedError"

    counts = as_user.get("/tasks/stats").json()
    assert counts["total"] == 1
    assert counts["completed"] == 1
    assert counts["in-progress"] == 0

    assert as_user.get(f"/groups/{work.id}").json()["task_count"] == 1

    # the background refresh already ran on its own session
    stats = db.query(Stats).filter(Stats.user_id == user.id).one()
    assert stats.completed_tasks == 1


def test_foreign_task_answers_404(as_user, db, other_user, other_groups) -> None:
    foreign = Task(user_id=other_user.id, group_id=other_groups[0].id, title="not yours")
    db.add(foreign)
    db.commit()

    for response in (as_user.get(f"/tasks/{foreign.id}"), as_user.get("/tasks/99999")):
        assert response.status_code == 404
        assert response.json() == {"detail": "Task not found", "error_type": "NotFoundError"}


def test_invalid_group_is_a_400(as_user, other_groups) -> None:
    response = as_user.post("/tasks/", json={"title": "x", "group_id": other_groups[0].id})

    assert response.status_code == 400
    assert response.json()["error_type"] == "ValidationError"


def test_request_validation_is_a_422(as_user, work) -> None:
    response = as_user.post("/tasks/", json={"title": "x" * 101, "group_id": work.id})
    assert response.status_code == 422


def test_inbox_promotion_over_http(as_user) -> None:
    item = as_user.post("/inbox/quick", json={"title": "idea"}).json()

    promoted = as_user.post(f"/inbox/{item['id']}/promote-to-draft")
    assert promoted.status_code == 200
    draft = promoted.json()["draft"]
    assert draft["source"] == "inbox"
    assert promoted.json()["inbox_item"]["is_promoted"] is True

    result = as_user.post(f"/drafts/{draft['id']}/promote", json={"priority": "high"})
    assert result.status_code == 200
    body = result.json()
    assert body["task"]["draft_ref"] == draft["id"]
    assert body["task"]["priority"] == "high"
    assert body["draft"]["is_promoted"] is True

    twice = as_user.post(f"/drafts/{draft['id']}/promote")
    assert twice.status_code == 400
    assert twice.json()["error_type"] == "AlreadyPromotedError"


def test_inbox_soft_delete_over_http(as_user) -> None:
    item = as_user.post("/inbox/", json={"title": "temp"}).json()

    response = as_user.delete(f"/inbox/{item['id']}")

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert as_user.get(f"/inbox/{item['id']}").status_code == 404


def test_group_delete_guard_over_http(as_user, work) -> None:
    response = as_user.delete(f"/groups/{work.id}")

    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete default groups"


def test_register_login_and_me(client) -> None:
    payload = {
        "email": "new.user@taskhub.io",
        "name": "New User",
        "password": "Secret#123",
        "confirm_password": "Secret#123",
    }
    assert client.post("/auth/register", json=payload).status_code == 201
    assert client.post("/auth/register", json=payload).status_code == 400

    bad = client.post("/auth/login", json={"email": payload["email"], "password": "nope"})
    assert bad.status_code == 401

    token = client.post("/auth/login", json={"email": payload["email"], "password": "Secret#123"}).json()
    headers = {"Authorization": f"Bearer {token['access_token']}"}

    me = client.get("/auth/me", headers=headers).json()
    assert me["email"] == payload["email"]

    groups = client.get("/groups/", headers=headers).json()
    assert [g["name"] for g in groups] == ["Personal", "Work", "Shopping", "Ideas"]

    stats = client.get("/stats/", headers=headers).json()
    assert stats["total_groups"] == 4
    assert stats["productivity_score"] == 0


def test_missing_token_is_rejected(client) -> None:
    assert client.get("/tasks/").status_code == 401


def test_weak_password_is_rejected(client) -> None:
    payload = {
        "email": "weak@taskhub.io",
        "password": "password",
        "confirm_password": "password",
    }
    assert client.post("/auth/register", json=payload).status_code == 422


def test_review_and_history_over_http(as_user, work) -> None:
    task = as_user.post("/tasks/", json={"title": "Write review", "group_id": work.id}).json()
    as_user.post(f"/completed/{task['id']}")

    weekly = as_user.get("/review/weekly")
    assert weekly.status_code == 200
    assert weekly.json()["totalCompleted"] == 1
    assert weekly.json()["tasks"][0]["id"] == task["id"]

    assert as_user.get("/review/weekly", params={"weekOffset": 1}).status_code == 422
    assert as_user.get("/review/insights").json()["productivity"]["currentWeek"] == 1
    assert len(as_user.get("/review/trends", params={"weeks": 2}).json()["trends"]) == 2
    assert as_user.get("/review/quick-stats").json()["streak"] == 1

    history = as_user.get("/stats/history", params={"days": 3})
    assert history.status_code == 200
    assert history.json()[-1]["completedTasks"] == 1
    assert as_user.get("/stats/history", params={"days": 0}).status_code == 422
