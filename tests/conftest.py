# tests/conftest.py

from __future__ import annotations

import os

# must be in place before anything under taskhub reads its config
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REMINDER_SCANNER_ENABLED"] = "false"

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from taskhub.database import init_db  # noqa: E402
from taskhub.group.group_service import create_default_groups  # noqa: E402
from taskhub.models.user import User  # noqa: E402

# a fixed "now" for services that accept one
NOW = datetime(2026, 3, 10, 12, 0, 0)


@pytest.fixture()
def engine():
    """
    One in-memory SQLite database per test.

    StaticPool keeps a single connection, so every session (and the
    background stats refresh) sees the same database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_user(db):
    def _make(email: str = "ana@example.com", name: str = "Ana") -> User:
        user = User(email=email, name=name, password_hash="not-a-real-hash")
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def user(make_user) -> User:
    return make_user()


@pytest.fixture()
def other_user(make_user) -> User:
    return make_user(email="bob@example.com", name="Bob")


@pytest.fixture()
def groups(db, user):
    return create_default_groups(db, user.id)


@pytest.fixture()
def work(groups):
    return next(g for g in groups if g.name == "Work")


@pytest.fixture()
def other_groups(db, other_user):
    return create_default_groups(db, other_user.id)
