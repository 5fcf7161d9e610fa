import json
import math
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.types import Text, TypeDecorator

from taskhub.config import DATABASE_URL, SQL_ECHO
from taskhub.errors import TransientStoreError

# For SQLite we must add connect_args
connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    echo=SQL_ECHO,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def paginate(query, page: int, limit: int):
    """One page of query plus its {page, limit, total, totalPages} block."""
    page = max(1, page)
    limit = max(1, limit)
    total = query.count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    pagination = {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if total else 0,
    }
    return items, pagination


def init_db(bind=None) -> None:
    """Register every model on Base.metadata and create missing tables."""
    from taskhub.models import draft, group, inbox_item, stats, task, user  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def commit(db: Session) -> None:
    """Commit the unit of work; roll back and re-raise typed on failure."""
    try:
        db.commit()
    except OperationalError as exc:
        db.rollback()
        raise TransientStoreError("Storage temporarily unavailable") from exc
    except SQLAlchemyError:
        db.rollback()
        raise


@contextmanager
def unit_of_work(db: Session):
    """
    Everything written inside the block is committed together, or rolled
    back together when any step (flush or commit included) fails.
    """
    try:
        yield db
        db.commit()
    except OperationalError as exc:
        db.rollback()
        raise TransientStoreError("Storage temporarily unavailable") from exc
    except Exception:
        db.rollback()
        raise


class DateTimeList(TypeDecorator):
    """
    A list of datetimes stored as a JSON array of ISO strings.

    Always handed back sorted ascending.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return "[]"
        return json.dumps(sorted(v.isoformat() for v in value))

    def process_result_value(self, value, dialect):
        if not value:
            return []
        return sorted(datetime.fromisoformat(v) for v in json.loads(value))


class StringList(TypeDecorator):
    """Ordered list of strings stored as JSON."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return json.dumps(list(value or []), ensure_ascii=False)

    def process_result_value(self, value, dialect):
        if not value:
            return []
        data = json.loads(value)
        return [str(v) for v in data] if isinstance(data, list) else []
