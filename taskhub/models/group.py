# taskhub/models/group.py
from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from taskhub.clock import utcnow
from taskhub.database import Base


class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String(50), nullable=False)
    description = Column(String(200), nullable=True)
    color = Column(String(7), default="#3B82F6", nullable=False)
    icon = Column(String(5), default="📁", nullable=False)

    # default groups are created at signup and cannot be deleted
    is_default = Column(Boolean, default=False, nullable=False)

    # cache only; rederivable from live task rows
    task_count = Column(Integer, default=0, nullable=False)

    # optional completion tracking
    end_goal = Column(String(500), nullable=True)
    expected_date = Column(DateTime, nullable=True)
    is_completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    completed_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
