# taskhub/models/draft.py
from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from taskhub.clock import utcnow
from taskhub.database import Base

DRAFT_SOURCES = ("inbox", "quick", "taskform")


class Draft(Base):
    __tablename__ = "drafts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    notes = Column(String(5000), nullable=True)
    source = Column(String, default="quick", nullable=False)

    inbox_ref = Column(Integer, ForeignKey("inbox_items.id", ondelete="SET NULL"), nullable=True)

    # false -> true only
    is_promoted = Column(Boolean, default=False, nullable=False, index=True)
    promoted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
