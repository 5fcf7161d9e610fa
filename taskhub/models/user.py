# taskhub/models/user.py
from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from taskhub.clock import utcnow
from taskhub.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=True)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
