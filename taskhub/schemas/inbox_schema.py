# taskhub/schemas/inbox_schema.py

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InboxItemCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    notes: Optional[str] = Field(default="", max_length=1000)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value


class InboxItemUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    notes: Optional[str] = Field(default=None, max_length=1000)


class InboxIds(BaseModel):
    item_ids: list[int] = Field(min_length=1)


class InboxItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    notes: Optional[str] = None
    is_promoted: bool
    promoted_at: Optional[datetime] = None
    is_deleted: bool
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class RecentPromotion(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    promoted_at: Optional[datetime] = None


class InboxStats(BaseModel):
    total: int
    unpromoted: int
    promoted: int
    promotionRate: float
    recentPromotions: list[RecentPromotion] = Field(default_factory=list)


class DeleteOutcomeRead(BaseModel):
    success: bool
    message: str
    attempts: int
    operation_id: str
