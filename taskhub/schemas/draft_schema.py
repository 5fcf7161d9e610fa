# taskhub/schemas/draft_schema.py

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskhub.schemas.inbox_schema import InboxItemRead
from taskhub.schemas.task_schema import Pagination, TaskExtras, TaskRead

Source = Literal["inbox", "quick", "taskform"]


class DraftCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    notes: Optional[str] = Field(default="", max_length=5000)
    source: Source = "quick"
    inbox_ref: Optional[int] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value


class DraftUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = Field(default=None, max_length=5000)
    source: Optional[Source] = None


class DraftIds(BaseModel):
    ids: list[int] = Field(min_length=1)
    delete_promoted: bool = False


class DraftRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    notes: Optional[str] = None
    source: str
    inbox_ref: Optional[int] = None
    is_promoted: bool
    promoted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class DraftPage(BaseModel):
    drafts: list[DraftRead]
    pagination: Pagination


class DraftSourceCounts(BaseModel):
    inbox: int = 0
    quick: int = 0
    taskform: int = 0


class DraftStats(BaseModel):
    total: int
    promoted: int
    unpromoted: int
    bySource: DraftSourceCounts


# --------- Promotion request for an inbox item ---------
class InboxPromotion(BaseModel):
    via_draft: bool = False
    task: TaskExtras = Field(default_factory=TaskExtras)


# --------- Composite result of any promotion path ---------
class PromotionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    task: Optional[TaskRead] = None
    draft: Optional[DraftRead] = None
    inbox_item: Optional[InboxItemRead] = None
