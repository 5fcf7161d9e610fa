# taskhub/schemas/group_schema.py

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskhub.clock import to_naive_utc

HEX_COLOR = r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"


# --------- Base schema (common fields) ---------
class GroupBase(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=200)
    color: str = Field(default="#3B82F6", pattern=HEX_COLOR)
    icon: str = Field(default="📁", max_length=5)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Group name must be between 1 and 50 characters")
        return value


# --------- For creating a group (POST) ---------
class GroupCreate(GroupBase):
    end_goal: Optional[str] = Field(default=None, max_length=500)
    expected_date: Optional[datetime] = None

    normalize_expected_date = field_validator("expected_date")(to_naive_utc)


# --------- For updating a group (PUT/PATCH) ---------
# is_default and the owner are deliberately not updatable.
class GroupUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=200)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)
    icon: Optional[str] = Field(default=None, max_length=5)
    end_goal: Optional[str] = Field(default=None, max_length=500)
    expected_date: Optional[datetime] = None

    normalize_expected_date = field_validator("expected_date")(to_naive_utc)


class GroupComplete(BaseModel):
    end_goal: Optional[str] = Field(default=None, max_length=500)


class MoveTasks(BaseModel):
    task_ids: list[int] = Field(min_length=1)
    target_group_id: int


# --------- For reading a group (GET responses) ---------
class GroupRead(GroupBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    is_default: bool
    task_count: int
    end_goal: Optional[str] = None
    expected_date: Optional[datetime] = None
    is_completed: bool
    completed_at: Optional[datetime] = None
    completed_by: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
