"""Pydantic schemas for todo item requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TodoItemInput(BaseModel):
    """Payload for creating or replacing a todo item."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What needs to be done.",
    )
    is_completed: bool = Field(
        default=False,
        description="Whether the item is done.",
    )

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("title must not be blank")
        return stripped


class TodoItemResponse(BaseModel):
    """A stored todo item."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    is_completed: bool
    created_on: datetime


class TodoItemPage(BaseModel):
    """Paginated listing returned by API version 2."""

    items: List[TodoItemResponse] = Field(default_factory=list)
    total: int = Field(..., ge=0, description="Number of items owned by the caller.")
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
