"""
Pydantic schemas for todos
"""
from pydantic import Field, field_validator
from typing import Literal, Optional
from uuid import UUID
from datetime import date, datetime

from learnsphere.schemas.common import CamelModel


Priority = Literal["low", "medium", "high"]


class LinkedEntity(CamelModel):
    type: Literal["document", "quiz", "note"]
    entity_id: UUID
    entity_title: Optional[str] = None


def _clean_title(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Please add a title")
    return value


def _as_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    return value


class TodoCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=500)
    priority: Priority = "medium"
    due_date: date
    linked_entity: Optional[LinkedEntity] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        return _clean_title(value)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, value):
        return _as_date(value)


class TodoUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    priority: Optional[Priority] = None
    status: Optional[Literal["pending", "completed"]] = None
    due_date: Optional[date] = None
    linked_entity: Optional[LinkedEntity] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _clean_title(value)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, value):
        return _as_date(value)
