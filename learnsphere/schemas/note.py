"""
Pydantic schemas for notes
"""
from pydantic import Field
from typing import Optional

from learnsphere.schemas.common import CamelModel


class NoteCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = ""


class NoteUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None
