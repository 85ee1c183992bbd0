"""
Pydantic schemas for roadmap quiz requests
"""
from pydantic import Field
from typing import List, Optional
from uuid import UUID

from learnsphere.schemas.common import CamelModel
from learnsphere.schemas.document import SubmittedAnswer


class ModuleQuizCreate(CamelModel):
    document_id: UUID
    phase_id: str
    module_id: str
    num_questions: Optional[int] = Field(None, ge=1, le=20)


class PhaseQuizCreate(CamelModel):
    document_id: UUID
    phase_id: str
    num_questions: Optional[int] = Field(None, ge=1, le=30)


class FinalQuizCreate(CamelModel):
    document_id: UUID
    num_questions: Optional[int] = Field(None, ge=1, le=40)


class QuizSubmission(CamelModel):
    """Schema for quiz submission"""
    answers: List[SubmittedAnswer] = Field(default_factory=list)
    time_taken: Optional[int] = Field(None, ge=0)
