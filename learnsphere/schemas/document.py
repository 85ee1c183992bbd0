"""
Pydantic schemas for document processing requests
"""
from pydantic import Field
from typing import Any, List, Literal, Optional
from uuid import UUID

from learnsphere.schemas.common import CamelModel
from learnsphere.schemas.artifacts import MindMapNode, MindMapEdge


ProcessingType = Literal["summary", "quiz", "mindmap", "roadmap", "comprehensive"]
SummaryType = Literal["short", "medium", "detailed"]
LearnerLevel = Literal["beginner", "intermediate", "advanced"]


class ProcessRequest(CamelModel):
    """Request schema for POST /documents/process"""
    document_id: UUID
    processing_type: ProcessingType
    summary_type: Optional[SummaryType] = None
    learner_level: Optional[LearnerLevel] = None
    num_questions: Optional[int] = Field(None, ge=1, le=20)


class MindMapSave(CamelModel):
    """Edited mind map sent back by the client"""
    nodes: List[MindMapNode]
    edges: List[MindMapEdge] = Field(default_factory=list)


class ProgressUpdate(CamelModel):
    """Lesson completion toggle"""
    lesson_id: str = Field(..., min_length=1)
    module_id: str = Field(..., min_length=1)
    phase_id: Optional[str] = None


class SubmittedAnswer(CamelModel):
    question_id: str
    selected_answer: Any = None


class DocumentQuizSubmission(CamelModel):
    """Answers for a document's generated quiz"""
    document_id: UUID
    answers: List[SubmittedAnswer] = Field(default_factory=list)


class ReportRequest(CamelModel):
    document_id: UUID
    report_type: Literal["summary", "full"] = "full"
