"""
Pydantic schemas for model-generated artifacts

Responses from the language model are validated against these right after
JSON parsing. Optional lists default to [] and optional strings to "" so
stored artifacts always carry every field the client reads.
"""
from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import Any, List, Optional


def _clean_title(value: Any) -> str:
    # Titles are whitespace-normalized so exports round-trip verbatim
    return " ".join(str(value).split()) if value is not None else ""


def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    return [" ".join(str(item).split()) for item in value if str(item).strip()]


def _plain_text(value: Any) -> str:
    return "" if value is None else str(value).strip()


class SummaryArtifact(BaseModel):
    """Stored summary; lengths that were never generated stay empty"""
    short: str = ""
    medium: str = ""
    detailed: str = ""
    keyInsights: List[str] = Field(default_factory=list)


class RawQuestion(BaseModel):
    """Multiple-choice question as returned by the model"""
    text: str = Field(..., min_length=1, validation_alias=AliasChoices("question", "text", "questionText"))
    options: List[str] = Field(default_factory=list)
    correctAnswer: Any = Field(None, validation_alias=AliasChoices("correctAnswer", "correct_answer", "answer"))
    explanation: str = ""
    difficulty: str = "medium"
    topic: str = "General"

    @field_validator("text", "explanation", mode="before")
    @classmethod
    def clean_text(cls, value):
        return _plain_text(value)

    @field_validator("options", mode="before")
    @classmethod
    def clean_options(cls, value):
        return _string_list(value)

    @field_validator("difficulty", mode="before")
    @classmethod
    def default_difficulty(cls, value):
        value = _plain_text(value).lower()
        return value if value in ("easy", "medium", "hard") else "medium"

    @field_validator("topic", mode="before")
    @classmethod
    def default_topic(cls, value):
        return _plain_text(value) or "General"


class LessonDraft(BaseModel):
    title: str = Field(..., min_length=1, validation_alias=AliasChoices("title", "lessonTitle", "name"))
    description: str = ""
    duration: str = ""
    keyPoints: List[str] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def clean_title(cls, value):
        return _clean_title(value)

    @field_validator("description", "duration", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return _plain_text(value)

    @field_validator("keyPoints", "examples", mode="before")
    @classmethod
    def clean_lists(cls, value):
        return _string_list(value)


class ModuleDraft(BaseModel):
    title: str = Field(..., min_length=1, validation_alias=AliasChoices("title", "moduleTitle", "name"))
    description: str = ""
    keyTerms: List[str] = Field(default_factory=list)
    lessons: List[LessonDraft] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def clean_title(cls, value):
        return _clean_title(value)

    @field_validator("description", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return _plain_text(value)

    @field_validator("keyTerms", mode="before")
    @classmethod
    def clean_lists(cls, value):
        return _string_list(value)


class PhaseDraft(BaseModel):
    title: str = Field(..., min_length=1, validation_alias=AliasChoices("phaseName", "title", "name"))
    description: str = ""
    duration: str = ""
    learningObjectives: List[str] = Field(default_factory=list)
    phaseTopics: List[str] = Field(default_factory=list)
    modules: List[ModuleDraft] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def clean_title(cls, value):
        return _clean_title(value)

    @field_validator("description", "duration", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return _plain_text(value)

    @field_validator("learningObjectives", "phaseTopics", mode="before")
    @classmethod
    def clean_lists(cls, value):
        return _string_list(value)


class RoadmapDraft(BaseModel):
    """Roadmap as returned by the model, before ids are assigned"""
    title: str = ""
    overview: str = ""
    mainTopic: str = ""
    subTopics: List[str] = Field(default_factory=list)
    learningOutcomes: List[str] = Field(default_factory=list)
    estimatedDuration: str = ""
    phases: List[PhaseDraft] = Field(..., min_length=1)

    @field_validator("title", "mainTopic", mode="before")
    @classmethod
    def clean_title(cls, value):
        return _clean_title(value)

    @field_validator("overview", "estimatedDuration", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return _plain_text(value)

    @field_validator("subTopics", "learningOutcomes", mode="before")
    @classmethod
    def clean_lists(cls, value):
        return _string_list(value)


class MindMapNode(BaseModel):
    id: str = Field(..., min_length=1)
    type: Optional[str] = "default"
    data: dict = Field(default_factory=dict)
    position: dict = Field(default_factory=lambda: {"x": 0, "y": 0})


class MindMapEdge(BaseModel):
    id: Optional[str] = None
    source: str
    target: str
