from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .sentiment.gateway import MAX_DOCUMENTS

T = TypeVar("T")

MIN_COMMENT_LENGTH = 10
ANSWERS_PER_EVALUATION = 5


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------

class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    data: T
    message: str = ""


class ErrorResponse(CamelModel):
    success: bool = False
    error: str = Field(..., description="Error kind, e.g. ValidationError.")
    message: str
    detail: Optional[str] = Field(default=None, description="Diagnostic detail (non-production only).")


# ---------------------------------------------------------------------------
# Instructors, courses, questions
# ---------------------------------------------------------------------------

class CourseOut(CamelModel):
    id: int
    name: str
    seminar: Optional[str] = None


class InstructorOut(CamelModel):
    id: int
    full_name: str
    courses: List[CourseOut] = Field(default_factory=list)


class QuestionOut(CamelModel):
    id: int
    text: str


# ---------------------------------------------------------------------------
# Evaluations
# ---------------------------------------------------------------------------

class EvaluationCreate(CamelModel):
    """One anonymous evaluation. ``answers[i]`` scores the i-th question by id."""

    course_id: int = Field(..., gt=0, description="Course being evaluated.")
    comments: str = Field(..., description=f"Free-text comments, at least {MIN_COMMENT_LENGTH} characters.")
    answers: List[Annotated[int, Field(ge=1, le=5)]] = Field(
        ...,
        min_length=ANSWERS_PER_EVALUATION,
        max_length=ANSWERS_PER_EVALUATION,
        description="One score (1-5) per question, in question-id order.",
    )

    @field_validator("comments")
    @classmethod
    def validate_comments(cls, v: str) -> str:
        v = v.strip()
        if len(v) < MIN_COMMENT_LENGTH:
            raise ValueError(f"comments must be at least {MIN_COMMENT_LENGTH} characters long")
        return v

    @field_validator("answers", mode="before")
    @classmethod
    def reject_boolean_scores(cls, v: Any) -> Any:
        # lax int coercion would read true/false as 1/0
        if isinstance(v, list) and any(isinstance(item, bool) for item in v):
            raise ValueError("answers must be integers between 1 and 5")
        return v


class EvaluationCreated(CamelModel):
    evaluation_id: int


class InstructorRef(CamelModel):
    id: int
    full_name: str


class CourseDetail(CourseOut):
    instructor: InstructorRef


class CommentOut(CamelModel):
    evaluation_id: int
    comments: str
    created_at: datetime


class CourseCommentsOut(CamelModel):
    course: CourseDetail
    total_comments: int
    comments: List[CommentOut] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

class InstructorStatOut(CamelModel):
    instructor_name: str
    seminar: str
    evaluation_count: int
    mean_score: float


class SeminarStatOut(CamelModel):
    seminar: str
    mean_score: float


class StatisticsOut(CamelModel):
    instructor_stats: List[InstructorStatOut]
    overall_mean: float
    seminar_stats: List[SeminarStatOut]


# ---------------------------------------------------------------------------
# Sentiment
# ---------------------------------------------------------------------------

class SentimentRequest(CamelModel):
    texts: List[str] = Field(..., min_length=1, max_length=MAX_DOCUMENTS)

    @field_validator("texts")
    @classmethod
    def validate_texts(cls, v: List[str]) -> List[str]:
        for i, text in enumerate(v):
            if not text.strip():
                raise ValueError(f"text {i + 1} must not be empty")
        return v


class ConfidenceScores(CamelModel):
    positive: float
    neutral: float
    negative: float


class TextSentimentOut(CamelModel):
    text: str
    sentiment: Optional[str] = None
    confidence_scores: Optional[ConfidenceScores] = None
    error: Optional[str] = None


class SentimentOut(CamelModel):
    results: List[TextSentimentOut]
    cached: bool


class SentimentStatusOut(CamelModel):
    rate_limit: Dict[str, Any]
    cache: Dict[str, Any]

