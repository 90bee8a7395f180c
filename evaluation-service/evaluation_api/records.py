"""
records.py — Typed read records handed to the aggregation engine
================================================================
The repository maps ORM rows into these plain dataclasses so the
statistics code never touches SQLAlchemy objects or sessions.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class AnswerRecord:
    score: int
    question_id: Optional[int] = None


@dataclass
class EvaluationRecord:
    id: int
    answers: List[AnswerRecord] = field(default_factory=list)
    comments: str = ""
    created_at: Optional[datetime] = None


@dataclass
class CourseRecord:
    id: int
    name: str
    seminar: Optional[str] = None
    evaluations: List[EvaluationRecord] = field(default_factory=list)


@dataclass
class InstructorRecord:
    id: int
    full_name: str
    courses: List[CourseRecord] = field(default_factory=list)
