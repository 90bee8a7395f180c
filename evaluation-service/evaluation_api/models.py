from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base


class Instructor(Base):
    """A catedrático being evaluated."""

    __tablename__ = "instructors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    full_name: Mapped[str] = mapped_column(String(256), index=True)

    courses: Mapped[List["Course"]] = relationship(
        back_populates="instructor", order_by="Course.id"
    )


class Course(Base):
    """A taught unit, linked to one instructor and optionally a seminar."""

    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(256))
    seminar: Mapped[Optional[str]] = mapped_column(String(256), nullable=True, index=True)
    instructor_id: Mapped[int] = mapped_column(ForeignKey("instructors.id"), index=True)

    instructor: Mapped[Instructor] = relationship(back_populates="courses")
    evaluations: Mapped[List["Evaluation"]] = relationship(
        back_populates="course", order_by="Evaluation.id"
    )


class Question(Base):
    """One item of the fixed rubric. Ordering by id is significant."""

    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    text: Mapped[str] = mapped_column(Text)


class Evaluation(Base):
    """Anonymous submission for a course: comments plus one answer per question."""

    __tablename__ = "evaluations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    comments: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id"), index=True)

    course: Mapped[Course] = relationship(back_populates="evaluations")
    answers: Mapped[List["Answer"]] = relationship(
        back_populates="evaluation", order_by="Answer.question_id"
    )


class Answer(Base):
    __tablename__ = "answers"
    __table_args__ = (CheckConstraint("score BETWEEN 1 AND 5", name="ck_answers_score_range"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    score: Mapped[int] = mapped_column(Integer)
    evaluation_id: Mapped[int] = mapped_column(ForeignKey("evaluations.id"), index=True)
    question_id: Mapped[int] = mapped_column(ForeignKey("questions.id"), index=True)

    evaluation: Mapped[Evaluation] = relationship(back_populates="answers")
