"""
repository.py — Persistence reads and writes
============================================
All database access for the API lives here. Reads used by the
statistics code return typed records (see records.py) rather than
ORM rows, so the aggregation engine stays storage-agnostic.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from .database import db_session
from .errors import NotFoundError, ValidationError
from .models import Answer, Course, Evaluation, Instructor, Question
from .records import AnswerRecord, CourseRecord, EvaluationRecord, InstructorRecord

logger = logging.getLogger("evaluations.repository")


# ---------------------------------------------------------------------------
# Row -> record mapping
# ---------------------------------------------------------------------------

def _course_record(course: Course) -> CourseRecord:
    return CourseRecord(
        id=course.id,
        name=course.name,
        seminar=course.seminar,
        evaluations=[
            EvaluationRecord(
                id=ev.id,
                answers=[AnswerRecord(score=a.score, question_id=a.question_id) for a in ev.answers],
            )
            for ev in course.evaluations
        ],
    )


def _course_dict(course: Course) -> Dict[str, Any]:
    return {"id": course.id, "name": course.name, "seminar": course.seminar}


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; stored values are always UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ---------------------------------------------------------------------------
# Statistics reads
# ---------------------------------------------------------------------------

def load_instructor_tree() -> List[InstructorRecord]:
    """Every instructor with nested courses, evaluations and answer scores."""
    with db_session() as session:
        stmt = (
            select(Instructor)
            .options(
                selectinload(Instructor.courses)
                .selectinload(Course.evaluations)
                .selectinload(Evaluation.answers)
            )
            .order_by(Instructor.id)
        )
        rows = session.execute(stmt).scalars().all()
        return [
            InstructorRecord(
                id=row.id,
                full_name=row.full_name,
                courses=[_course_record(c) for c in row.courses],
            )
            for row in rows
        ]


def load_seminar_courses() -> List[CourseRecord]:
    """Courses carrying a seminar label, with nested evaluations and scores."""
    with db_session() as session:
        stmt = (
            select(Course)
            .where(Course.seminar.is_not(None))
            .options(selectinload(Course.evaluations).selectinload(Evaluation.answers))
            .order_by(Course.id)
        )
        rows = session.execute(stmt).scalars().all()
        return [_course_record(c) for c in rows]


# ---------------------------------------------------------------------------
# Form reads
# ---------------------------------------------------------------------------

def list_instructors() -> List[Dict[str, Any]]:
    """Instructors ordered by name, each with their courses ordered by name."""
    with db_session() as session:
        stmt = (
            select(Instructor)
            .options(selectinload(Instructor.courses))
            .order_by(Instructor.full_name)
        )
        rows = session.execute(stmt).scalars().all()
        return [
            {
                "id": row.id,
                "full_name": row.full_name,
                "courses": [_course_dict(c) for c in sorted(row.courses, key=lambda c: c.name)],
            }
            for row in rows
        ]


def get_instructor_courses(instructor_id: int) -> List[Dict[str, Any]]:
    with db_session() as session:
        instructor = session.get(Instructor, instructor_id)
        if instructor is None:
            raise NotFoundError(f"Instructor {instructor_id} does not exist.")
        stmt = select(Course).where(Course.instructor_id == instructor_id).order_by(Course.name)
        return [_course_dict(c) for c in session.execute(stmt).scalars().all()]


def list_questions() -> List[Dict[str, Any]]:
    with db_session() as session:
        rows = session.execute(select(Question).order_by(Question.id)).scalars().all()
        return [{"id": q.id, "text": q.text} for q in rows]


def count_instructors() -> int:
    with db_session() as session:
        return session.execute(select(func.count(Instructor.id))).scalar_one() or 0


# ---------------------------------------------------------------------------
# Evaluation write
# ---------------------------------------------------------------------------

def create_evaluation(course_id: int, comments: str, scores: List[int]) -> int:
    """
    Persist one evaluation and its answers in a single transaction.

    Score ``i`` answers the ``i``-th question by ascending id. If the number
    of scores differs from the number of questions nothing is written.
    Returns the new evaluation id.
    """
    with db_session() as session:
        if session.get(Course, course_id) is None:
            raise NotFoundError("The specified course does not exist.")

        question_ids = session.execute(select(Question.id).order_by(Question.id)).scalars().all()
        if len(scores) != len(question_ids):
            raise ValidationError(
                f"Exactly {len(question_ids)} answers are required, got {len(scores)}."
            )

        evaluation = Evaluation(course_id=course_id, comments=comments.strip())
        session.add(evaluation)
        session.flush()

        session.add_all(
            Answer(evaluation_id=evaluation.id, question_id=qid, score=int(score))
            for qid, score in zip(question_ids, scores)
        )
        session.flush()
        evaluation_id = evaluation.id

    logger.info("Evaluation %s created for course %s", evaluation_id, course_id)
    return evaluation_id


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

def get_course_comments(course_id: int) -> Dict[str, Any]:
    """Course detail plus the comments of its evaluations, newest first."""
    with db_session() as session:
        course = session.get(Course, course_id)
        if course is None:
            raise NotFoundError("The specified course does not exist.")

        stmt = (
            select(Evaluation)
            .where(Evaluation.course_id == course_id)
            .order_by(Evaluation.created_at.desc(), Evaluation.id.desc())
        )
        evaluations = session.execute(stmt).scalars().all()
        instructor = course.instructor

        return {
            "course": {
                **_course_dict(course),
                "instructor": {"id": instructor.id, "full_name": instructor.full_name},
            },
            "total_comments": len(evaluations),
            "comments": [
                {"evaluation_id": ev.id, "comments": ev.comments, "created_at": _as_utc(ev.created_at)}
                for ev in evaluations
            ],
        }
