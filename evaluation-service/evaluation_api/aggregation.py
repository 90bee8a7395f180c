"""
aggregation.py — Evaluation statistics
======================================
Pure computation over instructor → course → evaluation → answer
records. Produces per-instructor means, per-seminar means and the
overall mean.

The overall mean is the unweighted mean of the per-seminar means,
not the mean of every raw score: a seminar with one evaluation
weighs as much as a seminar with a hundred.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .records import AnswerRecord, CourseRecord, EvaluationRecord, InstructorRecord

NO_SEMINAR_LABEL = "Sin seminario"


@dataclass
class InstructorStat:
    instructor_name: str
    seminar: str
    evaluation_count: int
    mean_score: float


@dataclass
class SeminarStat:
    seminar: str
    mean_score: float


@dataclass
class Statistics:
    instructor_stats: List[InstructorStat] = field(default_factory=list)
    seminar_stats: List[SeminarStat] = field(default_factory=list)
    overall_mean: float = 0.0


def round_half_up(value: float, places: int = 2) -> float:
    """Round on the scaled value, halves going up (4.125 -> 4.13)."""
    scale = 10 ** places
    return math.floor(value * scale + 0.5) / scale


def _mean_score(answers: List[AnswerRecord]) -> float:
    if not answers:
        return 0.0
    return sum(a.score for a in answers) / len(answers)


def _flatten_evaluations(courses: Iterable[CourseRecord]) -> List[EvaluationRecord]:
    return [ev for course in courses for ev in course.evaluations]


def _flatten_answers(evaluations: Iterable[EvaluationRecord]) -> List[AnswerRecord]:
    return [a for ev in evaluations for a in ev.answers]


def _seminar_label(courses: Iterable[CourseRecord]) -> str:
    seen: List[str] = []
    for course in courses:
        if course.seminar and course.seminar not in seen:
            seen.append(course.seminar)
    return ", ".join(seen) or NO_SEMINAR_LABEL


def instructor_stat(instructor: InstructorRecord) -> InstructorStat:
    """Statistics for one instructor across all of their courses."""
    evaluations = _flatten_evaluations(instructor.courses)
    answers = _flatten_answers(evaluations)
    return InstructorStat(
        instructor_name=instructor.full_name,
        seminar=_seminar_label(instructor.courses),
        evaluation_count=len(evaluations),
        mean_score=round_half_up(_mean_score(answers)),
    )


def compute_seminar_stats(courses: Iterable[CourseRecord]) -> List[SeminarStat]:
    """Group courses by seminar label and average every answer in each group.

    Courses without a seminar (None) are ignored. Groups keep the order in
    which their label first appears.
    """
    groups: Dict[str, List[AnswerRecord]] = {}
    for course in courses:
        if course.seminar is None:
            continue
        bucket = groups.setdefault(course.seminar, [])
        bucket.extend(_flatten_answers(course.evaluations))

    return [
        SeminarStat(seminar=label, mean_score=round_half_up(_mean_score(answers)))
        for label, answers in groups.items()
    ]


def overall_mean(seminar_stats: List[SeminarStat]) -> float:
    """Average of the seminar averages (0 when there are none)."""
    if not seminar_stats:
        return 0.0
    total = sum(s.mean_score for s in seminar_stats)
    return round_half_up(total / len(seminar_stats))


def compute_statistics(
    instructors: List[InstructorRecord],
    seminar_courses: Optional[List[CourseRecord]] = None,
) -> Statistics:
    """
    Build the full statistics payload.

    Instructors without evaluations are left out of ``instructor_stats``.
    Seminar statistics are computed from every course of every instructor
    (or from ``seminar_courses`` when the caller already loaded them),
    independently of that filter.
    """
    stats = [instructor_stat(i) for i in instructors]
    stats = [s for s in stats if s.evaluation_count > 0]

    if seminar_courses is None:
        seminar_courses = [c for i in instructors for c in i.courses]
    seminars = compute_seminar_stats(seminar_courses)

    return Statistics(
        instructor_stats=stats,
        seminar_stats=seminars,
        overall_mean=overall_mean(seminars),
    )
