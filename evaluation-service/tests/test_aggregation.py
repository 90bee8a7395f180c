"""
Tests for the statistics aggregation engine.

Run with: pytest tests/test_aggregation.py -v
"""
from __future__ import annotations

import pytest

from evaluation_api.aggregation import (
    NO_SEMINAR_LABEL,
    compute_seminar_stats,
    compute_statistics,
    overall_mean,
    round_half_up,
    SeminarStat,
)
from evaluation_api.records import AnswerRecord, CourseRecord, EvaluationRecord, InstructorRecord


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_next_id = iter(range(1, 100_000))


def _evaluation(*scores: int) -> EvaluationRecord:
    return EvaluationRecord(id=next(_next_id), answers=[AnswerRecord(score=s) for s in scores])


def _course(seminar=None, evaluations=(), name="course") -> CourseRecord:
    return CourseRecord(id=next(_next_id), name=name, seminar=seminar, evaluations=list(evaluations))


def _instructor(name: str, *courses: CourseRecord) -> InstructorRecord:
    return InstructorRecord(id=next(_next_id), full_name=name, courses=list(courses))


# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------

class TestRounding:
    def test_half_goes_up(self):
        assert round_half_up(4.125) == 4.13
        assert round_half_up(4.375) == 4.38

    def test_not_bankers_rounding(self):
        assert round_half_up(0.5, places=0) == 1.0
        assert round_half_up(2.5, places=0) == 3.0

    def test_thirds(self):
        assert round_half_up(11 / 3) == 3.67
        assert round_half_up(10 / 3) == 3.33

    @pytest.mark.parametrize("value", [0.0, 1.0, 3.33, 4.35, 4.99, 2.01, 3.67, 1.1, 0.07])
    def test_idempotent(self, value):
        once = round_half_up(value)
        assert round_half_up(once) == once
        assert once == value


# ---------------------------------------------------------------------------
# Instructor statistics
# ---------------------------------------------------------------------------

class TestInstructorStats:
    def test_instructor_without_evaluations_excluded(self):
        busy = _instructor("Busy", _course("S", [_evaluation(4, 4, 4, 4, 4)]))
        idle = _instructor("Idle", _course("S"), _course("T"))
        nobody = _instructor("No courses")

        stats = compute_statistics([busy, idle, nobody])

        names = [s.instructor_name for s in stats.instructor_stats]
        assert names == ["Busy"]

    def test_evaluation_count_counts_evaluations_not_answers(self):
        inst = _instructor(
            "A",
            _course("S", [_evaluation(5, 5, 5, 5, 5), _evaluation(1, 1, 1, 1, 1)]),
            _course("T", [_evaluation(3, 3, 3, 3, 3)]),
        )
        stat = compute_statistics([inst]).instructor_stats[0]
        assert stat.evaluation_count == 3
        assert stat.mean_score == 3.0

    def test_mean_is_over_all_answers_across_courses(self):
        inst = _instructor(
            "A",
            _course("S", [_evaluation(5, 4, 5, 4, 5)]),
            _course(None, [_evaluation(1, 2, 1, 2, 1)]),
        )
        stat = compute_statistics([inst]).instructor_stats[0]
        assert stat.mean_score == 3.0

    def test_mean_rounded_to_two_decimals(self):
        inst = _instructor("A", _course("S", [_evaluation(5, 5, 4), _evaluation(4, 4, 4)]))
        # 26 / 6 = 4.333...
        assert compute_statistics([inst]).instructor_stats[0].mean_score == 4.33

    def test_seminar_labels_distinct_and_joined(self):
        inst = _instructor(
            "A",
            _course("Sistemas", [_evaluation(3)]),
            _course("Programación", [_evaluation(3)]),
            _course("Sistemas", [_evaluation(3)]),
            _course(None, [_evaluation(3)]),
            _course("", [_evaluation(3)]),
        )
        stat = compute_statistics([inst]).instructor_stats[0]
        assert stat.seminar == "Sistemas, Programación"

    def test_no_seminar_sentinel(self):
        inst = _instructor("A", _course(None, [_evaluation(2, 2)]))
        stat = compute_statistics([inst]).instructor_stats[0]
        assert stat.seminar == NO_SEMINAR_LABEL

    def test_evaluation_without_answers_means_zero(self):
        inst = _instructor("A", _course("S", [_evaluation()]))
        stat = compute_statistics([inst]).instructor_stats[0]
        assert stat.evaluation_count == 1
        assert stat.mean_score == 0.0


# ---------------------------------------------------------------------------
# Seminar statistics & overall mean
# ---------------------------------------------------------------------------

class TestSeminarStats:
    def test_groups_across_instructors(self):
        a = _instructor("A", _course("X", [_evaluation(5, 5)]))
        b = _instructor("B", _course("X", [_evaluation(1, 1)]), _course("Y", [_evaluation(2, 4)]))
        seminars = compute_seminar_stats([c for i in (a, b) for c in i.courses])
        assert [(s.seminar, s.mean_score) for s in seminars] == [("X", 3.0), ("Y", 3.0)]

    def test_courses_without_seminar_ignored(self):
        seminars = compute_seminar_stats([_course(None, [_evaluation(5)]), _course("X", [_evaluation(1)])])
        assert [s.seminar for s in seminars] == ["X"]

    def test_seminar_without_evaluations_means_zero(self):
        seminars = compute_seminar_stats([_course("Empty")])
        assert seminars == [SeminarStat(seminar="Empty", mean_score=0.0)]

    def test_seminar_stats_independent_of_instructor_filter(self):
        idle = _instructor("Idle", _course("Z"))
        stats = compute_statistics([idle])
        assert stats.instructor_stats == []
        assert [s.seminar for s in stats.seminar_stats] == ["Z"]
        assert stats.overall_mean == 0.0

    def test_overall_mean_is_mean_of_seminar_means(self):
        """One all-5s evaluation vs. a hundred all-1s: average of averages is 3."""
        small = _course("Small", [_evaluation(5, 5, 5, 5, 5)])
        large = _course("Large", [_evaluation(1, 1, 1, 1, 1) for _ in range(100)])
        stats = compute_statistics([_instructor("A", small), _instructor("B", large)])

        assert stats.overall_mean == 3.0
        expected = sum(s.mean_score for s in stats.seminar_stats) / len(stats.seminar_stats)
        assert stats.overall_mean == round_half_up(expected)

    def test_overall_mean_zero_without_seminars(self):
        assert overall_mean([]) == 0.0
        inst = _instructor("A", _course(None, [_evaluation(5)]))
        assert compute_statistics([inst]).overall_mean == 0.0

    def test_overall_mean_rounded(self):
        stats = [SeminarStat("a", 4.33), SeminarStat("b", 3.67), SeminarStat("c", 2.0)]
        # 10.0 / 3 = 3.333...
        assert overall_mean(stats) == 3.33

    def test_explicit_seminar_courses_used_when_given(self):
        inst = _instructor("A", _course("X", [_evaluation(5)]))
        only_y = [_course("Y", [_evaluation(2)])]
        stats = compute_statistics([inst], seminar_courses=only_y)
        assert [s.seminar for s in stats.seminar_stats] == ["Y"]
        assert stats.overall_mean == 2.0


def test_single_seminar_scenario():
    inst = _instructor("Prof", _course("X", [_evaluation(5, 5, 5, 5, 5), _evaluation(3, 3, 3, 3, 3)]))
    stats = compute_statistics([inst])

    assert len(stats.instructor_stats) == 1
    assert stats.instructor_stats[0].mean_score == 4.0
    assert stats.instructor_stats[0].evaluation_count == 2
    assert stats.instructor_stats[0].seminar == "X"
    assert [(s.seminar, s.mean_score) for s in stats.seminar_stats] == [("X", 4.0)]
    assert stats.overall_mean == 4.0
