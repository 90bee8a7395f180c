from __future__ import annotations

from typing import List

from fastapi import APIRouter

from .. import repository
from ..aggregation import compute_seminar_stats, compute_statistics
from ..schemas import ApiResponse, SeminarStatOut, StatisticsOut

router = APIRouter(prefix="/statistics", tags=["statistics"])


@router.get("", response_model=ApiResponse[StatisticsOut])
def get_statistics() -> dict:
    """
    Per-instructor means, per-seminar means and the overall mean.

    ``overallMean`` is the plain average of the seminar means, so every
    seminar weighs the same regardless of how many evaluations it has.
    Instructors without evaluations are omitted.
    """
    stats = compute_statistics(repository.load_instructor_tree())
    return {"data": stats, "message": "Statistics retrieved successfully."}


@router.get("/seminars", response_model=ApiResponse[List[SeminarStatOut]])
def get_seminar_statistics() -> dict:
    seminars = compute_seminar_stats(repository.load_seminar_courses())
    return {"data": seminars, "message": "Seminar statistics retrieved successfully."}
