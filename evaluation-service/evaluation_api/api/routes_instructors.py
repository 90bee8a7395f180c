from __future__ import annotations

from typing import List

from fastapi import APIRouter, Path

from .. import repository
from ..schemas import ApiResponse, CourseCommentsOut, CourseOut, ErrorResponse, InstructorOut

router = APIRouter(tags=["instructors"])


@router.get("/instructors", response_model=ApiResponse[List[InstructorOut]])
def list_instructors() -> dict:
    """All instructors, ordered by name, each with their courses."""
    return {
        "data": repository.list_instructors(),
        "message": "Instructors with courses retrieved successfully.",
    }


@router.get(
    "/instructors/{instructor_id}/courses",
    response_model=ApiResponse[List[CourseOut]],
    responses={404: {"model": ErrorResponse}},
)
def list_instructor_courses(instructor_id: int = Path(..., gt=0)) -> dict:
    return {
        "data": repository.get_instructor_courses(instructor_id),
        "message": "Courses retrieved successfully.",
    }


@router.get("/courses/{course_id}/comments", response_model=ApiResponse[CourseCommentsOut])
def list_course_comments(course_id: int = Path(..., gt=0)) -> dict:
    """Comments left on a course's evaluations, newest first."""
    data = repository.get_course_comments(course_id)
    message = (
        "Comments retrieved successfully."
        if data["total_comments"]
        else "No comments found for this course."
    )
    return {"data": data, "message": message}
