from typing import List

from fastapi import APIRouter, Request, status

from .. import repository
from ..config import settings
from ..rate_limit import limiter
from ..schemas import ApiResponse, ErrorResponse, EvaluationCreate, EvaluationCreated, QuestionOut

router = APIRouter(tags=["evaluations"])


@router.get("/questions", response_model=ApiResponse[List[QuestionOut]])
def list_questions() -> dict:
    """The fixed rubric, ordered by id. ``answers[i]`` answers question ``i``."""
    return {"data": repository.list_questions(), "message": "Questions retrieved successfully."}


@router.post(
    "/evaluations",
    response_model=ApiResponse[EvaluationCreated],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
)
@limiter.limit(settings.evaluation_rate_limit)
def create_evaluation(request: Request, body: EvaluationCreate) -> dict:
    """Register an anonymous evaluation.

    The evaluation and all of its answers are written in one transaction:
    either everything is stored or nothing is. Unknown courses yield 404.
    """
    evaluation_id = repository.create_evaluation(body.course_id, body.comments, body.answers)
    return {
        "data": {"evaluation_id": evaluation_id},
        "message": "Evaluation created successfully.",
    }
