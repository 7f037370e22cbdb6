"""
Tutor question endpoint.
"""

from fastapi import APIRouter, Depends

from visual_tutor.api.dependencies import get_tutor_service
from visual_tutor.api.schemas.requests import TutorQuestionRequest
from visual_tutor.api.schemas.responses import ErrorResponse, TutorAnswer
from visual_tutor.service import TutorService

router = APIRouter()


@router.post(
    "",
    response_model=TutorAnswer,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def create_tutor_response(
    body: TutorQuestionRequest | None = None,
    service: TutorService = Depends(get_tutor_service),
) -> TutorAnswer:
    """Answer a learner's question about a subject."""
    payload = body.to_payload() if body is not None else {}
    return service.answer(payload)
