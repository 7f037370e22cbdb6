"""
Visual explanation endpoint.

Generates an educational image with an accompanying explanation.
"""

import logging

from fastapi import APIRouter, Depends

from visual_tutor.api.dependencies import get_visual_service
from visual_tutor.api.schemas.requests import VisualExplanationRequest
from visual_tutor.api.schemas.responses import ErrorResponse, VisualExplanation
from visual_tutor.service import VisualExplanationService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "",
    response_model=VisualExplanation,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def create_visual_explanation(
    body: VisualExplanationRequest | None = None,
    service: VisualExplanationService = Depends(get_visual_service),
) -> VisualExplanation:
    """
    Generate an image and explanation for a topic.

    Providers are tried in configured order until one returns an image.
    ``id`` is null when the artifact could not be recorded; the image and
    explanation are still returned.
    """
    payload = body.to_payload() if body is not None else {}
    return service.generate(payload)
