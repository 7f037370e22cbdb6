"""
API request and response schemas.
"""

from visual_tutor.api.schemas.requests import TutorQuestionRequest, VisualExplanationRequest
from visual_tutor.api.schemas.responses import (
    ErrorResponse,
    HealthResponse,
    ProviderStatus,
    TutorAnswer,
    VisualExplanation,
)

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "ProviderStatus",
    "TutorAnswer",
    "TutorQuestionRequest",
    "VisualExplanation",
    "VisualExplanationRequest",
]
