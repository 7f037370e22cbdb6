"""
Pydantic response schemas for API endpoints.
"""

from pydantic import BaseModel, Field

from visual_tutor.core.models import TutorAnswer, VisualExplanation


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""

    error: str = Field(..., description="Human-readable error message")


class ProviderStatus(BaseModel):
    """Availability of one image provider."""

    name: str
    model: str
    available: bool


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="healthy, or degraded when no image provider is available")
    version: str
    providers: list[ProviderStatus] = Field(default_factory=list)


__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "ProviderStatus",
    "TutorAnswer",
    "VisualExplanation",
]
