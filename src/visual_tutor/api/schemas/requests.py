"""
Pydantic request schemas for API endpoints.

Fields are optional at this layer so that missing values produce the
domain validation message rather than a framework error.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class VisualExplanationRequest(BaseModel):
    """Body of POST /api/v1/visual-explanations."""

    model_config = ConfigDict(extra="ignore")

    subject: str | None = Field(None, description="Subject area, e.g. Physics")
    topic: str | None = Field(None, description="Topic within the subject")
    description: str | None = Field(None, description="Optional extra detail for the image")
    user_id: str | None = Field(None, description="Requesting user")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump()


class TutorQuestionRequest(BaseModel):
    """Body of POST /api/v1/tutor-responses."""

    model_config = ConfigDict(extra="ignore")

    subject: str | None = Field(None, description="Subject the question is about")
    question: str | None = Field(None, description="The learner's question")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump()
