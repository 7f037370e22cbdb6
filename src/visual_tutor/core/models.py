"""
Core data models for the visual tutor.

Transient pipeline values are dataclasses; anything persisted or returned
over the API is a pydantic model.
"""

import base64
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from pydantic import BaseModel, Field

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


@dataclass(frozen=True)
class GenerationRequest:
    """A validated visual-explanation request."""

    subject: str
    topic: str
    requester_id: str
    description: str = ""


@dataclass(frozen=True)
class RemoteImage:
    """Image already hosted by the provider."""

    url: str
    provider_name: str

    is_inline = False


@dataclass(frozen=True)
class InlineImage:
    """Image bytes returned in the provider response; needs uploading."""

    data: bytes
    provider_name: str
    mime_type: str = "image/png"

    is_inline = True

    def to_data_uri(self) -> str:
        """Encode as a ``data:image/<mime>;base64,<payload>`` string."""
        payload = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{payload}"


ImageResult = RemoteImage | InlineImage


@dataclass
class ProviderAttempt:
    """Outcome of trying one provider. Never persisted."""

    provider_name: str
    success: bool
    error: str | None = None
    duration_ms: float | None = None


@dataclass
class ChainOutcome:
    """Image resolved by the provider chain plus every attempt made."""

    image: ImageResult
    attempts: list[ProviderAttempt] = field(default_factory=list)


@dataclass(frozen=True)
class Explanation:
    """Explanation text and whether a model actually wrote it."""

    text: str
    generated: bool


class GeneratedArtifact(BaseModel):
    """Persisted record combining a generated image with its explanation."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    subject: str
    topic: str
    description: str = ""
    image_url: str
    explanation: str
    created_at: str = Field(default_factory=lambda: format_timestamp())

    model_config = {"frozen": True}


class PersistOutcome(BaseModel):
    """
    Result of persisting an artifact.

    Persistence is best effort: failures are reported here instead of
    raised, and ``image_reference`` is always usable by the client.
    """

    image_reference: str
    artifact_id: str | None = None
    uploaded: bool = False
    upload_error: str | None = None
    store_error: str | None = None

    @property
    def stored(self) -> bool:
        """Return True if the metadata row was written."""
        return self.artifact_id is not None


class VisualExplanation(BaseModel):
    """Response body for a completed visual-explanation request."""

    id: str | None = None
    image: str
    explanation: str
    topic: str
    subject: str


class TutorAnswer(BaseModel):
    """Response body for a tutor question."""

    response: str
    subject: str
    question: str


class SweepResult(BaseModel):
    """Result of one retention sweep."""

    success: bool = Field(default=True, description="Whether the sweep completed")
    cutoff: str = Field(description="Rows created before this timestamp were swept")
    matched_count: int = Field(default=0, description="Rows older than the cutoff")
    deleted_count: int = Field(default=0, description="Rows removed from the datastore")
    blobs_deleted: int = Field(default=0, description="Blob objects removed")
    errors: list[str] = Field(default_factory=list, description="Errors encountered")


def format_timestamp(moment: datetime | None = None) -> str:
    """
    Format a moment as a fixed-width UTC timestamp.

    Fixed width keeps lexical order equal to chronological order, which
    the stores rely on for ``created_at`` comparisons.
    """
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Parse a timestamp written by ``format_timestamp`` (or plain ISO-8601)."""
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
