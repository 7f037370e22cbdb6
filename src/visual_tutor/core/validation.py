"""
Request validation for visual-explanation requests.

Runs before any provider call so a bad request has no side effects.
"""

from collections.abc import Mapping
from typing import Any

from visual_tutor.core.exceptions import ValidationError
from visual_tutor.core.models import GenerationRequest

REQUIRED_FIELDS = ("subject", "topic", "user_id")


def _clean(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        return str(value).strip()
    return value.strip()


def _verbatim(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def validate_generation_request(payload: Mapping[str, Any] | None) -> GenerationRequest:
    """
    Validate a raw request body and build a GenerationRequest.

    Args:
        payload: Decoded JSON body

    Returns:
        GenerationRequest with trimmed required fields; description is kept as sent,
        or "" when absent

    Raises:
        ValidationError: If subject, topic or user_id is missing or blank
    """
    if not isinstance(payload, Mapping):
        raise ValidationError(
            "Subject, topic, and user_id are required",
            fields=list(REQUIRED_FIELDS),
        )

    cleaned = {name: _clean(payload.get(name)) for name in REQUIRED_FIELDS}
    missing = [name for name in REQUIRED_FIELDS if not cleaned[name]]
    if missing:
        raise ValidationError(
            f"Subject, topic, and user_id are required (missing: {', '.join(missing)})",
            fields=missing,
        )

    return GenerationRequest(
        subject=cleaned["subject"],
        topic=cleaned["topic"],
        requester_id=cleaned["user_id"],
        description=_verbatim(payload.get("description")),
    )


def validate_tutor_question(payload: Mapping[str, Any] | None) -> tuple[str, str]:
    """Return ``(subject, question)`` or raise ValidationError."""
    if not isinstance(payload, Mapping):
        raise ValidationError("Subject and question are required", fields=["subject", "question"])

    subject = _clean(payload.get("subject"))
    question = _clean(payload.get("question"))
    missing = [name for name, value in (("subject", subject), ("question", question)) if not value]
    if missing:
        raise ValidationError("Subject and question are required", fields=missing)
    return subject, question
