"""
Visual Tutor Core Module.

Provides foundational types, validation and the exception hierarchy.
"""

__all__ = [
    "AllProvidersFailedError",
    "ChainOutcome",
    "ConfigurationError",
    "Explanation",
    "GeneratedArtifact",
    "GenerationRequest",
    "ImageResult",
    "InlineImage",
    "LLMAuthenticationError",
    "LLMError",
    "LLMParseError",
    "LLMRateLimitError",
    "PersistOutcome",
    "ProviderAttempt",
    "ProviderError",
    "RemoteImage",
    "StorageError",
    "SweepResult",
    "TransientProviderError",
    "TutorAnswer",
    "TutorResponseError",
    "ValidationError",
    "VisualExplanation",
    "VisualTutorError",
    "validate_generation_request",
]

from visual_tutor.core.exceptions import (
    AllProvidersFailedError,
    ConfigurationError,
    LLMAuthenticationError,
    LLMError,
    LLMParseError,
    LLMRateLimitError,
    ProviderError,
    StorageError,
    TransientProviderError,
    TutorResponseError,
    ValidationError,
    VisualTutorError,
)
from visual_tutor.core.models import (
    ChainOutcome,
    Explanation,
    GeneratedArtifact,
    GenerationRequest,
    ImageResult,
    InlineImage,
    PersistOutcome,
    ProviderAttempt,
    RemoteImage,
    SweepResult,
    TutorAnswer,
    VisualExplanation,
)
from visual_tutor.core.validation import validate_generation_request
