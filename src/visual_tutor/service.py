"""
Request handling for visual explanations and tutor questions.

The visual-explanation flow is:

1. Validate the payload.
2. Compose the image and explanation prompts.
3. Run the provider chain; the explanation is written concurrently.
4. Persist the artifact (best effort).
5. Return image reference and explanation.

Only validation errors and total image-acquisition failure reach the
caller. Explanation and persistence problems degrade silently.
"""

import logging
import time
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from visual_tutor.config import Settings
from visual_tutor.core.exceptions import LLMError, TutorResponseError
from visual_tutor.core.models import TutorAnswer, VisualExplanation
from visual_tutor.core.validation import validate_generation_request, validate_tutor_question
from visual_tutor.explanation import ExplanationGenerator
from visual_tutor.llm.client import LLMClient, LLMRequest
from visual_tutor.persistence import ArtifactPersister
from visual_tutor.prompting import compose_prompts, compose_tutor_prompt
from visual_tutor.providers import build_provider_chain
from visual_tutor.providers.chain import ProviderChain
from visual_tutor.storage.base import ArtifactStore, BlobStore

logger = logging.getLogger(__name__)


class VisualExplanationService:
    """Produces an image plus explanation for one learner request."""

    def __init__(
        self,
        chain: ProviderChain,
        explainer: ExplanationGenerator,
        persister: ArtifactPersister,
        max_workers: int = 4,
    ):
        self._chain = chain
        self._explainer = explainer
        self._persister = persister
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="explanation_worker",
        )

    @property
    def chain(self) -> ProviderChain:
        """The image provider chain."""
        return self._chain

    def generate(self, payload: Mapping[str, Any]) -> VisualExplanation:
        """
        Handle one visual-explanation request.

        Args:
            payload: Raw request body

        Returns:
            VisualExplanation with the image reference and explanation text

        Raises:
            ValidationError: If subject, topic or user_id is missing
            AllProvidersFailedError: If no provider produced an image
        """
        request = validate_generation_request(payload)
        start_time = time.time()
        logger.info(
            f"Generating visual explanation for {request.topic} ({request.subject})",
            extra={"event": "generation_started", "user_id": request.requester_id},
        )

        prompts = compose_prompts(request.subject, request.topic, request.description)
        explanation_future = self._executor.submit(
            self._explainer.generate,
            request.subject,
            request.topic,
            request.description,
            prompts.explanation,
        )

        try:
            outcome = self._chain.generate(prompts.image_prompt)
        except Exception:
            explanation_future.cancel()
            raise

        explanation = explanation_future.result()
        persisted = self._persister.persist(request, outcome.image, explanation.text)

        logger.info(
            "Visual explanation ready",
            extra={
                "event": "generation_completed",
                "provider": outcome.image.provider_name,
                "artifact_id": persisted.artifact_id,
                "explanation_generated": explanation.generated,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
            },
        )

        return VisualExplanation(
            id=persisted.artifact_id,
            image=persisted.image_reference,
            explanation=explanation.text,
            topic=request.topic,
            subject=request.subject,
        )

    def close(self) -> None:
        """Stop the worker pool and release provider clients."""
        self._executor.shutdown(wait=True, cancel_futures=True)
        self._chain.close()
        self._explainer.close()


class TutorService:
    """Answers a single free-form question about a subject."""

    MAX_TOKENS = 1024
    TEMPERATURE = 0.7
    TOP_P = 0.95
    TOP_K = 40

    def __init__(self, client: LLMClient | None = None):
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None and self._client.is_configured

    def answer(self, payload: Mapping[str, Any]) -> TutorAnswer:
        """
        Answer a tutor question.

        Raises:
            ValidationError: If subject or question is missing
            TutorResponseError: If no text provider is configured or the call fails
        """
        subject, question = validate_tutor_question(payload)

        if not self.is_configured:
            raise TutorResponseError("Text generation provider not configured")

        try:
            response = self._client.complete(
                LLMRequest(
                    prompt=compose_tutor_prompt(subject, question),
                    max_tokens=self.MAX_TOKENS,
                    temperature=self.TEMPERATURE,
                    top_p=self.TOP_P,
                    top_k=self.TOP_K,
                )
            )
        except LLMError as e:
            logger.error(
                f"Tutor response failed: {e}",
                extra={"event": "tutor_failed", "provider": e.provider},
            )
            raise TutorResponseError("Failed to generate AI response") from e

        text = (response.content or "").strip()
        if not text:
            raise TutorResponseError("Failed to generate AI response")

        return TutorAnswer(response=text, subject=subject, question=question)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()


def build_visual_service(
    settings: Settings,
    store: ArtifactStore,
    blob_store: BlobStore | None = None,
) -> VisualExplanationService:
    """Wire the provider chain, explanation generator and persister from settings."""
    chain = build_provider_chain(settings.image_providers)
    explainer = ExplanationGenerator(LLMClient(settings.explanation_llm))
    return VisualExplanationService(chain, explainer, ArtifactPersister(store, blob_store))


def build_tutor_service(settings: Settings) -> TutorService:
    """Create the tutor service from settings."""
    return TutorService(LLMClient(settings.tutor_llm))
