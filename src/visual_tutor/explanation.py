"""
Explanation generation.

One text-generation call per request. The image is the primary
deliverable, so any failure here degrades to a fixed sentence.
"""

import logging

from visual_tutor.core.exceptions import LLMError
from visual_tutor.core.models import Explanation
from visual_tutor.llm.client import LLMClient, LLMRequest
from visual_tutor.prompting import (
    ExplanationPrompt,
    compose_explanation_prompt,
    fallback_explanation,
)

logger = logging.getLogger(__name__)

MAX_TOKENS = 1500
TEMPERATURE = 0.7


class ExplanationGenerator:
    """Writes structured explanations, falling back to a template sentence."""

    def __init__(self, client: LLMClient | None = None):
        self._client = client

    @property
    def is_configured(self) -> bool:
        """Return True if a client with a credential is available."""
        return self._client is not None and self._client.is_configured

    def generate(
        self,
        subject: str,
        topic: str,
        description: str = "",
        prompt: ExplanationPrompt | None = None,
    ) -> Explanation:
        """
        Produce an explanation for the topic.

        ``prompt`` may carry an already composed prompt; otherwise one is
        built from the subject, topic and description.

        Never raises: a missing credential, an LLM error or an empty
        answer all yield the fallback sentence with ``generated=False``.
        """
        fallback = Explanation(text=fallback_explanation(subject, topic), generated=False)

        if not self.is_configured:
            logger.info("Explanation provider not configured; using fallback text")
            return fallback

        prompt = prompt or compose_explanation_prompt(subject, topic, description)
        try:
            response = self._client.complete(
                LLMRequest(
                    prompt=prompt.user,
                    system_prompt=prompt.system,
                    max_tokens=MAX_TOKENS,
                    temperature=TEMPERATURE,
                )
            )
        except LLMError as e:
            logger.error(
                f"Failed to generate explanation: {e}",
                extra={"event": "explanation_failed", "provider": e.provider},
            )
            return fallback

        text = (response.content or "").strip()
        if not text:
            logger.error("Explanation provider returned empty content")
            return fallback
        return Explanation(text=text, generated=True)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
