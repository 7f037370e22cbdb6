"""
Provider chain execution.

Tries image providers strictly in order and stops at the first one that
returns an image. Attempts are sequential: every call is billed, so no
provider is tried speculatively.
"""

import logging
import time
from collections.abc import Sequence

from visual_tutor.core.exceptions import (
    AllProvidersFailedError,
    ProviderError,
    format_exception,
)
from visual_tutor.core.models import ChainOutcome, ProviderAttempt
from visual_tutor.providers.base import ImageProvider

logger = logging.getLogger(__name__)


class ProviderChain:
    """
    Ordered list of image providers with first-success-wins semantics.

    Providers without a credential are skipped without counting as an
    attempt. A failing provider never aborts the chain; only running out
    of providers does.
    """

    def __init__(self, providers: Sequence[ImageProvider]):
        """Initialize the chain with providers in priority order."""
        self._providers = list(providers)

    @property
    def providers(self) -> list[ImageProvider]:
        """All configured providers, in order."""
        return list(self._providers)

    @property
    def available_providers(self) -> list[ImageProvider]:
        """Providers that have a credential configured."""
        return [p for p in self._providers if p.is_available]

    def generate(self, prompt: str) -> ChainOutcome:
        """
        Resolve one image for the prompt.

        Args:
            prompt: Image prompt, passed unchanged to every provider

        Returns:
            ChainOutcome with the image and every attempt made

        Raises:
            AllProvidersFailedError: If every available provider failed or none are available
        """
        attempts: list[ProviderAttempt] = []

        for provider in self._providers:
            if not provider.is_available:
                logger.debug(f"Skipping {provider.name}: no credential configured")
                continue

            logger.info(f"Attempting image generation with {provider.name}")
            start_time = time.time()
            try:
                image = provider.try_generate(prompt)
            except ProviderError as e:
                attempts.append(self._failed(provider, e, start_time))
                continue
            except Exception as e:
                logger.exception(f"Unexpected error from {provider.name}")
                attempts.append(self._failed(provider, e, start_time))
                continue

            duration_ms = (time.time() - start_time) * 1000
            attempts.append(
                ProviderAttempt(
                    provider_name=provider.name,
                    success=True,
                    duration_ms=round(duration_ms, 2),
                )
            )
            logger.info(
                f"Generated image with {provider.name}",
                extra={
                    "event": "provider_succeeded",
                    "provider": provider.name,
                    "inline": image.is_inline,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            return ChainOutcome(image=image, attempts=attempts)

        logger.error(
            "All image providers failed",
            extra={
                "event": "providers_exhausted",
                "attempts": [f"{a.provider_name}: {a.error}" for a in attempts],
            },
        )
        raise AllProvidersFailedError(attempts)

    @staticmethod
    def _failed(provider: ImageProvider, error: Exception, start_time: float) -> ProviderAttempt:
        duration_ms = (time.time() - start_time) * 1000
        message = format_exception(error)
        logger.warning(
            f"{provider.name} failed: {message}",
            extra={
                "event": "provider_failed",
                "provider": provider.name,
                "error": str(error),
                "duration_ms": round(duration_ms, 2),
            },
        )
        return ProviderAttempt(
            provider_name=provider.name,
            success=False,
            error=str(error),
            duration_ms=round(duration_ms, 2),
        )

    def close(self) -> None:
        """Close every provider's HTTP client."""
        for provider in self._providers:
            provider.close()
