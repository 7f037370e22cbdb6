"""
Image provider interface.

Each external image-generation API is one ``ImageProvider`` subclass that
knows its own request shape and response parsing. The chain only ever
sees ``try_generate(prompt) -> ImageResult`` or a ``ProviderError``.
"""

import base64
import binascii
import logging
from abc import ABC, abstractmethod

import httpx
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from visual_tutor.config import ProviderSettings
from visual_tutor.core.exceptions import ProviderError, TransientProviderError
from visual_tutor.core.models import ImageResult, InlineImage

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = (429, 502, 503, 504)


class ImageProvider(ABC):
    """
    Base class for image-generation providers.

    Subclasses implement ``_generate``; transport errors, malformed
    payloads and transient-status retries are handled here so every
    provider fails the same way.
    """

    def __init__(self, settings: ProviderSettings, http_client: httpx.Client | None = None):
        self._settings = settings
        self._client = http_client or httpx.Client(timeout=settings.timeout_seconds)
        self._retrying = Retrying(
            stop=stop_after_attempt(settings.max_attempts),
            wait=wait_exponential(multiplier=settings.retry_backoff_seconds, max=8),
            retry=retry_if_exception_type(TransientProviderError),
            reraise=True,
        )

    @property
    def name(self) -> str:
        """Provider name as configured."""
        return self._settings.name

    @property
    def model(self) -> str:
        """Model used by this provider."""
        return self._settings.model

    @property
    def is_available(self) -> bool:
        """Return True if a credential is configured."""
        return self._settings.available

    def try_generate(self, prompt: str) -> ImageResult:
        """
        Generate one image for the prompt.

        Args:
            prompt: Image prompt, identical for every provider

        Returns:
            RemoteImage or InlineImage

        Raises:
            ProviderError: On any failure, including timeouts
        """
        if not self.is_available:
            raise ProviderError(f"{self.name} has no credential configured", provider=self.name)

        try:
            return self._retrying(self._generate, prompt)
        except ProviderError:
            raise
        except httpx.TimeoutException as e:
            raise ProviderError(
                f"{self.name} timed out after {self._settings.timeout_seconds}s: {e}",
                provider=self.name,
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"{self.name} request failed: {e}", provider=self.name)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ProviderError(f"{self.name} returned a malformed response: {e}", provider=self.name)

    def _post(self, url: str, **kwargs) -> httpx.Response:
        return self._client.post(url, timeout=self._settings.timeout_seconds, **kwargs)

    def _get(self, url: str, **kwargs) -> httpx.Response:
        return self._client.get(url, timeout=self._settings.timeout_seconds, **kwargs)

    @abstractmethod
    def _generate(self, prompt: str) -> ImageResult:
        """Issue the provider request and normalize its response."""

    def _check_status(self, response: httpx.Response) -> None:
        """Raise a ProviderError for any non-success status."""
        if response.is_success:
            return

        message = f"{self.name} API error {response.status_code}: {response.text[:200]}"
        if response.status_code in TRANSIENT_STATUS_CODES:
            logger.info(
                f"Transient error from {self.name}",
                extra={"provider": self.name, "status_code": response.status_code},
            )
            raise TransientProviderError(message, provider=self.name, status_code=response.status_code)
        raise ProviderError(message, provider=self.name, status_code=response.status_code)

    def _missing_image(self, detail: str) -> ProviderError:
        return ProviderError(f"{self.name} response has no image: {detail}", provider=self.name)

    def _decode_inline(self, payload: str, mime_type: str | None = None) -> InlineImage:
        """Decode a base64 image payload."""
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ProviderError(f"{self.name} returned invalid base64 image data: {e}", provider=self.name)
        if not data:
            raise self._missing_image("empty image data")
        return InlineImage(data=data, provider_name=self.name, mime_type=mime_type or "image/png")

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()
