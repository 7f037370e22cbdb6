"""
LLM Client - unified interface for text-generation providers.

Supports OpenAI chat completions, Anthropic messages and Google Gemini
generateContent. Used for visual explanations and tutor answers.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx
from pydantic import BaseModel
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from visual_tutor.core.exceptions import (
    LLMAuthenticationError,
    LLMError,
    LLMParseError,
    LLMRateLimitError,
)

logger = logging.getLogger(__name__)


class LLMProvider(Enum):
    """Supported text-generation providers."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    CUSTOM = "custom"


@dataclass
class LLMRequest:
    """Request to an LLM."""

    prompt: str
    system_prompt: str | None = None
    max_tokens: int = 1500
    temperature: float = 0.7
    top_p: float | None = None
    top_k: int | None = None


@dataclass
class LLMResponse:
    """Response from an LLM."""

    content: str
    model: str
    provider: LLMProvider
    tokens_used: int | None = None
    finish_reason: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


class LLMConfig(BaseModel):
    """Configuration for LLM client."""

    provider: LLMProvider = LLMProvider.OPENAI
    api_key: str = ""
    base_url: str | None = None
    model: str = "gpt-4o-mini"
    timeout_seconds: float = 60.0

    @property
    def is_configured(self) -> bool:
        """Return True if a credential is present."""
        return bool(self.api_key)


API_KEY_ENV_VARS = {
    LLMProvider.OPENAI: "OPENAI_API_KEY",
    LLMProvider.ANTHROPIC: "ANTHROPIC_API_KEY",
    LLMProvider.GEMINI: "GEMINI_API_KEY",
    LLMProvider.CUSTOM: "VT_LLM_API_KEY",
}

DEFAULT_MODELS = {
    LLMProvider.OPENAI: "gpt-4o-mini",
    LLMProvider.ANTHROPIC: "claude-3-5-haiku-20241022",
    LLMProvider.GEMINI: "gemini-2.5-flash",
    LLMProvider.CUSTOM: "custom-model",
}


def load_llm_config(
    provider_name: str,
    model: str | None = None,
    base_url: str | None = None,
    env: Mapping[str, str] | None = None,
) -> LLMConfig:
    """
    Build an LLMConfig for a provider from the environment.

    Unknown provider names fall back to OpenAI.
    """
    env = os.environ if env is None else env
    try:
        provider = LLMProvider(provider_name.lower())
    except ValueError:
        logger.warning(f"Unknown LLM provider {provider_name!r}, using openai")
        provider = LLMProvider.OPENAI

    return LLMConfig(
        provider=provider,
        api_key=env.get(API_KEY_ENV_VARS[provider], ""),
        base_url=base_url,
        model=model or DEFAULT_MODELS[provider],
    )


class LLMClient:
    """
    Unified LLM client supporting multiple providers.

    Transient statuses (429, 502, 503, 504) are retried with exponential
    backoff; other HTTP failures map straight to LLM exceptions.
    """

    def __init__(self, config: LLMConfig, http_client: httpx.Client | None = None):
        """Initialize LLM client with configuration."""
        self._config = config
        self._client = http_client or httpx.Client(timeout=config.timeout_seconds)

    @property
    def provider(self) -> LLMProvider:
        """Get the LLM provider."""
        return self._config.provider

    @property
    def model(self) -> str:
        """Get the model name."""
        return self._config.model

    @property
    def is_configured(self) -> bool:
        """Return True if the client has a credential to call with."""
        return self._config.is_configured

    def complete(self, request: LLMRequest) -> LLMResponse:
        """
        Send a completion request to the LLM.

        Args:
            request: LLM request with prompt and parameters

        Returns:
            LLMResponse with content and metadata

        Raises:
            LLMAuthenticationError: If API key is missing or invalid
            LLMRateLimitError: If rate limit is exceeded after retries
            LLMParseError: If the response is missing the expected text
            LLMError: For other LLM-related errors
        """
        if not self._config.api_key:
            raise LLMAuthenticationError(
                f"API key not configured for {self._config.provider.value}. "
                f"Set {API_KEY_ENV_VARS[self._config.provider]} environment variable.",
                provider=self._config.provider.value,
            )

        try:
            return self._complete_with_retry(request)
        except httpx.HTTPStatusError as e:
            self._handle_http_error(e)
        except httpx.HTTPError as e:
            raise LLMError(
                f"HTTP error during LLM request: {e}",
                provider=self._config.provider.value,
                model=self._config.model,
            )
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise LLMParseError(
                f"Unexpected response shape from {self._config.provider.value}: {e}",
                provider=self._config.provider.value,
            )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type(httpx.HTTPStatusError),
        reraise=True,
    )
    def _complete_with_retry(self, request: LLMRequest) -> LLMResponse:
        """Execute completion, letting tenacity retry transient statuses."""
        try:
            if self._config.provider == LLMProvider.ANTHROPIC:
                return self._anthropic_complete(request)
            elif self._config.provider == LLMProvider.GEMINI:
                return self._gemini_complete(request)
            else:
                return self._openai_complete(request)  # Compatible API
        except httpx.HTTPStatusError as e:
            if e.response.status_code in (429, 502, 503, 504):
                raise
            self._handle_http_error(e)

    def _handle_http_error(self, error: httpx.HTTPStatusError) -> None:
        """Convert HTTP errors to appropriate LLM exceptions."""
        status_code = error.response.status_code
        provider = self._config.provider.value

        if status_code in (401, 403):
            raise LLMAuthenticationError(
                f"Authentication failed for {provider}",
                provider=provider,
            )
        elif status_code == 429:
            raise LLMRateLimitError(
                f"Rate limit exceeded for {provider}",
                provider=provider,
            )
        elif status_code >= 500:
            raise LLMError(
                f"Server error from {provider}: {status_code}",
                provider=provider,
                model=self._config.model,
                status_code=status_code,
            )
        else:
            raise LLMError(
                f"HTTP error from {provider}: {status_code}",
                provider=provider,
                model=self._config.model,
                status_code=status_code,
            )

    def _openai_complete(self, request: LLMRequest) -> LLMResponse:
        """Complete using OpenAI's API (or compatible)."""
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "content-type": "application/json",
        }

        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        body: dict[str, Any] = {
            "model": self._config.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": messages,
        }
        if request.top_p is not None:
            body["top_p"] = request.top_p

        url = self._config.base_url or "https://api.openai.com/v1/chat/completions"

        response = self._client.post(url, headers=headers, json=body)
        response.raise_for_status()
        data = response.json()

        return LLMResponse(
            content=data["choices"][0]["message"]["content"],
            model=data.get("model", self._config.model),
            provider=self._config.provider,
            tokens_used=data.get("usage", {}).get("total_tokens"),
            finish_reason=data["choices"][0].get("finish_reason"),
            raw_response=data,
        )

    def _anthropic_complete(self, request: LLMRequest) -> LLMResponse:
        """Complete using Anthropic's API."""
        headers = {
            "x-api-key": self._config.api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        }

        body: dict[str, Any] = {
            "model": self._config.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": [{"role": "user", "content": request.prompt}],
        }
        if request.system_prompt:
            body["system"] = request.system_prompt
        if request.top_p is not None:
            body["top_p"] = request.top_p
        if request.top_k is not None:
            body["top_k"] = request.top_k

        url = self._config.base_url or "https://api.anthropic.com/v1/messages"

        response = self._client.post(url, headers=headers, json=body)
        response.raise_for_status()
        data = response.json()

        return LLMResponse(
            content=data["content"][0]["text"],
            model=data.get("model", self._config.model),
            provider=LLMProvider.ANTHROPIC,
            tokens_used=data.get("usage", {}).get("input_tokens", 0)
            + data.get("usage", {}).get("output_tokens", 0),
            finish_reason=data.get("stop_reason"),
            raw_response=data,
        )

    def _gemini_complete(self, request: LLMRequest) -> LLMResponse:
        """Complete using Gemini's generateContent API."""
        headers = {
            "x-goog-api-key": self._config.api_key,
            "content-type": "application/json",
        }

        generation_config: dict[str, Any] = {
            "temperature": request.temperature,
            "maxOutputTokens": request.max_tokens,
        }
        if request.top_p is not None:
            generation_config["topP"] = request.top_p
        if request.top_k is not None:
            generation_config["topK"] = request.top_k

        body: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": request.prompt}]}],
            "generationConfig": generation_config,
        }
        if request.system_prompt:
            body["systemInstruction"] = {"parts": [{"text": request.system_prompt}]}

        base = self._config.base_url or "https://generativelanguage.googleapis.com/v1beta"
        url = f"{base}/models/{self._config.model}:generateContent"

        response = self._client.post(url, headers=headers, json=body)
        response.raise_for_status()
        data = response.json()

        candidate = data["candidates"][0]
        return LLMResponse(
            content=candidate["content"]["parts"][0]["text"],
            model=self._config.model,
            provider=LLMProvider.GEMINI,
            tokens_used=data.get("usageMetadata", {}).get("totalTokenCount"),
            finish_reason=candidate.get("finishReason"),
            raw_response=data,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, *args):
        """Context manager exit."""
        self.close()
