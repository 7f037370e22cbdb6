"""Pytest configuration and fixtures."""

import base64
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Generator

import httpx
import pytest

from visual_tutor.config import IMAGE_PROVIDER_DEFAULTS, ProviderSettings, provider_settings_from_env
from visual_tutor.llm.client import API_KEY_ENV_VARS

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16 + b"test-image"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove provider credentials and VT_* settings inherited from the shell."""
    names = {env_var for env_var, _, _ in IMAGE_PROVIDER_DEFAULTS.values()}
    names.update(API_KEY_ENV_VARS.values())
    names.update({"SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"})
    for name in names:
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("VT_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def png_bytes() -> bytes:
    """Small payload standing in for a PNG image."""
    return PNG_BYTES


@pytest.fixture
def png_b64() -> str:
    """Base64 form of ``png_bytes``."""
    return base64.b64encode(PNG_BYTES).decode("ascii")


@pytest.fixture
def provider_settings() -> Callable[..., ProviderSettings]:
    """Factory for provider settings with a credential and no retry delay."""

    def _make(name: str, api_key: str = "test-key", **overrides) -> ProviderSettings:
        settings = provider_settings_from_env(name, {})
        return settings.model_copy(
            update={
                "api_key": api_key,
                "max_attempts": 1,
                "retry_backoff_seconds": 0.0,
                **overrides,
            }
        )

    return _make


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.Client]:
    """Factory for an httpx.Client whose requests go to a handler function."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(handler))

    return _make
