"""
Runtime configuration.

Settings are read from the environment once, by ``Settings.from_env()``,
and then passed explicitly to the provider chain, services and stores.
Nothing in the package reads credentials at import time.
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from visual_tutor.core.exceptions import ConfigurationError
from visual_tutor.llm.client import LLMConfig, LLMProvider, load_llm_config

DEFAULT_PROVIDER_ORDER = ("openai", "imagen", "gemini", "huggingface", "ai_horde")

# name -> (credential env var, default model, default base url)
IMAGE_PROVIDER_DEFAULTS: dict[str, tuple[str, str, str]] = {
    "openai": (
        "OPENAI_API_KEY",
        "gpt-image-1",
        "https://api.openai.com/v1/images/generations",
    ),
    "imagen": (
        "GEMINI_API_KEY",
        "imagen-3.0-generate-002",
        "https://generativelanguage.googleapis.com/v1beta",
    ),
    "gemini": (
        "GEMINI_API_KEY",
        "gemini-2.0-flash-preview-image-generation",
        "https://generativelanguage.googleapis.com/v1beta",
    ),
    "huggingface": (
        "HUGGINGFACE_API_KEY",
        "stabilityai/stable-diffusion-xl-base-1.0",
        "https://api-inference.huggingface.co/models",
    ),
    "ai_horde": (
        "AI_HORDE_API_KEY",
        "stable_diffusion",
        "https://aihorde.net/api/v2",
    ),
}


class ProviderSettings(BaseModel):
    """One entry in the image provider chain."""

    name: str
    api_key: str = ""
    model: str
    base_url: str
    timeout_seconds: float = 60.0
    max_attempts: int = Field(default=2, ge=1)
    retry_backoff_seconds: float = 1.0
    options: dict[str, Any] = Field(default_factory=dict)

    @property
    def available(self) -> bool:
        """Return True if a credential is configured for this provider."""
        return bool(self.api_key)


class StorageSettings(BaseModel):
    """Where artifacts and uploaded images live."""

    db_path: Path = Path("var/visual_tutor.db")
    blob_dir: Path = Path("var/blobs")
    public_base_url: str = "http://localhost:8000/blobs"
    supabase_url: str | None = None
    supabase_key: str | None = None
    bucket: str = "generated-images"
    table: str = "generated_images"

    @property
    def use_supabase(self) -> bool:
        """Return True if both Supabase URL and service key are set."""
        return bool(self.supabase_url and self.supabase_key)


class Settings(BaseModel):
    """Complete application configuration."""

    image_providers: list[ProviderSettings] = Field(default_factory=list)
    explanation_llm: LLMConfig = Field(default_factory=LLMConfig)
    tutor_llm: LLMConfig = Field(
        default_factory=lambda: LLMConfig(provider=LLMProvider.GEMINI, model="gemini-2.5-flash")
    )
    storage: StorageSettings = Field(default_factory=StorageSettings)
    retention_days: float = Field(default=2.0, gt=0)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """
        Load configuration from environment variables.

        Environment variables:
        - OPENAI_API_KEY, GEMINI_API_KEY, HUGGINGFACE_API_KEY, AI_HORDE_API_KEY,
          ANTHROPIC_API_KEY: provider credentials
        - VT_IMAGE_PROVIDERS: comma-separated provider order
        - VT_PROVIDER_TIMEOUT: per-attempt timeout in seconds
        - VT_EXPLANATION_PROVIDER / VT_EXPLANATION_MODEL
        - VT_TUTOR_PROVIDER / VT_TUTOR_MODEL
        - VT_RETENTION_DAYS, VT_LOG_LEVEL
        - VT_DB_PATH, VT_BLOB_DIR, VT_PUBLIC_BASE_URL
        - SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY, VT_STORAGE_BUCKET

        Raises:
            ConfigurationError: If a provider name is unknown or a number is invalid
        """
        env = os.environ if env is None else env

        timeout = _float_from_env(env, "VT_PROVIDER_TIMEOUT", 60.0)
        order = env.get("VT_IMAGE_PROVIDERS") or ",".join(DEFAULT_PROVIDER_ORDER)
        providers = [
            provider_settings_from_env(name.strip(), env, timeout_seconds=timeout)
            for name in order.split(",")
            if name.strip()
        ]

        storage = StorageSettings(
            db_path=Path(env.get("VT_DB_PATH", "var/visual_tutor.db")),
            blob_dir=Path(env.get("VT_BLOB_DIR", "var/blobs")),
            public_base_url=env.get("VT_PUBLIC_BASE_URL", "http://localhost:8000/blobs"),
            supabase_url=env.get("SUPABASE_URL") or None,
            supabase_key=env.get("SUPABASE_SERVICE_ROLE_KEY") or None,
            bucket=env.get("VT_STORAGE_BUCKET", "generated-images"),
        )

        return cls(
            image_providers=providers,
            explanation_llm=load_llm_config(
                env.get("VT_EXPLANATION_PROVIDER", "openai"),
                model=env.get("VT_EXPLANATION_MODEL") or None,
                env=env,
            ),
            tutor_llm=load_llm_config(
                env.get("VT_TUTOR_PROVIDER", "gemini"),
                model=env.get("VT_TUTOR_MODEL") or None,
                env=env,
            ),
            storage=storage,
            retention_days=_float_from_env(env, "VT_RETENTION_DAYS", 2.0),
            log_level=env.get("VT_LOG_LEVEL", "INFO").upper(),
        )


def provider_settings_from_env(
    name: str,
    env: Mapping[str, str],
    *,
    timeout_seconds: float = 60.0,
) -> ProviderSettings:
    """Build settings for one named image provider."""
    key = name.lower()
    if key not in IMAGE_PROVIDER_DEFAULTS:
        raise ConfigurationError(
            f"Unknown image provider: {name}",
            env_var="VT_IMAGE_PROVIDERS",
            details={"known": list(IMAGE_PROVIDER_DEFAULTS)},
        )

    env_var, model, base_url = IMAGE_PROVIDER_DEFAULTS[key]
    prefix = f"VT_{key.upper()}"
    return ProviderSettings(
        name=key,
        api_key=env.get(env_var, ""),
        model=env.get(f"{prefix}_MODEL", model),
        base_url=env.get(f"{prefix}_BASE_URL", base_url),
        timeout_seconds=timeout_seconds,
    )


def _float_from_env(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"Invalid number for {name}: {raw!r}", env_var=name)
