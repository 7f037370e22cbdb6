"""
Visual Tutor Image Providers.

Pluggable image-generation strategies behind one interface, and the
ordered chain that tries them.
"""

from collections.abc import Sequence

import httpx

from visual_tutor.config import ProviderSettings
from visual_tutor.core.exceptions import ConfigurationError
from visual_tutor.providers.base import ImageProvider
from visual_tutor.providers.chain import ProviderChain
from visual_tutor.providers.gemini import GeminiImageProvider
from visual_tutor.providers.horde import AIHordeProvider
from visual_tutor.providers.huggingface import HuggingFaceProvider
from visual_tutor.providers.imagen import ImagenProvider
from visual_tutor.providers.openai import OpenAIImageProvider

PROVIDER_CLASSES: dict[str, type[ImageProvider]] = {
    "openai": OpenAIImageProvider,
    "imagen": ImagenProvider,
    "gemini": GeminiImageProvider,
    "huggingface": HuggingFaceProvider,
    "ai_horde": AIHordeProvider,
}


def build_provider(settings: ProviderSettings, http_client: httpx.Client | None = None) -> ImageProvider:
    """Instantiate the provider class registered for ``settings.name``."""
    provider_class = PROVIDER_CLASSES.get(settings.name)
    if provider_class is None:
        raise ConfigurationError(
            f"Unknown image provider: {settings.name}",
            config_key="image_providers",
        )
    return provider_class(settings, http_client)


def build_provider_chain(
    settings: Sequence[ProviderSettings],
    http_client: httpx.Client | None = None,
) -> ProviderChain:
    """Build a ProviderChain in the configured order."""
    return ProviderChain([build_provider(entry, http_client) for entry in settings])


__all__ = [
    "AIHordeProvider",
    "GeminiImageProvider",
    "HuggingFaceProvider",
    "ImageProvider",
    "ImagenProvider",
    "OpenAIImageProvider",
    "PROVIDER_CLASSES",
    "ProviderChain",
    "build_provider",
    "build_provider_chain",
]
