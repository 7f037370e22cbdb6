"""OpenAI Images API provider."""

from typing import Any

from visual_tutor.core.models import ImageResult, RemoteImage
from visual_tutor.providers.base import ImageProvider


class OpenAIImageProvider(ImageProvider):
    """
    ``POST /v1/images/generations`` with bearer auth.

    gpt-image models always answer with ``b64_json``; DALL-E models are
    asked for ``b64_json`` explicitly. A ``url`` answer is accepted too.
    """

    def _generate(self, prompt: str) -> ImageResult:
        body: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "n": 1,
            "size": "1024x1024",
        }
        if self.model.startswith("gpt-image"):
            body["quality"] = "high"
        else:
            body["response_format"] = "b64_json"

        response = self._post(
            self._settings.base_url,
            headers={
                "Authorization": f"Bearer {self._settings.api_key}",
                "Content-Type": "application/json",
            },
            json=body,
        )
        self._check_status(response)

        items = response.json().get("data") or []
        if not items:
            raise self._missing_image("empty data list")

        first = items[0]
        if first.get("b64_json"):
            return self._decode_inline(first["b64_json"], "image/png")
        if first.get("url"):
            return RemoteImage(url=first["url"], provider_name=self.name)
        raise self._missing_image("neither b64_json nor url present")
