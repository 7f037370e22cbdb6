"""Gemini multimodal provider (``:generateContent`` with image output)."""

from visual_tutor.core.models import ImageResult
from visual_tutor.providers.base import ImageProvider


class GeminiImageProvider(ImageProvider):
    """
    Multimodal generation that returns the image as an inline part.

    The response interleaves text and image parts; the first part carrying
    ``inlineData`` is used.
    """

    def _generate(self, prompt: str) -> ImageResult:
        url = f"{self._settings.base_url}/models/{self.model}:generateContent"
        response = self._post(
            url,
            headers={
                "x-goog-api-key": self._settings.api_key,
                "Content-Type": "application/json",
            },
            json={
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
            },
        )
        self._check_status(response)
        data = response.json()

        candidates = data.get("candidates") or []
        if not candidates:
            raise self._missing_image("no candidates")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        for part in parts:
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                mime_type = inline.get("mimeType") or inline.get("mime_type")
                return self._decode_inline(inline["data"], mime_type)
        raise self._missing_image("no inlineData part")
