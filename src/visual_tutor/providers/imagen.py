"""Google Imagen provider (``:predict``)."""

from visual_tutor.core.models import ImageResult
from visual_tutor.providers.base import ImageProvider


class ImagenProvider(ImageProvider):
    """
    Synchronous text-to-image call returning base64 bytes.

    Reads ``predictions[0].bytesBase64Encoded``; the older
    ``images[0].bytesBase64Encoded`` shape is accepted as well.
    """

    def _generate(self, prompt: str) -> ImageResult:
        url = f"{self._settings.base_url}/models/{self.model}:predict"
        response = self._post(
            url,
            headers={
                "x-goog-api-key": self._settings.api_key,
                "Content-Type": "application/json",
            },
            json={
                "instances": [{"prompt": prompt}],
                "parameters": {"sampleCount": 1, "aspectRatio": "1:1"},
            },
        )
        self._check_status(response)
        data = response.json()

        images = data.get("predictions") or data.get("images") or []
        for image in images:
            payload = image.get("bytesBase64Encoded")
            if payload:
                return self._decode_inline(payload, image.get("mimeType"))
        raise self._missing_image("no bytesBase64Encoded in predictions")
