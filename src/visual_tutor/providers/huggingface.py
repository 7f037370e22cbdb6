"""Hugging Face Inference API provider."""

from visual_tutor.core.models import ImageResult, InlineImage
from visual_tutor.providers.base import ImageProvider


class HuggingFaceProvider(ImageProvider):
    """
    Text-to-image inference endpoint that answers with raw image bytes.

    Anything other than an ``image/*`` body (the API reports errors and
    model loading as JSON) counts as a failure.
    """

    def _generate(self, prompt: str) -> ImageResult:
        url = f"{self._settings.base_url}/{self.model}"
        response = self._post(
            url,
            headers={
                "Authorization": f"Bearer {self._settings.api_key}",
                "Accept": "image/png",
            },
            json={"inputs": prompt},
        )
        self._check_status(response)

        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        if not content_type.startswith("image/"):
            raise self._missing_image(f"unexpected content type {content_type or 'none'}")
        if not response.content:
            raise self._missing_image("empty body")

        return InlineImage(data=response.content, provider_name=self.name, mime_type=content_type)
