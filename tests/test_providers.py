"""Tests for individual image provider strategies."""

import json

import httpx
import pytest

from visual_tutor.core.exceptions import ProviderError
from visual_tutor.core.models import InlineImage, RemoteImage
from visual_tutor.providers import (
    AIHordeProvider,
    GeminiImageProvider,
    HuggingFaceProvider,
    ImagenProvider,
    OpenAIImageProvider,
    build_provider,
)

PROMPT = "Create an educational diagram or illustration about Gravity"


class TestOpenAIImageProvider:
    """Tests for the OpenAI Images provider."""

    def test_inline_image(self, provider_settings, mock_client, png_bytes, png_b64) -> None:
        """A b64_json answer becomes an InlineImage."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": [{"b64_json": png_b64}]})

        provider = OpenAIImageProvider(provider_settings("openai", api_key="sk-test"), mock_client(handler))
        image = provider.try_generate(PROMPT)

        assert isinstance(image, InlineImage)
        assert image.data == png_bytes
        assert image.provider_name == "openai"
        assert seen[0].headers["Authorization"] == "Bearer sk-test"
        body = json.loads(seen[0].content)
        assert body["prompt"] == PROMPT
        assert body["model"] == "gpt-image-1"
        assert body["quality"] == "high"

    def test_dalle_requests_b64(self, provider_settings, mock_client, png_b64) -> None:
        """Non gpt-image models ask for base64 output."""
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"data": [{"b64_json": png_b64}]})

        provider = OpenAIImageProvider(provider_settings("openai", model="dall-e-3"), mock_client(handler))
        provider.try_generate(PROMPT)

        assert seen[0]["response_format"] == "b64_json"

    def test_remote_url(self, provider_settings, mock_client) -> None:
        """A url answer becomes a RemoteImage."""
        handler = lambda request: httpx.Response(  # noqa: E731
            200, json={"data": [{"url": "https://cdn.example.com/img.png"}]}
        )
        provider = OpenAIImageProvider(provider_settings("openai"), mock_client(handler))

        image = provider.try_generate(PROMPT)

        assert isinstance(image, RemoteImage)
        assert image.url == "https://cdn.example.com/img.png"

    def test_empty_data(self, provider_settings, mock_client) -> None:
        """An empty data list is a failure."""
        handler = lambda request: httpx.Response(200, json={"data": []})  # noqa: E731
        provider = OpenAIImageProvider(provider_settings("openai"), mock_client(handler))

        with pytest.raises(ProviderError, match="no image"):
            provider.try_generate(PROMPT)

    def test_error_status(self, provider_settings, mock_client) -> None:
        """Non-success statuses are reported with the status code."""
        handler = lambda request: httpx.Response(400, json={"error": {"message": "bad prompt"}})  # noqa: E731
        provider = OpenAIImageProvider(provider_settings("openai"), mock_client(handler))

        with pytest.raises(ProviderError) as exc_info:
            provider.try_generate(PROMPT)
        assert exc_info.value.status_code == 400
        assert exc_info.value.provider == "openai"

    def test_invalid_base64(self, provider_settings, mock_client) -> None:
        """Undecodable base64 is a failure."""
        handler = lambda request: httpx.Response(200, json={"data": [{"b64_json": "not base64!!"}]})  # noqa: E731
        provider = OpenAIImageProvider(provider_settings("openai"), mock_client(handler))

        with pytest.raises(ProviderError, match="invalid base64"):
            provider.try_generate(PROMPT)

    def test_non_json_body(self, provider_settings, mock_client) -> None:
        """A non-JSON success body is a malformed response."""
        handler = lambda request: httpx.Response(200, text="<html>oops</html>")  # noqa: E731
        provider = OpenAIImageProvider(provider_settings("openai"), mock_client(handler))

        with pytest.raises(ProviderError, match="malformed"):
            provider.try_generate(PROMPT)

    def test_timeout(self, provider_settings, mock_client) -> None:
        """A timeout is an ordinary provider failure."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        provider = OpenAIImageProvider(provider_settings("openai"), mock_client(handler))

        with pytest.raises(ProviderError, match="timed out"):
            provider.try_generate(PROMPT)

    def test_transient_status_retried(self, provider_settings, mock_client, png_b64) -> None:
        """A 503 is retried within the provider before giving up."""
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            if calls["count"] == 1:
                return httpx.Response(503, text="overloaded")
            return httpx.Response(200, json={"data": [{"b64_json": png_b64}]})

        provider = OpenAIImageProvider(provider_settings("openai", max_attempts=2), mock_client(handler))

        assert isinstance(provider.try_generate(PROMPT), InlineImage)
        assert calls["count"] == 2

    def test_unavailable_raises_without_request(self, provider_settings, mock_client) -> None:
        """A provider without a credential never sends a request."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        provider = OpenAIImageProvider(provider_settings("openai", api_key=""), mock_client(handler))

        assert provider.is_available is False
        with pytest.raises(ProviderError, match="no credential"):
            provider.try_generate(PROMPT)


class TestImagenProvider:
    """Tests for the Imagen provider."""

    def test_prediction(self, provider_settings, mock_client, png_bytes, png_b64) -> None:
        """predictions[0].bytesBase64Encoded is decoded."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"predictions": [{"bytesBase64Encoded": png_b64, "mimeType": "image/png"}]},
            )

        provider = ImagenProvider(provider_settings("imagen", api_key="g-key"), mock_client(handler))
        image = provider.try_generate(PROMPT)

        assert isinstance(image, InlineImage)
        assert image.data == png_bytes
        assert seen[0].url.path.endswith("/models/imagen-3.0-generate-002:predict")
        assert seen[0].headers["x-goog-api-key"] == "g-key"
        assert json.loads(seen[0].content)["instances"] == [{"prompt": PROMPT}]

    def test_no_predictions(self, provider_settings, mock_client) -> None:
        """A response without image bytes is a failure."""
        handler = lambda request: httpx.Response(200, json={"predictions": []})  # noqa: E731
        provider = ImagenProvider(provider_settings("imagen"), mock_client(handler))

        with pytest.raises(ProviderError):
            provider.try_generate(PROMPT)


class TestGeminiImageProvider:
    """Tests for the Gemini multimodal provider."""

    def test_inline_part(self, provider_settings, mock_client, png_bytes, png_b64) -> None:
        """The first inlineData part is used, skipping text parts."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "candidates": [
                        {
                            "content": {
                                "parts": [
                                    {"text": "Here is your diagram"},
                                    {"inlineData": {"mimeType": "image/jpeg", "data": png_b64}},
                                ]
                            }
                        }
                    ]
                },
            )

        provider = GeminiImageProvider(provider_settings("gemini"), mock_client(handler))
        image = provider.try_generate(PROMPT)

        assert isinstance(image, InlineImage)
        assert image.data == png_bytes
        assert image.mime_type == "image/jpeg"
        body = json.loads(seen[0].content)
        assert body["generationConfig"]["responseModalities"] == ["TEXT", "IMAGE"]
        assert seen[0].url.path.endswith(":generateContent")

    def test_text_only(self, provider_settings, mock_client) -> None:
        """A text-only answer is a failure."""
        handler = lambda request: httpx.Response(  # noqa: E731
            200, json={"candidates": [{"content": {"parts": [{"text": "I cannot draw"}]}}]}
        )
        provider = GeminiImageProvider(provider_settings("gemini"), mock_client(handler))

        with pytest.raises(ProviderError, match="no inlineData"):
            provider.try_generate(PROMPT)

    def test_no_candidates(self, provider_settings, mock_client) -> None:
        """A response without candidates is a failure."""
        handler = lambda request: httpx.Response(200, json={})  # noqa: E731
        provider = GeminiImageProvider(provider_settings("gemini"), mock_client(handler))

        with pytest.raises(ProviderError):
            provider.try_generate(PROMPT)


class TestHuggingFaceProvider:
    """Tests for the Hugging Face provider."""

    def test_image_body(self, provider_settings, mock_client, png_bytes) -> None:
        """Raw image bytes become an InlineImage with the response MIME type."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=png_bytes, headers={"content-type": "image/png"})

        provider = HuggingFaceProvider(provider_settings("huggingface", api_key="hf-key"), mock_client(handler))
        image = provider.try_generate(PROMPT)

        assert isinstance(image, InlineImage)
        assert image.data == png_bytes
        assert image.mime_type == "image/png"
        assert seen[0].url.path.endswith("/stabilityai/stable-diffusion-xl-base-1.0")
        assert json.loads(seen[0].content) == {"inputs": PROMPT}

    def test_json_body_is_failure(self, provider_settings, mock_client) -> None:
        """A JSON answer (model loading, errors) is not an image."""
        handler = lambda request: httpx.Response(200, json={"error": "Model is loading"})  # noqa: E731
        provider = HuggingFaceProvider(provider_settings("huggingface"), mock_client(handler))

        with pytest.raises(ProviderError, match="unexpected content type"):
            provider.try_generate(PROMPT)


class TestAIHordeProvider:
    """Tests for the AI Horde provider."""

    def _provider(self, provider_settings, mock_client, handler, sleeps: list[float], max_polls: int = 5):
        settings = provider_settings(
            "ai_horde",
            options={"poll_interval_seconds": 0.5, "max_polls": max_polls},
        )
        return AIHordeProvider(settings, mock_client(handler), sleep=sleeps.append)

    def test_polls_until_done(self, provider_settings, mock_client) -> None:
        """The job is polled until it reports a generation."""
        statuses = iter(
            [
                {"done": False, "generations": []},
                {"done": True, "generations": [{"img": "https://r2.example.com/job.webp"}]},
            ]
        )
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.method == "POST":
                return httpx.Response(202, json={"id": "job-1"})
            return httpx.Response(200, json=next(statuses))

        sleeps: list[float] = []
        image = self._provider(provider_settings, mock_client, handler, sleeps).try_generate(PROMPT)

        assert isinstance(image, RemoteImage)
        assert image.url == "https://r2.example.com/job.webp"
        assert sleeps == [0.5]
        assert seen[0].url.path.endswith("/generate/async")
        assert seen[0].headers["apikey"] == "test-key"
        assert seen[1].url.path.endswith("/generate/status/job-1")

    def test_inline_generation(self, provider_settings, mock_client, png_bytes, png_b64) -> None:
        """A base64 img is decoded as webp."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(202, json={"id": "job-2"})
            return httpx.Response(200, json={"done": True, "generations": [{"img": png_b64}]})

        image = self._provider(provider_settings, mock_client, handler, []).try_generate(PROMPT)

        assert isinstance(image, InlineImage)
        assert image.data == png_bytes
        assert image.mime_type == "image/webp"

    def test_faulted(self, provider_settings, mock_client) -> None:
        """A faulted job is a failure."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(202, json={"id": "job-3"})
            return httpx.Response(200, json={"faulted": True})

        with pytest.raises(ProviderError, match="faulted"):
            self._provider(provider_settings, mock_client, handler, []).try_generate(PROMPT)

    def test_poll_budget_exhausted(self, provider_settings, mock_client) -> None:
        """A job that never finishes fails after max_polls."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(202, json={"id": "job-4"})
            return httpx.Response(200, json={"done": False})

        sleeps: list[float] = []
        provider = self._provider(provider_settings, mock_client, handler, sleeps, max_polls=3)

        with pytest.raises(ProviderError, match="did not finish after 3 polls"):
            provider.try_generate(PROMPT)
        assert len(sleeps) == 3

    def test_rate_limited_poll_continues(self, provider_settings, mock_client) -> None:
        """A 429 while polling waits and polls again."""
        responses = iter(
            [
                httpx.Response(429, text="slow down"),
                httpx.Response(200, json={"done": True, "generations": [{"img": "https://r2.example.com/a.webp"}]}),
            ]
        )

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(202, json={"id": "job-5"})
            return next(responses)

        sleeps: list[float] = []
        image = self._provider(provider_settings, mock_client, handler, sleeps).try_generate(PROMPT)

        assert isinstance(image, RemoteImage)
        assert sleeps == [0.5]

    def test_transient_poll_status_keeps_job(self, provider_settings, mock_client) -> None:
        """A 503 while polling polls the same job again instead of resubmitting."""
        responses = iter(
            [
                httpx.Response(503, text="maintenance"),
                httpx.Response(200, json={"done": True, "generations": [{"img": "https://r2.example.com/b.webp"}]}),
            ]
        )
        submits: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                submits.append(request)
                return httpx.Response(202, json={"id": "job-6"})
            return next(responses)

        settings = provider_settings(
            "ai_horde",
            max_attempts=2,
            options={"poll_interval_seconds": 0.5, "max_polls": 5},
        )
        sleeps: list[float] = []
        image = AIHordeProvider(settings, mock_client(handler), sleep=sleeps.append).try_generate(PROMPT)

        assert isinstance(image, RemoteImage)
        assert image.url == "https://r2.example.com/b.webp"
        assert len(submits) == 1
        assert sleeps == [0.5]

    def test_missing_job_id(self, provider_settings, mock_client) -> None:
        """A submit response without an id is a failure."""
        handler = lambda request: httpx.Response(202, json={"message": "queued"})  # noqa: E731

        with pytest.raises(ProviderError, match="no job id"):
            self._provider(provider_settings, mock_client, handler, []).try_generate(PROMPT)


class TestBuildProvider:
    """Tests for build_provider."""

    @pytest.mark.parametrize(
        "name, provider_class",
        [
            ("openai", OpenAIImageProvider),
            ("imagen", ImagenProvider),
            ("gemini", GeminiImageProvider),
            ("huggingface", HuggingFaceProvider),
            ("ai_horde", AIHordeProvider),
        ],
    )
    def test_registered_classes(self, provider_settings, name: str, provider_class) -> None:
        """Each configured name maps to its strategy class."""
        provider = build_provider(provider_settings(name))
        try:
            assert isinstance(provider, provider_class)
            assert provider.name == name
        finally:
            provider.close()
