"""Tests for the request-handling services."""

import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from visual_tutor.core.exceptions import (
    AllProvidersFailedError,
    LLMError,
    StorageError,
    TutorResponseError,
    ValidationError,
)
from visual_tutor.core.models import ChainOutcome, Explanation, InlineImage, RemoteImage
from visual_tutor.explanation import ExplanationGenerator
from visual_tutor.llm.client import LLMClient, LLMProvider, LLMResponse
from visual_tutor.persistence import ArtifactPersister
from visual_tutor.prompting import compose_explanation_prompt, compose_image_prompt
from visual_tutor.providers.chain import ProviderChain
from visual_tutor.service import TutorService, VisualExplanationService
from visual_tutor.storage import LocalBlobStore, SQLiteArtifactStore
from visual_tutor.storage.base import ArtifactStore

PAYLOAD = {"subject": "Physics", "topic": "Newton's Laws", "user_id": "user-1"}


@pytest.fixture
def store(temp_dir: Path):
    store = SQLiteArtifactStore(temp_dir / "artifacts.db")
    yield store
    store.close()


@pytest.fixture
def blobs(temp_dir: Path) -> LocalBlobStore:
    return LocalBlobStore(temp_dir / "blobs", "http://testserver/blobs")


def _chain(image=None, error: Exception | None = None) -> MagicMock:
    chain = MagicMock(spec=ProviderChain)
    if error is not None:
        chain.generate.side_effect = error
    else:
        chain.generate.return_value = ChainOutcome(image=image, attempts=[])
    return chain


def _explainer(text: str = "Every action has an equal and opposite reaction.") -> MagicMock:
    explainer = MagicMock(spec=ExplanationGenerator)
    explainer.generate.return_value = Explanation(text=text, generated=True)
    return explainer


class TestVisualExplanationService:
    """Tests for VisualExplanationService.generate."""

    def test_inline_image_flow(self, store, blobs, png_bytes) -> None:
        """An inline image is uploaded and the artifact recorded."""
        chain = _chain(InlineImage(data=png_bytes, provider_name="openai"))
        service = VisualExplanationService(chain, _explainer(), ArtifactPersister(store, blobs))

        try:
            result = service.generate(PAYLOAD)
        finally:
            service.close()

        assert result.subject == "Physics"
        assert result.topic == "Newton's Laws"
        assert result.explanation == "Every action has an equal and opposite reaction."
        assert result.image.startswith("http://testserver/blobs/")
        row = store.get(result.id)
        assert row.image_url == result.image
        chain.generate.assert_called_once_with(compose_image_prompt("Physics", "Newton's Laws"))

    def test_explanation_prompt_passed(self, store) -> None:
        """The explanation uses the prompt composed for the request."""
        explainer = _explainer()
        chain = _chain(RemoteImage(url="https://img/1.png", provider_name="ai_horde"))
        service = VisualExplanationService(chain, explainer, ArtifactPersister(store))

        try:
            service.generate({**PAYLOAD, "description": "rockets"})
        finally:
            service.close()

        args = explainer.generate.call_args.args
        assert args == (
            "Physics",
            "Newton's Laws",
            "rockets",
            compose_explanation_prompt("Physics", "Newton's Laws", "rockets"),
        )

    def test_explanation_runs_on_worker(self, store) -> None:
        """The explanation is produced on the worker pool."""
        threads: list[str] = []

        def generate(*args) -> Explanation:
            threads.append(threading.current_thread().name)
            return Explanation(text="text", generated=True)

        explainer = MagicMock(spec=ExplanationGenerator)
        explainer.generate.side_effect = generate
        chain = _chain(RemoteImage(url="https://img/1.png", provider_name="openai"))
        service = VisualExplanationService(chain, explainer, ArtifactPersister(store))

        try:
            service.generate(PAYLOAD)
        finally:
            service.close()

        assert threads[0].startswith("explanation_worker")

    def test_fallback_explanation(self, store) -> None:
        """An unconfigured explainer yields the fallback sentence."""
        chain = _chain(RemoteImage(url="https://img/1.png", provider_name="openai"))
        service = VisualExplanationService(chain, ExplanationGenerator(None), ArtifactPersister(store))

        try:
            result = service.generate(PAYLOAD)
        finally:
            service.close()

        assert result.explanation == (
            "This image shows an educational illustration about Newton's Laws in the context of Physics."
        )

    def test_validation_before_providers(self, store) -> None:
        """Invalid requests never reach the chain."""
        chain = _chain(RemoteImage(url="https://img/1.png", provider_name="openai"))
        explainer = _explainer()
        service = VisualExplanationService(chain, explainer, ArtifactPersister(store))

        try:
            with pytest.raises(ValidationError):
                service.generate({"subject": "Physics"})
        finally:
            service.close()

        chain.generate.assert_not_called()
        explainer.generate.assert_not_called()

    def test_all_providers_failed(self) -> None:
        """Chain exhaustion propagates and nothing is persisted."""
        store = MagicMock(spec=ArtifactStore)
        chain = _chain(error=AllProvidersFailedError([]))
        service = VisualExplanationService(chain, _explainer(), ArtifactPersister(store))

        try:
            with pytest.raises(AllProvidersFailedError):
                service.generate(PAYLOAD)
        finally:
            service.close()

        store.insert.assert_not_called()

    def test_persistence_failure_still_returns(self) -> None:
        """A failed row write yields a response without an id."""
        store = MagicMock(spec=ArtifactStore)
        store.insert.side_effect = StorageError("db offline")
        chain = _chain(RemoteImage(url="https://img/1.png", provider_name="openai"))
        service = VisualExplanationService(chain, _explainer(), ArtifactPersister(store))

        try:
            result = service.generate(PAYLOAD)
        finally:
            service.close()

        assert result.id is None
        assert result.image == "https://img/1.png"


class TestTutorService:
    """Tests for TutorService.answer."""

    def _client(self, content: str = "", error: Exception | None = None) -> MagicMock:
        client = MagicMock(spec=LLMClient)
        client.is_configured = True
        if error is not None:
            client.complete.side_effect = error
        else:
            client.complete.return_value = LLMResponse(
                content=content, model="gemini-2.5-flash", provider=LLMProvider.GEMINI
            )
        return client

    def test_answer(self) -> None:
        """The model answer is returned with the question echoed."""
        client = self._client("A mole is Avogadro's number of particles.")

        answer = TutorService(client).answer({"subject": "Chemistry", "question": "What is a mole?"})

        assert answer.response == "A mole is Avogadro's number of particles."
        assert answer.subject == "Chemistry"
        assert answer.question == "What is a mole?"
        request = client.complete.call_args.args[0]
        assert request.max_tokens == 1024
        assert request.temperature == 0.7
        assert request.top_p == 0.95
        assert request.top_k == 40
        assert '"What is a mole?"' in request.prompt

    def test_not_configured(self) -> None:
        """Without a credential the request fails."""
        with pytest.raises(TutorResponseError, match="not configured"):
            TutorService(None).answer({"subject": "Chemistry", "question": "Why?"})

    def test_llm_failure(self) -> None:
        """Provider errors become TutorResponseError."""
        service = TutorService(self._client(error=LLMError("server error")))

        with pytest.raises(TutorResponseError, match="Failed to generate AI response"):
            service.answer({"subject": "Chemistry", "question": "Why?"})

    def test_missing_question(self) -> None:
        """Validation happens before any call."""
        client = self._client("unused")

        with pytest.raises(ValidationError):
            TutorService(client).answer({"subject": "Chemistry"})
        client.complete.assert_not_called()
