"""
Artifact persistence.

Turns a resolved image into a stable reference and records the artifact.
Durability is best effort: ``persist`` never raises, it reports failures
in the returned PersistOutcome so the caller can still answer the client.
"""

import logging

from visual_tutor.core.exceptions import StorageError
from visual_tutor.core.models import (
    GeneratedArtifact,
    GenerationRequest,
    ImageResult,
    InlineImage,
    PersistOutcome,
)
from visual_tutor.storage.base import ArtifactStore, BlobStore

logger = logging.getLogger(__name__)


class ArtifactPersister:
    """
    Uploads inline images and writes GeneratedArtifact rows.

    - Remote URLs are stored unmodified.
    - Inline bytes are uploaded to the blob store under a fresh name.
    - Without a blob store, or when the upload fails, the image is kept
      as a data URI so the response still carries it.
    """

    def __init__(self, store: ArtifactStore, blob_store: BlobStore | None = None):
        self._store = store
        self._blob_store = blob_store

    def resolve_reference(self, image: ImageResult) -> PersistOutcome:
        """Resolve the stable image reference without writing a row."""
        if not isinstance(image, InlineImage):
            return PersistOutcome(image_reference=image.url)

        if self._blob_store is None:
            logger.warning("No blob store configured; keeping inline image data")
            return PersistOutcome(image_reference=image.to_data_uri())

        try:
            url = self._blob_store.upload(image.data, image.mime_type)
        except StorageError as e:
            logger.error(
                f"Image upload failed: {e}",
                extra={"event": "upload_failed", "provider": image.provider_name},
            )
            return PersistOutcome(image_reference=image.to_data_uri(), upload_error=str(e))

        logger.info(
            "Uploaded generated image",
            extra={"event": "image_uploaded", "size_bytes": len(image.data), "url": url},
        )
        return PersistOutcome(image_reference=url, uploaded=True)

    def persist(
        self,
        request: GenerationRequest,
        image: ImageResult,
        explanation: str,
    ) -> PersistOutcome:
        """
        Store the image and write one artifact row.

        Args:
            request: Validated request the artifact belongs to
            image: Image resolved by the provider chain
            explanation: Explanation text (generated or fallback)

        Returns:
            PersistOutcome; ``artifact_id`` is None when the row write failed
        """
        outcome = self.resolve_reference(image)

        artifact = GeneratedArtifact(
            user_id=request.requester_id,
            subject=request.subject,
            topic=request.topic,
            description=request.description,
            image_url=outcome.image_reference,
            explanation=explanation,
        )

        try:
            stored = self._store.insert(artifact)
        except StorageError as e:
            logger.error(
                f"Error saving artifact: {e}",
                extra={"event": "artifact_save_failed", "user_id": request.requester_id},
            )
            return outcome.model_copy(update={"store_error": str(e)})

        logger.info(
            "Saved artifact",
            extra={"event": "artifact_saved", "artifact_id": stored.id, "user_id": stored.user_id},
        )
        return outcome.model_copy(update={"artifact_id": stored.id})
