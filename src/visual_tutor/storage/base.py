"""
Storage interfaces.

The datastore owns artifact rows; the blob store owns uploaded image
objects. The two are linked only by the stored reference string.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from visual_tutor.core.models import GeneratedArtifact

MIME_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def extension_for(mime_type: str) -> str:
    """Return the file extension for an image MIME type."""
    return MIME_EXTENSIONS.get(mime_type, ".png")


class ArtifactStore(ABC):
    """Datastore for GeneratedArtifact rows."""

    @abstractmethod
    def insert(self, artifact: GeneratedArtifact) -> GeneratedArtifact:
        """Insert one row and return it as stored. Raises StorageError."""

    @abstractmethod
    def get(self, artifact_id: str) -> GeneratedArtifact | None:
        """Return one row, or None if absent."""

    @abstractmethod
    def list_older_than(self, cutoff: datetime) -> list[GeneratedArtifact]:
        """Return rows with ``created_at`` strictly before the cutoff."""

    @abstractmethod
    def delete_older_than(self, cutoff: datetime) -> int:
        """Delete rows with ``created_at`` strictly before the cutoff in one batch."""

    def close(self) -> None:
        """Release any held connections."""


class BlobStore(ABC):
    """Object store for uploaded image bytes."""

    @abstractmethod
    def upload(self, data: bytes, content_type: str) -> str:
        """Store bytes under a fresh unique name and return a stable URL."""

    @abstractmethod
    def owns(self, reference: str) -> bool:
        """Return True if the reference points into this store."""

    @abstractmethod
    def delete(self, reference: str) -> bool:
        """Delete the referenced object; False if it was already absent."""

    def close(self) -> None:
        """Release any held connections."""
