"""
Filesystem blob store.

Uploaded images are written to ``var/blobs/<uuid>.<ext>`` and addressed
by ``<public_base_url>/<uuid>.<ext>``. The API mounts the directory so the
URLs resolve.
"""

import logging
import uuid
from pathlib import Path

from visual_tutor.core.exceptions import StorageError
from visual_tutor.storage.base import BlobStore, extension_for

logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    """Image objects on the local filesystem."""

    def __init__(self, blob_dir: Path | None = None, public_base_url: str = "http://localhost:8000/blobs"):
        self._blob_dir = blob_dir or Path("var/blobs")
        self._public_base_url = public_base_url.rstrip("/")
        self._blob_dir.mkdir(parents=True, exist_ok=True)

    @property
    def blob_dir(self) -> Path:
        """Directory holding the objects."""
        return self._blob_dir

    def upload(self, data: bytes, content_type: str) -> str:
        """Write bytes under a fresh name and return the public URL."""
        name = f"{uuid.uuid4()}{extension_for(content_type)}"
        try:
            (self._blob_dir / name).write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to write blob: {e}", backend="local", operation="upload")
        return f"{self._public_base_url}/{name}"

    def _object_name(self, reference: str) -> str | None:
        prefix = f"{self._public_base_url}/"
        if not reference.startswith(prefix):
            return None
        name = reference[len(prefix):]
        if not name or "/" in name or name.startswith("."):
            return None
        return name

    def owns(self, reference: str) -> bool:
        """Return True if the URL points into this directory."""
        return self._object_name(reference) is not None

    def delete(self, reference: str) -> bool:
        """Remove the object; a missing file is not an error."""
        name = self._object_name(reference)
        if name is None:
            return False
        path = self._blob_dir / name
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(
                f"Failed to delete blob: {e}",
                backend="local",
                operation="delete",
                reference=reference,
            )
        return True
