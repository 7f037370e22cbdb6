"""
Supabase-backed stores.

Rows live in a Postgres table reached through the ``supabase`` client's
PostgREST builder; image objects live in a public Storage bucket. Both
stores share one client created with the service-role key.
"""

import logging
import uuid
from datetime import datetime
from typing import Any
from urllib.parse import unquote, urlparse

import httpx
import pydantic
from supabase import Client, PostgrestAPIError, StorageException, create_client

from visual_tutor.core.exceptions import StorageError
from visual_tutor.core.models import GeneratedArtifact, format_timestamp
from visual_tutor.storage.base import ArtifactStore, BlobStore, extension_for

logger = logging.getLogger(__name__)

# Columns older rows may hold as NULL; read back as empty strings
NULLABLE_TEXT_COLUMNS = ("description", "explanation", "image_url")


def create_supabase_client(base_url: str, service_key: str) -> Client:
    """Create a Supabase client authenticated with the service-role key."""
    return create_client(base_url, service_key)


def _to_artifact(row: dict[str, Any]) -> GeneratedArtifact:
    """Build a GeneratedArtifact from a table row, tolerating NULL text columns."""
    values = dict(row)
    for column in NULLABLE_TEXT_COLUMNS:
        if values.get(column) is None:
            values[column] = ""
    try:
        return GeneratedArtifact(**values)
    except pydantic.ValidationError as e:
        raise StorageError(
            f"Malformed artifact row {values.get('id')}: {e.error_count()} invalid field(s)",
            backend="supabase",
            operation="read",
        )


class SupabaseArtifactStore(ArtifactStore):
    """Artifact rows in a Supabase Postgres table."""

    def __init__(self, client: Client, table: str = "generated_images"):
        self._client = client
        self._table = table

    def _execute(self, operation: str, query: Any) -> list[dict[str, Any]]:
        try:
            response = query.execute()
        except PostgrestAPIError as e:
            raise StorageError(
                f"Supabase {operation} failed: {e.message}",
                backend="supabase",
                operation=operation,
                details={"code": e.code},
            )
        except httpx.HTTPError as e:
            raise StorageError(f"Supabase {operation} failed: {e}", backend="supabase", operation=operation)
        return response.data or []

    def insert(self, artifact: GeneratedArtifact) -> GeneratedArtifact:
        """Insert one row and return the stored representation."""
        rows = self._execute("insert", self._client.table(self._table).insert(artifact.model_dump()))
        if rows:
            return _to_artifact({**artifact.model_dump(), **rows[0]})
        return artifact

    def get(self, artifact_id: str) -> GeneratedArtifact | None:
        """Return one row by ID."""
        rows = self._execute("get", self._client.table(self._table).select("*").eq("id", artifact_id))
        return _to_artifact(rows[0]) if rows else None

    def list_older_than(self, cutoff: datetime) -> list[GeneratedArtifact]:
        """Return rows created strictly before the cutoff."""
        rows = self._execute(
            "list_older_than",
            self._client.table(self._table).select("*").lt("created_at", format_timestamp(cutoff)),
        )
        return [_to_artifact(row) for row in rows]

    def delete_older_than(self, cutoff: datetime) -> int:
        """Delete rows created strictly before the cutoff; returns the row count."""
        rows = self._execute(
            "delete_older_than",
            self._client.table(self._table).delete().lt("created_at", format_timestamp(cutoff)),
        )
        return len(rows)


class SupabaseBlobStore(BlobStore):
    """Image objects in a public Supabase Storage bucket."""

    def __init__(self, client: Client, base_url: str, bucket: str = "generated-images"):
        parsed = urlparse(base_url)
        self._bucket = client.storage.from_(bucket)
        self._host = parsed.netloc
        self._public_path = f"{parsed.path.rstrip('/')}/storage/v1/object/public/{bucket}/"

    def upload(self, data: bytes, content_type: str) -> str:
        """Upload bytes under a fresh name and return the public URL."""
        name = f"{uuid.uuid4()}{extension_for(content_type)}"
        try:
            self._bucket.upload(name, data, {"content-type": content_type, "upsert": "false"})
        except (StorageException, httpx.HTTPError) as e:
            raise StorageError(f"Failed to upload image: {e}", backend="supabase", operation="upload")
        return self._bucket.get_public_url(name).rstrip("?")

    def _object_name(self, reference: str) -> str | None:
        parsed = urlparse(reference)
        if parsed.netloc != self._host or not parsed.path.startswith(self._public_path):
            return None
        name = unquote(parsed.path[len(self._public_path):])
        if not name or "/" in name:
            return None
        return name

    def owns(self, reference: str) -> bool:
        """Return True if the URL is a public URL in this bucket."""
        return self._object_name(reference) is not None

    def delete(self, reference: str) -> bool:
        """Remove the object; returns False if nothing was deleted."""
        name = self._object_name(reference)
        if name is None:
            return False
        try:
            removed = self._bucket.remove([name])
        except (StorageException, httpx.HTTPError) as e:
            raise StorageError(
                f"Failed to delete image: {e}",
                backend="supabase",
                operation="delete",
                reference=reference,
            )
        return bool(removed)
