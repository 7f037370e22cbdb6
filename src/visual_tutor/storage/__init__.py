"""
Visual Tutor Storage Module.

Datastore and blob store interfaces with SQLite/filesystem and Supabase
implementations.
"""

from visual_tutor.config import StorageSettings
from visual_tutor.storage.base import ArtifactStore, BlobStore
from visual_tutor.storage.local import LocalBlobStore
from visual_tutor.storage.sqlite import SQLiteArtifactStore
from visual_tutor.storage.supabase import (
    SupabaseArtifactStore,
    SupabaseBlobStore,
    create_supabase_client,
)


def build_stores(settings: StorageSettings) -> tuple[ArtifactStore, BlobStore]:
    """Create the datastore and blob store described by the settings."""
    if settings.use_supabase:
        client = create_supabase_client(settings.supabase_url, settings.supabase_key)
        return (
            SupabaseArtifactStore(client, table=settings.table),
            SupabaseBlobStore(client, settings.supabase_url, bucket=settings.bucket),
        )
    return (
        SQLiteArtifactStore(settings.db_path, table=settings.table),
        LocalBlobStore(settings.blob_dir, settings.public_base_url),
    )


__all__ = [
    "ArtifactStore",
    "BlobStore",
    "LocalBlobStore",
    "SQLiteArtifactStore",
    "SupabaseArtifactStore",
    "SupabaseBlobStore",
    "build_stores",
]
