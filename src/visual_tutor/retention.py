"""
Retention sweep for generated artifacts.

Deletes artifacts (blob object and row) older than the retention window.
Triggered by an external scheduler through the API or the CLI; a run is
never retried internally, the next scheduled run picks up stragglers.
"""

import logging
from datetime import datetime, timedelta, timezone

from visual_tutor.core.exceptions import StorageError
from visual_tutor.core.models import SweepResult, format_timestamp
from visual_tutor.storage.base import ArtifactStore, BlobStore

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = timedelta(days=2)


class RetentionSweeper:
    """
    Removes expired artifacts.

    An artifact expires when ``created_at < now - retention``. Blob
    deletion failures are logged per item and do not stop the sweep; the
    rows are removed in one batch with the same cutoff.
    """

    def __init__(
        self,
        store: ArtifactStore,
        blob_store: BlobStore | None = None,
        retention: timedelta = DEFAULT_RETENTION,
    ):
        self._store = store
        self._blob_store = blob_store
        self._retention = retention

    @property
    def retention(self) -> timedelta:
        """The retention window."""
        return self._retention

    def cutoff(self, now: datetime | None = None) -> datetime:
        """Return the creation time before which artifacts are expired."""
        now = now or datetime.now(timezone.utc)
        return now - self._retention

    def sweep(self, now: datetime | None = None) -> SweepResult:
        """
        Run one sweep.

        Args:
            now: Reference time (default: current UTC time)

        Returns:
            SweepResult; ``success`` is False if rows could not be read or deleted
        """
        cutoff = self.cutoff(now)
        result = SweepResult(cutoff=format_timestamp(cutoff))

        try:
            expired = self._store.list_older_than(cutoff)
        except StorageError as e:
            logger.error(f"Error fetching expired artifacts: {e}")
            result.success = False
            result.errors.append(f"Fetch failed: {e}")
            return result

        result.matched_count = len(expired)

        if self._blob_store is not None:
            for artifact in expired:
                if not artifact.image_url or not self._blob_store.owns(artifact.image_url):
                    continue
                try:
                    if self._blob_store.delete(artifact.image_url):
                        result.blobs_deleted += 1
                    else:
                        logger.debug(f"Blob already absent for artifact {artifact.id}")
                except StorageError as e:
                    logger.warning(f"Failed to delete blob for artifact {artifact.id}: {e}")
                    result.errors.append(f"Blob delete failed for {artifact.id}: {e}")

        try:
            result.deleted_count = self._store.delete_older_than(cutoff)
        except StorageError as e:
            logger.error(f"Error deleting expired artifacts: {e}")
            result.success = False
            result.errors.append(f"Row delete failed: {e}")
            return result

        logger.info(
            "Retention sweep finished",
            extra={
                "event": "retention_sweep",
                "cutoff": result.cutoff,
                "matched": result.matched_count,
                "deleted": result.deleted_count,
                "blobs_deleted": result.blobs_deleted,
            },
        )
        return result
