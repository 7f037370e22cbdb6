"""
SQLite artifact store.

Keeps ``generated_images`` rows in a local SQLite database. Used for local
runs and tests; production deployments point at Supabase instead.
"""

import sqlite3
import threading
from datetime import datetime
from pathlib import Path

from visual_tutor.core.exceptions import StorageError
from visual_tutor.core.models import GeneratedArtifact, format_timestamp
from visual_tutor.storage.base import ArtifactStore


class SQLiteArtifactStore(ArtifactStore):
    """
    Artifact rows in SQLite.

    Thread-safe: each thread gets its own connection and writes are
    serialized with a lock.
    """

    def __init__(self, db_path: Path | None = None, table: str = "generated_images"):
        """
        Initialize the store.

        Args:
            db_path: Path to the SQLite file (default: var/visual_tutor.db)
            table: Table name
        """
        self._db_path = db_path or Path("var/visual_tutor.db")
        self._table = table
        self._lock = threading.RLock()
        self._local = threading.local()

        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local SQLite connection."""
        if not hasattr(self._local, "conn") or self._local.conn is None:
            self._local.conn = sqlite3.connect(
                str(self._db_path),
                check_same_thread=False,
            )
            self._local.conn.row_factory = sqlite3.Row
            self._local.conn.execute("PRAGMA journal_mode = WAL")
            self._local.conn.execute("PRAGMA synchronous = NORMAL")
        return self._local.conn

    def _init_schema(self) -> None:
        """Create the table and index if missing."""
        conn = self._get_connection()
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self._table} (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                subject TEXT NOT NULL,
                topic TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                image_url TEXT NOT NULL,
                explanation TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            f"CREATE INDEX IF NOT EXISTS idx_{self._table}_created_at ON {self._table}(created_at)"
        )
        conn.commit()

    @staticmethod
    def _row_to_artifact(row: sqlite3.Row) -> GeneratedArtifact:
        return GeneratedArtifact(
            id=row["id"],
            user_id=row["user_id"],
            subject=row["subject"],
            topic=row["topic"],
            description=row["description"],
            image_url=row["image_url"],
            explanation=row["explanation"],
            created_at=row["created_at"],
        )

    def insert(self, artifact: GeneratedArtifact) -> GeneratedArtifact:
        """Insert one artifact row."""
        with self._lock:
            try:
                conn = self._get_connection()
                conn.execute(
                    f"""
                    INSERT INTO {self._table} (
                        id, user_id, subject, topic, description,
                        image_url, explanation, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        artifact.id,
                        artifact.user_id,
                        artifact.subject,
                        artifact.topic,
                        artifact.description,
                        artifact.image_url,
                        artifact.explanation,
                        artifact.created_at,
                    ),
                )
                conn.commit()
            except sqlite3.Error as e:
                raise StorageError(
                    f"Failed to insert artifact: {e}",
                    backend="sqlite",
                    operation="insert",
                )
        return artifact

    def get(self, artifact_id: str) -> GeneratedArtifact | None:
        """Return one artifact by ID."""
        try:
            row = self._get_connection().execute(
                f"SELECT * FROM {self._table} WHERE id = ?",
                (artifact_id,),
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read artifact: {e}", backend="sqlite", operation="get")
        return self._row_to_artifact(row) if row else None

    def list_older_than(self, cutoff: datetime) -> list[GeneratedArtifact]:
        """Return artifacts created strictly before the cutoff."""
        try:
            rows = self._get_connection().execute(
                f"SELECT * FROM {self._table} WHERE created_at < ? ORDER BY created_at",
                (format_timestamp(cutoff),),
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(
                f"Failed to query expired artifacts: {e}",
                backend="sqlite",
                operation="list_older_than",
            )
        return [self._row_to_artifact(row) for row in rows]

    def delete_older_than(self, cutoff: datetime) -> int:
        """Delete artifacts created strictly before the cutoff."""
        with self._lock:
            try:
                conn = self._get_connection()
                cursor = conn.execute(
                    f"DELETE FROM {self._table} WHERE created_at < ?",
                    (format_timestamp(cutoff),),
                )
                conn.commit()
            except sqlite3.Error as e:
                raise StorageError(
                    f"Failed to delete expired artifacts: {e}",
                    backend="sqlite",
                    operation="delete_older_than",
                )
        return cursor.rowcount

    def count(self) -> int:
        """Return the number of stored artifacts."""
        row = self._get_connection().execute(f"SELECT COUNT(*) FROM {self._table}").fetchone()
        return int(row[0])

    def close(self) -> None:
        """Close this thread's connection."""
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None
