"""SQLite-backed generation history with oldest-first eviction.

Every completed generation batch that produced at least one image becomes a
:class:`~thumbfast.core.models.HistoryEntry`.  The store keeps at most
``max_entries`` of them (50 by default).

Eviction Invariant
------------------
``add()`` runs eviction and insertion inside a single ``BEGIN IMMEDIATE``
transaction, and a per-instance lock serialises writers in this process.
The write lock SQLite takes at ``BEGIN IMMEDIATE`` also serialises writers in
other processes sharing the file.  A reader therefore never observes more
than ``max_entries`` rows, and a newly added entry is never evicted by a
concurrent ``add()``.

Degradation
-----------
History is a convenience.  Read paths log storage faults and return empty
results so that a page that merely displays history never fails.  Write
paths raise :class:`~thumbfast.core.errors.HistoryStoreError`; the
generation flow catches and logs it.
"""

import json
import logging
import sqlite3
import threading
from pathlib import Path

from thumbfast.core.errors import HistoryStoreError
from thumbfast.core.models import GeneratedImage, HistoryEntry, HistorySettings

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 50


class HistoryStore:
    """Durable, bounded, time-ordered collection of history entries."""

    def __init__(self, db_path: Path, max_entries: int = DEFAULT_MAX_ENTRIES):
        """Initialize the history database.

        Args:
            db_path: Path to SQLite database file
            max_entries: Maximum number of entries kept (must be >= 1)
        """
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")

        self.db_path = Path(db_path)
        self.max_entries = max_entries
        self._lock = threading.Lock()

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._initialize_db()
            logger.info(f"Initialized history database at {self.db_path}")
        except (sqlite3.Error, OSError) as e:
            logger.error(f"History database unavailable at {self.db_path}: {e}")

    def _connect(self) -> sqlite3.Connection:
        # Autocommit mode; transactions are opened explicitly where needed.
        return sqlite3.connect(self.db_path, isolation_level=None, timeout=10.0)

    def _initialize_db(self) -> None:
        """Create database schema if it doesn't exist."""
        conn = self._connect()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS generations (
                    id TEXT PRIMARY KEY,
                    timestamp INTEGER NOT NULL,
                    prompt TEXT NOT NULL,
                    settings TEXT NOT NULL,
                    images TEXT NOT NULL
                )
                """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_generations_timestamp
                ON generations(timestamp)
                """)
        finally:
            conn.close()

    @staticmethod
    def _row_to_entry(row: tuple) -> HistoryEntry:
        entry_id, timestamp, prompt, settings, images = row
        return HistoryEntry(
            id=entry_id,
            timestamp=int(timestamp),
            prompt=prompt,
            settings=HistorySettings.from_dict(json.loads(settings)),
            images=tuple(GeneratedImage.from_dict(img) for img in json.loads(images)),
        )

    def add(self, entry: HistoryEntry) -> None:
        """Insert *entry*, evicting the oldest entries first when full.

        When the store already holds ``max_entries`` or more entries, the
        oldest ``size - max_entries + 1`` are deleted so that the store holds
        exactly ``max_entries`` after the insert.  An entry with an existing
        id replaces it.

        Raises:
            HistoryStoreError: If the database cannot be written.
        """
        settings = json.dumps(entry.settings.to_dict())
        images = json.dumps([image.to_dict() for image in entry.images])

        with self._lock:
            try:
                conn = self._connect()
            except sqlite3.Error as e:
                raise HistoryStoreError(f"Cannot open history database: {e}") from e

            try:
                conn.execute("BEGIN IMMEDIATE")
                conn.execute("DELETE FROM generations WHERE id = ?", (entry.id,))
                (size,) = conn.execute("SELECT COUNT(*) FROM generations").fetchone()

                if size >= self.max_entries:
                    overflow = size - self.max_entries + 1
                    conn.execute(
                        """
                        DELETE FROM generations WHERE id IN (
                            SELECT id FROM generations
                            ORDER BY timestamp ASC, rowid ASC
                            LIMIT ?
                        )
                        """,
                        (overflow,),
                    )
                    logger.debug(f"Evicted {overflow} history entries")

                conn.execute(
                    """
                    INSERT INTO generations (id, timestamp, prompt, settings, images)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (entry.id, entry.timestamp, entry.prompt, settings, images),
                )
                conn.execute("COMMIT")
                logger.info(f"Added history entry {entry.id} ({len(entry.images)} images)")

            except sqlite3.Error as e:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise HistoryStoreError(f"Error adding history entry {entry.id}: {e}") from e
            finally:
                conn.close()

    def get_all(self) -> list[HistoryEntry]:
        """Get all entries.

        Returns:
            Entries sorted by timestamp, newest first.  Empty if the
            database is unavailable.
        """
        try:
            conn = self._connect()
            try:
                rows = conn.execute("""
                    SELECT id, timestamp, prompt, settings, images FROM generations
                    ORDER BY timestamp ASC, rowid ASC
                    """).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Error reading history: {e}")
            return []

        entries = []
        for row in rows:
            try:
                entries.append(self._row_to_entry(row))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping unreadable history entry {row[0]}: {e}")
        entries.reverse()
        return entries

    def get(self, entry_id: str) -> HistoryEntry | None:
        """Get a single entry by id, or None if absent or unreadable."""
        try:
            conn = self._connect()
            try:
                row = conn.execute(
                    """
                    SELECT id, timestamp, prompt, settings, images FROM generations
                    WHERE id = ?
                    """,
                    (entry_id,),
                ).fetchone()
            finally:
                conn.close()
            return self._row_to_entry(row) if row else None
        except (sqlite3.Error, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error reading history entry {entry_id}: {e}")
            return None

    def count(self) -> int:
        """Get the number of stored entries (0 if unavailable)."""
        try:
            conn = self._connect()
            try:
                (size,) = conn.execute("SELECT COUNT(*) FROM generations").fetchone()
            finally:
                conn.close()
            return size
        except sqlite3.Error as e:
            logger.error(f"Error counting history entries: {e}")
            return 0

    def remove(self, entry_id: str) -> bool:
        """Delete a single entry.  Removing an absent id is a no-op.

        Returns:
            True if an entry was deleted, False if it did not exist.

        Raises:
            HistoryStoreError: If the database cannot be written.
        """
        with self._lock:
            try:
                conn = self._connect()
                try:
                    cursor = conn.execute("DELETE FROM generations WHERE id = ?", (entry_id,))
                    was_deleted = cursor.rowcount > 0
                finally:
                    conn.close()
            except sqlite3.Error as e:
                raise HistoryStoreError(f"Error removing history entry {entry_id}: {e}") from e

        if was_deleted:
            logger.info(f"Removed history entry {entry_id}")
        else:
            logger.debug(f"History entry not found: {entry_id}")
        return was_deleted

    def clear(self) -> None:
        """Delete all entries.

        Raises:
            HistoryStoreError: If the database cannot be written.
        """
        with self._lock:
            try:
                conn = self._connect()
                try:
                    conn.execute("DELETE FROM generations")
                finally:
                    conn.close()
            except sqlite3.Error as e:
                raise HistoryStoreError(f"Error clearing history: {e}") from e
        logger.info("Cleared all history")
