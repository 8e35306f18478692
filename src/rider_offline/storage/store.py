"""Key-value persistence for the offline engine.

Values are opaque strings (the engine stores JSON). Each key carries a
revision counter that increases on every write, so callers can perform a
read-modify-write of a single key with compare_and_set().
"""

import sqlite3
from pathlib import Path
from typing import Iterable, Protocol

from rider_offline.errors import StorageError


class PersistentStore(Protocol):
    """Async key-value store holding string blobs."""

    async def get(self, key: str) -> str | None: ...

    async def get_with_revision(self, key: str) -> tuple[str | None, int]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def compare_and_set(self, key: str, value: str, expected_revision: int) -> bool: ...

    async def remove(self, key: str) -> None: ...

    async def multi_remove(self, keys: Iterable[str]) -> None: ...

    async def close(self) -> None: ...


class MemoryStore:
    """Process-local store, used for ephemeral sessions and tests."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._revisions: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self._values.get(key)

    async def get_with_revision(self, key: str) -> tuple[str | None, int]:
        return self._values.get(key), self._revisions.get(key, 0)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self._revisions[key] = self._revisions.get(key, 0) + 1

    async def compare_and_set(self, key: str, value: str, expected_revision: int) -> bool:
        if self._revisions.get(key, 0) != expected_revision:
            return False
        await self.set(key, value)
        return True

    async def remove(self, key: str) -> None:
        # Revision keeps counting so a stale compare_and_set still fails
        if self._values.pop(key, None) is not None:
            self._revisions[key] = self._revisions.get(key, 0) + 1

    async def multi_remove(self, keys: Iterable[str]) -> None:
        for key in keys:
            await self.remove(key)

    async def close(self) -> None:
        pass


class SQLiteStore:
    """SQLite-backed durable key-value store.

    Every key lives in one row of the ``kv_store`` table together with its
    revision. Writes are committed immediately, so the store survives
    process restarts.
    """

    def __init__(self, db_path: Path) -> None:
        """Open (or create) the store.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._create_table()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to open store at {db_path}: {e}") from e

    def _create_table(self) -> None:
        """Create the key-value table if it doesn't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT,
                revision INTEGER NOT NULL DEFAULT 0
            )
        """)
        self._conn.commit()

    def _read(self, key: str) -> tuple[str | None, int]:
        cursor = self._conn.execute(
            "SELECT value, revision FROM kv_store WHERE key = ?",
            (key,),
        )
        row = cursor.fetchone()
        if row is None:
            return None, 0
        return row["value"], row["revision"]

    async def get(self, key: str) -> str | None:
        value, _ = await self.get_with_revision(key)
        return value

    async def get_with_revision(self, key: str) -> tuple[str | None, int]:
        try:
            return self._read(key)
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    async def set(self, key: str, value: str) -> None:
        try:
            self._conn.execute(
                """
                INSERT INTO kv_store (key, value, revision) VALUES (?, ?, 1)
                ON CONFLICT(key) DO UPDATE
                SET value = excluded.value, revision = kv_store.revision + 1
                """,
                (key, value),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write {key}: {e}") from e

    async def compare_and_set(self, key: str, value: str, expected_revision: int) -> bool:
        """Write ``value`` only if the key is still at ``expected_revision``.

        Returns:
            True if the write happened, False on a revision mismatch
        """
        try:
            if expected_revision == 0:
                cursor = self._conn.execute(
                    "INSERT OR IGNORE INTO kv_store (key, value, revision) VALUES (?, ?, 1)",
                    (key, value),
                )
                if cursor.rowcount == 0:
                    # Row exists; it only matches revision 0 if never written
                    cursor = self._conn.execute(
                        """
                        UPDATE kv_store SET value = ?, revision = revision + 1
                        WHERE key = ? AND revision = 0
                        """,
                        (value, key),
                    )
            else:
                cursor = self._conn.execute(
                    """
                    UPDATE kv_store SET value = ?, revision = revision + 1
                    WHERE key = ? AND revision = ?
                    """,
                    (value, key, expected_revision),
                )
            self._conn.commit()
            return cursor.rowcount == 1
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write {key}: {e}") from e

    async def remove(self, key: str) -> None:
        await self.multi_remove([key])

    async def multi_remove(self, keys: Iterable[str]) -> None:
        """Clear several keys in one transaction.

        Rows are kept with a NULL value so that revisions keep increasing.
        """
        try:
            self._conn.executemany(
                """
                UPDATE kv_store SET value = NULL, revision = revision + 1
                WHERE key = ? AND value IS NOT NULL
                """,
                [(key,) for key in keys],
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to remove keys: {e}") from e

    async def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
