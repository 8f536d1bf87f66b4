"""Database connection manager and key-value substrate on top of SQLite."""

import logging
import sqlite3
from pathlib import Path

from medchart import config

from .schema import SCHEMA

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the underlying storage cannot be read or written."""
    pass


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """Get a database connection with row factory enabled."""
    conn = sqlite3.connect(db_path or config.DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_database(db_path: Path | str | None = None) -> None:
    """Initialize the database with schema."""
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


class KeyValueStore:
    """Synchronous string -> string mapping persisted in the kv_store table.

    Every call opens its own connection and commits before returning, so each
    get/set/delete is one independent round trip with no transaction spanning
    calls.
    """

    def __init__(self, db_path: Path | str | None = None):
        self.db_path = db_path or config.DB_PATH

    def get(self, key: str) -> str | None:
        """Return the stored value for key, or None when absent."""
        try:
            conn = get_connection(self.db_path)
            try:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read {key!r}: {e}") from e
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        self._write(
            key,
            """
            INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            (key, value),
        )

    def delete(self, key: str) -> None:
        """Remove key if present."""
        self._write(key, "DELETE FROM kv_store WHERE key = ?", (key,))

    def keys(self, prefix: str = "") -> list[str]:
        """List stored keys starting with prefix, sorted."""
        try:
            conn = get_connection(self.db_path)
            try:
                rows = conn.execute(
                    "SELECT key FROM kv_store WHERE substr(key, 1, ?) = ? ORDER BY key",
                    (len(prefix), prefix),
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to list keys: {e}") from e
        return [row["key"] for row in rows]

    def _write(self, key: str, query: str, params: tuple) -> None:
        try:
            conn = get_connection(self.db_path)
            try:
                conn.execute(query, params)
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write {key!r}: {e}") from e
        logger.debug("Wrote key %s", key)
