import datetime
import logging
import sqlite3
from contextlib import contextmanager
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

STORAGE_KEYS = {
    "exercises": "workout-tracker-exercises",
    "routines": "workout-tracker-routines",
    "sessions": "workout-tracker-sessions",
}


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS = {
        "kv_store": """CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT
            );""",
    }

    def __init__(self, db_path: str = "workout.db") -> None:
        self._db_path = db_path
        self._ensure_schema()

    @property
    def db_path(self) -> str:
        return self._db_path

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            for sql in self._TABLE_DEFINITIONS.values():
                conn.execute(sql)

    def vacuum(self) -> None:
        with self._connection() as conn:
            conn.execute("VACUUM;")


class BaseRepository(Database):
    """Base repository providing helper methods."""

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.lastrowid

    def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()

    def _delete_all(self, table: str) -> None:
        self.execute(f"DELETE FROM {table};")


class KeyValueRepository(BaseRepository):
    """String key-value store persisted in the ``kv_store`` table."""

    def get(self, key: str) -> Optional[str]:
        rows = self.fetch_all("SELECT value FROM kv_store WHERE key = ?;", (key,))
        return rows[0][0] if rows else None

    def set(self, key: str, value: str) -> None:
        self.execute(
            "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value, "
            "updated_at=excluded.updated_at;",
            (key, value, datetime.datetime.now(datetime.timezone.utc).isoformat()),
        )
        logger.debug("stored %d bytes under %s", len(value), key)

    def delete(self, key: str) -> None:
        self.execute("DELETE FROM kv_store WHERE key = ?;", (key,))

    def keys(self) -> List[str]:
        rows = self.fetch_all("SELECT key FROM kv_store ORDER BY key;")
        return [r[0] for r in rows]

    def delete_all(self) -> None:
        self._delete_all("kv_store")


class MemoryKeyValueStore:
    """Dictionary backed store with the same interface as ``KeyValueRepository``."""

    def __init__(self, data: Optional[dict] = None) -> None:
        self.data: dict[str, str] = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self.data)

    def delete_all(self) -> None:
        self.data.clear()
