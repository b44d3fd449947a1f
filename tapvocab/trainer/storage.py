"""
Key-value stores used by the session engine.

All stores share one contract (get / set / remove on string values):
- SqliteKeyValueStore: persistent, survives restarts (~/.tapvocab/storage.db)
- PrefixedKeyValueStore: a key namespace inside another store (the
  Streamlit app keeps per-tab reward counters under "tab:<id>:")
- MemoryKeyValueStore: in-process, backed by any mutable mapping
  (the app falls back to st.session_state when SQLite is unavailable)

Read and write failures surface as PersistenceError. Callers decide whether to
swallow them; the engine components all log and continue.
"""

import logging
import sqlite3
from collections.abc import MutableMapping
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

from tapvocab.errors import PersistenceError


logger = logging.getLogger(__name__)

DEFAULT_STORAGE_DIR = Path.home() / ".tapvocab"
DEFAULT_STORAGE_DB = DEFAULT_STORAGE_DIR / "storage.db"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class SqliteKeyValueStore:
    """
    Persistent key-value store in a SQLite database.

    Each call opens its own connection, so the store is safe to share
    between Streamlit reruns.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize store.

        Args:
            db_path: Path to storage.db (default: ~/.tapvocab/storage.db)
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_STORAGE_DB
        self._ensure_database()

    def _ensure_database(self):
        """Create database and table if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
            """)
            conn.commit()
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    def get(self, key: str) -> Optional[str]:
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
            return row["value"] if row else None
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not read {key!r}: {e}") from e
        finally:
            conn.close()

    def set(self, key: str, value: str) -> None:
        conn = self._get_connection()
        try:
            conn.execute(
                """INSERT INTO kv_store (key, value, updated_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                     value = excluded.value,
                     updated_at = excluded.updated_at""",
                (key, value, datetime.now().isoformat())
            )
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not write {key!r}: {e}") from e
        finally:
            conn.close()

    def remove(self, key: str) -> None:
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not remove {key!r}: {e}") from e
        finally:
            conn.close()


class MemoryKeyValueStore:
    """In-process store; discarded together with its backing mapping."""

    def __init__(self, data: Optional[MutableMapping] = None):
        self._data = data if data is not None else {}

    def get(self, key: str) -> Optional[str]:
        value = self._data.get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class PrefixedKeyValueStore:
    """View of another store where every key is prefixed with a namespace."""

    def __init__(self, store: KeyValueStore, prefix: str):
        if not prefix:
            raise ValueError("prefix must not be empty")
        self._store = store
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Optional[str]:
        return self._store.get(self._key(key))

    def set(self, key: str, value: str) -> None:
        self._store.set(self._key(key), value)

    def remove(self, key: str) -> None:
        self._store.remove(self._key(key))
