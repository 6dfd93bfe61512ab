"""Key-value backends for persisted segblock state.

Values are JSON documents. The rule store only ever reads and writes one
key, but the backends are generic so tests can swap in memory storage.
"""

import json
from pathlib import Path
from typing import Any, Optional, Protocol

import duckdb

from segblock.errors import PersistenceError

SCHEMA_VERSION = 1


class KeyValueBackend(Protocol):
    """Minimal interface the rule store needs from its backing storage."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class MemoryBackend:
    """In-process backend. Values are JSON round-tripped like on disk."""

    def __init__(self, initial: Optional[dict[str, Any]] = None) -> None:
        self._data: dict[str, str] = {
            key: json.dumps(value) for key, value in (initial or {}).items()
        }

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)


class DuckDBBackend:
    """Single-file DuckDB key-value table."""

    def __init__(self, db_path: Path) -> None:
        """Initialize the backend.

        Args:
            db_path: Path to the DuckDB database file. Use ":memory:" for in-memory.
        """
        self.db_path = db_path
        self._conn: Optional[duckdb.DuckDBPyConnection] = None

    def connect(self) -> None:
        """Open database connection and ensure schema exists."""
        db_str = str(self.db_path) if self.db_path != Path(":memory:") else ":memory:"
        try:
            self._conn = duckdb.connect(db_str)
            self._ensure_schema()
        except duckdb.Error as e:
            raise PersistenceError(f"Cannot open rule database {db_str}: {e}") from e

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "DuckDBBackend":
        self.connect()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get the database connection, raising if not connected."""
        if self._conn is None:
            raise RuntimeError("DuckDBBackend not connected. Call connect() first.")
        return self._conn

    def _ensure_schema(self) -> None:
        """Create tables if they don't exist."""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        result = self.conn.execute(
            "SELECT MAX(version) FROM schema_version"
        ).fetchone()
        current_version = result[0] if result and result[0] else 0

        if current_version < SCHEMA_VERSION:
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key VARCHAR PRIMARY KEY,
                    value VARCHAR NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            self.conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                [SCHEMA_VERSION]
            )

    def get(self, key: str) -> Optional[Any]:
        try:
            result = self.conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", [key]
            ).fetchone()
        except duckdb.Error as e:
            raise PersistenceError(f"Failed to read {key!r}: {e}") from e

        if result is None:
            return None
        try:
            return json.loads(result[0])
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Stored value for {key!r} is not valid JSON: {e}") from e

    def set(self, key: str, value: Any) -> None:
        payload = json.dumps(value)
        try:
            self.conn.execute("""
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT (key) DO UPDATE SET
                    value = EXCLUDED.value,
                    updated_at = EXCLUDED.updated_at
            """, [key, payload])
        except duckdb.Error as e:
            raise PersistenceError(f"Failed to write {key!r}: {e}") from e
