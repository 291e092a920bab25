"""
Key-value storage for the store component.

Contract (every backend):
    write(key, value)   insert or replace, then flush before returning
    remove(key)         delete if present, then flush before returning
    read(key)           bytes, or None if absent
    flush()             make every completed write durable
    close()             release the handle; later calls raise StoreError

A store handle is opened once, passed to whatever needs it, and closed
explicitly. There is no process-wide instance.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, List, Optional, Union

from sealedlog.core.config import StoreConfig
from sealedlog.core.exceptions import StoreError

logger = logging.getLogger(__name__)

Key = Union[bytes, str]


def _key_bytes(key: Key) -> bytes:
    if isinstance(key, str):
        return key.encode("utf-8")
    if isinstance(key, (bytes, bytearray, memoryview)):
        return bytes(key)
    raise TypeError(f"key must be bytes or str, got {type(key).__name__}")


def _prefix_upper_bound(prefix: bytes) -> Optional[bytes]:
    """Smallest key greater than every key starting with prefix, or None."""
    trimmed = prefix.rstrip(b"\xff")
    if not trimmed:
        return None
    return trimmed[:-1] + bytes([trimmed[-1] + 1])


class KeyValueStore(ABC):
    """Abstract base for all durable key-value backends."""

    @abstractmethod
    def write(self, key: Key, value: bytes) -> None:
        pass

    @abstractmethod
    def remove(self, key: Key) -> None:
        pass

    @abstractmethod
    def read(self, key: Key) -> Optional[bytes]:
        pass

    @abstractmethod
    def keys(self, prefix: Key = b"") -> List[bytes]:
        pass

    @abstractmethod
    def flush(self) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    def read_text(self, key: Key) -> Optional[str]:
        """read() decoded as UTF-8; undecodable bytes are replaced."""
        value = self.read(key)
        if value is None:
            return None
        return value.decode("utf-8", errors="replace")

    def __enter__(self) -> "KeyValueStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class SQLiteStore(KeyValueStore):
    """SQLite-backed key-value store. One committed transaction per write."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path) if str(db_path) != ":memory:" else None
        self._conn: Optional[sqlite3.Connection] = None

        if self.db_path is not None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.db_path = self.db_path.resolve()
            target = str(self.db_path)
        else:
            target = ":memory:"

        try:
            self._conn = sqlite3.connect(target, isolation_level=None)
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA synchronous=FULL")
            self._create_schema()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to open store: {exc}", {"path": target}) from exc
        logger.info("opened store at %s", target)

    @classmethod
    def open(cls, db_path: Union[str, Path]) -> "SQLiteStore":
        return cls(db_path)

    @classmethod
    def from_config(cls, config: StoreConfig) -> "SQLiteStore":
        return cls(config.path)

    def _create_schema(self) -> None:
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS kv (
                key    BLOB PRIMARY KEY,
                value  BLOB NOT NULL
            )
        """)

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError("Store connection is closed")
        return self._conn

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def write(self, key: Key, value: bytes) -> None:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError(f"value must be bytes, got {type(value).__name__}")
        try:
            self.conn.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (_key_bytes(key), bytes(value)),
            )
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to write key: {exc}") from exc
        self.flush()

    def remove(self, key: Key) -> None:
        try:
            self.conn.execute("DELETE FROM kv WHERE key = ?", (_key_bytes(key),))
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to remove key: {exc}") from exc
        self.flush()

    def read(self, key: Key) -> Optional[bytes]:
        try:
            row = self.conn.execute(
                "SELECT value FROM kv WHERE key = ?", (_key_bytes(key),)
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to read key: {exc}") from exc
        return bytes(row[0]) if row is not None else None

    def keys(self, prefix: Key = b"") -> List[bytes]:
        prefix = _key_bytes(prefix)
        upper  = _prefix_upper_bound(prefix)
        try:
            if upper is None:
                rows = self.conn.execute(
                    "SELECT key FROM kv WHERE key >= ? ORDER BY key", (prefix,)
                ).fetchall()
            else:
                rows = self.conn.execute(
                    "SELECT key FROM kv WHERE key >= ? AND key < ? ORDER BY key",
                    (prefix, upper),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to list keys: {exc}") from exc
        return [bytes(r[0]) for r in rows]

    def flush(self) -> None:
        """
        Autocommit already committed each statement with synchronous=FULL.
        A WAL checkpoint moves the committed pages into the main file.
        """
        conn = self.conn
        if self.db_path is None:
            return
        try:
            conn.execute("PRAGMA wal_checkpoint(FULL)")
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to flush store: {exc}") from exc

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("closed store at %s", self.db_path or ":memory:")

    def __iter__(self) -> Iterator[bytes]:
        return iter(self.keys())


def open_store(uri: str) -> KeyValueStore:
    """
    Open a store from a URI.

        sqlite:///abs/path/store.db
        sqlite://relative/path.db
        memory://
    """
    if uri.startswith("sqlite://"):
        raw_path = uri[len("sqlite://"):]
        if not raw_path:
            raise ValueError("sqlite:// URI requires a path")
        return SQLiteStore(Path(raw_path))
    if uri == "memory://":
        return SQLiteStore(":memory:")
    raise ValueError(f"Unsupported store URI: {uri}")


__all__ = ["KeyValueStore", "SQLiteStore", "open_store"]
