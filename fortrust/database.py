"""A small ordered key-value store with named tables, kept in SQLite."""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Union

KeyLike = Union[str, bytes, bytearray]

_ERROR_LABELS = {
    "database": "Database error",
    "serialization": "Serialization error",
    "not_found": "Entry not found",
    "io": "IO error",
    "invalid_data": "Invalid data",
}

_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS kv_tables (name TEXT PRIMARY KEY)",
    "CREATE TABLE IF NOT EXISTS kv_entries ("
    " tbl TEXT NOT NULL, key BLOB NOT NULL, value BLOB NOT NULL,"
    " PRIMARY KEY (tbl, key))",
)


class StorageError(Exception):
    """A storage failure; ``kind`` is one of database, serialization,
    not_found, io or invalid_data."""

    def __init__(self, kind: str, detail: str) -> None:
        if kind not in _ERROR_LABELS:
            raise ValueError(f"unknown storage error kind: {kind!r}")
        self.kind = kind
        self.detail = detail
        super().__init__(f"{_ERROR_LABELS[kind]}: {detail}")


def _key_bytes(key: KeyLike) -> bytes:
    if isinstance(key, str):
        return key.encode("utf-8")
    if isinstance(key, (bytes, bytearray)):
        return bytes(key)
    raise TypeError(f"keys must be str or bytes, not {type(key).__name__}")


def _value_bytes(value: bytes | bytearray) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    raise TypeError(f"values must be bytes, not {type(value).__name__}")


class Database:
    """Named tables of byte keys and byte values, iterated in key order.

    Each call runs in its own transaction. An empty path or ``":memory:"``
    opens a database that lives only in memory.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection
        self._lock = threading.RLock()

    @classmethod
    def open(cls, path: str | Path) -> Database:
        target = str(path)
        if target in ("", ":memory:"):
            target = ":memory:"
        try:
            connection = sqlite3.connect(target, check_same_thread=False)
            with connection:
                for statement in _SCHEMA:
                    connection.execute(statement)
        except sqlite3.Error as error:
            raise StorageError("database", str(error)) from error
        return cls(connection)

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                with self._conn:
                    yield self._conn
            except sqlite3.Error as error:
                raise StorageError("database", str(error)) from error

    @staticmethod
    def _has_table(conn: sqlite3.Connection, table: str) -> bool:
        row = conn.execute("SELECT 1 FROM kv_tables WHERE name = ?", (table,)).fetchone()
        return row is not None

    def _require_table(self, conn: sqlite3.Connection, table: str) -> None:
        if not self._has_table(conn, table):
            raise StorageError("database", f"table {table!r} does not exist")

    def ensure_table(self, table: str) -> None:
        """Create ``table`` if it does not exist yet."""
        with self._transaction() as conn:
            conn.execute("INSERT OR IGNORE INTO kv_tables (name) VALUES (?)", (table,))

    def put(self, table: str, key: KeyLike, value: bytes | bytearray) -> None:
        """Store ``value`` under ``key``, creating the table when needed."""
        raw_key, raw_value = _key_bytes(key), _value_bytes(value)
        with self._transaction() as conn:
            conn.execute("INSERT OR IGNORE INTO kv_tables (name) VALUES (?)", (table,))
            conn.execute(
                "INSERT OR REPLACE INTO kv_entries (tbl, key, value) VALUES (?, ?, ?)",
                (table, raw_key, raw_value),
            )

    def get(self, table: str, key: KeyLike) -> bytes | None:
        """Return the value under ``key``, or None; the table must exist."""
        raw_key = _key_bytes(key)
        with self._transaction() as conn:
            self._require_table(conn, table)
            row = conn.execute(
                "SELECT value FROM kv_entries WHERE tbl = ? AND key = ?", (table, raw_key)
            ).fetchone()
        return bytes(row[0]) if row is not None else None

    def delete(self, table: str, key: KeyLike) -> bool:
        """Remove ``key``; return whether it was present."""
        raw_key = _key_bytes(key)
        with self._transaction() as conn:
            conn.execute("INSERT OR IGNORE INTO kv_tables (name) VALUES (?)", (table,))
            cursor = conn.execute(
                "DELETE FROM kv_entries WHERE tbl = ? AND key = ?", (table, raw_key)
            )
            return cursor.rowcount > 0

    def items(self, table: str) -> list[tuple[bytes, bytes]]:
        """All entries of ``table`` in ascending key order; the table must exist."""
        with self._transaction() as conn:
            self._require_table(conn, table)
            rows = conn.execute(
                "SELECT key, value FROM kv_entries WHERE tbl = ? ORDER BY key", (table,)
            ).fetchall()
        return [(bytes(key), bytes(value)) for key, value in rows]

    def drop_table(self, table: str) -> bool:
        """Delete ``table`` and its entries; return whether it existed."""
        with self._transaction() as conn:
            existed = self._has_table(conn, table)
            conn.execute("DELETE FROM kv_entries WHERE tbl = ?", (table,))
            conn.execute("DELETE FROM kv_tables WHERE name = ?", (table,))
        return existed

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()