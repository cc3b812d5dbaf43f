"""The browser's storage database: history, bookmarks, cookies and settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from fortrust.bookmarks import BookmarkDatabase
from fortrust.cookies import CookieDatabase
from fortrust.database import Database, StorageError
from fortrust.history import HistoryDatabase
from fortrust.settings import SettingsDatabase

log = logging.getLogger(__name__)

SCHEMA_VERSION = 1
SCHEMA_TABLE = "__schema__"


@dataclass
class StorageStats:
    history_count: int
    bookmark_count: int
    cookie_count: int


class StorageDatabase:
    """All persistent browser data in one database file."""

    def __init__(
        self,
        db: Database,
        history: HistoryDatabase,
        bookmarks: BookmarkDatabase,
        cookies: CookieDatabase,
        settings: SettingsDatabase,
    ) -> None:
        self.db = db
        self.history = history
        self.bookmarks = bookmarks
        self.cookies = cookies
        self.settings = settings

    @classmethod
    def open(cls, path: str | Path) -> StorageDatabase:
        """Open or create the database at ``path``; raises StorageError on failure."""
        log.info("Opening storage database at: %s", path)
        db = Database.open(path)
        try:
            _init_schema(db)
            storage = cls(
                db,
                HistoryDatabase(db),
                BookmarkDatabase(db),
                CookieDatabase(db),
                SettingsDatabase(db),
            )
        except StorageError:
            db.close()
            raise
        log.info("Storage database opened successfully")
        return storage

    @classmethod
    def open_or_default(cls, path: str | Path) -> StorageDatabase:
        """Open ``path``, falling back to in-memory stores that persist nothing."""
        try:
            return cls.open(path)
        except StorageError as error:
            log.warning("Failed to open storage database: %s, using in-memory fallback", error)
        return cls(
            Database.open(":memory:"),
            HistoryDatabase.empty(),
            BookmarkDatabase.empty(),
            CookieDatabase.empty(),
            SettingsDatabase.empty(),
        )

    def compact(self) -> None:
        log.debug("Storage database compact skipped (shared database)")

    def stats(self) -> StorageStats:
        return StorageStats(
            history_count=self.history.count(),
            bookmark_count=self.bookmarks.count(),
            cookie_count=len(self.cookies),
        )

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> StorageDatabase:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _init_schema(db: Database) -> None:
    db.ensure_table(SCHEMA_TABLE)
    if db.get(SCHEMA_TABLE, "version") is None:
        db.put(SCHEMA_TABLE, "version", SCHEMA_VERSION.to_bytes(4, "little"))
        created = datetime.now(timezone.utc).isoformat()
        db.put(SCHEMA_TABLE, "created_at", created.encode("utf-8"))