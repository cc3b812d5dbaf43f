"""Bookmarks kept in memory or in the storage database."""

from __future__ import annotations

import base64
import json
import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from fortrust.database import Database, StorageError

log = logging.getLogger(__name__)

BOOKMARKS_TABLE = "bookmarks"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _optional_time(text: str | None) -> datetime | None:
    return datetime.fromisoformat(text) if text is not None else None


@dataclass
class Bookmark:
    id: str
    url: str
    title: str
    folder_id: str | None = None
    added_at: datetime = field(default_factory=_now)
    last_visited: datetime | None = None
    visit_count: int = 0
    icon_data: bytes | None = None
    description: str | None = None

    def matches(self, needle: str) -> bool:
        """Whether a lower-case ``needle`` is empty or found in the URL or title."""
        return not needle or needle in self.url.lower() or needle in self.title.lower()

    def to_bytes(self) -> bytes:
        record = {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "folder_id": self.folder_id,
            "added_at": self.added_at.isoformat(),
            "last_visited": self.last_visited.isoformat() if self.last_visited else None,
            "visit_count": self.visit_count,
            "icon_data": (
                base64.b64encode(self.icon_data).decode("ascii")
                if self.icon_data is not None
                else None
            ),
            "description": self.description,
        }
        return json.dumps(record).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> Bookmark:
        try:
            record = json.loads(data.decode("utf-8"))
            icon = record["icon_data"]
            return cls(
                id=record["id"],
                url=record["url"],
                title=record["title"],
                folder_id=record["folder_id"],
                added_at=datetime.fromisoformat(record["added_at"]),
                last_visited=_optional_time(record["last_visited"]),
                visit_count=int(record["visit_count"]),
                icon_data=base64.b64decode(icon) if icon is not None else None,
                description=record["description"],
            )
        except (ValueError, KeyError, TypeError) as error:
            raise StorageError("serialization", str(error)) from error


@dataclass
class BookmarkFolder:
    id: str
    name: str
    parent_id: str | None = None
    created_at: datetime = field(default_factory=_now)
    position: int = 0


class BookmarkStore:
    """In-memory bookmarks keyed by id."""

    def __init__(self) -> None:
        self._bookmarks: dict[str, Bookmark] = {}
        self.folders: dict[str, BookmarkFolder] = {}
        self._lock = threading.RLock()

    def add(self, bookmark: Bookmark) -> None:
        with self._lock:
            self._bookmarks[bookmark.id] = bookmark

    def remove(self, bookmark_id: str) -> Bookmark | None:
        with self._lock:
            return self._bookmarks.pop(bookmark_id, None)

    def get(self, bookmark_id: str) -> Bookmark | None:
        with self._lock:
            found = self._bookmarks.get(bookmark_id)
        return replace(found) if found is not None else None

    def search(self, query: str) -> list[Bookmark]:
        needle = query.lower()
        with self._lock:
            return [replace(b) for b in self._bookmarks.values() if b.matches(needle)]

    def all(self) -> list[Bookmark]:
        with self._lock:
            return [replace(b) for b in self._bookmarks.values()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._bookmarks)


class BookmarkDatabase:
    """Bookmarks cached in memory and persisted by URL when a database is given."""

    def __init__(self, db: Database | None = None) -> None:
        self._db = db
        self._cache: dict[str, Bookmark] = {}
        self._lock = threading.RLock()
        if db is None:
            return
        db.ensure_table(BOOKMARKS_TABLE)
        for _key, raw_value in db.items(BOOKMARKS_TABLE):
            try:
                bookmark = Bookmark.from_bytes(raw_value)
            except StorageError:
                continue
            self._cache[bookmark.id] = bookmark

    @classmethod
    def empty(cls) -> BookmarkDatabase:
        return cls()

    def store(self, bookmark: Bookmark) -> None:
        data = bookmark.to_bytes()
        with self._lock:
            self._cache[bookmark.id] = replace(bookmark)
        if self._db is not None:
            self._db.put(BOOKMARKS_TABLE, bookmark.url, data)
        log.debug("Stored bookmark: %s", bookmark.url)

    def delete(self, url: str) -> None:
        with self._lock:
            self._cache = {k: b for k, b in self._cache.items() if b.url != url}
        if self._db is not None:
            self._db.delete(BOOKMARKS_TABLE, url)

    def get_by_url(self, url: str) -> Bookmark | None:
        with self._lock:
            found = next((b for b in self._cache.values() if b.url == url), None)
        return replace(found) if found is not None else None

    def search(self, query: str) -> list[Bookmark]:
        needle = query.lower()
        with self._lock:
            return [replace(b) for b in self._cache.values() if b.matches(needle)]

    def all(self) -> list[Bookmark]:
        with self._lock:
            return [replace(b) for b in self._cache.values()]

    def count(self) -> int:
        with self._lock:
            return len(self._cache)

    def __len__(self) -> int:
        return self.count()

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
        if self._db is not None:
            self._db.drop_table(BOOKMARKS_TABLE)