"""Browsing history kept in memory or in the storage database."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from fortrust.database import Database, StorageError

log = logging.getLogger(__name__)

HISTORY_TABLE = "history"
HISTORY_INDEX_TABLE = "history_by_time"

_U32_MAX = 2**32 - 1
_U64_MASK = 2**64 - 1


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class HistoryEntry:
    url: str
    title: str
    visit_time: datetime
    visit_count: int = 1
    typed_count: int = 0
    is_bookmarked: bool = False

    def to_bytes(self) -> bytes:
        record = {
            "url": self.url,
            "title": self.title,
            "visit_time": self.visit_time.isoformat(),
            "visit_count": self.visit_count,
            "typed_count": self.typed_count,
            "is_bookmarked": self.is_bookmarked,
        }
        return json.dumps(record).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> HistoryEntry:
        try:
            record = json.loads(data.decode("utf-8"))
            return cls(
                url=record["url"],
                title=record["title"],
                visit_time=datetime.fromisoformat(record["visit_time"]),
                visit_count=int(record["visit_count"]),
                typed_count=int(record["typed_count"]),
                is_bookmarked=bool(record["is_bookmarked"]),
            )
        except (ValueError, KeyError, TypeError) as error:
            raise StorageError("serialization", str(error)) from error


@dataclass(frozen=True)
class HistoryQuery:
    """Text to look for, a page of results, and an optional visit-time range."""

    query: str = ""
    limit: int = 100
    offset: int = 0
    from_date: datetime | None = None
    to_date: datetime | None = None

    def with_limit(self, limit: int) -> HistoryQuery:
        return replace(self, limit=limit)

    def with_date_range(self, start: datetime, end: datetime) -> HistoryQuery:
        return replace(self, from_date=start, to_date=end)

    def in_range(self, when: datetime) -> bool:
        if self.from_date is not None and when < self.from_date:
            return False
        if self.to_date is not None and when > self.to_date:
            return False
        return True

    def page(self, entries: list[HistoryEntry]) -> list[HistoryEntry]:
        """Sort newest first and cut out the requested page."""
        ordered = sorted(entries, key=lambda entry: entry.visit_time, reverse=True)
        return ordered[self.offset : self.offset + self.limit]


class HistoryStore:
    """In-memory history, one entry per URL."""

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []

    def add_visit(self, url: str, title: str) -> None:
        now = _now()
        existing = next((entry for entry in self._entries if entry.url == url), None)
        if existing is None:
            self._entries.append(HistoryEntry(url=url, title=title, visit_time=now))
            return
        existing.visit_count = min(existing.visit_count + 1, _U32_MAX)
        existing.visit_time = now
        if title:
            existing.title = title

    def search(self, query: HistoryQuery) -> list[HistoryEntry]:
        """Entries whose URL or title contains the query text, newest first."""
        needle = query.query.lower()
        matches = [
            replace(entry)
            for entry in self._entries
            if (not needle or needle in entry.url.lower() or needle in entry.title.lower())
            and query.in_range(entry.visit_time)
        ]
        return query.page(matches)

    def __len__(self) -> int:
        return len(self._entries)


def _timestamp_key(when: datetime) -> bytes:
    return (int(when.timestamp()) & _U64_MASK).to_bytes(8, "big")


class HistoryDatabase:
    """History persisted in the storage database; without one it stores nothing."""

    def __init__(self, db: Database | None = None) -> None:
        if db is not None:
            db.ensure_table(HISTORY_TABLE)
            db.ensure_table(HISTORY_INDEX_TABLE)
        self._db = db

    @classmethod
    def empty(cls) -> HistoryDatabase:
        return cls()

    def store(self, entry: HistoryEntry) -> None:
        if self._db is None:
            return
        key = entry.url.encode("utf-8")
        self._db.put(HISTORY_TABLE, key, entry.to_bytes())
        self._db.put(HISTORY_INDEX_TABLE, _timestamp_key(entry.visit_time), key)
        log.debug("Stored history entry: %s", entry.url)

    def search(self, query: HistoryQuery) -> list[HistoryEntry]:
        """Entries whose URL contains the query text, newest first.

        Raises StorageError if the history has been cleared and nothing stored since.
        """
        if self._db is None:
            return []
        needle = query.query.lower()
        results = []
        for raw_key, raw_value in self._db.items(HISTORY_TABLE):
            url = raw_key.decode("utf-8", errors="replace")
            if needle and needle not in url.lower():
                continue
            try:
                entry = HistoryEntry.from_bytes(raw_value)
            except StorageError:
                continue
            if query.in_range(entry.visit_time):
                results.append(entry)
        return query.page(results)

    def recently_visited(self, limit: int) -> list[HistoryEntry]:
        return self.search(HistoryQuery().with_limit(limit))

    def count(self) -> int:
        if self._db is None:
            return 0
        try:
            return len(self._db.items(HISTORY_TABLE))
        except StorageError:
            return 0

    def clear(self) -> None:
        if self._db is None:
            return
        self._db.drop_table(HISTORY_TABLE)
        self._db.drop_table(HISTORY_INDEX_TABLE)
        log.debug("History cleared")

    def delete_entry(self, url: str) -> None:
        if self._db is None:
            return
        self._db.delete(HISTORY_TABLE, url)