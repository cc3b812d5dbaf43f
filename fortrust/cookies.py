"""Cookie jar with third-party blocking and first-party isolation."""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from urllib.parse import urlsplit

from fortrust.database import Database

log = logging.getLogger("fortrust.cookies")

COOKIES_TABLE = "cookies"

_TRACKER_DOMAINS = (
    "doubleclick.net",
    "google-analytics.com",
    "googletagmanager.com",
    "facebook.net",
    "scorecardresearch.com",
    "hotjar.com",
    "adsystem.com",
    "adservice.google.com",
)
_TRACKER_NAMES = ("_ga", "_gid", "_fbp", "_gclid", " IDE")

__all__ = [
    "CookieDatabase",
    "CookieJar",
    "CookieKey",
    "CookiePolicy",
    "CookieValue",
    "SameSite",
    "domain_matches",
    "looks_like_tracker",
    "path_matches",
    "same_registrable_domain",
]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SameSite(enum.Enum):
    """The SameSite attribute of a stored cookie."""

    STRICT = "strict"
    LAX = "lax"
    NONE = "none"


class CookiePolicy(enum.Enum):
    """Which cookies the jar accepts."""

    ACCEPT_ALL = "accept_all"
    BLOCK_THIRD_PARTY = "block_third_party"
    BLOCK_ALL = "block_all"
    REJECT_TRACKERS = "reject_trackers"

    @classmethod
    def default(cls) -> CookiePolicy:
        return cls.BLOCK_THIRD_PARTY


@dataclass(frozen=True)
class CookieKey:
    domain: str
    name: str
    path: str = "/"

    @property
    def bare_domain(self) -> str:
        """The domain without any first-party isolation prefix."""
        return self.domain.partition("|")[2] if "|" in self.domain else self.domain


@dataclass
class CookieValue:
    value: str
    secure: bool = False
    http_only: bool = False
    same_site: SameSite = SameSite.LAX
    created_at: datetime = field(default_factory=_now)
    expires_at: datetime | None = None
    last_access: datetime = field(default_factory=_now)
    persistent: bool = False
    host_only: bool = False


def domain_matches(cookie_domain: str, request_domain: str) -> bool:
    """Whether a cookie set for ``cookie_domain`` applies to ``request_domain``."""
    if cookie_domain == request_domain:
        return True
    if not cookie_domain.startswith("."):
        return request_domain.endswith(f".{cookie_domain}")
    return request_domain.endswith(cookie_domain) or request_domain == cookie_domain[1:]


def path_matches(cookie_path: str, request_path: str) -> bool:
    return request_path.startswith(cookie_path)


def same_registrable_domain(a: str, b: str) -> bool:
    """Coarse site comparison: the trailing labels both domains share in number."""
    labels_a = a.split(".")
    labels_b = b.split(".")
    if len(labels_a) < 2 or len(labels_b) < 2:
        return a == b
    count = min(len(labels_a), len(labels_b))
    return labels_a[-count:] == labels_b[-count:]


def looks_like_tracker(domain: str, name: str) -> bool:
    return any(tracker in domain for tracker in _TRACKER_DOMAINS) or name.startswith(
        _TRACKER_NAMES
    )


def _split_url(url: str) -> tuple[str, str, str]:
    parts = urlsplit(url)
    return parts.scheme.lower(), parts.hostname or "", parts.path or "/"


class CookieJar:
    """Cookies keyed by domain, name and path.

    ``top_level_domain`` is the site the current page belongs to; when it is
    set and ``isolate_first_party`` is on, non-host-only cookies are stored
    under that site and are only visible while it is the top-level site.
    """

    def __init__(self, policy: CookiePolicy = CookiePolicy.BLOCK_THIRD_PARTY) -> None:
        self._cookies: dict[CookieKey, CookieValue] = {}
        self._lock = threading.RLock()
        self.top_level_domain: str | None = None
        self.policy = policy
        self.isolate_first_party = True

    def _is_third_party_cookie(self, cookie_domain: str, request_domain: str) -> bool:
        if self.top_level_domain is not None:
            return not same_registrable_domain(cookie_domain, request_domain)
        return not domain_matches(cookie_domain, request_domain)

    def _should_accept(self, key: CookieKey, request_url: str) -> bool:
        _, request_domain, _ = _split_url(request_url)
        cookie_domain = key.bare_domain
        if self.policy is CookiePolicy.ACCEPT_ALL:
            return True
        if self.policy is CookiePolicy.BLOCK_ALL:
            return False
        if self.policy is CookiePolicy.BLOCK_THIRD_PARTY:
            return not (
                self.top_level_domain is not None
                and self._is_third_party_cookie(cookie_domain, request_domain)
            )
        return not looks_like_tracker(cookie_domain, key.name)

    def set(self, key: CookieKey, value: CookieValue, request_url: str) -> None:
        """Store a cookie that arrived on ``request_url`` if the policy allows it."""
        if not self._should_accept(key, request_url):
            log.debug("Cookie rejected by policy: %s@%s", key.name, key.domain)
            return
        if self.isolate_first_party and not value.host_only and self.top_level_domain is not None:
            key = replace(key, domain=f"{self.top_level_domain}|{key.domain}")
        with self._lock:
            self._cookies[key] = value

    def get(self, domain: str, path: str, name: str) -> CookieValue | None:
        with self._lock:
            return self._cookies.get(CookieKey(domain=domain, name=name, path=path))

    def get_for_url(self, url: str) -> list[tuple[CookieKey, CookieValue]]:
        """Cookies that may be sent with a request to ``url``."""
        scheme, domain, path = _split_url(url)
        now = _now()
        prefix = f"{self.top_level_domain}|" if self.top_level_domain is not None else None
        with self._lock:
            entries = list(self._cookies.items())
        visible = []
        for key, value in entries:
            if value.expires_at is not None and value.expires_at < now:
                continue
            if value.secure and scheme != "https":
                continue
            if (
                self.isolate_first_party
                and not value.host_only
                and prefix is not None
                and not key.domain.startswith(prefix)
            ):
                continue
            if not domain_matches(key.bare_domain, domain):
                continue
            if not path_matches(key.path, path):
                continue
            visible.append((key, value))
        return visible

    def remove(self, key: CookieKey) -> None:
        with self._lock:
            self._cookies.pop(key, None)

    def remove_for_domain(self, domain: str) -> None:
        with self._lock:
            self._cookies = {k: v for k, v in self._cookies.items() if k.domain != domain}

    def remove_for_top_level(self, top_level: str) -> None:
        """Remove every cookie isolated under the given top-level site."""
        prefix = f"{top_level}|"
        with self._lock:
            self._cookies = {
                k: v for k, v in self._cookies.items() if not k.domain.startswith(prefix)
            }

    def clear(self) -> None:
        with self._lock:
            self._cookies.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cookies)


class CookieDatabase:
    """The browser's cookie jar, attached to the storage database if one is given."""

    def __init__(self, db: Database | None = None) -> None:
        if db is not None:
            db.ensure_table(COOKIES_TABLE)
        self._db = db
        self.jar = CookieJar()

    @classmethod
    def empty(cls) -> CookieDatabase:
        return cls()

    @property
    def cookie_policy(self) -> CookiePolicy:
        return self.jar.policy

    @cookie_policy.setter
    def cookie_policy(self, policy: CookiePolicy) -> None:
        self.jar.policy = policy

    def __len__(self) -> int:
        return len(self.jar)