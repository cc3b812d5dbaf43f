"""Host- and pattern-based request blocking for ads and trackers."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from urllib.parse import urlsplit

log = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")


class BlockCategory(enum.Enum):
    """Why a request was blocked; the value is the reported reason."""

    AD = "ad"
    TRACKER = "tracker"
    MALWARE = "malware"
    SOCIAL = "social_widget"
    ANALYTICS = "analytics"
    COOKIE_CONSENT = "cookie_consent"
    OTHER = "other"


@dataclass(frozen=True)
class BlockerDecision:
    """Outcome of checking a request: allowed, or blocked with a reason."""

    reason: str | None = None
    rule: str | None = None
    category: BlockCategory | None = None

    @classmethod
    def allow(cls) -> BlockerDecision:
        return cls()

    @classmethod
    def block(cls, reason: str, rule: str | None, category: BlockCategory) -> BlockerDecision:
        return cls(reason=reason, rule=rule, category=category)

    @property
    def blocked(self) -> bool:
        return self.reason is not None


# Known tracking hosts, grouped loosely by operator.
_BUILT_IN_TRACKER_HOSTS = frozenset(
    """
    doubleclick.net googleads.g.doubleclick.net google-analytics.com
    googletagmanager.com googleadservices.com pagead2.googlesyndication.com
    facebook.net connect.facebook.net facebook.com/tr
    scorecardresearch.com hotjar.com static.hotjar.com
    segment.io segment.com cdn.segment.com
    mixpanel.com api.mixpanel.com amplitude.com api.amplitude.com
    fullstory.com rs.fullstory.com crazyegg.com dnn506yrbagrg.cloudfront.net
    optimizely.com cdn.optimizely.com mouseflow.com cdn.mouseflow.com
    clarity.ms c.clarity.ms hubspot.com track.hubspot.com
    linkedin.com/px ads.linkedin.com twitter.com/i/jot analytics.twitter.com
    pixel.quantserve.com secure.quantserve.com
    browser.sentry-cdn.com o73581.ingest.sentry.io
    cdn.braze.com appboy.com tealiumiq.com tags.tiqcdn.com
    bluekai.com tags.bluekai.com exelator.com sync.exelator.com
    demdex.net dpm.demdex.net adsafeprotected.com static.adsafeprotected.com
    moatads.com js.moatads.com
    """.split()
)

# Substring patterns checked in order; the first one found decides the category.
_PATTERN_RUNS = (
    (BlockCategory.AD, "/pagead/ /ads/ /adserver /banner doubleclick.net adservice.google."),
    (BlockCategory.ANALYTICS, "google-analytics.com analytics. /gtag/ /gtm.js"),
    (BlockCategory.SOCIAL, "facebook.net facebook.com/tr twitter.com/i/jot linkedin.com/px"),
    (
        BlockCategory.ANALYTICS,
        "hotjar.com cdn.segment. /amplitude. /fullstory. clarity.ms hubspot.",
    ),
    (BlockCategory.COOKIE_CONSENT, "/cookie-notice /cookie-consent cookiebot. onetrust."),
    (BlockCategory.TRACKER, "scorecardresearch."),
)

_BUILT_IN_URL_PATTERNS = tuple(
    (pattern, category) for category, patterns in _PATTERN_RUNS for pattern in patterns.split()
)


def _extract_host(url: str) -> str | None:
    """Return the lower-cased host of ``url``, treating scheme-less input as https."""
    candidate = url if _SCHEME_RE.match(url) else f"https://{url}"
    try:
        host = urlsplit(candidate).hostname
    except ValueError:
        return None
    return host.lower() if host else None


class FilterListProvider:
    """Built-in tracker hosts and URL patterns plus a domain allowlist."""

    def __init__(self) -> None:
        self._hosts: set[str] = set(_BUILT_IN_TRACKER_HOSTS)
        self._patterns: list[tuple[str, BlockCategory]] = list(_BUILT_IN_URL_PATTERNS)
        self._allowlist: set[str] = set()

    def load_hosts_from_bytes(self, data: bytes) -> None:
        """Add hosts from hosts-file formatted bytes; '#' lines are comments."""
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            return
        for raw_line in text.splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            tokens = line.split()
            if not tokens:
                continue
            host = tokens[-1].strip().lstrip(".")
            if host and "/" not in host and ":" not in host:
                self._hosts.add(host)

    def check_url(self, url: str, source_url: str = "", resource_type: str = "") -> BlockerDecision:
        if self._is_allowlisted(url):
            return BlockerDecision.allow()

        category = self._match_url_pattern(url)
        if category is not None:
            return BlockerDecision.block(category.value, url, category)

        host = _extract_host(url)
        if host is None:
            return BlockerDecision.allow()
        if host in self._hosts:
            return BlockerDecision.block("tracker_host", host, BlockCategory.TRACKER)
        if self._is_subdomain_blocked(host):
            return BlockerDecision.block("tracker_subdomain", host, BlockCategory.TRACKER)
        return BlockerDecision.allow()

    def _match_url_pattern(self, url: str) -> BlockCategory | None:
        lower = url.lower()
        return next((category for pattern, category in self._patterns if pattern in lower), None)

    def _is_allowlisted(self, url: str) -> bool:
        host = _extract_host(url)
        return host is not None and host in self._allowlist

    def _is_subdomain_blocked(self, host: str) -> bool:
        return any(
            host.endswith(blocked) and (host == blocked or host[: -len(blocked)].endswith("."))
            for blocked in self._hosts
        )

    def add_to_allowlist(self, domain: str) -> None:
        self._allowlist.add(domain)

    def remove_from_allowlist(self, domain: str) -> None:
        self._allowlist.discard(domain)


class AdBlocker:
    """Front end over a :class:`FilterListProvider` that logs blocked requests."""

    def __init__(self) -> None:
        self._filters = FilterListProvider()

    def load_hosts_from_bytes(self, data: bytes) -> None:
        self._filters.load_hosts_from_bytes(data)

    def should_block(self, url: str, source_url: str = "", resource_type: str = "") -> BlockerDecision:
        decision = self._filters.check_url(url, source_url, resource_type)
        if decision.blocked:
            log.debug("Ad/tracker blocked: url=%s resource_type=%s", url, resource_type)
        return decision


_CONTENT_TYPE_PREFIXES = (
    (("text/html",), "document"),
    (("text/css",), "stylesheet"),
    (("application/javascript", "text/javascript", "application/x-javascript"), "script"),
    (("image/",), "image"),
)

_URL_SUFFIX_TYPES = (
    ("script", ".js"),
    ("stylesheet", ".css"),
    ("image", ".png .jpg .jpeg .gif .webp .svg .ico"),
    ("font", ".woff .woff2 .ttf .otf"),
    ("media", ".mp4 .webm .mp3 .wav"),
    ("document", ".html .htm"),
    ("xhr", ".json .xml"),
)


def classify_request(url: str, content_type: str | None = None) -> str:
    """Guess a request's resource type from its content type, then its URL."""
    if content_type is not None:
        for prefixes, kind in _CONTENT_TYPE_PREFIXES:
            if content_type.startswith(prefixes):
                return kind
        if content_type.startswith("font/") or "font" in content_type or ".woff" in url:
            return "font"
        if content_type.startswith(("audio/", "video/")):
            return "media"

    lower = url.lower()
    for kind, suffixes in _URL_SUFFIX_TYPES:
        if lower.endswith(tuple(suffixes.split())):
            return kind
    return "other"