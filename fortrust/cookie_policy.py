"""Cookie acceptance policies."""

from __future__ import annotations

import enum

_TRACKER_DOMAINS = (
    "doubleclick.net",
    "google-analytics.com",
    "facebook.net",
    "scorecardresearch.com",
    "hotjar.com",
    "adsystem.com",
)


class SameSitePolicy(enum.Enum):
    STRICT = "Strict"
    LAX = "Lax"
    NONE = "None"


class CookiePolicy(enum.Enum):
    """Which cookies a site may set."""

    ACCEPT_ALL = "AcceptAll"
    BLOCK_THIRD_PARTY = "BlockThirdParty"
    BLOCK_ALL = "BlockAll"
    REJECT_TRACKERS = "RejectTrackers"

    @classmethod
    def default(cls) -> CookiePolicy:
        return cls.BLOCK_THIRD_PARTY

    def allows_domain(self, domain: str, top_level_domain: str) -> bool:
        if self is CookiePolicy.ACCEPT_ALL:
            return True
        if self is CookiePolicy.BLOCK_ALL:
            return False
        if self is CookiePolicy.BLOCK_THIRD_PARTY:
            return domain == top_level_domain or domain.endswith(f".{top_level_domain}")
        return not any(tracker in domain for tracker in _TRACKER_DOMAINS)

    def allows_third_party(self) -> bool:
        return self is CookiePolicy.ACCEPT_ALL

    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    CookiePolicy.ACCEPT_ALL: "Accept All",
    CookiePolicy.BLOCK_THIRD_PARTY: "Block Third-Party",
    CookiePolicy.BLOCK_ALL: "Block All",
    CookiePolicy.REJECT_TRACKERS: "Reject Trackers",
}