"""Privacy manager tying together blocking, HTTPS upgrades and CSP checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from fortrust.blocker import AdBlocker, BlockerDecision
from fortrust.cookie_policy import CookiePolicy
from fortrust.csp import CspDirective, CspPolicy
from fortrust.fingerprint import FingerprintGuard
from fortrust.https_upgrade import HttpsDecision, HttpsDecisionKind, HttpsUpgrader


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PrivacyStats:
    ads_blocked: int = 0
    trackers_blocked: int = 0
    https_upgrades: int = 0
    fingerprint_attempts_blocked: int = 0
    third_party_cookies_blocked: int = 0
    scripts_blocked: int = 0
    data_saved_bytes: int = 0
    cosmetic_elements_hidden: int = 0
    session_start: datetime = field(default_factory=_now)

    def session_duration(self) -> timedelta:
        return max(_now() - self.session_start, timedelta(0))

    def blocked_per_minute(self) -> float:
        minutes = self.session_duration().total_seconds() / 60.0
        if minutes > 0.0:
            return (self.ads_blocked + self.trackers_blocked) / minutes
        return 0.0


class PrivacyManager:
    """Applies the privacy features to requests and keeps session statistics."""

    def __init__(self, hosts_data: bytes | None = None) -> None:
        self.ad_blocker = AdBlocker()
        self.fingerprint_guard = FingerprintGuard()
        self.https_upgrader = HttpsUpgrader()
        self.cookie_policy = CookiePolicy.BLOCK_THIRD_PARTY
        self.stats = PrivacyStats()
        self.csp_enabled = True
        if hosts_data:
            self.ad_blocker.load_hosts_from_bytes(hosts_data)

    def should_block_request(
        self, url: str, source_url: str = "", resource_type: str = ""
    ) -> BlockerDecision:
        decision = self.ad_blocker.should_block(url, source_url, resource_type)
        if decision.reason == "ad":
            self.stats.ads_blocked += 1
        elif decision.reason == "tracker":
            self.stats.trackers_blocked += 1
        return decision

    def upgrade_url(self, url: str) -> HttpsDecision:
        decision = self.https_upgrader.evaluate(url)
        if decision.kind is HttpsDecisionKind.UPGRADED:
            self.stats.https_upgrades += 1
            self.stats.data_saved_bytes += 100
        return decision

    def check_csp(self, policy: CspPolicy, resource_url: str, directive: CspDirective) -> bool:
        if not self.csp_enabled:
            return True
        return policy.allows(directive, resource_url)

    def reset_stats(self) -> None:
        self.stats = PrivacyStats()