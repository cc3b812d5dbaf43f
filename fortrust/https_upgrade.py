"""Upgrading plain-HTTP navigations to HTTPS."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from urllib.parse import urlsplit

log = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_DEFAULT_PORTS = {"http": 80, "https": 443}

_BUILT_IN_DOMAINS = (
    "google.com",
    "youtube.com",
    "facebook.com",
    "twitter.com",
    "instagram.com",
    "linkedin.com",
    "reddit.com",
    "amazon.com",
    "github.com",
    "stackoverflow.com",
    "wikipedia.org",
    "mozilla.org",
    "duckduckgo.com",
    "brave.com",
)


class HttpsDecisionKind(enum.Enum):
    ALREADY_HTTPS = "already_https"
    UPGRADED = "upgraded"
    NOT_UPGRADABLE = "not_upgradable"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class HttpsDecision:
    """Result of evaluating a URL; ``url`` holds the upgraded URL when upgraded."""

    kind: HttpsDecisionKind
    url: str | None = None


@dataclass
class UpgradeRule:
    domain: str
    include_subdomains: bool


def _is_private_host(host: str) -> bool:
    return host in ("localhost", "127.0.0.1") or host.startswith(("10.", "192.168.", "172."))


class HttpsUpgrader:
    """Rewrites http:// URLs to https:// except for local and private hosts."""

    def __init__(self) -> None:
        self.rules: list[UpgradeRule] = [UpgradeRule(d, True) for d in _BUILT_IN_DOMAINS]
        self.always_upgrade = True

    def evaluate(self, url: str) -> HttpsDecision:
        if not _SCHEME_RE.match(url):
            return HttpsDecision(HttpsDecisionKind.NOT_UPGRADABLE)
        try:
            parts = urlsplit(url)
            port = parts.port
        except ValueError:
            return HttpsDecision(HttpsDecisionKind.NOT_UPGRADABLE)

        scheme = parts.scheme.lower()
        if scheme == "https":
            return HttpsDecision(HttpsDecisionKind.ALREADY_HTTPS)
        if scheme != "http":
            return HttpsDecision(HttpsDecisionKind.NOT_UPGRADABLE)

        host = (parts.hostname or "").lower()
        if not host or not self.always_upgrade or _is_private_host(host):
            return HttpsDecision(HttpsDecisionKind.NOT_UPGRADABLE)

        userinfo = parts.netloc.rpartition("@")[0]
        netloc = f"[{host}]" if ":" in host else host
        if userinfo:
            netloc = f"{userinfo}@{netloc}"
        if port is not None and port not in _DEFAULT_PORTS.values():
            netloc = f"{netloc}:{port}"
        result = f"https://{netloc}{parts.path or '/'}"
        if parts.query:
            result += f"?{parts.query}"
        if parts.fragment:
            result += f"#{parts.fragment}"

        if self.has_rule(host):
            log.debug("HTTPS upgraded (rule match): %s -> %s", url, result)
        return HttpsDecision(HttpsDecisionKind.UPGRADED, result)

    def add_rule(self, domain: str, include_subdomains: bool) -> None:
        self.rules.append(UpgradeRule(domain.lower(), include_subdomains))

    def has_rule(self, host: str) -> bool:
        host = host.lower()
        for rule in self.rules:
            if host == rule.domain:
                return True
            if rule.include_subdomains and host.endswith(f".{rule.domain}"):
                return True
        return False