"""Filter-list settings, cosmetic resources and tracking-parameter stripping."""

from __future__ import annotations

import contextlib
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

STRIP_PARAMS = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "fbclid",
        "gclid",
        "gclsrc",
        "dclid",
        "msclkid",
        "mc_eid",
        "ref",
        "referrer",
        "_ga",
        "igshid",
        "zanpid",
    }
)

FILTER_LIST_PATHS = (
    "assets/filter-lists/easylist.txt",
    "assets/filter-lists/easyprivacy.txt",
    "assets/filter-lists/brave-unbreak.txt",
)

_QUERY_SAFE = "".join(chr(c) for c in range(0x21, 0x7F) if chr(c) not in "\"#<>'")


@dataclass
class CosmeticResources:
    """Element-hiding CSS and scripts produced by cosmetic filter rules."""

    hide_selectors: list[str] = field(default_factory=list)
    procedural_actions: list[str] = field(default_factory=list)
    injected_script: str | None = None
    generichide: bool = False


@dataclass
class PrivacySettings:
    block_ads: bool = True
    block_trackers: bool = True
    block_fingerprinting: bool = True
    https_only: bool = True
    block_third_party_cookies: bool = True
    strip_tracking_params: bool = True


def _encode_query_part(text: str) -> str:
    return quote(text, safe=_QUERY_SAFE)


def strip_tracking_params(url: str, enabled: bool = True) -> str:
    """Return ``url`` without known tracking query parameters."""
    if not enabled:
        return url
    parts = urlsplit(url)
    kept = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in STRIP_PARAMS]
    query = "&".join(f"{_encode_query_part(k)}={_encode_query_part(v)}" for k, v in kept)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def create_placeholder_filter_lists(base_dir: str | Path = ".") -> list[Path]:
    """Write placeholder filter lists that do not exist yet; return those written."""
    created: list[Path] = []
    for relative in FILTER_LIST_PATHS:
        path = Path(base_dir) / relative
        if path.exists():
            continue
        with contextlib.suppress(OSError):
            path.parent.mkdir(parents=True, exist_ok=True)
        content = (
            f"! {path.stem} — placeholder\n"
            "! Download the actual list from the official sources\n"
        )
        try:
            path.write_text(content, encoding="utf-8")
        except OSError:
            continue
        created.append(path)
    return created