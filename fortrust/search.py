"""Private meta-search across several web search backends."""

from __future__ import annotations

import asyncio
import enum
import ipaddress
import os
import re
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

import httpx

USER_AGENT = "FortrustSearch/1.0"
BRAVE_KEY_ENV = "BRAVE_SEARCH_API_KEY"

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}
_PRIVACY_HEADERS = {"DNT": "1", "Sec-GPC": "1"}

_UNESCAPES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&#x27;", "'"),
    ("&#x2F;", "/"),
)

_DDG_REGIONS = {
    "en-us": "us-en",
    "en-gb": "uk-en",
    "en-ca": "ca-en",
    "en-au": "au-en",
}


class SearchBackend(enum.Enum):
    BRAVE_SEARCH = "brave"
    MOJEEK = "mojeek"
    DUCKDUCKGO = "duckduckgo"
    STRACT = "stract"
    WIKIPEDIA = "wikipedia"


class SafeSearchMode(enum.Enum):
    """Safe-search level; the value is DuckDuckGo's ``kp`` parameter."""

    OFF = "-2"
    MODERATE = "-1"
    STRICT = "1"


def _default_backends() -> list[SearchBackend]:
    return [SearchBackend.DUCKDUCKGO, SearchBackend.STRACT, SearchBackend.WIKIPEDIA]


@dataclass
class SearchConfig:
    enabled_backends: list[SearchBackend] = field(default_factory=_default_backends)
    max_results: int = 10
    safe_search: SafeSearchMode = SafeSearchMode.MODERATE
    language: str = "en-US"
    deduplicate: bool = True


@dataclass
class SearchResult:
    title: str
    url: str
    snippet: str
    source_backend: SearchBackend
    relevance_score: float


def _encode(text: str) -> str:
    return quote(text, safe="")


def html_unescape(text: str) -> str:
    """Replace the handful of HTML entities search pages commonly use."""
    for entity, char in _UNESCAPES:
        text = text.replace(entity, char)
    return text


def strip_tags(text: str) -> str:
    """Drop everything between '<' and '>'."""
    output = []
    in_tag = False
    for ch in text:
        if ch == "<":
            in_tag = True
        elif ch == ">":
            in_tag = False
        elif not in_tag:
            output.append(ch)
    return "".join(output)


def _is_ip(host: str) -> bool:
    try:
        ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return False
    return True


def _split(url: str):
    """Split an absolute URL, or return None when it is not one."""
    if not _SCHEME_RE.match(url):
        return None
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    if parts.scheme.lower() in _DEFAULT_PORTS and not parts.hostname:
        return None
    return parts, port


def unwrap_ddg_redirect(url: str) -> str:
    """Return the target of a DuckDuckGo ``/l/?uddg=`` redirect, else ``url``."""
    split = _split(url)
    if split is None:
        return url
    parts, _ = split
    host = parts.hostname
    if host and not _is_ip(host) and host.endswith("duckduckgo.com") and "/l/" in parts.path:
        for key, value in parse_qsl(parts.query, keep_blank_values=True):
            if key == "uddg":
                return value
    return url


def _is_http_url(url: str) -> bool:
    split = _split(url)
    return split is not None and split[0].scheme.lower() in ("http", "https")


def normalize_url_for_dedup(url: str) -> str:
    """Canonical form used to spot the same page returned by several backends."""
    split = _split(url)
    if split is None:
        return url.lower()
    parts, port = split
    scheme = parts.scheme.lower()
    netloc = parts.netloc
    path = parts.path
    if scheme in _DEFAULT_PORTS:
        if port == _DEFAULT_PORTS[scheme]:
            netloc = netloc.rsplit(":", 1)[0]
        if not path:
            path = "/"
    normalized = urlunsplit((scheme, netloc, path, parts.query, ""))
    if normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized.replace("://www.", "://").lower()


def dedup_results(results: list[SearchResult]) -> list[SearchResult]:
    """Keep the first result for each normalized URL, in order."""
    seen: set[str] = set()
    kept = []
    for result in results:
        key = normalize_url_for_dedup(result.url)
        if key not in seen:
            seen.add(key)
            kept.append(result)
    return kept


def rank_results(results: list[SearchResult]) -> list[SearchResult]:
    """Boost URLs that several results share, then sort by score, best first."""
    counts: dict[str, int] = {}
    for result in results:
        key = normalize_url_for_dedup(result.url)
        counts[key] = counts.get(key, 0) + 1
    boosted = []
    for result in results:
        count = counts.get(normalize_url_for_dedup(result.url), 1)
        score = min(result.relevance_score + (count - 1) * 0.15, 1.0)
        boosted.append(replace(result, relevance_score=score))
    return sorted(boosted, key=lambda r: r.relevance_score, reverse=True)


def ddg_region(language: str) -> str:
    return _DDG_REGIONS.get(language.lower(), "wt-wt")


def _extract_attr(fragment: str, attr: str) -> str | None:
    pieces = fragment.split(f'{attr}="')
    if len(pieces) < 2:
        return None
    return pieces[1].split('"', 1)[0]


def _between(text: str, start: str, end: str) -> str | None:
    start_idx = text.find(start)
    if start_idx < 0:
        return None
    start_idx += len(start)
    end_idx = text.find(end, start_idx)
    if end_idx < 0:
        return None
    return text[start_idx:end_idx]


def parse_ddg_html(html: str, max_results: int) -> list[SearchResult]:
    """Extract results from DuckDuckGo's HTML results page."""
    results: list[SearchResult] = []
    for chunk in html.split("result__title")[1:]:
        if len(results) >= max_results:
            break
        anchor_start = chunk.find("<a")
        if anchor_start < 0:
            continue
        anchor = chunk[anchor_start:]
        href = _extract_attr(anchor, "href")
        if href is None:
            continue
        title_html = _between(anchor, ">", "</a>")
        if title_html is None:
            continue

        title = html_unescape(strip_tags(title_html)).strip()
        url = unwrap_ddg_redirect(html_unescape(href))

        snippet_parts = chunk.split('class="result__snippet">')
        snippet = snippet_parts[1].split("</", 1)[0].strip() if len(snippet_parts) > 1 else ""

        if title and _is_http_url(url):
            results.append(
                SearchResult(
                    title=title,
                    url=url,
                    snippet=html_unescape(snippet),
                    source_backend=SearchBackend.DUCKDUCKGO,
                    relevance_score=0.6,
                )
            )
    return results


def _path(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _str(record: Any, key: str) -> str | None:
    value = record.get(key) if isinstance(record, dict) else None
    return value if isinstance(value, str) else None


def _json_results(
    items: Any,
    limit: int | None,
    title_key: str,
    url_key: str,
    snippet_key: str,
    backend: SearchBackend,
    score: float,
) -> list[SearchResult]:
    if not isinstance(items, list):
        return []
    if limit is not None:
        items = items[:limit]
    results = []
    for record in items:
        title = _str(record, title_key)
        url = _str(record, url_key)
        if title is None or url is None:
            continue
        results.append(
            SearchResult(
                title=title,
                url=url,
                snippet=_str(record, snippet_key) or "",
                source_backend=backend,
                relevance_score=score,
            )
        )
    return results


class MetaSearch:
    """Queries the enabled backends concurrently and merges their results."""

    def __init__(self, config: SearchConfig | None = None, client: httpx.AsyncClient | None = None) -> None:
        self.config = config if config is not None else SearchConfig()
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            timeout=5.0,
            follow_redirects=True,
            max_redirects=3,
            limits=httpx.Limits(keepalive_expiry=10.0),
        )

    async def __aenter__(self) -> MetaSearch:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def search(self, query: str) -> list[SearchResult]:
        query = query.strip()
        if not query:
            return []
        tasks = [self._fetch(backend, query) for backend in self.config.enabled_backends]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        merged: list[SearchResult] = []
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                continue
            merged.extend(outcome)
        if self.config.deduplicate:
            merged = dedup_results(merged)
        return rank_results(merged)[: self.config.max_results]

    async def _fetch(self, backend: SearchBackend, query: str) -> list[SearchResult]:
        limit = self.config.max_results
        if backend is SearchBackend.BRAVE_SEARCH:
            return await self._fetch_brave(query, limit)
        if backend is SearchBackend.DUCKDUCKGO:
            return await self._fetch_ddg(query, limit)
        if backend is SearchBackend.MOJEEK:
            data = await self._get_json(
                f"https://api.mojeek.com/search?q={_encode(query)}&fmt=json&s={limit}"
            )
            return _json_results(_path(data, "r"), limit, "t", "u", "s", backend, 0.7)
        if backend is SearchBackend.STRACT:
            data = await self._get_json(
                f"https://stract.com/beta/api/search?query={_encode(query)}&num_results={limit}"
            )
            return _json_results(
                _path(data, "results"), limit, "title", "url", "snippet", backend, 0.75
            )
        return await self._fetch_wikipedia(query)

    async def _get(self, url: str, headers: dict[str, str]) -> httpx.Response | None:
        try:
            return await self._client.get(url, headers={**_PRIVACY_HEADERS, **headers})
        except httpx.HTTPError:
            return None

    async def _get_json(self, url: str, headers: dict[str, str] | None = None) -> Any:
        response = await self._get(url, headers or {})
        if response is None:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    async def _fetch_ddg(self, query: str, limit: int) -> list[SearchResult]:
        language = self.config.language
        url = (
            f"https://html.duckduckgo.com/html/?q={_encode(query)}"
            f"&kp={self.config.safe_search.value}&kl={ddg_region(language)}"
        )
        response = await self._get(
            url, {"Accept-Language": language, "Cache-Control": "no-store"}
        )
        if response is None:
            return []
        try:
            html = response.text
        except (UnicodeDecodeError, LookupError):
            return []
        return parse_ddg_html(html, limit)

    async def _fetch_brave(self, query: str, limit: int) -> list[SearchResult]:
        token = os.environ.get(BRAVE_KEY_ENV, "").strip()
        if not token:
            return []
        url = (
            "https://api.search.brave.com/res/v1/web/search"
            f"?q={_encode(query)}&count={min(limit, 20)}&safesearch=off"
        )
        data = await self._get_json(
            url, {"Accept": "application/json", "X-Subscription-Token": token}
        )
        items = _path(data, "web", "results")
        if not isinstance(items, list):
            return []
        results = []
        for record in items[:limit]:
            title = _str(record, "title")
            link = _str(record, "url")
            if title is None or link is None:
                continue
            results.append(
                SearchResult(
                    title=title,
                    url=link,
                    snippet=_str(record, "description") or "",
                    source_backend=SearchBackend.BRAVE_SEARCH,
                    relevance_score=0.8 if _str(record, "age") is not None else 0.6,
                )
            )
        return results

    async def _fetch_wikipedia(self, query: str) -> list[SearchResult]:
        url = (
            "https://en.wikipedia.org/w/api.php?action=query&list=search"
            f"&srsearch={_encode(query)}&format=json&srlimit=3"
        )
        data = await self._get_json(url, {"User-Agent": USER_AGENT})
        items = _path(data, "query", "search")
        if not isinstance(items, list):
            return []
        results = []
        for record in items:
            title = _str(record, "title")
            if title is None:
                continue
            results.append(
                SearchResult(
                    title=title,
                    url=f"https://en.wikipedia.org/wiki/{_encode(title)}",
                    snippet=_str(record, "snippet") or "",
                    source_backend=SearchBackend.WIKIPEDIA,
                    relevance_score=0.5,
                )
            )
        return results