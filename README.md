# fortrust

Building blocks for a privacy-focused web browser, usable on their own from
Python. It is a library: it has no command-line program.

## What is in it

- `fortrust.blocker` – `AdBlocker` and `FilterListProvider` check request
  URLs against built-in tracker hosts and URL substring patterns and return a
  `BlockerDecision` (with a `BlockCategory` when blocked). Extra hosts-format
  lists can be added with `load_hosts_from_bytes`, and domains can be
  allowlisted. `classify_request(url, content_type)` guesses a resource type
  such as `"script"`, `"image"` or `"other"`.
- `fortrust.csp` – `CspPolicy.parse` reads a Content-Security-Policy header;
  the policy answers `allows`, `allows_inline_script`, `allows_eval` and
  `is_strict`. `parse_csp_source` and `directive_from_name` parse single
  tokens.
- `fortrust.https_upgrade` – `HttpsUpgrader.evaluate` returns an
  `HttpsDecision`: plain `http://` URLs are rewritten to `https://`, except
  for `localhost`, `127.0.0.1` and hosts starting with `10.`, `192.168.` or
  `172.`.
- `fortrust.fingerprint` – `FingerprintGuard` holds seeded `CanvasNoise` and
  `AudioNoise` generators (the same seed gives the same noise) and the values
  reported for `navigator` properties via `navigator_property`.
- `fortrust.cookie_policy` – a `CookiePolicy` enum with `allows_domain`,
  `allows_third_party` and `label`, and `SameSitePolicy`.
- `fortrust.filters` – `PrivacySettings`, `CosmeticResources`,
  `strip_tracking_params(url, enabled)` which removes `utm_*`, `fbclid`,
  `gclid` and similar query parameters, and `create_placeholder_filter_lists`.
- `fortrust.privacy` – `PrivacyManager` ties the blocker, HTTPS upgrader and
  CSP checks together and counts ad blocks, tracker blocks and upgrades in
  `PrivacyStats`. Pass `hosts_data=` (hosts-file bytes) to load extra hosts.
- `fortrust.cookies` – `CookieJar` stores cookies under a cookie policy with
  first-party isolation: when `top_level_domain` is set, non-host-only
  cookies are kept per top-level site and are only returned by `get_for_url`
  while that site is the top level. Expired cookies, and secure cookies on
  non-https URLs, are never returned.
- `fortrust.database` – `Database`, a small key-value store with named
  tables kept in one SQLite file (or in memory), and `StorageError`.
- `fortrust.history`, `fortrust.bookmarks`, `fortrust.settings` – in-memory
  stores (`HistoryStore`, `BookmarkStore`, `SettingsStore`) and
  database-backed ones (`HistoryDatabase`, `BookmarkDatabase`,
  `SettingsDatabase`). Settings values are anything JSON can hold.
- `fortrust.storage` – `StorageDatabase` opens one database file holding
  history, bookmarks, cookies and settings; `stats()` reports counts.
- `fortrust.search` – `MetaSearch` queries DuckDuckGo, Stract and Wikipedia
  (and, if enabled, Mojeek and Brave) concurrently with `httpx`, then
  de-duplicates and ranks the results.

## Installation

```
pip install fortrust
```

## Examples

Blocking trackers:

```python
from fortrust.blocker import AdBlocker

blocker = AdBlocker()
decision = blocker.should_block(
    "https://www.google-analytics.com/collect", "https://example.com/", "script"
)
print(decision.blocked, decision.reason, decision.category)
```

Checking a Content Security Policy:

```python
from fortrust.csp import CspDirective, CspPolicy

policy = CspPolicy.parse("default-src 'self'; script-src cdn.example.com")
policy.allows(CspDirective.SCRIPT_SRC, "https://cdn.example.com/app.js")  # True
policy.allows_inline_script()  # False
```

Upgrading to HTTPS:

```python
from fortrust.https_upgrade import HttpsUpgrader

decision = HttpsUpgrader().evaluate("http://example.com/page")
print(decision.kind, decision.url)  # HttpsDecisionKind.UPGRADED https://example.com/page
```

Cookies with first-party isolation:

```python
from fortrust.cookies import CookieJar, CookieKey, CookieValue, CookiePolicy

jar = CookieJar(CookiePolicy.ACCEPT_ALL)
jar.top_level_domain = "news.example.com"
jar.set(CookieKey("example.com", "session"), CookieValue("v"), "https://news.example.com/")
print(jar.get_for_url("https://news.example.com/"))
```

Keeping history and bookmarks on disk:

```python
from fortrust.history import HistoryEntry
from fortrust.storage import StorageDatabase
from datetime import datetime, timezone

with StorageDatabase.open("profile.db") as storage:
    storage.history.store(
        HistoryEntry("https://example.com/", "Example", datetime.now(timezone.utc))
    )
    print(storage.stats())
```

`StorageDatabase.open_or_default` falls back to in-memory stores that keep
nothing if the file cannot be opened.

Searching:

```python
import asyncio
from fortrust.search import MetaSearch, SearchConfig

async def main():
    async with MetaSearch(SearchConfig()) as engine:
        for result in await engine.search("privacy browser"):
            print(result.title, result.url)

asyncio.run(main())
```

The Brave backend is used only when it is enabled in `SearchConfig` and the
`BRAVE_SEARCH_API_KEY` environment variable is set.

## What it does not do

- It does not parse, lay out or draw web pages; there is no browser window.
- It does not read EasyList-style filter lists or apply cosmetic
  (element-hiding) rules. `CosmeticResources` is only a data holder, and
  `create_placeholder_filter_lists` only writes placeholder files.
- Cookies live in memory: `CookieDatabase` creates its table in the storage
  database but does not write cookies to it.
- `HistoryDatabase.search` matches the query against URLs only, not titles.

## Running the tests

```
pip install -e ".[test]"
pytest
```