import pytest

from fortrust.blocker import (
    AdBlocker,
    BlockCategory,
    BlockerDecision,
    FilterListProvider,
    classify_request,
)


@pytest.fixture
def provider():
    return FilterListProvider()


def test_url_pattern_blocks_ads(provider):
    url = "https://example.com/ads/banner.png"
    decision = provider.check_url(url, "", "image")
    assert decision.blocked
    assert decision.reason == "ad"
    assert decision.category is BlockCategory.AD
    assert decision.rule == url


def test_social_pattern_reason(provider):
    decision = provider.check_url("https://connect.facebook.net/sdk.js", "", "script")
    assert decision.category is BlockCategory.SOCIAL
    assert decision.reason == "social_widget"


def test_cookie_consent_pattern(provider):
    decision = provider.check_url("https://cdn.cookiebot.com/uc.js", "", "script")
    assert decision.category is BlockCategory.COOKIE_CONSENT
    assert decision.reason == "cookie_consent"


def test_exact_tracker_host(provider):
    decision = provider.check_url("https://mixpanel.com/track", "", "xhr")
    assert decision == BlockerDecision.block("tracker_host", "mixpanel.com", BlockCategory.TRACKER)


def test_tracker_subdomain(provider):
    decision = provider.check_url("https://eu.mixpanel.com/track", "", "xhr")
    assert decision.reason == "tracker_subdomain"
    assert decision.rule == "eu.mixpanel.com"
    assert decision.category is BlockCategory.TRACKER


def test_suffix_without_dot_is_not_subdomain(provider):
    assert not provider.check_url("https://notmixpanel.com/", "", "").blocked


def test_host_is_lowercased(provider):
    decision = provider.check_url("https://MIXPANEL.COM/", "", "")
    assert decision.rule == "mixpanel.com"


def test_schemeless_url_is_treated_as_https(provider):
    decision = provider.check_url("mixpanel.com/track", "", "")
    assert decision.reason == "tracker_host"


def test_ordinary_url_is_allowed(provider):
    assert provider.check_url("https://example.org/index", "", "document") == BlockerDecision.allow()


def test_allowlist_round_trip(provider):
    url = "https://mixpanel.com/track"
    provider.add_to_allowlist("mixpanel.com")
    assert not provider.check_url(url, "", "").blocked
    provider.remove_from_allowlist("mixpanel.com")
    assert provider.check_url(url, "", "").blocked


def test_allowlist_wins_over_pattern(provider):
    provider.add_to_allowlist("example.com")
    assert not provider.check_url("https://example.com/ads/x.png", "", "").blocked


def test_load_hosts_file(provider):
    data = b"# comment\n0.0.0.0 tracker.example.com\n.dotted.example.org\nbad/host\nhost:1\n\n"
    provider.load_hosts_from_bytes(data)
    assert provider.check_url("https://tracker.example.com/p", "", "").reason == "tracker_host"
    assert provider.check_url("https://dotted.example.org/p", "", "").reason == "tracker_host"
    assert provider.check_url("https://x.tracker.example.com/p", "", "").reason == "tracker_subdomain"
    assert not provider.check_url("https://host/", "", "").blocked


def test_invalid_utf8_hosts_are_ignored(provider):
    provider.load_hosts_from_bytes(b"\xff\xfe tracker\n")
    assert not provider.check_url("https://tracker/", "", "").blocked


def test_adblocker_delegates_to_filters():
    blocker = AdBlocker()
    blocker.load_hosts_from_bytes(b"127.0.0.1 evil.example.net\n")
    assert blocker.should_block("https://evil.example.net/a", "https://example.com/", "script").blocked
    assert not blocker.should_block("https://example.com/", "", "document").blocked


@pytest.mark.parametrize(
    ("url", "content_type", "expected"),
    [
        ("https://x.example/a", "text/html; charset=utf-8", "document"),
        ("https://x.example/a", "text/css", "stylesheet"),
        ("https://x.example/a", "text/javascript", "script"),
        ("https://x.example/a", "image/png", "image"),
        ("https://x.example/a", "application/font-woff", "font"),
        ("https://x.example/a", "video/mp4", "media"),
        ("https://x.example/a.css", "application/octet-stream", "stylesheet"),
        ("https://x.example/app.JS", None, "script"),
        ("https://x.example/a.woff2", None, "font"),
        ("https://x.example/clip.webm", None, "media"),
        ("https://x.example/page.htm", None, "document"),
        ("https://x.example/data.json", None, "xhr"),
        ("https://x.example/page", None, "other"),
    ],
)
def test_classify_request(url, content_type, expected):
    assert classify_request(url, content_type) == expected