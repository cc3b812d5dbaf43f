import pytest

from fortrust.https_upgrade import HttpsDecision, HttpsDecisionKind, HttpsUpgrader


def test_https_is_left_alone():
    decision = HttpsUpgrader().evaluate("https://example.com/")
    assert decision == HttpsDecision(HttpsDecisionKind.ALREADY_HTTPS)


def test_http_is_upgraded_keeping_path_and_query():
    decision = HttpsUpgrader().evaluate("http://example.com/page?x=1#top")
    assert decision.kind is HttpsDecisionKind.UPGRADED
    assert decision.url.startswith("https://example.com")
    assert decision.url.endswith("/page?x=1#top")


def test_upgraded_url_gets_root_path():
    decision = HttpsUpgrader().evaluate("http://example.com")
    assert decision.url == "https://example.com/"


@pytest.mark.parametrize(
    "url",
    [
        "http://localhost/",
        "http://127.0.0.1:8080/",
        "http://10.0.0.1/",
        "http://192.168.1.1/",
        "http://172.16.0.1/",
    ],
)
def test_private_hosts_are_not_upgraded(url):
    assert HttpsUpgrader().evaluate(url).kind is HttpsDecisionKind.NOT_UPGRADABLE


@pytest.mark.parametrize("url", ["ftp://example.com/file", "not a url", "/relative/path"])
def test_other_inputs_not_upgradable(url):
    assert HttpsUpgrader().evaluate(url).kind is HttpsDecisionKind.NOT_UPGRADABLE


def test_always_upgrade_can_be_disabled():
    upgrader = HttpsUpgrader()
    upgrader.always_upgrade = False
    assert upgrader.evaluate("http://github.com/").kind is HttpsDecisionKind.NOT_UPGRADABLE


def test_built_in_rules_cover_subdomains():
    upgrader = HttpsUpgrader()
    assert upgrader.has_rule("github.com")
    assert upgrader.has_rule("WWW.GitHub.com")
    assert not upgrader.has_rule("notgithub.com")


def test_added_rule_without_subdomains():
    upgrader = HttpsUpgrader()
    upgrader.add_rule("Example.org", False)
    assert upgrader.has_rule("example.org")
    assert not upgrader.has_rule("sub.example.org")
    upgrader.add_rule("example.net", True)
    assert upgrader.has_rule("sub.example.net")