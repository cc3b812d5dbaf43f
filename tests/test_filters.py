from fortrust.filters import (
    CosmeticResources,
    PrivacySettings,
    create_placeholder_filter_lists,
    strip_tracking_params,
)


def test_settings_default_to_everything_on():
    settings = PrivacySettings()
    assert settings.block_ads is True
    assert settings.block_trackers is True
    assert settings.block_fingerprinting is True
    assert settings.https_only is True
    assert settings.block_third_party_cookies is True
    assert settings.strip_tracking_params is True


def test_cosmetic_resources_default_empty():
    resources = CosmeticResources()
    assert resources.hide_selectors == []
    assert resources.procedural_actions == []
    assert resources.injected_script is None
    assert resources.generichide is False


def test_strips_tracking_params_and_keeps_others():
    result = strip_tracking_params("https://example.com/p?utm_source=news&id=5&fbclid=abc")
    assert result == "https://example.com/p?id=5"


def test_removes_query_entirely_when_all_stripped():
    result = strip_tracking_params("https://example.com/p?gclid=1&ref=home#frag")
    assert result == "https://example.com/p#frag"


def test_no_query_is_unchanged():
    assert strip_tracking_params("https://example.com/p") == "https://example.com/p"


def test_disabled_returns_input():
    url = "https://example.com/p?utm_source=x"
    assert strip_tracking_params(url, enabled=False) == url


def test_blank_values_are_kept():
    assert strip_tracking_params("https://example.com/?a&utm_term=x") == "https://example.com/?a="


def test_creates_placeholder_lists(tmp_path):
    created = create_placeholder_filter_lists(tmp_path)
    names = sorted(p.name for p in created)
    assert names == ["brave-unbreak.txt", "easylist.txt", "easyprivacy.txt"]
    text = (tmp_path / "assets/filter-lists/easylist.txt").read_text(encoding="utf-8")
    assert text.startswith("! easylist — placeholder\n")


def test_existing_lists_are_not_overwritten(tmp_path):
    target = tmp_path / "assets/filter-lists/easylist.txt"
    target.parent.mkdir(parents=True)
    target.write_text("||ads.example.com^\n", encoding="utf-8")
    created = create_placeholder_filter_lists(tmp_path)
    assert target not in created
    assert target.read_text(encoding="utf-8") == "||ads.example.com^\n"
    assert len(created) == 2