import pytest

from fortrust.csp import (
    CspDirective,
    CspPolicy,
    CspSource,
    SourceKind,
    directive_from_name,
    parse_csp_source,
)


def test_empty_policy_allows_everything():
    policy = CspPolicy()
    assert policy.allows(CspDirective.IMG_SRC, "https://any.example.com/a.png")
    assert policy.allows_inline_script()
    assert policy.allows_eval()
    assert not policy.is_strict()
    assert policy.block_all_mixed_content
    assert policy.upgrade_insecure_requests


def test_host_source_matches_substring():
    policy = CspPolicy.parse("img-src cdn.example.com")
    assert policy.allows(CspDirective.IMG_SRC, "https://cdn.example.com/a.png")
    assert not policy.allows(CspDirective.IMG_SRC, "https://evil.example.net/a.png")


def test_falls_back_to_default_src():
    policy = CspPolicy.parse("default-src 'none'")
    assert not policy.allows(CspDirective.IMG_SRC, "https://example.com/a.png")
    assert policy.is_strict()


def test_specific_directive_takes_precedence():
    policy = CspPolicy.parse("default-src 'none'; img-src 'self'")
    assert policy.allows(CspDirective.IMG_SRC, "https://example.com/a.png")
    assert not policy.allows(CspDirective.SCRIPT_SRC, "https://example.com/a.js")


@pytest.mark.parametrize("header", ["img-src", "img-src *"])
def test_directive_without_known_sources_blocks(header):
    policy = CspPolicy.parse(header)
    assert not policy.allows(CspDirective.IMG_SRC, "https://example.com/a.png")


def test_scheme_source():
    policy = CspPolicy.parse("img-src https:")
    assert policy.allows(CspDirective.IMG_SRC, "https://example.com/a.png")
    assert not policy.allows(CspDirective.IMG_SRC, "http://example.com/a.png")


def test_data_source():
    policy = CspPolicy.parse("img-src data:")
    assert policy.allows(CspDirective.IMG_SRC, "data:image/png;base64,AA")
    assert not policy.allows(CspDirective.IMG_SRC, "https://example.com/a.png")


def test_inline_script_and_eval():
    assert CspPolicy.parse("script-src 'unsafe-inline'").allows_inline_script()
    assert not CspPolicy.parse("script-src 'self'").allows_inline_script()
    assert CspPolicy.parse("default-src 'unsafe-eval'").allows_eval()
    assert not CspPolicy.parse("default-src 'self'").allows_eval()


def test_report_uri_is_recorded_not_a_directive():
    policy = CspPolicy.parse("report-uri https://report.example.com/csp; img-src 'self'")
    assert policy.report_uri == "https://report.example.com/csp"
    assert [d.directive for d in policy.directives] == [CspDirective.IMG_SRC]


def test_relative_report_uri_is_dropped():
    assert CspPolicy.parse("report-uri /csp").report_uri is None


def test_directive_names_are_case_insensitive_in_header():
    policy = CspPolicy.parse("IMG-SRC example.com")
    assert [d.directive for d in policy.directives] == [CspDirective.IMG_SRC]


def test_unknown_directives_and_blank_parts_are_ignored():
    policy = CspPolicy.parse(" ; sandbox allow-scripts;; ")
    assert policy.directives == []


def test_flag_directives_are_not_listed():
    policy = CspPolicy.parse("upgrade-insecure-requests; block-all-mixed-content")
    assert policy.directives == []
    assert policy.upgrade_insecure_requests
    assert policy.block_all_mixed_content


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("'none'", CspSource(SourceKind.NONE)),
        ("'self'", CspSource(SourceKind.SELF)),
        ("'nonce-abc'", CspSource(SourceKind.NONCE, "abc")),
        ("'sha256-xyz'", CspSource(SourceKind.HASH, "'sha256-xyz'")),
        ("https:", CspSource(SourceKind.SCHEME, "https")),
        ("data:", CspSource(SourceKind.DATA)),
        ("https://cdn.example.com", CspSource(SourceKind.HOST, "https://cdn.example.com")),
        ("*", None),
        ("'report-sample'", None),
    ],
)
def test_parse_csp_source(text, expected):
    assert parse_csp_source(text) == expected


def test_directive_from_name():
    assert directive_from_name("script-src") is CspDirective.SCRIPT_SRC
    assert directive_from_name("frame-ancestors") is CspDirective.FRAME_ANCESTORS
    assert directive_from_name("sandbox") is None
    for directive in CspDirective:
        assert directive_from_name(directive.value) is directive