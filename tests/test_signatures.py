"""Tests for the SignatureMatcher against the built-in catalog."""

from __future__ import annotations

import pytest

from threat_lens.catalog.catalog import PatternCatalog
from threat_lens.catalog.defaults import default_catalog
from threat_lens.detect.signatures import SignatureMatcher
from threat_lens.domain.enums import AttackCategory


@pytest.fixture(scope="module")
def matcher() -> SignatureMatcher:
    return SignatureMatcher(default_catalog())


def _categories(matcher: SignatureMatcher, text: str) -> list[AttackCategory]:
    return [m.category for m in matcher.match(text)]


class TestSignatureMatcher:
    @pytest.mark.parametrize("text", [
        "<script>",
        "/search?q=<script>alert(1)</script>",
        "GET /page?x=<SCRIPT src=//evil.io/x.js>",
    ])
    def test_script_tag_is_xss(self, matcher: SignatureMatcher, text: str) -> None:
        assert AttackCategory.XSS in _categories(matcher, text)

    @pytest.mark.parametrize("text", [
        "' OR '1'='1",
        "/login?user=admin' OR '1'='1&pw=x",
        "id=1' or '1'='1' --",
    ])
    def test_tautology_is_sql_injection(self, matcher: SignatureMatcher, text: str) -> None:
        assert AttackCategory.SQL_INJECTION in _categories(matcher, text)

    def test_path_traversal_rules_in_catalog_order(self, matcher: SignatureMatcher) -> None:
        matches = matcher.match("../../../etc/passwd")
        assert [m.category for m in matches] == [AttackCategory.PATH_TRAVERSAL]
        assert matches[0].patterns == [r"/\.\./", "/etc/passwd/i"]

    def test_benign_url_has_no_matches(self, matcher: SignatureMatcher) -> None:
        assert matcher.match("https://example.com/about") == []

    def test_multiple_categories_fire(self, matcher: SignatureMatcher) -> None:
        cats = _categories(matcher, "http://127.0.0.1/?f=php://filter/resource=../../etc/passwd")
        assert AttackCategory.SSRF in cats
        assert AttackCategory.LFI in cats
        assert AttackCategory.PATH_TRAVERSAL in cats

    def test_categories_reported_in_catalog_order(self, matcher: SignatureMatcher) -> None:
        cats = _categories(matcher, "; cat /etc/passwd' OR 1=1 --")
        catalog_order = list(default_catalog().categories)
        assert cats == sorted(cats, key=catalog_order.index)

    def test_unanchored_match(self, matcher: SignatureMatcher) -> None:
        assert AttackCategory.XXE in _categories(matcher, 'prefix <!ENTITY xxe SYSTEM "file:///x"> suffix')

    def test_command_injection(self, matcher: SignatureMatcher) -> None:
        matches = {m.category: m for m in matcher.match("ping 8.8.8.8 | whoami")}
        assert AttackCategory.COMMAND_INJECTION in matches
        assert len(matches[AttackCategory.COMMAND_INJECTION].patterns) == 3

    def test_synthetic_catalog(self) -> None:
        catalog = PatternCatalog.from_definitions({"dos": (("flood", 0), ("burst", 0))})
        matches = SignatureMatcher(catalog).match("burst then flood")
        assert len(matches) == 1
        assert matches[0].patterns == ["/flood/", "/burst/"]


class TestAsciiRuleSemantics:
    def test_non_ascii_digits_are_not_digits(self, matcher: SignatureMatcher) -> None:
        # Arabic-Indic "1=1" after "or".
        assert AttackCategory.SQL_INJECTION not in _categories(matcher, "name or ١=١")
        assert AttackCategory.SQL_INJECTION in _categories(matcher, "name or 1=1")

    def test_accented_letter_is_a_word_boundary(self, matcher: SignatureMatcher) -> None:
        assert AttackCategory.COMMAND_INJECTION in _categories(matcher, "écat /tmp/x")
