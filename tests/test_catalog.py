"""Tests for the PatternCatalog and the built-in signature set."""

from __future__ import annotations

import re

import pytest

from threat_lens.catalog.catalog import DetectionRule, PatternCatalog
from threat_lens.catalog.defaults import DEFAULT_SIGNATURES, default_catalog
from threat_lens.domain.enums import AttackCategory
from threat_lens.domain.errors import CatalogError
from threat_lens.domain.evidence import KillChainMapping


@pytest.fixture
def catalog() -> PatternCatalog:
    return default_catalog()


class TestDefaultCatalog:
    def test_compiles(self, catalog: PatternCatalog) -> None:
        assert catalog.rule_count == sum(len(v) for v in DEFAULT_SIGNATURES.values())

    def test_category_order_is_definition_order(self, catalog: PatternCatalog) -> None:
        assert catalog.categories == tuple(DEFAULT_SIGNATURES.keys())
        assert catalog.categories[0] is AttackCategory.SQL_INJECTION

    def test_all_categories_is_a_set(self, catalog: PatternCatalog) -> None:
        cats = catalog.all_categories()
        assert isinstance(cats, frozenset)
        assert AttackCategory.XSS in cats
        assert AttackCategory.UNKNOWN not in cats

    def test_rules_keep_order(self, catalog: PatternCatalog) -> None:
        rules = catalog.rules_for(AttackCategory.PATH_TRAVERSAL)
        assert rules[0].display == r"/\.\./"
        assert rules[-1].display == "/windows/system32/i"

    def test_rules_for_category_without_rules_is_empty(self, catalog: PatternCatalog) -> None:
        assert catalog.rules_for(AttackCategory.BRUTE_FORCE) == ()

    def test_mapping_for_known_category(self, catalog: PatternCatalog) -> None:
        m = catalog.mapping_for(AttackCategory.SQL_INJECTION)
        assert m.technique_id == "T1190"
        assert m.tactic == "Initial Access"

    def test_mapping_without_rules(self, catalog: PatternCatalog) -> None:
        assert catalog.mapping_for(AttackCategory.BRUTE_FORCE).technique_id == "T1110"
        assert catalog.mapping_for(AttackCategory.DOS).technique_id == "T1499"

    def test_unmapped_category_returns_sentinel(self, catalog: PatternCatalog) -> None:
        m = catalog.mapping_for(AttackCategory.RECONNAISSANCE)
        assert (m.tactic, m.technique, m.technique_id) == ("Unknown", "Unknown", "N/A")

    def test_unrecognised_string_returns_sentinel(self, catalog: PatternCatalog) -> None:
        assert catalog.mapping_for("made_up_attack").technique_id == "N/A"
        assert catalog.mapping_for(None).technique_id == "N/A"

    def test_mapping_url(self, catalog: PatternCatalog) -> None:
        assert catalog.mapping_for(AttackCategory.XSS).url == "https://attack.mitre.org/techniques/T1189/"
        assert catalog.mapping_for(AttackCategory.UNKNOWN).url is None


class TestCatalogConstruction:
    def test_invalid_pattern_is_construction_error(self) -> None:
        with pytest.raises(CatalogError):
            PatternCatalog.from_definitions({AttackCategory.XSS: (("(unclosed", 0),)})

    def test_unknown_category_rejected(self) -> None:
        with pytest.raises(CatalogError):
            PatternCatalog.from_definitions({"not_a_category": (("abc", 0),)})

    def test_misfiled_rule_rejected(self) -> None:
        rule = DetectionRule.compile(AttackCategory.XSS, "abc")
        with pytest.raises(CatalogError):
            PatternCatalog({AttackCategory.SQL_INJECTION: [rule]})

    def test_synthetic_catalog(self) -> None:
        catalog = PatternCatalog.from_definitions(
            {"dos": (("flood", re.IGNORECASE),)},
            {"dos": KillChainMapping(tactic="Impact", technique="Flood", technique_id="T9999")},
        )
        assert catalog.categories == (AttackCategory.DOS,)
        assert catalog.mapping_for(AttackCategory.DOS).technique_id == "T9999"
        assert catalog.mapping_for(AttackCategory.XSS).technique_id == "N/A"

    def test_display_form_carries_flags(self) -> None:
        assert DetectionRule.compile(AttackCategory.XSS, "abc", re.IGNORECASE).display == "/abc/i"
        assert DetectionRule.compile(AttackCategory.XSS, "abc").display == "/abc/"

    def test_catalog_is_read_only(self, catalog: PatternCatalog) -> None:
        with pytest.raises(TypeError):
            catalog._rules[AttackCategory.DOS] = ()  # type: ignore[index]
