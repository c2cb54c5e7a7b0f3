"""Tests for classifier reply parsing and ExternalVerdict normalisation."""

from __future__ import annotations

import json

import pytest

from threat_lens.classifier.parsers import (
    FirstJsonBlockParser,
    StrictJsonParser,
    first_json_object,
    parser_for,
)
from threat_lens.domain.enums import AttackCategory, Severity
from threat_lens.domain.errors import ClassifierResponseUnparseable
from threat_lens.domain.verdict import ExternalVerdict


def _payload(**overrides) -> dict:
    base = {
        "is_malicious": True,
        "attack_type": "sql_injection",
        "confidence": 0.9,
        "severity": "high",
        "is_success": False,
        "explanation": "Classic tautology injection in the id parameter.",
        "indicators": ["' OR '1'='1"],
        "recommendations": ["Use parameterised queries"],
    }
    base.update(overrides)
    return base


class TestFirstJsonObject:
    def test_finds_object_in_prose(self) -> None:
        text = 'Here is my analysis: {"a": 1} hope it helps {"b": 2}'
        assert first_json_object(text) == '{"a": 1}'

    def test_nested_braces(self) -> None:
        text = 'x {"a": {"b": {"c": 1}}} y'
        assert first_json_object(text) == '{"a": {"b": {"c": 1}}}'

    def test_braces_inside_strings_are_ignored(self) -> None:
        text = '{"payload": "${jndi:ldap://x}", "note": "a } b"} trailing'
        assert json.loads(first_json_object(text)) == {"payload": "${jndi:ldap://x}", "note": "a } b"}

    def test_escaped_quote_inside_string(self) -> None:
        text = '{"q": "say \\"}\\" loudly"}'
        assert json.loads(first_json_object(text)) == {"q": 'say "}" loudly'}

    def test_no_object(self) -> None:
        assert first_json_object("no json here") is None
        assert first_json_object("{ never closed") is None


class TestFirstJsonBlockParser:
    def test_plain_json(self) -> None:
        verdict = FirstJsonBlockParser().parse(json.dumps(_payload()))
        assert verdict.is_malicious is True
        assert verdict.attack_category == AttackCategory.SQL_INJECTION
        assert verdict.severity == Severity.HIGH

    def test_json_wrapped_in_prose_and_fences(self) -> None:
        text = "Sure!\n```json\n" + json.dumps(_payload()) + "\n```\nLet me know."
        verdict = FirstJsonBlockParser().parse(text)
        assert verdict.confidence == pytest.approx(0.9)

    @pytest.mark.parametrize("text", [None, "", "   ", "I cannot analyse this."])
    def test_no_usable_verdict(self, text) -> None:
        with pytest.raises(ClassifierResponseUnparseable):
            FirstJsonBlockParser().parse(text)

    def test_malformed_json(self) -> None:
        with pytest.raises(ClassifierResponseUnparseable):
            FirstJsonBlockParser().parse("{'single': 'quotes'}")


class TestStrictJsonParser:
    def test_accepts_fenced_json(self) -> None:
        verdict = StrictJsonParser().parse("```json\n" + json.dumps(_payload()) + "\n```")
        assert verdict.attack_category == AttackCategory.SQL_INJECTION

    def test_rejects_prose(self) -> None:
        with pytest.raises(ClassifierResponseUnparseable):
            StrictJsonParser().parse("Analysis: " + json.dumps(_payload()))

    def test_rejects_non_object(self) -> None:
        with pytest.raises(ClassifierResponseUnparseable):
            StrictJsonParser().parse("[1, 2, 3]")


class TestParserLookup:
    def test_known_names(self) -> None:
        assert isinstance(parser_for("first_json_block"), FirstJsonBlockParser)
        assert isinstance(parser_for("strict_json"), StrictJsonParser)

    def test_unknown_name(self) -> None:
        with pytest.raises(ValueError):
            parser_for("function_calling")


class TestExternalVerdictNormalisation:
    def test_percentage_confidence_rescaled(self) -> None:
        assert ExternalVerdict.model_validate(_payload(confidence=85)).confidence == pytest.approx(0.85)

    def test_slight_overshoot_clamps_instead_of_rescaling(self) -> None:
        assert ExternalVerdict.model_validate(_payload(confidence=1.5)).confidence == 1.0
        assert ExternalVerdict.model_validate(_payload(confidence=2)).confidence == pytest.approx(0.02)

    def test_confidence_clamped(self) -> None:
        assert ExternalVerdict.model_validate(_payload(confidence=250)).confidence == 1.0
        assert ExternalVerdict.model_validate(_payload(confidence=-3)).confidence == 0.0

    def test_garbage_confidence_is_zero(self) -> None:
        assert ExternalVerdict.model_validate(_payload(confidence="high")).confidence == 0.0

    def test_unrecognised_category_is_unknown(self) -> None:
        v = ExternalVerdict.model_validate(_payload(attack_type="zero_day_magic"))
        assert v.attack_category == AttackCategory.UNKNOWN

    def test_category_spelling_variants(self) -> None:
        v = ExternalVerdict.model_validate(_payload(attack_type="Path Traversal"))
        assert v.attack_category == AttackCategory.PATH_TRAVERSAL
        v = ExternalVerdict.model_validate(_payload(attack_type="command-injection"))
        assert v.attack_category == AttackCategory.COMMAND_INJECTION

    def test_attack_category_key_accepted(self) -> None:
        payload = _payload()
        payload["attack_category"] = payload.pop("attack_type")
        assert ExternalVerdict.model_validate(payload).attack_category == AttackCategory.SQL_INJECTION

    def test_unknown_severity_dropped(self) -> None:
        assert ExternalVerdict.model_validate(_payload(severity="catastrophic")).severity is None

    def test_string_lists_accepted(self) -> None:
        v = ExternalVerdict.model_validate(_payload(recommendations="Patch the app"))
        assert v.recommendations == ["Patch the app"]

    def test_missing_fields_default(self) -> None:
        v = ExternalVerdict.model_validate({})
        assert v.is_malicious is False
        assert v.attack_category == AttackCategory.UNKNOWN
        assert v.confidence == 0.0
        assert v.indicators == []

    def test_string_flags(self) -> None:
        v = ExternalVerdict.model_validate(_payload(is_malicious="false", is_success="true"))
        assert v.is_malicious is False
        assert v.is_success is True

    def test_verdict_is_immutable(self) -> None:
        v = ExternalVerdict.model_validate(_payload())
        with pytest.raises(Exception):
            v.confidence = 0.1
