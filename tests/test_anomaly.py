"""Tests for the anomaly scorer.

The formula is additive and saturating; these tests pin each term and
the final clamp.
"""

from __future__ import annotations

import pytest

from threat_lens.detect.anomaly import AnomalyScorer, AnomalyWeights, count_special_chars
from threat_lens.domain.enums import AttackCategory
from threat_lens.domain.evidence import SignatureMatch


def _matches(*categories: AttackCategory) -> list[SignatureMatch]:
    return [SignatureMatch(category=c, patterns=["/x/"]) for c in categories]


@pytest.fixture
def scorer() -> AnomalyScorer:
    return AnomalyScorer()


class TestAnomalyTerms:
    def test_plain_text_scores_zero(self, scorer: AnomalyScorer) -> None:
        assert scorer.score("hello world", []) == 0.0

    def test_each_matched_category_adds_point_two(self, scorer: AnomalyScorer) -> None:
        assert scorer.score("plain", _matches(AttackCategory.XSS)) == pytest.approx(0.2)
        assert scorer.score(
            "plain", _matches(AttackCategory.XSS, AttackCategory.SQL_INJECTION),
        ) == pytest.approx(0.4)

    def test_special_chars_add_point_zero_five_each(self, scorer: AnomalyScorer) -> None:
        assert scorer.score("a<b>c", []) == pytest.approx(0.1)
        assert scorer.score("<<<<", []) == pytest.approx(0.2)

    def test_special_char_term_caps_at_point_three(self, scorer: AnomalyScorer) -> None:
        assert scorer.score("<" * 6, []) == pytest.approx(0.3)
        assert scorer.score("<" * 40, []) == pytest.approx(0.3)

    def test_special_char_set(self) -> None:
        assert count_special_chars("<>'\"`;$|&{}[]\\") == 14
        assert count_special_chars("abc/.:=%()") == 0

    def test_length_bonuses_are_cumulative(self, scorer: AnomalyScorer) -> None:
        assert scorer.score("a" * 500, []) == 0.0
        assert scorer.score("a" * 501, []) == pytest.approx(0.1)
        assert scorer.score("a" * 1000, []) == pytest.approx(0.1)
        assert scorer.score("a" * 1001, []) == pytest.approx(0.2)

    def test_percent_encoding(self, scorer: AnomalyScorer) -> None:
        assert scorer.score("a%2Fb", []) == pytest.approx(0.1)
        assert scorer.score("a%zzb", []) == 0.0

    def test_hex_escape(self, scorer: AnomalyScorer) -> None:
        # The backslash itself is a special character.
        assert scorer.score("\\x41", []) == pytest.approx(0.15)

    def test_unicode_escape(self, scorer: AnomalyScorer) -> None:
        assert scorer.score("\\u0041", []) == pytest.approx(0.15)

    def test_terms_add_not_multiply(self, scorer: AnomalyScorer) -> None:
        text = "<>" + "%41" + "a" * 600
        expected = 0.2 + 0.1 + 0.1 + 0.1
        assert scorer.score(text, _matches(AttackCategory.XSS)) == pytest.approx(expected)


class TestAnomalyBounds:
    def test_clamped_to_one(self, scorer: AnomalyScorer) -> None:
        text = "<>;$|&" * 5 + "%41 \\x41 \\u0041" + "a" * 1200
        matches = _matches(
            AttackCategory.XSS,
            AttackCategory.SQL_INJECTION,
            AttackCategory.RCE,
            AttackCategory.SSRF,
            AttackCategory.LFI,
        )
        assert scorer.score(text, matches) == 1.0

    @pytest.mark.parametrize("text", ["", "a", "<" * 100, "%41" * 50, "x" * 5000])
    def test_always_in_unit_interval(self, scorer: AnomalyScorer, text: str) -> None:
        assert 0.0 <= scorer.score(text, _matches(AttackCategory.XSS)) <= 1.0

    def test_monotonic_in_special_chars(self, scorer: AnomalyScorer) -> None:
        scores = [scorer.score("<" * n + "a" * (20 - n), []) for n in range(21)]
        assert all(a <= b for a, b in zip(scores, scores[1:]))

    def test_negative_weights_clamped_to_zero(self) -> None:
        scorer = AnomalyScorer(AnomalyWeights(signature=-1.0))
        assert scorer.score("plain", _matches(AttackCategory.XSS)) == 0.0


class TestCustomWeights:
    def test_weights_are_injectable(self) -> None:
        scorer = AnomalyScorer(AnomalyWeights(signature=0.5, encoding_bonus=0.0))
        assert scorer.score("%41", _matches(AttackCategory.XSS)) == pytest.approx(0.5)
