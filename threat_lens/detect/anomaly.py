"""AnomalyScorer — linear, saturating heuristic for input unusualness.

Score formula:
    score = clamp(
        signature_weight * categories_matched
      + min(special_char_weight * special_chars, special_char_cap)
      + length_bonus  if len(text) > long_input_chars
      + length_bonus  if len(text) > very_long_input_chars
      + encoding_bonus if a %XX percent-encoded byte is present
      + encoding_bonus if a \\xXX escape is present
      + encoding_bonus if a \\uXXXX escape is present
    , 0.0, 1.0)

Terms are added, never multiplied.  This is not a statistical model; the
defaults must stay as they are for output parity with stored verdicts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from threat_lens.domain.evidence import SignatureMatch

SPECIAL_CHARS = frozenset("<>'\"`;$|&{}[]\\")

_PERCENT_ENCODED = re.compile(r"%[0-9a-fA-F]{2}")
_HEX_ESCAPE = re.compile(r"\\x[0-9a-fA-F]{2}")
_UNICODE_ESCAPE = re.compile(r"\\u[0-9a-fA-F]{4}")


@dataclass(frozen=True)
class AnomalyWeights:
    """Weights and thresholds for the anomaly formula."""

    signature: float = 0.2
    special_char: float = 0.05
    special_char_cap: float = 0.3
    long_input_chars: int = 500
    very_long_input_chars: int = 1000
    length_bonus: float = 0.1
    encoding_bonus: float = 0.1


def count_special_chars(text: str) -> int:
    return sum(1 for ch in text if ch in SPECIAL_CHARS)


class AnomalyScorer:
    """Stateless scorer; same text and matches always give the same score."""

    def __init__(self, weights: AnomalyWeights | None = None) -> None:
        self._weights = weights or AnomalyWeights()

    @property
    def weights(self) -> AnomalyWeights:
        return self._weights

    def score(self, text: str, signature_matches: Sequence[SignatureMatch]) -> float:
        w = self._weights
        score = 0.0

        score += w.signature * len(signature_matches)
        score += min(w.special_char * count_special_chars(text), w.special_char_cap)

        if len(text) > w.long_input_chars:
            score += w.length_bonus
        if len(text) > w.very_long_input_chars:
            score += w.length_bonus

        for pattern in (_PERCENT_ENCODED, _HEX_ESCAPE, _UNICODE_ESCAPE):
            if pattern.search(text):
                score += w.encoding_bonus

        return max(0.0, min(score, 1.0))
