"""Response parsers — turn a classifier's free-text reply into an ExternalVerdict.

Parsing sits behind its own interface so a different classifier contract
(strict JSON mode, function calling) can be swapped in without touching
the combiner.

Architectural rules:
    1. parse() must return a fully valid ExternalVerdict or raise
       ClassifierResponseUnparseable.
    2. Parsers never guess a verdict from prose.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import ValidationError

from threat_lens.domain.errors import ClassifierResponseUnparseable
from threat_lens.domain.verdict import ExternalVerdict

logger = logging.getLogger(__name__)


class ResponseParser(ABC):
    """Base class for converting classifier replies into ExternalVerdicts."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def extract_json(self, text: str) -> dict[str, Any]:
        """Pull a JSON object out of *text*.

        Raises:
            ClassifierResponseUnparseable: If no JSON object can be decoded.
        """
        ...

    def parse(self, text: str | None) -> ExternalVerdict:
        if text is None or not text.strip():
            raise ClassifierResponseUnparseable("Classifier returned an empty response")
        payload = self.extract_json(text)
        try:
            return ExternalVerdict.model_validate(payload)
        except ValidationError as exc:
            raise ClassifierResponseUnparseable(f"Verdict JSON failed validation: {exc}") from exc


def strip_code_fences(text: str) -> str:
    """Remove markdown ``` fences that models like to wrap JSON in."""
    text = text.strip()
    if "```" not in text:
        return text
    lines = [line for line in text.split("\n") if not line.strip().startswith("```")]
    return "\n".join(lines).strip()


def first_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` block in *text*, or None.

    Braces inside JSON string literals are ignored, so a value such as
    ``"payload": "${jndi}"`` does not end the block early.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        # Unbalanced from this brace; try the next one.
        start = text.find("{", start + 1)
    return None


def _decode_object(raw: str) -> dict[str, Any]:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ClassifierResponseUnparseable(f"Malformed verdict JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ClassifierResponseUnparseable(
            f"Expected a JSON object, got {type(payload).__name__}"
        )
    return payload


class FirstJsonBlockParser(ResponseParser):
    """Tolerant parser: accepts JSON embedded in prose or code fences."""

    @property
    def name(self) -> str:
        return "first_json_block"

    def extract_json(self, text: str) -> dict[str, Any]:
        cleaned = strip_code_fences(text)
        block = first_json_object(cleaned)
        if block is None:
            logger.warning("No JSON object in classifier reply (%d chars)", len(text))
            raise ClassifierResponseUnparseable("No JSON object found in classifier response")
        return _decode_object(block)


class StrictJsonParser(ResponseParser):
    """Strict parser for classifiers running in JSON-only mode."""

    @property
    def name(self) -> str:
        return "strict_json"

    def extract_json(self, text: str) -> dict[str, Any]:
        return _decode_object(strip_code_fences(text))


_PARSERS: dict[str, type[ResponseParser]] = {
    "first_json_block": FirstJsonBlockParser,
    "strict_json": StrictJsonParser,
}


def parser_for(name: str) -> ResponseParser:
    """Look up a parser by its configured name."""
    try:
        return _PARSERS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown response parser '{name}'; expected one of {sorted(_PARSERS)}"
        ) from None
