"""Abstract base for external threat classifiers.

A classifier is an opaque, unreliable, latent collaborator.  Subclasses
only implement transport (complete()); prompt shaping and reply parsing
live here so every backend honours the same contract.

Architectural rules:
    1. classify() returns a valid ExternalVerdict or raises a ClassifierError.
    2. No retries.  The caller decides whether to re-run the pipeline.
    3. No classification logic of our own: only request shaping and parsing.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Sequence

from threat_lens.classifier.parsers import FirstJsonBlockParser, ResponseParser
from threat_lens.classifier.prompt import build_system_prompt, build_user_prompt
from threat_lens.domain.enums import InputKind
from threat_lens.domain.evidence import Indicator, SignatureMatch
from threat_lens.domain.verdict import ExternalVerdict

logger = logging.getLogger(__name__)


class ThreatClassifier(ABC):
    """Base class for free-text classifiers consulted by the pipeline."""

    def __init__(self, parser: ResponseParser | None = None) -> None:
        self._parser = parser or FirstJsonBlockParser()

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of the backend."""
        ...

    @abstractmethod
    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Send one prompt pair and return the raw text reply.

        Raises:
            ClassifierError: On rate limiting, missing configuration,
                timeouts or any other transport failure.
        """
        ...

    async def classify(
        self,
        text: str,
        hint: InputKind,
        signature_matches: Sequence[SignatureMatch],
        anomaly_score: float,
        iocs: Sequence[Indicator],
    ) -> ExternalVerdict:
        """Ask the backend for a verdict on *text*, given the deterministic context."""
        system_prompt = build_system_prompt(signature_matches, anomaly_score, iocs)
        user_prompt = build_user_prompt(text, hint)

        reply = await self.complete(system_prompt, user_prompt)
        verdict = self._parser.parse(reply)
        logger.info(
            "Classifier '%s' verdict: malicious=%s category=%s confidence=%.2f",
            self.name,
            verdict.is_malicious,
            verdict.attack_category.value,
            verdict.confidence,
        )
        return verdict
