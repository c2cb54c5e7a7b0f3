"""VerdictCombiner — merges deterministic evidence with the classifier opinion.

Precedence:
    is_malicious     = external.is_malicious OR signatures matched
                       OR anomaly_score > malicious_threshold
    attack_type      = external category unless UNKNOWN,
                       else first matched category (catalog order),
                       else UNKNOWN
    confidence       = max(external.confidence, anomaly_score)
    detection_method = "signature+ai" if signatures matched, else "ai"
    mitre_*          = catalog mapping for attack_type (Unknown sentinel if none)

Severity, success, explanation, indicators and recommendations pass through
from the classifier untouched.  Any one signal can force a positive verdict;
none can force a negative one.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Sequence

from threat_lens.catalog.catalog import PatternCatalog
from threat_lens.domain.enums import AttackCategory, DetectionMethod
from threat_lens.domain.evidence import Indicator, SignatureMatch
from threat_lens.domain.verdict import ExternalVerdict, FinalVerdict
from threat_lens.foundation.clock import utc_now

logger = logging.getLogger(__name__)


class VerdictCombiner:
    """Stateless merge step; the catalog is only read for ATT&CK mappings."""

    def __init__(
        self,
        catalog: PatternCatalog,
        malicious_threshold: float = 0.5,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._catalog = catalog
        self._malicious_threshold = malicious_threshold
        self._clock = clock

    def _now(self) -> datetime:
        return self._clock() if self._clock else utc_now()

    @staticmethod
    def resolve_attack_type(
        external: ExternalVerdict,
        signature_matches: Sequence[SignatureMatch],
    ) -> AttackCategory:
        if external.attack_category is not AttackCategory.UNKNOWN:
            return external.attack_category
        if signature_matches:
            return signature_matches[0].category
        return AttackCategory.UNKNOWN

    def combine(
        self,
        external: ExternalVerdict,
        signature_matches: Sequence[SignatureMatch],
        anomaly_score: float,
        iocs: Sequence[Indicator],
    ) -> FinalVerdict:
        matched = len(signature_matches) > 0
        attack_type = self.resolve_attack_type(external, signature_matches)
        mitre = self._catalog.mapping_for(attack_type)

        verdict = FinalVerdict(
            is_malicious=(
                external.is_malicious
                or matched
                or anomaly_score > self._malicious_threshold
            ),
            attack_type=attack_type,
            confidence=max(external.confidence, anomaly_score),
            severity=external.severity,
            is_success=external.is_success,
            explanation=external.explanation,
            indicators=list(external.indicators),
            recommendations=list(external.recommendations),
            detection_method=DetectionMethod.SIGNATURE_AI if matched else DetectionMethod.AI,
            signature_matches=list(signature_matches),
            anomaly_score=anomaly_score,
            extracted_iocs=list(iocs),
            mitre_tactic=mitre.tactic,
            mitre_technique=mitre.technique,
            mitre_id=mitre.technique_id,
            analyzed_at=self._now(),
        )

        logger.info(
            "Final verdict: malicious=%s type=%s confidence=%.2f method=%s mitre=%s",
            verdict.is_malicious,
            verdict.attack_type.value,
            verdict.confidence,
            verdict.detection_method.value,
            verdict.mitre_id,
        )
        return verdict
