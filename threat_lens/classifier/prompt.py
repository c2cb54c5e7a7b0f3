"""Prompt construction for the external threat classifier.

The classifier sees the raw input plus the deterministic pre-analysis as
context.  It is asked for exactly the ExternalVerdict JSON shape.
"""

from __future__ import annotations

import json
from typing import Sequence

from threat_lens.domain.enums import AttackCategory, InputKind
from threat_lens.domain.evidence import Indicator, SignatureMatch

_CATEGORY_CHOICES = " | ".join(f'"{c.value}"' for c in AttackCategory)

_SYSTEM_PROMPT = """You are an expert cybersecurity threat analyst. Analyze the provided input for potential security threats.

Pre-analysis results (signature-based detection):
- Matched signatures: {signatures}
- Anomaly score: {anomaly_score}
- Extracted IOCs: {iocs}

Return your analysis in this exact JSON format:
{{
  "is_malicious": boolean,
  "attack_type": {categories},
  "confidence": number (0-1),
  "severity": "low" | "medium" | "high" | "critical",
  "is_success": boolean,
  "explanation": "detailed explanation",
  "indicators": ["list of specific indicators found"],
  "recommendations": ["list of mitigation steps"]
}}"""

_USER_PROMPT = "Analyze this {kind} for potential security threats:\n\n{text}"


def build_system_prompt(
    signature_matches: Sequence[SignatureMatch],
    anomaly_score: float,
    iocs: Sequence[Indicator],
) -> str:
    return _SYSTEM_PROMPT.format(
        signatures=json.dumps([m.model_dump(mode="json") for m in signature_matches]),
        anomaly_score=anomaly_score,
        iocs=json.dumps([i.model_dump(mode="json") for i in iocs]),
        categories=_CATEGORY_CHOICES,
    )


def build_user_prompt(text: str, hint: InputKind) -> str:
    return _USER_PROMPT.format(kind=hint.prompt_label, text=text)
