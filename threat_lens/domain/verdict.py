"""Verdict models — the classifier's opinion and the core's final answer.

ExternalVerdict is whatever the free-text classifier claimed, normalised at
the boundary but otherwise untrusted.  FinalVerdict is the sole output of
the pipeline: created once per invocation and immutable afterwards.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from threat_lens.domain.enums import AttackCategory, DetectionMethod, Severity
from threat_lens.domain.evidence import Indicator, SignatureMatch

logger = logging.getLogger(__name__)


def _as_string_list(v: Any) -> list[str]:
    if v is None:
        return []
    if isinstance(v, str):
        return [v] if v.strip() else []
    if isinstance(v, (list, tuple)):
        return [str(item) for item in v if item is not None]
    return [str(v)]


# ── External Verdict ─────────────────────────────────────────────────────────

class ExternalVerdict(BaseModel):
    """Structured opinion parsed from the external classifier's reply.

    Not guaranteed to be internally consistent.  The validators only make
    it well-typed: categories outside the enumeration become UNKNOWN,
    percentage confidences are rescaled, and unknown severities are dropped.
    """

    is_malicious: bool = False
    attack_category: AttackCategory = AttackCategory.UNKNOWN
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    severity: Optional[Severity] = None
    is_success: bool = False
    explanation: str = ""
    indicators: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def accept_attack_type_alias(cls, data: Any) -> Any:
        # The prompt asks for "attack_type"; some replies use the model's name.
        if isinstance(data, dict) and "attack_category" not in data and "attack_type" in data:
            data = dict(data)
            data["attack_category"] = data.pop("attack_type")
        return data

    @field_validator("attack_category", mode="before")
    @classmethod
    def coerce_category(cls, v: Any) -> AttackCategory:
        if isinstance(v, AttackCategory):
            return v
        if not isinstance(v, str):
            return AttackCategory.UNKNOWN
        normalised = v.strip().lower().replace(" ", "_").replace("-", "_")
        try:
            return AttackCategory(normalised)
        except ValueError:
            logger.debug("Classifier returned unrecognised category %r", v)
            return AttackCategory.UNKNOWN

    @field_validator("confidence", mode="before")
    @classmethod
    def normalise_confidence(cls, v: Any) -> float:
        try:
            value = float(v)
        except (TypeError, ValueError):
            return 0.0
        if value != value:  # NaN
            return 0.0
        # 2 and up reads as a percentage; anything just over 1 is overshoot.
        if value >= 2.0:
            value = value / 100.0
        return max(0.0, min(value, 1.0))

    @field_validator("severity", mode="before")
    @classmethod
    def coerce_severity(cls, v: Any) -> Optional[Severity]:
        if isinstance(v, Severity) or v is None:
            return v
        try:
            return Severity(str(v).strip().lower())
        except ValueError:
            return None

    @field_validator("is_malicious", "is_success", mode="before")
    @classmethod
    def coerce_flag(cls, v: Any) -> bool:
        if isinstance(v, str):
            return v.strip().lower() in {"true", "yes", "1"}
        return bool(v)

    @field_validator("explanation", mode="before")
    @classmethod
    def coerce_explanation(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("indicators", "recommendations", mode="before")
    @classmethod
    def coerce_lists(cls, v: Any) -> list[str]:
        return _as_string_list(v)


# ── Final Verdict ────────────────────────────────────────────────────────────

class FinalVerdict(BaseModel):
    """The merged classification record handed to persistence and display."""

    is_malicious: bool
    attack_type: AttackCategory
    confidence: float = Field(..., ge=0.0, le=1.0)
    severity: Optional[Severity] = None
    is_success: bool = False
    explanation: str = ""
    indicators: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    detection_method: DetectionMethod
    signature_matches: list[SignatureMatch] = Field(default_factory=list)
    anomaly_score: float = Field(..., ge=0.0, le=1.0)
    extracted_iocs: list[Indicator] = Field(default_factory=list)
    mitre_tactic: str = Field(..., min_length=1)
    mitre_technique: str = Field(..., min_length=1)
    mitre_id: str = Field(..., min_length=1)
    analyzed_at: datetime

    model_config = {"frozen": True}
