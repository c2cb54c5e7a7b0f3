"""Deterministic evidence produced by the detection layers.

These values are transient: they are created for one input, handed to the
classifier as context and folded into the final verdict.  All of them are
frozen so a node can never alter what an earlier node observed.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from threat_lens.domain.enums import AttackCategory, IndicatorType


class KillChainMapping(BaseModel):
    """MITRE ATT&CK tactic/technique associated with an attack category."""

    tactic: str
    technique: str
    technique_id: str = Field(..., description="ATT&CK technique identifier, e.g. T1190")

    model_config = {"frozen": True}

    @property
    def url(self) -> str | None:
        if not self.technique_id.startswith("T"):
            return None
        return f"https://attack.mitre.org/techniques/{self.technique_id.replace('.', '/')}/"


UNKNOWN_MAPPING = KillChainMapping(tactic="Unknown", technique="Unknown", technique_id="N/A")


class SignatureMatch(BaseModel):
    """Rules of one category that fired on the input, in catalog order."""

    category: AttackCategory
    patterns: list[str] = Field(..., min_length=1, description="Display form of each fired rule")

    model_config = {"frozen": True}


class Indicator(BaseModel):
    """A literal indicator-of-compromise substring found in the input."""

    type: IndicatorType
    value: str = Field(..., min_length=1)

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.type.value}:{self.value}"
