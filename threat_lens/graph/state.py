"""DetectionState — the sole state object that pipeline nodes read and write.

Every node receives the full state and returns a partial update.  Each key
is written by exactly one node, so the two parallel branches never race.
"""

from __future__ import annotations

from typing import TypedDict

from threat_lens.domain.enums import InputKind
from threat_lens.domain.evidence import Indicator, SignatureMatch
from threat_lens.domain.verdict import ExternalVerdict, FinalVerdict


class DetectionState(TypedDict, total=False):
    """LangGraph state for one classification run.

    Fields:
        text: The (already length-capped) input being analysed.
        hint: What kind of text it is.
        signature_matches: Written by match_signatures.
        iocs: Written by extract_iocs.
        anomaly_score: Written by score_anomaly.
        external_verdict: Written by consult_classifier.
        verdict: Written by combine_verdict; the pipeline's result.
    """

    text: str
    hint: InputKind
    signature_matches: list[SignatureMatch]
    iocs: list[Indicator]
    anomaly_score: float
    external_verdict: ExternalVerdict
    verdict: FinalVerdict
