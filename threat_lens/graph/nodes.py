"""LangGraph nodes — small functions that transform DetectionState.

Each node:
    - Receives the full DetectionState
    - Returns a partial dict update
    - Has no side effects beyond the classifier call in consult_classifier

The deterministic nodes (signatures, IOCs, anomaly) never see the
classifier's output; the classifier only sees theirs.
"""

from __future__ import annotations

import logging

from threat_lens.classifier.base import ThreatClassifier
from threat_lens.core.combiner import VerdictCombiner
from threat_lens.detect.anomaly import AnomalyScorer
from threat_lens.detect.iocs import extract_iocs
from threat_lens.detect.signatures import SignatureMatcher
from threat_lens.graph.state import DetectionState

logger = logging.getLogger(__name__)


# ── 1. match_signatures ─────────────────────────────────────────────────────

def make_match_signatures(matcher: SignatureMatcher):
    def match_signatures(state: DetectionState) -> dict:
        matches = matcher.match(state["text"])
        logger.info("Signature matches: %d categories", len(matches))
        return {"signature_matches": matches}

    return match_signatures


# ── 2. extract_iocs ─────────────────────────────────────────────────────────

def extract_iocs_node(state: DetectionState) -> dict:
    iocs = extract_iocs(state["text"])
    logger.info("Extracted IOCs: %d", len(iocs))
    return {"iocs": iocs}


# ── 3. score_anomaly ────────────────────────────────────────────────────────

def make_score_anomaly(scorer: AnomalyScorer):
    def score_anomaly(state: DetectionState) -> dict:
        score = scorer.score(state["text"], state.get("signature_matches", []))
        logger.info("Anomaly score: %.2f", score)
        return {"anomaly_score": score}

    return score_anomaly


# ── 4. consult_classifier ───────────────────────────────────────────────────

def make_consult_classifier(classifier: ThreatClassifier):
    """Create the classifier node.  ClassifierErrors propagate unchanged."""

    async def consult_classifier(state: DetectionState) -> dict:
        external = await classifier.classify(
            state["text"],
            state["hint"],
            state.get("signature_matches", []),
            state.get("anomaly_score", 0.0),
            state.get("iocs", []),
        )
        return {"external_verdict": external}

    return consult_classifier


# ── 5. combine_verdict ──────────────────────────────────────────────────────

def make_combine_verdict(combiner: VerdictCombiner):
    def combine_verdict(state: DetectionState) -> dict:
        verdict = combiner.combine(
            state["external_verdict"],
            state.get("signature_matches", []),
            state.get("anomaly_score", 0.0),
            state.get("iocs", []),
        )
        return {"verdict": verdict}

    return combine_verdict
