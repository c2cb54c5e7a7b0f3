"""Graph builder — constructs the LangGraph detection topology.

Topology:

    START ─┬→ match_signatures → score_anomaly ─┬→ consult_classifier
           └→ extract_iocs ─────────────────────┘        │
                                                 combine_verdict → END

consult_classifier waits for both branches, so the classifier always
receives complete deterministic context.  The graph is compiled once and
can be invoked concurrently; it holds no per-request state.
"""

from __future__ import annotations

from langgraph.graph import END, START, StateGraph

from threat_lens.classifier.base import ThreatClassifier
from threat_lens.core.combiner import VerdictCombiner
from threat_lens.detect.anomaly import AnomalyScorer
from threat_lens.detect.signatures import SignatureMatcher
from threat_lens.graph.nodes import (
    extract_iocs_node,
    make_combine_verdict,
    make_consult_classifier,
    make_match_signatures,
    make_score_anomaly,
)
from threat_lens.graph.state import DetectionState


def build_detection_graph(
    matcher: SignatureMatcher,
    scorer: AnomalyScorer,
    classifier: ThreatClassifier,
    combiner: VerdictCombiner,
):
    """Construct and compile the detection graph.

    Returns:
        A compiled LangGraph application.
    """
    graph = StateGraph(DetectionState)

    # ── Register nodes ───────────────────────────────────────────────────
    graph.add_node("match_signatures", make_match_signatures(matcher))
    graph.add_node("extract_iocs", extract_iocs_node)
    graph.add_node("score_anomaly", make_score_anomaly(scorer))
    graph.add_node("consult_classifier", make_consult_classifier(classifier))
    graph.add_node("combine_verdict", make_combine_verdict(combiner))

    # ── Edges ────────────────────────────────────────────────────────────
    graph.add_edge(START, "match_signatures")
    graph.add_edge(START, "extract_iocs")
    graph.add_edge("match_signatures", "score_anomaly")
    graph.add_edge(["score_anomaly", "extract_iocs"], "consult_classifier")
    graph.add_edge("consult_classifier", "combine_verdict")
    graph.add_edge("combine_verdict", END)

    return graph.compile()
