"""DetectionPipeline — clean interface for invoking the detection graph.

Usage:
    pipeline = DetectionPipeline(default_catalog(), GeminiThreatClassifier())
    verdict = await pipeline.classify("/index.php?id=1' OR '1'='1", "url")

The pipeline validates the input, seeds the initial state, invokes the
compiled graph and returns the FinalVerdict.  No retries, no persistence.
A classifier failure propagates; there is no signature-only fallback.
"""

from __future__ import annotations

import logging

from threat_lens.catalog.catalog import PatternCatalog
from threat_lens.classifier.base import ThreatClassifier
from threat_lens.config import settings
from threat_lens.core.combiner import VerdictCombiner
from threat_lens.detect.anomaly import AnomalyScorer, AnomalyWeights
from threat_lens.detect.signatures import SignatureMatcher
from threat_lens.domain.enums import InputKind
from threat_lens.domain.errors import InvalidInput
from threat_lens.domain.verdict import FinalVerdict
from threat_lens.graph.builder import build_detection_graph
from threat_lens.graph.state import DetectionState

logger = logging.getLogger(__name__)


def anomaly_weights_from_settings() -> AnomalyWeights:
    return AnomalyWeights(
        signature=settings.anomaly_signature_weight,
        special_char=settings.anomaly_special_char_weight,
        special_char_cap=settings.anomaly_special_char_cap,
        long_input_chars=settings.anomaly_long_input_chars,
        very_long_input_chars=settings.anomaly_very_long_input_chars,
        length_bonus=settings.anomaly_length_bonus,
        encoding_bonus=settings.anomaly_encoding_bonus,
    )


def _parse_hint(hint: InputKind | str) -> InputKind:
    try:
        return InputKind(hint)
    except ValueError:
        raise InvalidInput(
            f"Unknown input type {hint!r}; expected one of {[k.value for k in InputKind]}"
        ) from None


class DetectionPipeline:
    """Signature matching, IOC extraction, anomaly scoring, classifier, combine.

    Args:
        catalog: Immutable pattern catalog, built once at startup.
        classifier: External classifier consulted after the deterministic layers.
        scorer: Anomaly scorer; defaults to weights from settings.
        combiner: Verdict combiner; defaults to the settings threshold.
        max_input_chars: Longer inputs are truncated before analysis.
    """

    def __init__(
        self,
        catalog: PatternCatalog,
        classifier: ThreatClassifier,
        *,
        scorer: AnomalyScorer | None = None,
        combiner: VerdictCombiner | None = None,
        max_input_chars: int | None = None,
    ) -> None:
        self._catalog = catalog
        self._max_input_chars = max_input_chars or settings.max_input_chars
        self._graph = build_detection_graph(
            SignatureMatcher(catalog),
            scorer or AnomalyScorer(anomaly_weights_from_settings()),
            classifier,
            combiner or VerdictCombiner(
                catalog, malicious_threshold=settings.malicious_anomaly_threshold,
            ),
        )

    @property
    def catalog(self) -> PatternCatalog:
        return self._catalog

    async def classify(self, text: str, hint: InputKind | str = InputKind.URL) -> FinalVerdict:
        """Classify one input.

        Raises:
            InvalidInput: If *text* is empty or *hint* is unknown.
            ClassifierError: If the external classifier gives no usable verdict.
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidInput("Input is required")
        kind = _parse_hint(hint)

        if len(text) > self._max_input_chars:
            logger.warning(
                "Input of %d chars truncated to %d before analysis",
                len(text), self._max_input_chars,
            )
            text = text[: self._max_input_chars]

        initial_state: DetectionState = {"text": text, "hint": kind}
        logger.info("Running detection pipeline (type=%s, %d chars)", kind.value, len(text))

        final_state = await self._graph.ainvoke(initial_state)
        return final_state["verdict"]
