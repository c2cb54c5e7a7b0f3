"""AnalysisService — runs the detection pipeline and hands results to storage.

A storage failure is logged and swallowed: the computed verdict is always
returned to the caller.  Pipeline errors (bad input, classifier failures)
propagate unchanged.
"""

from __future__ import annotations

import logging
from typing import Optional

from threat_lens.domain.enums import InputKind
from threat_lens.domain.errors import PersistenceFailure
from threat_lens.domain.verdict import FinalVerdict
from threat_lens.graph.runner import DetectionPipeline
from threat_lens.store.base import VerdictSink

logger = logging.getLogger(__name__)


class AnalysisService:
    def __init__(self, pipeline: DetectionPipeline, sink: VerdictSink | None = None) -> None:
        self._pipeline = pipeline
        self._sink = sink

    @property
    def pipeline(self) -> DetectionPipeline:
        return self._pipeline

    async def analyze(
        self,
        text: str,
        hint: InputKind | str = InputKind.URL,
        caller_id: Optional[str] = None,
    ) -> FinalVerdict:
        verdict = await self._pipeline.classify(text, hint)

        if self._sink is not None:
            try:
                await self._sink.save(
                    verdict, caller_id=caller_id, text=text, hint=InputKind(hint),
                )
            except PersistenceFailure as exc:
                logger.error("Failed to store attack for caller %s: %s", caller_id, exc)

        return verdict
