"""REST endpoint for threat analysis.

Path: POST /api/analyze

Runs the detection pipeline over one input and returns the FinalVerdict.
An optional X-Caller-Id header identifies who submitted it; identified
malicious results are also stored for reporting.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Header

from threat_lens.api.errors import to_http_exception
from threat_lens.domain.errors import ThreatLensError
from threat_lens.models.requests import AnalyzeRequest
from threat_lens.services.analysis_service import AnalysisService

logger = logging.getLogger(__name__)


def create_analyze_router(service: AnalysisService) -> APIRouter:
    """Factory that wires the analyze endpoint to the analysis service."""

    router = APIRouter(prefix="/api", tags=["analysis"])

    @router.post("/analyze")
    async def analyze(
        body: AnalyzeRequest,
        x_caller_id: Optional[str] = Header(default=None),
    ) -> dict[str, Any]:
        try:
            verdict = await service.analyze(body.input, body.type, caller_id=x_caller_id)
        except ThreatLensError as exc:
            logger.error("Error in analyze: %s", exc)
            raise to_http_exception(exc) from exc
        return verdict.model_dump(mode="json")

    return router
