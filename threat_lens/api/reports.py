"""REST endpoint for threat reports.

Path: POST /api/report

Aggregates the caller's stored attacks into a summary or executive report.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Header, HTTPException

from threat_lens.classifier.base import ThreatClassifier
from threat_lens.models.requests import ReportRequest
from threat_lens.report.builder import generate_report
from threat_lens.store.attack_store import InMemoryAttackStore

logger = logging.getLogger(__name__)


def create_report_router(
    store: InMemoryAttackStore,
    summarizer: ThreatClassifier | None = None,
    top_iocs: int = 20,
) -> APIRouter:
    """Factory that wires the report endpoint to the attack store."""

    router = APIRouter(prefix="/api", tags=["reports"])

    @router.post("/report")
    async def report(
        body: ReportRequest,
        x_caller_id: Optional[str] = Header(default=None),
    ) -> dict[str, Any]:
        if not x_caller_id:
            raise HTTPException(status_code=401, detail="Unauthorized")

        date_range = body.date_range
        records = await store.list_for(
            x_caller_id,
            start=date_range.start if date_range else None,
            end=date_range.end if date_range else None,
        )
        logger.info("Building %s report over %d attacks", body.report_type.value, len(records))

        result = await generate_report(
            records,
            body.report_type,
            summarizer=summarizer,
            date_range=date_range,
            top_iocs=top_iocs,
        )
        return {"report": result.model_dump(mode="json")}

    return router
