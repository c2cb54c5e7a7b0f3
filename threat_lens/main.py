"""threat-lens — signature, IOC, anomaly and classifier threat detection.

This is the application entry point.  It wires the PatternCatalog,
classifier, DetectionPipeline, attack store and HTTP routes together.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import FastAPI

from threat_lens.api.analyze import create_analyze_router
from threat_lens.api.reports import create_report_router
from threat_lens.catalog.defaults import default_catalog
from threat_lens.classifier.gemini import GeminiThreatClassifier
from threat_lens.classifier.parsers import parser_for
from threat_lens.config import settings
from threat_lens.graph.runner import DetectionPipeline
from threat_lens.services.analysis_service import AnalysisService
from threat_lens.store.attack_store import InMemoryAttackStore

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

# ── Detection core ───────────────────────────────────────────────────────────

# A bad signature raises CatalogError here and the process never serves.
catalog = default_catalog()

classifier = GeminiThreatClassifier(
    parser=parser_for(settings.classifier_response_parser),
    timeout=settings.classifier_timeout_seconds,
)

pipeline = DetectionPipeline(catalog, classifier, max_input_chars=settings.max_input_chars)

# ── State ────────────────────────────────────────────────────────────────────

store = InMemoryAttackStore(
    target_max_chars=settings.stored_target_max_chars,
    payload_max_chars=settings.stored_payload_max_chars,
    retention=timedelta(days=settings.attack_retention_days),
)

service = AnalysisService(pipeline, store)

# ── App ──────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.app_name,
    description="Signature, IOC, anomaly and AI-assisted threat classification",
    version="0.1.0",
)

# ── Routes ───────────────────────────────────────────────────────────────────

app.include_router(create_analyze_router(service))
app.include_router(create_report_router(store, classifier, top_iocs=settings.report_top_iocs))


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> dict:
    return {
        "status": "ok",
        "categories": [c.value for c in catalog.categories],
        "rule_count": catalog.rule_count,
        "stored_attacks": await store.count(),
    }
