"""Report builder — aggregates stored attacks into a threat report.

The statistics are pure functions of the records.  The executive summary
is the only step that touches the classifier, and it degrades gracefully:
if the call fails the report is still produced with an empty summary.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from threat_lens.classifier.base import ThreatClassifier
from threat_lens.domain.enums import IndicatorType, Severity
from threat_lens.domain.errors import ClassifierError
from threat_lens.foundation.clock import utc_now
from threat_lens.store.attack_store import AttackRecord

logger = logging.getLogger(__name__)


class ReportType(str, Enum):
    SUMMARY = "summary"
    EXECUTIVE = "executive"


class DateRange(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator("start", "end")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Stored timestamps are aware; a bare date or offset-free time is UTC.
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class IocCount(BaseModel):
    type: IndicatorType
    value: str
    count: int = Field(..., ge=1)


class ReportSummary(BaseModel):
    total_attacks: int
    blocked_attacks: int
    successful_attacks: int
    block_rate: str = Field(..., description="Blocked percentage with one decimal, e.g. '75.0'")


class ThreatReport(BaseModel):
    title: str
    report_type: ReportType
    summary: ReportSummary
    severity_breakdown: dict[str, int]
    attack_types: dict[str, int]
    mitre_techniques: dict[str, int]
    detection_methods: dict[str, int]
    top_iocs: list[IocCount]
    ai_summary: str = ""
    date_range: DateRange = Field(default_factory=DateRange)
    generated_at: datetime


# ── Statistics ──────────────────────────────────────────────────────────────

def count_iocs(records: Sequence[AttackRecord], limit: int) -> list[IocCount]:
    """Occurrence counts keyed by (type, value), most frequent first."""
    counts: Counter[tuple[IndicatorType, str]] = Counter()
    for record in records:
        for ioc in record.iocs:
            counts[(ioc.type, ioc.value)] += 1
    # Counter.most_common keeps first-seen order among equal counts.
    return [
        IocCount(type=ioc_type, value=value, count=n)
        for (ioc_type, value), n in counts.most_common(limit)
    ]


def _title(report_type: ReportType, now: datetime) -> str:
    day = now.strftime("%Y-%m-%d")
    if report_type is ReportType.EXECUTIVE:
        return f"Executive Security Report - {day}"
    return f"Security Summary - {day}"


def build_report(
    records: Sequence[AttackRecord],
    report_type: ReportType = ReportType.SUMMARY,
    *,
    date_range: DateRange | None = None,
    top_iocs: int = 20,
    ai_summary: str = "",
    clock: Callable[[], datetime] | None = None,
) -> ThreatReport:
    now = clock() if clock else utc_now()
    total = len(records)
    blocked = sum(1 for r in records if not r.is_success)

    severity = {s.value: 0 for s in Severity}
    by_type: Counter[str] = Counter()
    by_mitre: Counter[str] = Counter()
    by_method: Counter[str] = Counter()
    for r in records:
        severity[(r.severity or Severity.LOW).value] += 1
        by_type[r.attack_type.value] += 1
        if r.mitre_id:
            by_mitre[r.mitre_id] += 1
        by_method[r.detection_method.value] += 1

    return ThreatReport(
        title=_title(report_type, now),
        report_type=report_type,
        summary=ReportSummary(
            total_attacks=total,
            blocked_attacks=blocked,
            successful_attacks=total - blocked,
            block_rate=f"{blocked / total * 100:.1f}" if total else "0",
        ),
        severity_breakdown=severity,
        attack_types=dict(by_type),
        mitre_techniques=dict(by_mitre),
        detection_methods=dict(by_method),
        top_iocs=count_iocs(records, top_iocs),
        ai_summary=ai_summary,
        date_range=date_range or DateRange(),
        generated_at=now,
    )


# ── Executive summary ───────────────────────────────────────────────────────

_SUMMARY_SYSTEM_PROMPT = "You are a cybersecurity analyst writing executive summaries."

_SUMMARY_PROMPT = """Generate an executive summary for a cybersecurity threat report with these statistics:
- Total attacks detected: {total}
- Blocked attacks: {blocked} ({block_rate}%)
- Successful attacks: {successful}
- Critical severity: {critical}
- High severity: {high}
- Attack types: {attack_types}
- MITRE techniques: {mitre}

Provide a 2-3 paragraph executive summary highlighting key risks and recommendations."""


async def write_executive_summary(report: ThreatReport, summarizer: ThreatClassifier) -> str:
    """Ask the classifier backend for prose; return "" on any classifier failure."""
    prompt = _SUMMARY_PROMPT.format(
        total=report.summary.total_attacks,
        blocked=report.summary.blocked_attacks,
        block_rate=report.summary.block_rate,
        successful=report.summary.successful_attacks,
        critical=report.severity_breakdown.get(Severity.CRITICAL.value, 0),
        high=report.severity_breakdown.get(Severity.HIGH.value, 0),
        attack_types=report.attack_types,
        mitre=report.mitre_techniques,
    )
    try:
        return (await summarizer.complete(_SUMMARY_SYSTEM_PROMPT, prompt)).strip()
    except ClassifierError as exc:
        logger.error("AI summary generation failed: %s", exc)
        return ""


async def generate_report(
    records: Sequence[AttackRecord],
    report_type: ReportType = ReportType.SUMMARY,
    *,
    summarizer: ThreatClassifier | None = None,
    date_range: DateRange | None = None,
    top_iocs: int = 20,
    clock: Callable[[], datetime] | None = None,
) -> ThreatReport:
    """Build a report; executive reports with attacks also get an AI summary."""
    report = build_report(
        records, report_type, date_range=date_range, top_iocs=top_iocs, clock=clock,
    )
    if report_type is ReportType.EXECUTIVE and summarizer is not None and records:
        summary = await write_executive_summary(report, summarizer)
        report = report.model_copy(update={"ai_summary": summary})
    return report
