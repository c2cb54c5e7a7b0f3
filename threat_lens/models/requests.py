"""Pydantic request bodies for the HTTP surface."""

from __future__ import annotations

from pydantic import BaseModel, Field

from threat_lens.report.builder import DateRange, ReportType


class AnalyzeRequest(BaseModel):
    """A single URL, request line or log excerpt to classify."""

    input: str = Field(..., description="Attacker-supplied text to analyse")
    type: str = Field(default="url", description="url | request | log")


class ReportRequest(BaseModel):
    report_type: ReportType = Field(default=ReportType.SUMMARY)
    date_range: DateRange | None = None
