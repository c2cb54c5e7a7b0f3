"""In-memory attack store with async-safe access.

Design notes:
    - An asyncio.Lock guards all mutations so concurrent requests never
      corrupt the record list.
    - Only malicious verdicts from identified callers are kept; anonymous
      or benign analyses are returned to the caller but not stored.
    - Targets and payloads are truncated to the configured caps.
    - Records older than the retention window are dropped on every write
      and by expire_stale(); with no window the store keeps everything.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from threat_lens.domain.enums import AttackCategory, DetectionMethod, InputKind, Severity
from threat_lens.domain.errors import PersistenceFailure
from threat_lens.domain.evidence import Indicator, SignatureMatch
from threat_lens.domain.verdict import FinalVerdict
from threat_lens.foundation.clock import utc_now
from threat_lens.store.base import VerdictSink

logger = logging.getLogger(__name__)


class AttackRecord(BaseModel):
    """The stored shape of one detected attack."""

    record_id: UUID = Field(default_factory=uuid4)
    caller_id: str = Field(..., min_length=1)
    target_url: str
    attack_type: AttackCategory
    severity: Optional[Severity] = None
    confidence: float = Field(..., ge=0.0, le=1.0)
    is_success: bool = False
    method: str = Field(..., description="GET for URL submissions, POST otherwise")
    metadata: dict[str, Any] = Field(default_factory=dict)
    detection_method: DetectionMethod
    mitre_tactic: str
    mitre_technique: str
    mitre_id: str
    iocs: list[Indicator] = Field(default_factory=list)
    signatures_matched: list[SignatureMatch] = Field(default_factory=list)
    anomaly_score: float = Field(..., ge=0.0, le=1.0)
    payload: str
    detected_at: datetime

    model_config = {"frozen": True}

    @classmethod
    def from_verdict(
        cls,
        verdict: FinalVerdict,
        *,
        caller_id: str,
        text: str,
        hint: InputKind,
        target_max_chars: int,
        payload_max_chars: int,
    ) -> AttackRecord:
        return cls(
            caller_id=caller_id,
            target_url=text[:target_max_chars],
            attack_type=verdict.attack_type,
            severity=verdict.severity,
            confidence=verdict.confidence,
            is_success=verdict.is_success,
            method="GET" if hint is InputKind.URL else "POST",
            metadata={
                "explanation": verdict.explanation,
                "indicators": list(verdict.indicators),
                "recommendations": list(verdict.recommendations),
            },
            detection_method=verdict.detection_method,
            mitre_tactic=verdict.mitre_tactic,
            mitre_technique=verdict.mitre_technique,
            mitre_id=verdict.mitre_id,
            iocs=list(verdict.extracted_iocs),
            signatures_matched=list(verdict.signature_matches),
            anomaly_score=verdict.anomaly_score,
            payload=text[:payload_max_chars],
            detected_at=verdict.analyzed_at,
        )


class InMemoryAttackStore(VerdictSink):
    """Async-safe, in-memory store of AttackRecords.

    Args:
        target_max_chars: Cap on the stored target string.
        payload_max_chars: Cap on the stored raw payload.
        retention: How long a record is kept, measured from detected_at.
        clock: Time source for expiry.
    """

    def __init__(
        self,
        target_max_chars: int = 2_000,
        payload_max_chars: int = 5_000,
        retention: timedelta | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._records: list[AttackRecord] = []
        self._lock = asyncio.Lock()
        self._target_max_chars = target_max_chars
        self._payload_max_chars = payload_max_chars
        self._retention = retention
        self._clock = clock or utc_now

    def _drop_expired(self) -> int:
        """Remove records past the retention window.  Caller holds the lock."""
        if self._retention is None:
            return 0
        cutoff = self._clock() - self._retention
        before = len(self._records)
        self._records = [r for r in self._records if r.detected_at >= cutoff]
        return before - len(self._records)

    async def save(
        self,
        verdict: FinalVerdict,
        *,
        caller_id: Optional[str],
        text: str,
        hint: InputKind,
    ) -> AttackRecord | None:
        if not caller_id or not verdict.is_malicious:
            return None

        try:
            record = AttackRecord.from_verdict(
                verdict,
                caller_id=caller_id,
                text=text,
                hint=hint,
                target_max_chars=self._target_max_chars,
                payload_max_chars=self._payload_max_chars,
            )
        except ValueError as exc:
            raise PersistenceFailure(f"Cannot build attack record: {exc}") from exc

        async with self._lock:
            self._drop_expired()
            self._records.append(record)
        logger.info(
            "Stored attack %s for caller %s (%s)",
            record.record_id, caller_id, record.attack_type.value,
        )
        return record

    async def list_for(
        self,
        caller_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[AttackRecord]:
        """Records for *caller_id*, newest first, optionally within [start, end]."""
        async with self._lock:
            records = [r for r in self._records if r.caller_id == caller_id]
        if start is not None:
            records = [r for r in records if r.detected_at >= start]
        if end is not None:
            records = [r for r in records if r.detected_at <= end]
        return sorted(records, key=lambda r: r.detected_at, reverse=True)

    async def expire_stale(self) -> int:
        """Remove all records older than the retention window; return how many."""
        async with self._lock:
            expired = self._drop_expired()
        if expired:
            logger.info("Expired %d stale attack record(s)", expired)
        return expired

    async def count(self) -> int:
        async with self._lock:
            return len(self._records)
