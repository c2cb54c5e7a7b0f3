"""Translate core exceptions into HTTP errors."""

from __future__ import annotations

from fastapi import HTTPException

from threat_lens.domain.errors import (
    ClassifierError,
    ClassifierPaymentRequired,
    ClassifierRateLimited,
    ClassifierTimeout,
    ClassifierUnavailable,
    InvalidInput,
    ThreatLensError,
)

# Most specific first.
_STATUS_BY_ERROR: tuple[tuple[type[ThreatLensError], int], ...] = (
    (InvalidInput, 400),
    (ClassifierRateLimited, 429),
    (ClassifierPaymentRequired, 402),
    (ClassifierUnavailable, 503),
    (ClassifierTimeout, 504),
    (ClassifierError, 502),
)


def to_http_exception(exc: ThreatLensError) -> HTTPException:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status, detail=str(exc))
    return HTTPException(status_code=500, detail="Analysis failed")
