"""Error taxonomy for the detection core.

Deterministic-layer problems (bad catalog) surface at construction time.
Per-request problems are either caller mistakes (InvalidInput) or
classifier failures, which carry a ``retryable`` flag so the caller can
decide whether to re-run the whole pipeline.  The pipeline itself never
retries.
"""

from __future__ import annotations


class ThreatLensError(Exception):
    """Base class for every error raised by threat-lens."""


class InvalidInput(ThreatLensError, ValueError):
    """The submitted text is empty or the hint is not recognised."""


class CatalogError(ThreatLensError):
    """A detection rule could not be compiled or the catalog is malformed."""


class ClassifierError(ThreatLensError):
    """The external classifier did not produce a usable verdict."""

    retryable: bool = False


class ClassifierRateLimited(ClassifierError):
    """The classifier rejected the call with a rate limit (HTTP 429)."""

    retryable = True


class ClassifierUnavailable(ClassifierError):
    """The classifier is not configured (missing credentials or model)."""


class ClassifierPaymentRequired(ClassifierUnavailable):
    """The classifier account is out of credits (HTTP 402)."""


class ClassifierTimeout(ClassifierError):
    """The classifier did not answer within the configured timeout."""

    retryable = True


class ClassifierRequestFailed(ClassifierError):
    """Any other transport or service failure from the classifier."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ClassifierResponseUnparseable(ClassifierError):
    """The classifier replied, but no verdict JSON could be extracted."""


class PersistenceFailure(ThreatLensError):
    """A verdict sink could not store a record.  Never masks the verdict."""
