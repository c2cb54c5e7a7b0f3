"""Timezone-aware clock utilities.

Every ``analyzed_at`` and report timestamp comes from here, so tests can
monkey-patch a single function to get reproducible verdicts.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)
