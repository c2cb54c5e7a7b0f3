"""Abstract base for verdict sinks (the persistence collaborator).

Architectural rules:
    1. A sink receives a finished FinalVerdict and never alters it.
    2. Storage problems raise PersistenceFailure; nothing else may escape.
    3. A sink decides for itself which verdicts are worth keeping.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from threat_lens.domain.enums import InputKind
from threat_lens.domain.verdict import FinalVerdict


class VerdictSink(ABC):
    """Base class for anything that persists classification results."""

    @abstractmethod
    async def save(
        self,
        verdict: FinalVerdict,
        *,
        caller_id: Optional[str],
        text: str,
        hint: InputKind,
    ) -> object | None:
        """Persist *verdict* for *caller_id*; return the stored record, if any.

        Raises:
            PersistenceFailure: If the record could not be written.
        """
        ...
