"""SignatureMatcher — runs every catalog rule against an input.

No short-circuiting: every category and every rule is evaluated, so one
input can produce matches in several unrelated categories.  Semantic
de-duplication is the combiner's job, not the matcher's.
"""

from __future__ import annotations

import logging

from threat_lens.catalog.catalog import PatternCatalog
from threat_lens.domain.evidence import SignatureMatch

logger = logging.getLogger(__name__)


class SignatureMatcher:
    """Stateless matcher bound to an immutable catalog."""

    def __init__(self, catalog: PatternCatalog) -> None:
        self._catalog = catalog

    def match(self, text: str) -> list[SignatureMatch]:
        """Return one SignatureMatch per category with at least one fired rule.

        Categories appear in catalog order; within a match the fired rules
        keep their catalog order.
        """
        matches: list[SignatureMatch] = []
        for category in self._catalog.categories:
            fired = [
                rule.display
                for rule in self._catalog.rules_for(category)
                if rule.fires_on(text)
            ]
            if fired:
                matches.append(SignatureMatch(category=category, patterns=fired))

        logger.debug(
            "Signature matches: %s",
            {m.category.value: len(m.patterns) for m in matches},
        )
        return matches
