"""PatternCatalog — immutable registry of detection rules and ATT&CK mappings.

The catalog is constructed explicitly at startup and injected into the
pipeline.  All patterns are compiled during construction, so a bad rule is
a startup failure and never a per-request one.  After construction the
catalog is read-only and safe for unsynchronised concurrent reads.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Sequence

from threat_lens.domain.enums import AttackCategory
from threat_lens.domain.errors import CatalogError
from threat_lens.domain.evidence import UNKNOWN_MAPPING, KillChainMapping

logger = logging.getLogger(__name__)

# A rule definition: the pattern source plus re flags.
RuleSpec = tuple[str, int]


@dataclass(frozen=True)
class DetectionRule:
    """One compiled signature belonging to exactly one attack category."""

    category: AttackCategory
    pattern: re.Pattern[str]
    display: str

    @classmethod
    def compile(cls, category: AttackCategory, source: str, flags: int = 0) -> DetectionRule:
        try:
            # \b, \d and \w are ASCII-only, as in the shipped rule dialect.
            pattern = re.compile(source, flags | re.ASCII)
        except re.error as exc:
            raise CatalogError(
                f"Invalid pattern for category '{category.value}': {source!r} ({exc})"
            ) from exc
        suffix = "i" if flags & re.IGNORECASE else ""
        return cls(category=category, pattern=pattern, display=f"/{source}/{suffix}")

    def fires_on(self, text: str) -> bool:
        """True if the pattern matches anywhere in *text* (unanchored)."""
        return self.pattern.search(text) is not None


def _as_category(key: AttackCategory | str) -> AttackCategory:
    try:
        return AttackCategory(key)
    except ValueError as exc:
        raise CatalogError(f"Unknown attack category in catalog: {key!r}") from exc


class PatternCatalog:
    """Ordered rule lists per category plus the kill-chain mapping table.

    Usage:
        catalog = PatternCatalog.from_definitions(signatures, mappings)
        for category in catalog.categories:
            for rule in catalog.rules_for(category):
                ...
    """

    def __init__(
        self,
        rules: Mapping[AttackCategory, Sequence[DetectionRule]],
        mappings: Mapping[AttackCategory, KillChainMapping] | None = None,
    ) -> None:
        ordered: dict[AttackCategory, tuple[DetectionRule, ...]] = {}
        for key, category_rules in rules.items():
            category = _as_category(key)
            for rule in category_rules:
                if rule.category is not category:
                    raise CatalogError(
                        f"Rule {rule.display} is filed under '{category.value}' "
                        f"but belongs to '{rule.category.value}'"
                    )
            ordered[category] = tuple(category_rules)

        self._rules = MappingProxyType(ordered)
        self._mappings = MappingProxyType(
            {_as_category(k): v for k, v in (mappings or {}).items()}
        )
        logger.info(
            "Pattern catalog loaded: %d categories, %d rules, %d kill-chain mappings",
            len(self._rules), self.rule_count, len(self._mappings),
        )

    @classmethod
    def from_definitions(
        cls,
        signatures: Mapping[AttackCategory | str, Sequence[RuleSpec]],
        mappings: Mapping[AttackCategory | str, KillChainMapping] | None = None,
    ) -> PatternCatalog:
        """Compile raw (source, flags) definitions into a catalog.

        Raises:
            CatalogError: If any category is unknown or any pattern is invalid.
        """
        rules: dict[AttackCategory, list[DetectionRule]] = {}
        for key, specs in signatures.items():
            category = _as_category(key)
            rules[category] = [DetectionRule.compile(category, src, flags) for src, flags in specs]
        return cls(rules, {_as_category(k): v for k, v in (mappings or {}).items()})

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def categories(self) -> tuple[AttackCategory, ...]:
        """Categories that own rules, in catalog order."""
        return tuple(self._rules.keys())

    def all_categories(self) -> frozenset[AttackCategory]:
        return frozenset(self._rules.keys())

    def rules_for(self, category: AttackCategory) -> tuple[DetectionRule, ...]:
        return self._rules.get(category, ())

    def mapping_for(self, category: AttackCategory | str | None) -> KillChainMapping:
        """Kill-chain mapping for *category*, or the Unknown sentinel."""
        if category is None:
            return UNKNOWN_MAPPING
        try:
            category = AttackCategory(category)
        except ValueError:
            return UNKNOWN_MAPPING
        return self._mappings.get(category, UNKNOWN_MAPPING)

    @property
    def rule_count(self) -> int:
        return sum(len(r) for r in self._rules.values())
