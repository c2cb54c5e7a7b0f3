"""Indicator-of-compromise extraction.

Types are evaluated in a fixed order (ip, url, domain, md5, sha1, sha256,
email) and the output preserves that order.  Every occurrence is kept
verbatim; repeated values are reported repeatedly because downstream
aggregation counts occurrences.

Word boundaries, digits and letters are ASCII-only; Unicode digits or
letters never form part of an indicator.

The only cross-type suppression: a substring already reported as an IPv4
address is not reported again as a domain.  A URL's host may still be
reported separately as a domain.
"""

from __future__ import annotations

import logging
import re

from threat_lens.domain.enums import IndicatorType
from threat_lens.domain.evidence import Indicator

logger = logging.getLogger(__name__)

IPV4_RE = re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b", re.ASCII)
URL_RE = re.compile(r"https?://[^\s<>\"{}|\\^`\[\]]+", re.IGNORECASE)
DOMAIN_RE = re.compile(r"\b[a-zA-Z0-9][-a-zA-Z0-9]*(?:\.[a-zA-Z0-9][-a-zA-Z0-9]*)+\b", re.ASCII)
MD5_RE = re.compile(r"\b[a-fA-F0-9]{32}\b", re.ASCII)
SHA1_RE = re.compile(r"\b[a-fA-F0-9]{40}\b", re.ASCII)
SHA256_RE = re.compile(r"\b[a-fA-F0-9]{64}\b", re.ASCII)
EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", re.ASCII)

_HASH_PATTERNS = (
    (IndicatorType.MD5, MD5_RE),
    (IndicatorType.SHA1, SHA1_RE),
    (IndicatorType.SHA256, SHA256_RE),
)


def extract_iocs(text: str) -> list[Indicator]:
    """Scan *text* for indicators, in the fixed type-evaluation order."""
    iocs: list[Indicator] = []

    ips = IPV4_RE.findall(text)
    iocs.extend(Indicator(type=IndicatorType.IP, value=ip) for ip in ips)

    iocs.extend(Indicator(type=IndicatorType.URL, value=u) for u in URL_RE.findall(text))

    ip_set = set(ips)
    iocs.extend(
        Indicator(type=IndicatorType.DOMAIN, value=d)
        for d in DOMAIN_RE.findall(text)
        if d not in ip_set
    )

    for ioc_type, pattern in _HASH_PATTERNS:
        iocs.extend(Indicator(type=ioc_type, value=h) for h in pattern.findall(text))

    iocs.extend(Indicator(type=IndicatorType.EMAIL, value=e) for e in EMAIL_RE.findall(text))

    logger.debug("Extracted %d IOCs", len(iocs))
    return iocs
