"""Controlled enumerations for the threat-lens domain.

Every categorical field in a verdict MUST reference an enum defined here.
Free-form strings coming back from the external classifier are coerced
into these values at the boundary.
"""

from __future__ import annotations

from enum import Enum


class AttackCategory(str, Enum):
    """Attack classes recognised by the catalog and the classifier."""

    SQL_INJECTION = "sql_injection"
    XSS = "xss"
    PATH_TRAVERSAL = "path_traversal"
    COMMAND_INJECTION = "command_injection"
    XXE = "xxe"
    SSRF = "ssrf"
    LFI = "lfi"
    RCE = "rce"
    BRUTE_FORCE = "brute_force"
    DOS = "dos"
    RECONNAISSANCE = "reconnaissance"
    DATA_EXFILTRATION = "data_exfiltration"
    UNKNOWN = "unknown"


class IndicatorType(str, Enum):
    """Kinds of indicator of compromise the extractor emits."""

    IP = "ip"
    URL = "url"
    DOMAIN = "domain"
    EMAIL = "email"
    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class InputKind(str, Enum):
    """What the submitted text is; shapes the classifier prompt."""

    URL = "url"
    REQUEST = "request"
    LOG = "log"

    @property
    def prompt_label(self) -> str:
        return {
            InputKind.URL: "url",
            InputKind.REQUEST: "request",
            InputKind.LOG: "log excerpt",
        }[self]


class DetectionMethod(str, Enum):
    AI = "ai"
    SIGNATURE_AI = "signature+ai"
