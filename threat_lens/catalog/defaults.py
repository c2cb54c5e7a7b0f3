"""Built-in OWASP-style signature set and MITRE ATT&CK mapping table.

Rule order within a category is significant: matches are reported in this
order, and the first matching category (in this order) is the fallback
attack type when the classifier offers none.
"""

from __future__ import annotations

import re

from threat_lens.catalog.catalog import PatternCatalog, RuleSpec
from threat_lens.domain.enums import AttackCategory
from threat_lens.domain.evidence import KillChainMapping

_I = re.IGNORECASE

DEFAULT_SIGNATURES: dict[AttackCategory, tuple[RuleSpec, ...]] = {
    AttackCategory.SQL_INJECTION: (
        (r"(\b(union|select|insert|update|delete|drop|create|alter|exec|execute)\b.*\b(from|into|table|database)\b)", _I),
        (r"('|\")(\s*)(or|and)(\s*)('|\")?\s*(\d+|'[^']*')\s*(=|<|>|like)", _I),
        (r"(--|#|/\*)", 0),
        (r"(\bor\b|\band\b)\s+\d+\s*=\s*\d+", _I),
        (r"'\s*(or|and)\s+'[^']*'\s*=\s*'[^']*", _I),
    ),
    AttackCategory.XSS: (
        (r"<script[^>]*>[\s\S]*?</script>", _I),
        (r"javascript\s*:", _I),
        (r"on(load|error|click|mouseover|submit|focus|blur)\s*=", _I),
        (r"<img[^>]+onerror\s*=", _I),
        (r"<svg[^>]*onload\s*=", _I),
        (r"(<|%3C)[^\n]+(>|%3E)", _I),
    ),
    AttackCategory.PATH_TRAVERSAL: (
        (r"\.\./", 0),
        (r"\.\.\\", 0),
        (r"%2e%2e%2f", _I),
        (r"%252e%252e%252f", _I),
        (r"\.\.%c0%af", _I),
        (r"etc/passwd", _I),
        (r"windows/system32", _I),
    ),
    AttackCategory.COMMAND_INJECTION: (
        (r"[;&|`$]|\$\(", 0),
        (r"\b(cat|ls|dir|whoami|id|pwd|wget|curl|nc|netcat|bash|sh|cmd|powershell)\b", _I),
        (r"\|\s*(cat|ls|dir|whoami|id)", _I),
    ),
    AttackCategory.XXE: (
        (r"<!ENTITY", _I),
        (r"SYSTEM\s+[\"'][^\"']*[\"']", _I),
        (r"<!DOCTYPE[^>]*\[", _I),
    ),
    AttackCategory.SSRF: (
        (r"\b(localhost|127\.0\.0\.1|0\.0\.0\.0|::1)\b", _I),
        (r"\b(169\.254\.\d+\.\d+)\b", 0),
        (r"\b(10\.\d+\.\d+\.\d+)\b", 0),
        (r"\b(172\.(1[6-9]|2[0-9]|3[0-1])\.\d+\.\d+)\b", 0),
        (r"\b(192\.168\.\d+\.\d+)\b", 0),
        (r"file://", _I),
        (r"gopher://", _I),
    ),
    AttackCategory.LFI: (
        (r"php://filter", _I),
        (r"php://input", _I),
        (r"data:text/html", _I),
        (r"expect://", _I),
    ),
    AttackCategory.RCE: (
        (r"\$\{.*\}", 0),
        (r"\$\(.*\)", 0),
        (r"`[^`]+`", 0),
        (r"eval\s*\(", _I),
        (r"exec\s*\(", _I),
        (r"system\s*\(", _I),
    ),
}

_EXPLOIT_PUBLIC_APP = KillChainMapping(
    tactic="Initial Access", technique="Exploit Public-Facing Application", technique_id="T1190",
)
_LOCAL_DATA = KillChainMapping(
    tactic="Collection", technique="Data from Local System", technique_id="T1005",
)
_SCRIPT_INTERPRETER = KillChainMapping(
    tactic="Execution", technique="Command and Scripting Interpreter", technique_id="T1059",
)

DEFAULT_KILL_CHAIN: dict[AttackCategory, KillChainMapping] = {
    AttackCategory.SQL_INJECTION: _EXPLOIT_PUBLIC_APP,
    AttackCategory.XSS: KillChainMapping(
        tactic="Initial Access", technique="Drive-by Compromise", technique_id="T1189",
    ),
    AttackCategory.PATH_TRAVERSAL: _LOCAL_DATA,
    AttackCategory.COMMAND_INJECTION: _SCRIPT_INTERPRETER,
    AttackCategory.XXE: _EXPLOIT_PUBLIC_APP,
    AttackCategory.SSRF: _EXPLOIT_PUBLIC_APP,
    AttackCategory.LFI: _LOCAL_DATA,
    AttackCategory.RCE: _SCRIPT_INTERPRETER,
    AttackCategory.BRUTE_FORCE: KillChainMapping(
        tactic="Credential Access", technique="Brute Force", technique_id="T1110",
    ),
    AttackCategory.DOS: KillChainMapping(
        tactic="Impact", technique="Endpoint Denial of Service", technique_id="T1499",
    ),
}


def default_catalog() -> PatternCatalog:
    """Compile the built-in signatures.  Raises CatalogError on a bad rule."""
    return PatternCatalog.from_definitions(DEFAULT_SIGNATURES, DEFAULT_KILL_CHAIN)
