"""
Denylist Check
==============

Whole-word, case-insensitive patterns that must never appear in a query sent
to the shared warehouse.
"""

import re

from nl_gateway.errors import BlockedPattern, UnsafeSQL
from nl_gateway.models import CheckResult
from nl_gateway.safety.base import Check

MUTATION_KEYWORDS = [
    "insert",
    "update",
    "delete",
    "drop",
    "alter",
    "create",
    "truncate",
    "merge",
    "grant",
    "revoke",
]

ADMIN_KEYWORDS = [
    "pragma",
    "attach",
    "detach",
    "install",
    "load",
    "copy",
    "export",
    "call",
    "set",
    "vacuum",
]

EXFILTRATION_KEYWORDS = [
    "secret",
    "httpfs",
]

# Cloud storage URL schemes, file-reading table functions and functions that
# run SQL built from strings
EXFILTRATION_PATTERNS = [
    (r"\b(?:s3a?|s3n|gcs|gs|r2|az|azure|abfss|hf)://", "cloud storage url"),
    (r"\b(?:read_\w+|parquet_scan|glob|sniff_csv)\s*\(", "file reading function"),
    (r"\b(?:query|query_table)\s*\(", "dynamic query function"),
]


def _keyword(word: str) -> tuple[str, str]:
    return rf"\b{word}\b", word


class DenylistCheck(Check):
    """Ensures no mutating, administrative or exfiltrating SQL is present."""

    error = BlockedPattern

    BLOCKED_PATTERNS = (
        [_keyword(w) for w in MUTATION_KEYWORDS]
        + [_keyword(w) for w in ADMIN_KEYWORDS]
        + [_keyword(w) for w in EXFILTRATION_KEYWORDS]
        + EXFILTRATION_PATTERNS
    )

    def __init__(self, patterns: list[tuple[str, str]] | None = None) -> None:
        self._compiled = [
            (re.compile(pattern, re.IGNORECASE), label)
            for pattern, label in (patterns or self.BLOCKED_PATTERNS)
        ]

    @property
    def name(self) -> str:
        return "DenylistCheck"

    def verify(self, sql: str) -> CheckResult:
        for regex, label in self._compiled:
            match = regex.search(sql)
            if match:
                return self.failed(
                    f"Blocked pattern {label!r} matched {match.group(0)!r}",
                    pattern=label,
                    matched=match.group(0),
                )
        return self.passed("No blocked patterns")

    def to_error(self, result: CheckResult) -> UnsafeSQL:
        return BlockedPattern(result.details["pattern"], result.details["matched"])
