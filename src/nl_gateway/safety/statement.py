"""
Statement Shape Checks
======================

Only a single SELECT (or WITH ... SELECT) statement may reach the warehouse.
"""

import re

from nl_gateway.errors import MultipleStatements, NotSelect
from nl_gateway.models import CheckResult
from nl_gateway.safety.base import Check

_SELECT_START = re.compile(r"^(select|with)\b", re.IGNORECASE)


class SelectOnlyCheck(Check):
    """Statement must begin with SELECT or WITH."""

    error = NotSelect

    @property
    def name(self) -> str:
        return "SelectOnlyCheck"

    def verify(self, sql: str) -> CheckResult:
        if not sql:
            return self.failed("Empty statement; only SELECT queries are allowed")
        if not _SELECT_START.match(sql):
            first_word = sql.split(" ", 1)[0][:32]
            return self.failed(
                f"Only SELECT/WITH statements are allowed, got {first_word!r}",
                first_word=first_word,
            )
        return self.passed("Statement is a SELECT")


class SingleStatementCheck(Check):
    """
    No statement terminator may remain once the trailing one is stripped.

    Terminators inside string literals count too; the filter prefers a false
    rejection over reasoning about the warehouse's quoting rules.
    """

    error = MultipleStatements

    @property
    def name(self) -> str:
        return "SingleStatementCheck"

    def verify(self, sql: str) -> CheckResult:
        count = sql.count(";")
        if count:
            return self.failed(
                f"Multiple statements are not allowed ({count + 1} found)",
                terminators=count,
            )
        return self.passed("Single statement")
