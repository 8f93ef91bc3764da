"""
SQL Sanitizer
=============

Turns a raw LLM completion into a ValidatedStatement or raises the precise
UnsafeSQL subclass describing why it was rejected.
"""

from nl_gateway.models import CheckResult, ValidatedStatement
from nl_gateway.safety.base import CheckChain
from nl_gateway.sqltext import collapse_whitespace, strip_code_fences


def normalize(raw: str) -> str:
    """Strip fences, collapse whitespace outside quotes, drop one trailing ';'."""
    sql = collapse_whitespace(strip_code_fences(raw or ""))
    if sql.endswith(";"):
        sql = sql[:-1].rstrip()
    return sql


class SQLSanitizer:
    """Validates LLM-authored SQL as a single read-only SELECT."""

    def __init__(self, chain: CheckChain | None = None) -> None:
        self.chain = chain or CheckChain()

    def check(self, raw: str) -> tuple[str, list[CheckResult]]:
        """Normalise and run the chain without raising."""
        sql = normalize(raw)
        _, results = self.chain.run(sql)
        return sql, results

    def sanitize(self, raw: str) -> ValidatedStatement:
        """
        Validate raw LLM output.

        Args:
            raw: Unvalidated completion text, possibly fenced

        Returns:
            ValidatedStatement holding the normalised SQL

        Raises:
            UnsafeSQL: NotSelect, MultipleStatements, CommentNotAllowed or
                BlockedPattern for the first failing check
        """
        sql, results = self.check(raw)
        error = self.chain.first_error(results)
        if error is not None:
            raise error
        return ValidatedStatement(sql=sql)


_default = SQLSanitizer()


def sanitize(raw: str) -> ValidatedStatement:
    """Validate with the default check chain."""
    return _default.sanitize(raw)
