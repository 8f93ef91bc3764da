"""
Row Limit Policy
================

Best-effort result-size protection. Aggregate detection is a keyword
heuristic over the outer query only: aggregates and GROUP BY inside
subqueries or CTE bodies do not exempt the outer SELECT from a LIMIT.
This is resource protection, not a security boundary.
"""

import re

from nl_gateway.sqltext import top_level

_AGGREGATE = re.compile(r"\b(?:count|sum|avg|min|max)\s*\(|\bgroup\s+by\b", re.IGNORECASE)
_LIMIT = re.compile(r"\blimit\b", re.IGNORECASE)
_TAIL_LIMIT = re.compile(r"\blimit\s+(\d+)(?:\s+offset\s+\d+)?\s*$", re.IGNORECASE)
_TAIL_PAGING = re.compile(
    r"\s+(?:limit\s+\d+(?:\s+offset\s+\d+)?|offset\s+\d+(?:\s+limit\s+\d+)?)\s*$",
    re.IGNORECASE,
)


class RowLimitPolicy:
    """Appends a default LIMIT to non-aggregate queries and clamps large ones."""

    def __init__(self, default_limit: int = 50, max_limit: int = 500) -> None:
        if default_limit < 1 or max_limit < default_limit:
            raise ValueError("need 1 <= default_limit <= max_limit")
        self.default_limit = default_limit
        self.max_limit = max_limit

    def resolve(self, requested: int | None = None) -> int:
        """Effective limit for a request: requested or default, capped at max."""
        if requested is None or requested < 1:
            return self.default_limit
        return min(requested, self.max_limit)

    def is_aggregate(self, sql: str) -> bool:
        return bool(_AGGREGATE.search(top_level(sql)))

    def has_limit(self, sql: str) -> bool:
        return bool(_LIMIT.search(top_level(sql)))

    def apply(self, sql: str, limit: int | None = None) -> str:
        if self.has_limit(sql):
            return self._clamp(sql)
        if self.is_aggregate(sql):
            return sql
        return f"{sql} LIMIT {self.resolve(limit)}"

    def _clamp(self, sql: str) -> str:
        match = _TAIL_LIMIT.search(sql)
        if match is None:
            # Only a literal row count can be clamped in place
            return f"SELECT * FROM ({sql}) AS limited LIMIT {self.max_limit}"
        if int(match.group(1)) > self.max_limit:
            start, end = match.span(1)
            return f"{sql[:start]}{self.max_limit}{sql[end:]}"
        return sql

    def strip_limit(self, sql: str) -> str:
        """Drop a trailing LIMIT/OFFSET clause, for row counting."""
        return _TAIL_PAGING.sub("", sql)
