"""
Query Executor
==============

Executes validated statements and shapes the rows for JSON responses.
"""

from decimal import Decimal
from typing import Any

import structlog

from nl_gateway.errors import CountUnavailable, GatewayError
from nl_gateway.models import QueryResult, ValidatedStatement
from nl_gateway.policy.limits import RowLimitPolicy
from nl_gateway.warehouse.connection import Warehouse

logger = structlog.get_logger(__name__)

# Largest integer a JSON (IEEE-754 double) consumer reads back exactly
MAX_SAFE_INTEGER = 2**53 - 1


def coerce_value(value: Any) -> Any:
    """
    Make a warehouse scalar JSON-safe.

    Integers beyond the safe range become floats and lose precision; this is
    accepted rather than switching those values to strings. Binary values
    become lowercase hex strings.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if -MAX_SAFE_INTEGER <= value <= MAX_SAFE_INTEGER:
            return value
        return float(value)
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, list):
        return [coerce_value(v) for v in value]
    if isinstance(value, dict):
        return {k: coerce_value(v) for k, v in value.items()}
    return value


class QueryExecutor:
    def __init__(self, warehouse: Warehouse, limits: RowLimitPolicy) -> None:
        self.warehouse = warehouse
        self.limits = limits

    async def execute(self, validated: ValidatedStatement) -> QueryResult:
        columns, rows = await self.warehouse.query(validated.sql)
        return QueryResult(
            columns=columns,
            rows=[
                {col: coerce_value(value) for col, value in zip(columns, row)}
                for row in rows
            ],
        )

    def count_sql(self, validated: ValidatedStatement) -> str:
        inner = self.limits.strip_limit(validated.sql)
        return f"SELECT COUNT(*) AS total FROM ({inner}) AS counted"

    async def count_rows(self, validated: ValidatedStatement) -> int:
        """
        Total rows the statement would return without its LIMIT.

        Raises:
            CountUnavailable: the wrapped count query failed
        """
        try:
            _, rows = await self.warehouse.query(self.count_sql(validated))
        except GatewayError as exc:
            raise CountUnavailable(f"Row count unavailable: {exc.message}") from exc
        if not rows or rows[0][0] is None:
            raise CountUnavailable("Row count unavailable: empty result")
        return int(rows[0][0])

    async def count(self, validated: ValidatedStatement) -> int | None:
        """Like count_rows, but None instead of an error."""
        try:
            return await self.count_rows(validated)
        except CountUnavailable as exc:
            logger.warning("count_unavailable", reason=exc.message)
            return None
