"""
Schema Describer
================

Introspects the allow-listed part of the warehouse catalog and renders it,
with the policy rules, as prompt text for SQL generation. The rendered text
is cached with a time-to-live.
"""

import time
from itertools import groupby
from typing import Callable

import structlog

from nl_gateway.errors import SchemaUnavailable, WarehouseConnectionError, WarehouseQueryError
from nl_gateway.models import CatalogDescription, ColumnDescriptor, TableDescriptor
from nl_gateway.policy.aliases import TableAliasRewriter
from nl_gateway.warehouse.connection import Warehouse

logger = structlog.get_logger(__name__)

COLUMNS_SQL = """SELECT table_catalog, table_schema, table_name, column_name, data_type
FROM information_schema.columns
WHERE {scope}
ORDER BY table_catalog, table_schema, table_name, ordinal_position"""


def _literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class SchemaCache:
    """Holds one rendered schema text with an expiry time."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._value: str | None = None
        self._expires_at = 0.0

    def get(self) -> str | None:
        """Cached value if present and not expired."""
        if self._value is not None and self._clock() < self._expires_at:
            return self._value
        return None

    def stale(self) -> str | None:
        """Cached value regardless of expiry."""
        return self._value

    def set(self, value: str) -> None:
        self._value = value
        self._expires_at = self._clock() + self.ttl_seconds

    def invalidate(self) -> None:
        self._value = None
        self._expires_at = 0.0

    def state(self) -> dict:
        if self._value is None:
            return {"cached": False, "expires_in_seconds": None}
        remaining = max(self._expires_at - self._clock(), 0.0)
        return {"cached": remaining > 0, "expires_in_seconds": round(remaining, 1)}


class SchemaDescriber:
    """
    Renders the permitted tables and columns for the SQL-drafting prompt.

    Physical (versioned) table names are shown under their canonical names,
    so prompts stay stable when the warehouse re-publishes a dataset.
    """

    def __init__(
        self,
        warehouse: Warehouse,
        allowed_schemas: list[tuple[str, str]],
        rewriter: TableAliasRewriter | None = None,
        policy_text: str = "",
        ttl_seconds: float = 3600,
        cache: SchemaCache | None = None,
    ) -> None:
        if not allowed_schemas:
            raise ValueError("at least one catalog.schema must be allowed")
        self.warehouse = warehouse
        self.allowed_schemas = list(allowed_schemas)
        self.rewriter = rewriter or TableAliasRewriter()
        self.policy_text = policy_text
        self.cache = cache or SchemaCache(ttl_seconds)

    def columns_sql(self) -> str:
        scope = " OR ".join(
            f"(table_catalog = {_literal(catalog)} AND table_schema = {_literal(schema)})"
            for catalog, schema in self.allowed_schemas
        )
        return COLUMNS_SQL.format(scope=scope)

    async def introspect(self) -> CatalogDescription:
        """Query the catalog views; one round-trip for all tables."""
        _, rows = await self.warehouse.query(self.columns_sql())

        tables = []
        for (catalog, schema, table), cols in groupby(rows, key=lambda r: r[:3]):
            physical = f"{catalog}.{schema}.{table}"
            tables.append(
                TableDescriptor(
                    qualified_name=self.rewriter.canonical_name(physical),
                    columns=tuple(ColumnDescriptor(c[3], c[4]) for c in cols),
                )
            )
        tables.sort(key=lambda t: t.qualified_name)
        return CatalogDescription(tables=tuple(tables), policy_text=self.policy_text)

    async def describe(self, force_refresh: bool = False) -> str:
        """
        Schema text for prompts.

        Raises:
            SchemaUnavailable: introspection failed and nothing is cached, or
                no permitted table exists
        """
        if not force_refresh:
            cached = self.cache.get()
            if cached is not None:
                return cached

        try:
            description = await self.introspect()
        except (WarehouseConnectionError, WarehouseQueryError) as exc:
            stale = self.cache.stale()
            if stale is not None:
                logger.warning("schema_refresh_failed_serving_stale", error=exc.message)
                return stale
            raise SchemaUnavailable(f"Schema introspection failed: {exc.message}") from exc

        if not description.tables:
            raise SchemaUnavailable("No permitted tables found in the warehouse")

        text = description.render()
        self.cache.set(text)
        logger.info("schema_refreshed", tables=len(description.tables))
        return text

    def invalidate(self) -> None:
        self.cache.invalidate()
        logger.info("schema_cache_cleared")
