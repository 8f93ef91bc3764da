"""
Errors
======

Exception taxonomy for the gateway. Every error exposes a stable ``code``
(used in HTTP bodies and metric labels) and a ``message`` that is safe to
show to the caller.
"""


class GatewayError(Exception):
    """Base class for all gateway failures."""

    code = "gateway_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class EmptyQuery(GatewayError):
    code = "empty_query"

    def __init__(self) -> None:
        super().__init__("empty query")


class SchemaUnavailable(GatewayError):
    code = "schema_unavailable"


class UnsafeSQL(GatewayError):
    """SQL rejected by the safety filter."""

    code = "unsafe_sql"

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class NotSelect(UnsafeSQL):
    code = "not_select"


class MultipleStatements(UnsafeSQL):
    code = "multiple_statements"


class CommentNotAllowed(UnsafeSQL):
    code = "comment_not_allowed"


class BlockedPattern(UnsafeSQL):
    code = "blocked_pattern"

    def __init__(self, pattern: str, matched: str) -> None:
        super().__init__(f"Blocked pattern {pattern!r} matched {matched!r}")
        self.pattern = pattern
        self.matched = matched


class AuditColumnsMissing(GatewayError):
    code = "audit_columns_missing"

    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            "Query on an audited source must select the provenance columns: "
            + ", ".join(missing)
        )
        self.missing = missing


class WarehouseConnectionError(GatewayError):
    code = "warehouse_connection"


class WarehouseQueryError(GatewayError):
    code = "warehouse_query"


class CountUnavailable(GatewayError):
    code = "count_unavailable"


class LLMUnavailable(GatewayError):
    code = "llm_unavailable"
