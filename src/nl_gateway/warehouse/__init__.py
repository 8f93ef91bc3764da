"""
Warehouse Module
================

Connection handling and statement execution against DuckDB / MotherDuck.
"""

from nl_gateway.warehouse.connection import Warehouse, is_connection_error
from nl_gateway.warehouse.executor import MAX_SAFE_INTEGER, QueryExecutor, coerce_value

__all__ = [
    "Warehouse",
    "is_connection_error",
    "QueryExecutor",
    "coerce_value",
    "MAX_SAFE_INTEGER",
]
