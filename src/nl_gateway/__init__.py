"""
NL Query Gateway
================

Natural-language questions over a fixed DuckDB / MotherDuck warehouse, with a
safety filter and domain policies between the LLM and the data.
"""

from nl_gateway.composer import AnswerComposer
from nl_gateway.errors import (
    AuditColumnsMissing,
    BlockedPattern,
    CommentNotAllowed,
    CountUnavailable,
    EmptyQuery,
    GatewayError,
    LLMUnavailable,
    MultipleStatements,
    NotSelect,
    SchemaUnavailable,
    UnsafeSQL,
    WarehouseConnectionError,
    WarehouseQueryError,
)
from nl_gateway.gateway import QueryGateway
from nl_gateway.llm import AnthropicLLM, LLMInterface, MockLLM
from nl_gateway.models import (
    CatalogDescription,
    CheckResult,
    CheckStatus,
    ColumnDescriptor,
    DatasetMeta,
    GatewayResult,
    LLMResponse,
    PipelineStep,
    QueryResult,
    TableDescriptor,
    ValidatedStatement,
)
from nl_gateway.policy import (
    PolicyContext,
    PolicyEnforcer,
    ProvenancePolicy,
    RowLimitPolicy,
    TableAliasRewriter,
)
from nl_gateway.safety import SQLSanitizer, sanitize
from nl_gateway.schema import SchemaCache, SchemaDescriber
from nl_gateway.warehouse import QueryExecutor, Warehouse

__version__ = "0.3.0"

__all__ = [
    # Models
    "CatalogDescription",
    "CheckResult",
    "CheckStatus",
    "ColumnDescriptor",
    "DatasetMeta",
    "GatewayResult",
    "LLMResponse",
    "PipelineStep",
    "QueryResult",
    "TableDescriptor",
    "ValidatedStatement",
    # Errors
    "GatewayError",
    "EmptyQuery",
    "SchemaUnavailable",
    "UnsafeSQL",
    "NotSelect",
    "MultipleStatements",
    "CommentNotAllowed",
    "BlockedPattern",
    "AuditColumnsMissing",
    "WarehouseConnectionError",
    "WarehouseQueryError",
    "CountUnavailable",
    "LLMUnavailable",
    # Pipeline
    "SQLSanitizer",
    "sanitize",
    "PolicyContext",
    "PolicyEnforcer",
    "ProvenancePolicy",
    "RowLimitPolicy",
    "TableAliasRewriter",
    "SchemaCache",
    "SchemaDescriber",
    "Warehouse",
    "QueryExecutor",
    "AnswerComposer",
    "QueryGateway",
    # LLM
    "LLMInterface",
    "AnthropicLLM",
    "MockLLM",
]
