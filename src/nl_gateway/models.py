"""
Data Models
===========

Core data structures for the natural-language query gateway.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class CheckStatus(Enum):
    """Status of a safety check."""

    PASSED = "passed"
    FAILED = "failed"


@dataclass
class CheckResult:
    """Result of a single safety check."""

    check_name: str
    status: CheckStatus
    message: str
    details: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ColumnDescriptor:
    name: str
    data_type: str


@dataclass(frozen=True)
class TableDescriptor:
    """A permitted table with its columns in ordinal order."""

    qualified_name: str
    columns: tuple[ColumnDescriptor, ...]

    def render(self) -> str:
        cols = ", ".join(f"{c.name} ({c.data_type})" for c in self.columns)
        return f"- {self.qualified_name}: {cols}"


@dataclass(frozen=True)
class CatalogDescription:
    """Rendered view of the allow-listed warehouse catalog plus policy rules."""

    tables: tuple[TableDescriptor, ...]
    policy_text: str = ""

    def render(self) -> str:
        lines = ["Tables:"]
        lines.extend(table.render() for table in self.tables)
        if self.policy_text:
            lines.append("")
            lines.append(self.policy_text.strip())
        return "\n".join(lines)


@dataclass(frozen=True)
class ValidatedStatement:
    """
    SQL that passed the safety filter (and, once enforced, the policies).

    Instances are only created by the sanitizer and the policy enforcer;
    anything holding one may be executed without further inspection.
    """

    sql: str
    audit_required: bool = False
    tables: tuple[str, ...] = ()


@dataclass
class QueryResult:
    """Rows returned by the warehouse, already coerced for JSON."""

    columns: list[str]
    rows: list[dict[str, Any]]

    @property
    def row_count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class DatasetMeta:
    source: str
    description: str
    period: str
    url: str

    def as_dict(self) -> dict[str, str]:
        return {
            "source": self.source,
            "description": self.description,
            "period": self.period,
            "url": self.url,
        }


@dataclass
class LLMResponse:
    """Response from an LLM call."""

    content: str
    model: str
    tokens_used: int = 0


@dataclass
class PipelineStep:
    """Single entry in a request's pipeline trail."""

    timestamp: str
    step: str
    detail: dict = field(default_factory=dict)


@dataclass
class GatewayResult:
    """Final result of one natural-language question."""

    answer: str
    sql: str
    result: QueryResult
    audit_required: bool
    attempts: int
    total_rows: Optional[int] = None
    audit_sample: Optional[dict[str, Any]] = None
    dataset_meta: Optional[DatasetMeta] = None
    steps: list[PipelineStep] = field(default_factory=list)
