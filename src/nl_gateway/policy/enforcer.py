"""
Policy Enforcer
===============

Applies the domain policies to a statement that already passed the safety
filter: canonical table rewriting, provenance enforcement and row limiting.
Each transform is idempotent, so enforcing twice yields the same statement.
"""

from dataclasses import dataclass
from typing import Optional

from nl_gateway.models import ValidatedStatement
from nl_gateway.policy.aliases import TableAliasRewriter, referenced_tables
from nl_gateway.policy.limits import RowLimitPolicy
from nl_gateway.policy.provenance import ProvenancePolicy


@dataclass
class PolicyContext:
    """Per-request policy inputs."""

    limit: Optional[int] = None


class PolicyEnforcer:
    def __init__(
        self,
        rewriter: TableAliasRewriter,
        limits: RowLimitPolicy,
        provenance: ProvenancePolicy,
        known_tables: list[str] | None = None,
    ) -> None:
        self.rewriter = rewriter
        self.limits = limits
        self.provenance = provenance
        self.known_tables = sorted(set(rewriter.physical_names) | set(known_tables or []))

    def apply(
        self,
        validated: ValidatedStatement,
        context: PolicyContext | None = None,
    ) -> ValidatedStatement:
        """
        Enforce all policies.

        Args:
            validated: Output of the safety filter
            context: Per-request inputs (requested row limit)

        Returns:
            ValidatedStatement with physical table names and a row limit

        Raises:
            AuditColumnsMissing: audited source queried without provenance
        """
        context = context or PolicyContext()

        sql = self.rewriter.rewrite(validated.sql)
        audit_required = self.provenance.applies(sql)
        self.provenance.check(sql)
        sql = self.limits.apply(sql, context.limit)

        return ValidatedStatement(
            sql=sql,
            audit_required=audit_required,
            tables=referenced_tables(sql, self.known_tables),
        )
