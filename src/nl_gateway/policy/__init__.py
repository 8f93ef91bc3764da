"""
Policy Module
=============

Domain policies applied after the safety filter.
"""

from nl_gateway.policy.aliases import TableAliasRewriter, referenced_tables
from nl_gateway.policy.enforcer import PolicyContext, PolicyEnforcer
from nl_gateway.policy.limits import RowLimitPolicy
from nl_gateway.policy.provenance import ProvenancePolicy

__all__ = [
    "TableAliasRewriter",
    "referenced_tables",
    "RowLimitPolicy",
    "ProvenancePolicy",
    "PolicyContext",
    "PolicyEnforcer",
]
