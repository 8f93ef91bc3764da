"""
Safety Module
=============

SQL safety filter: a chain of checks over LLM-authored SQL.
"""

from nl_gateway.safety.base import Check, CheckChain
from nl_gateway.safety.comments import CommentCheck
from nl_gateway.safety.denylist import DenylistCheck
from nl_gateway.safety.sanitizer import SQLSanitizer, normalize, sanitize
from nl_gateway.safety.statement import SelectOnlyCheck, SingleStatementCheck

__all__ = [
    "Check",
    "CheckChain",
    "SelectOnlyCheck",
    "SingleStatementCheck",
    "CommentCheck",
    "DenylistCheck",
    "SQLSanitizer",
    "normalize",
    "sanitize",
]
