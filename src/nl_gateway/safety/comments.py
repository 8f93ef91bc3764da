"""
Comment Check
=============

Rejects comment markers, which could hide a second statement or split a
blocked keyword.
"""

import re

from nl_gateway.errors import CommentNotAllowed
from nl_gateway.models import CheckResult
from nl_gateway.safety.base import Check

_COMMENT_MARKERS = re.compile(r"--|/\*|\*/")


class CommentCheck(Check):
    error = CommentNotAllowed

    @property
    def name(self) -> str:
        return "CommentCheck"

    def verify(self, sql: str) -> CheckResult:
        match = _COMMENT_MARKERS.search(sql)
        if match:
            return self.failed(
                f"SQL comments are not allowed (found {match.group(0)!r})",
                marker=match.group(0),
                position=match.start(),
            )
        return self.passed("No comments")
