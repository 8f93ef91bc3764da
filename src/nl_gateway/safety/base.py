"""
Base Check Classes
==================

Abstract base class and check chain for the SQL safety filter.
"""

from abc import ABC, abstractmethod

from nl_gateway.errors import UnsafeSQL
from nl_gateway.models import CheckResult, CheckStatus


class Check(ABC):
    """Base class for all safety checks."""

    error: type[UnsafeSQL] = UnsafeSQL

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this check."""
        pass

    @abstractmethod
    def verify(self, sql: str) -> CheckResult:
        """
        Check normalised SQL against this check's rule.

        Args:
            sql: Normalised SQL text (fences stripped, whitespace collapsed)

        Returns:
            CheckResult indicating pass/fail with details
        """
        pass

    def to_error(self, result: CheckResult) -> UnsafeSQL:
        """Build the exception raised for a failed result."""
        return self.error(result.message)

    def passed(self, message: str) -> CheckResult:
        return CheckResult(
            check_name=self.name, status=CheckStatus.PASSED, message=message
        )

    def failed(self, message: str, **details) -> CheckResult:
        return CheckResult(
            check_name=self.name,
            status=CheckStatus.FAILED,
            message=message,
            details=details,
        )


class CheckChain:
    """Runs all checks in sequence, collecting results."""

    def __init__(self, checks: list[Check] | None = None) -> None:
        """
        Initialize the check chain.

        Args:
            checks: List of checks to run. Defaults to the standard chain.
        """
        if checks is not None:
            self.checks = checks
        else:
            # Lazy import to avoid circular imports
            from nl_gateway.safety.comments import CommentCheck
            from nl_gateway.safety.denylist import DenylistCheck
            from nl_gateway.safety.statement import (
                SelectOnlyCheck,
                SingleStatementCheck,
            )

            self.checks = [
                SelectOnlyCheck(),
                SingleStatementCheck(),
                CommentCheck(),
                DenylistCheck(),
            ]

    def run(self, sql: str) -> tuple[bool, list[CheckResult]]:
        """
        Run all checks. Returns (all_passed, results).

        Stops at the first failure so the reported reason is the most basic
        one that applies.
        """
        results = []

        for check in self.checks:
            result = check.verify(sql)
            results.append(result)

            if result.status == CheckStatus.FAILED:
                return False, results

        return True, results

    def first_error(self, results: list[CheckResult]) -> UnsafeSQL | None:
        """Exception for the first failed result, if any."""
        by_name = {check.name: check for check in self.checks}
        for result in results:
            if result.status == CheckStatus.FAILED:
                return by_name[result.check_name].to_error(result)
        return None
