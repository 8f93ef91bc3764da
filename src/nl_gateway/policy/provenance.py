"""
Provenance Policy
=================

Queries touching an audited source must project every provenance column so
each returned record can be traced back to its source document.
"""

import re

from nl_gateway.errors import AuditColumnsMissing
from nl_gateway.sqltext import identifier_text


class ProvenancePolicy:
    def __init__(
        self,
        source_prefixes: list[str] | tuple[str, ...],
        required_columns: list[str] | tuple[str, ...],
    ) -> None:
        self.source_prefixes = tuple(source_prefixes)
        self.required_columns = tuple(required_columns)
        self._source = None
        if self.source_prefixes:
            body = "|".join(re.escape(p) for p in self.source_prefixes)
            self._source = re.compile(rf"(?<![\w.])(?:{body})", re.IGNORECASE)
        self._columns = {
            col: re.compile(rf"\b{re.escape(col)}\b", re.IGNORECASE)
            for col in self.required_columns
        }

    def applies(self, sql: str) -> bool:
        """True when the statement references an audited source."""
        if self._source is None:
            return False
        return bool(self._source.search(identifier_text(sql)))

    def missing_columns(self, sql: str) -> list[str]:
        # SELECT * does not count: the columns must be named explicitly
        text = identifier_text(sql)
        return [col for col, regex in self._columns.items() if not regex.search(text)]

    def check(self, sql: str) -> None:
        """Raise AuditColumnsMissing if an audited query lacks provenance."""
        if not self.applies(sql):
            return
        missing = self.missing_columns(sql)
        if missing:
            raise AuditColumnsMissing(missing)
