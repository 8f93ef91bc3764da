"""
Direct Lookup
=============

Deterministic SQL drafts for when no LLM is configured: a question with a
CNPJ (8+ digits) looks up the company root, anything else searches company
names. The draft still goes through the safety filter and policies.
"""

import re

_NON_DIGITS = re.compile(r"\D")


class DirectLookup:
    def __init__(self, table: str = "chat_rfb.main.empresas", limit: int = 5) -> None:
        self.table = table
        self.limit = limit

    def build_sql(self, question: str) -> str:
        digits = _NON_DIGITS.sub("", question)
        if len(digits) >= 8:
            return (
                f"SELECT * FROM {self.table} "
                f"WHERE cnpj_basico = '{digits[:8]}' LIMIT {self.limit}"
            )
        term = " ".join(question.split()).upper().replace("'", "''")
        return (
            f"SELECT * FROM {self.table} "
            f"WHERE upper(razao_social) LIKE '%{term}%' LIMIT {self.limit}"
        )
