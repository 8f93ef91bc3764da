"""
Answer Composer
===============

Asks the LLM for a short natural-language summary of the executed query.
The instructions are advisory; the output is not re-checked. When the LLM is
missing or fails, a templated summary is returned instead.
"""

import json
from typing import Any, Optional

import structlog

from nl_gateway.errors import LLMUnavailable
from nl_gateway.llm.base import LLMInterface
from nl_gateway.models import DatasetMeta, QueryResult

logger = structlog.get_logger(__name__)


class AnswerComposer:
    SYSTEM_PROMPT = """You summarize database query results for end users.

Rules:
- Answer in the same language as the question.
- Plain text only: no markdown, no tables, no bullet symbols, no code.
- At most {max_lines} short lines.
- Format large numbers with the conventions of the user's language
  (Brazilian Portuguese: 1.234.567,89).
- State only facts present in the result rows. If they do not answer the
  question, say so.
- If a provenance sample is given, mention that the records can be traced to
  their official source documents."""

    def __init__(
        self,
        llm: LLMInterface | None,
        model: str | None = None,
        preview_rows: int = 20,
        max_lines: int = 6,
        max_tokens: int = 400,
    ) -> None:
        self.llm = llm
        self.model = model
        self.preview_rows = preview_rows
        self.max_lines = max_lines
        self.max_tokens = max_tokens

    def build_prompt(
        self,
        question: str,
        sql: str,
        result: QueryResult,
        meta: Optional[DatasetMeta] = None,
        audit_sample: Optional[dict[str, Any]] = None,
        total_rows: Optional[int] = None,
    ) -> str:
        rows = result.rows[: self.preview_rows]
        parts = [
            f"Question: {question}",
            f"SQL: {sql}",
            f"Rows returned: {result.row_count}",
        ]
        if total_rows is not None:
            parts.append(f"Total matching rows: {total_rows}")
        parts.append(
            f"First {len(rows)} rows (JSON): "
            + json.dumps(rows, ensure_ascii=False, default=str)
        )
        if meta is not None:
            parts.append("Dataset: " + json.dumps(meta.as_dict(), ensure_ascii=False))
        if audit_sample is not None:
            parts.append(
                "Provenance sample: " + json.dumps(audit_sample, ensure_ascii=False, default=str)
            )
        return "\n".join(parts)

    @staticmethod
    def fallback_summary(result: QueryResult, total_rows: Optional[int] = None) -> str:
        if result.row_count == 0:
            return "No rows found."
        text = f"Found {result.row_count} row(s)."
        if total_rows is not None and total_rows > result.row_count:
            text += f" Showing {result.row_count} of {total_rows}."
        return text

    async def summarize(
        self,
        question: str,
        sql: str,
        result: QueryResult,
        meta: Optional[DatasetMeta] = None,
        audit_sample: Optional[dict[str, Any]] = None,
        total_rows: Optional[int] = None,
    ) -> str:
        if self.llm is None:
            return self.fallback_summary(result, total_rows)

        prompt = self.build_prompt(question, sql, result, meta, audit_sample, total_rows)
        try:
            response = await self.llm.generate(
                prompt,
                system_prompt=self.SYSTEM_PROMPT.format(max_lines=self.max_lines),
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=0.2,
            )
        except LLMUnavailable as exc:
            logger.warning("summary_fallback", reason=exc.message)
            return self.fallback_summary(result, total_rows)

        answer = response.content.strip()
        if not answer:
            logger.warning("summary_fallback", reason="empty completion")
            return self.fallback_summary(result, total_rows)
        return answer
