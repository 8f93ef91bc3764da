"""
Query Gateway
=============

Orchestrates one question end to end: schema, SQL draft, safety filter,
policies, execution, optional row count and summary.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog
from opentelemetry import trace

from nl_gateway.catalog import PROVENANCE_COLUMNS
from nl_gateway.composer import AnswerComposer
from nl_gateway.datasets import DATASETS, extract_audit_sample, select_dataset_meta
from nl_gateway.errors import (
    AuditColumnsMissing,
    EmptyQuery,
    GatewayError,
    LLMUnavailable,
    UnsafeSQL,
)
from nl_gateway.llm.base import LLMInterface
from nl_gateway.lookup import DirectLookup
from nl_gateway.models import DatasetMeta, GatewayResult, PipelineStep, ValidatedStatement
from nl_gateway.policy.enforcer import PolicyContext, PolicyEnforcer
from nl_gateway.safety.sanitizer import SQLSanitizer
from nl_gateway.schema import SchemaDescriber
from nl_gateway.warehouse.executor import QueryExecutor

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)


class QueryGateway:
    """
    Natural-language question in, summarised warehouse answer out.

    The gateway:
    1. Loads the (cached) schema description
    2. Drafts SQL with the LLM, or with DirectLookup when no LLM is usable
    3. Runs the safety filter and the policy enforcer
    4. On rejection, asks the LLM once more with the reason, then gives up
    5. Executes, optionally counts, and asks the LLM for a summary

    Nothing is executed unless the statement passed every check.
    """

    SYSTEM_PROMPT = """You translate questions into one read-only DuckDB SQL query
over the following warehouse schema.

{schema}

Return ONLY the SQL query: a single SELECT (or WITH ... SELECT) statement,
no explanations and no comments."""

    CORRECTION_PROMPT_TEMPLATE = """The previous SQL query was rejected.

Original question: {question}
Previous SQL: {previous_sql}
Problem: {problem}

Please generate a corrected SQL query that fixes this problem.
Return ONLY the SQL query, no explanations."""

    AUDIT_INSTRUCTION = (
        "The query reads an audited source, so it MUST explicitly select "
        "these columns: {columns}."
    )

    def __init__(
        self,
        describer: SchemaDescriber,
        enforcer: PolicyEnforcer,
        executor: QueryExecutor,
        composer: AnswerComposer,
        llm: LLMInterface | None = None,
        sanitizer: SQLSanitizer | None = None,
        sql_model: str | None = None,
        lookup: DirectLookup | None = None,
        datasets: dict[str, DatasetMeta] | None = None,
        provenance_columns: list[str] | None = None,
    ) -> None:
        self.describer = describer
        self.enforcer = enforcer
        self.executor = executor
        self.composer = composer
        self.llm = llm
        self.sanitizer = sanitizer or SQLSanitizer()
        self.sql_model = sql_model
        self.lookup = lookup or DirectLookup()
        self.datasets = DATASETS if datasets is None else datasets
        self.provenance_columns = provenance_columns or PROVENANCE_COLUMNS

    @staticmethod
    def _record(steps: list[PipelineStep], step: str, **detail) -> None:
        steps.append(
            PipelineStep(
                timestamp=datetime.now(timezone.utc).isoformat(),
                step=step,
                detail=detail,
            )
        )

    def validate(self, raw: str, context: PolicyContext | None = None) -> ValidatedStatement:
        """Safety filter followed by the policy enforcer."""
        return self.enforcer.apply(self.sanitizer.sanitize(raw), context)

    def correction_prompt(self, question: str, previous_sql: str, error: GatewayError) -> str:
        problem = error.message
        if isinstance(error, AuditColumnsMissing):
            problem += "\n" + self.AUDIT_INSTRUCTION.format(
                columns=", ".join(self.provenance_columns)
            )
        return self.CORRECTION_PROMPT_TEMPLATE.format(
            question=question,
            previous_sql=previous_sql,
            problem=problem,
        )

    async def _draft(self, question: str, prompt: str, system_prompt: str) -> tuple[str, bool]:
        """Returns (raw SQL, came_from_llm)."""
        if self.llm is not None:
            try:
                response = await self.llm.generate(
                    prompt,
                    system_prompt=system_prompt,
                    model=self.sql_model,
                    max_tokens=800,
                    temperature=0.0,
                )
                return response.content, True
            except LLMUnavailable as exc:
                logger.warning("sql_draft_fallback_to_lookup", reason=exc.message)
        return self.lookup.build_sql(question), False

    async def _phase(
        self,
        attempt: int,
        question: str,
        prompt: str,
        system_prompt: str,
        context: PolicyContext,
        steps: list[PipelineStep],
    ) -> tuple[str, bool, Optional[ValidatedStatement], Optional[GatewayError]]:
        """One draft followed by validation. Returns (raw, from_llm, statement, rejection)."""
        raw, from_llm = await self._draft(question, prompt, system_prompt)
        self._record(steps, f"draft_{attempt}", sql=raw, source="llm" if from_llm else "lookup")

        try:
            statement = self.validate(raw, context)
        except (UnsafeSQL, AuditColumnsMissing) as exc:
            self._record(steps, f"rejected_{attempt}", code=exc.code, reason=exc.message)
            logger.warning("sql_rejected", attempt=attempt, code=exc.code, reason=exc.message)
            return raw, from_llm, None, exc

        self._record(
            steps,
            f"validated_{attempt}",
            sql=statement.sql,
            audit_required=statement.audit_required,
        )
        logger.info("sql_validated", attempt=attempt, sql=statement.sql)
        return raw, from_llm, statement, None

    async def generate(
        self,
        question: str,
        schema: str,
        context: PolicyContext,
        steps: list[PipelineStep],
    ) -> tuple[ValidatedStatement, int]:
        """
        Draft and validate SQL, redrafting at most once.

        draft -> validate -> [rejected: redraft with the reason -> validate]

        Returns:
            (validated statement, number of drafts)

        Raises:
            UnsafeSQL, AuditColumnsMissing: the last draft was rejected
        """
        system_prompt = self.SYSTEM_PROMPT.format(schema=schema)

        raw, from_llm, statement, rejection = await self._phase(
            1, question, f"Question: {question}", system_prompt, context, steps
        )
        if statement is not None:
            return statement, 1
        # A lookup draft would come back identical
        if not from_llm:
            raise rejection

        prompt = self.correction_prompt(question, raw, rejection)
        _, _, statement, rejection = await self._phase(
            2, question, prompt, system_prompt, context, steps
        )
        if statement is not None:
            return statement, 2
        raise rejection

    async def ask(
        self,
        question: str,
        include_total: bool = False,
        limit: Optional[int] = None,
    ) -> GatewayResult:
        """
        Answer a natural-language question.

        Raises:
            EmptyQuery: blank question
            SchemaUnavailable: catalog introspection failed with nothing cached
            UnsafeSQL, AuditColumnsMissing: no acceptable SQL after regeneration
            WarehouseConnectionError, WarehouseQueryError: execution failed
        """
        question = (question or "").strip()
        if not question:
            raise EmptyQuery()

        steps: list[PipelineStep] = []

        with tracer.start_as_current_span("gateway.ask") as span:
            with tracer.start_as_current_span("gateway.schema"):
                schema = await self.describer.describe()

            with tracer.start_as_current_span("gateway.generate"):
                statement, attempts = await self.generate(
                    question, schema, PolicyContext(limit=limit), steps
                )
            span.set_attribute("gateway.attempts", attempts)
            span.set_attribute("gateway.audit_required", statement.audit_required)

            with tracer.start_as_current_span("gateway.execute"):
                result = await self.executor.execute(statement)
            self._record(steps, "executed", rows=result.row_count)

            total_rows = None
            if include_total:
                with tracer.start_as_current_span("gateway.count"):
                    total_rows = await self.executor.count(statement)
                self._record(steps, "counted", total_rows=total_rows)

            audit_sample = None
            if statement.audit_required:
                audit_sample = extract_audit_sample(result.rows, self.provenance_columns)
            meta = select_dataset_meta(statement.tables, self.datasets)

            with tracer.start_as_current_span("gateway.summarize"):
                answer = await self.composer.summarize(
                    question, statement.sql, result, meta, audit_sample, total_rows
                )
            self._record(steps, "summarized")

        return GatewayResult(
            answer=answer,
            sql=statement.sql,
            result=result,
            audit_required=statement.audit_required,
            attempts=attempts,
            total_rows=total_rows,
            audit_sample=audit_sample,
            dataset_meta=meta,
            steps=steps,
        )

    def clear_cache(self) -> None:
        self.describer.invalidate()
