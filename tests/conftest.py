"""
Pytest Fixtures
===============

Shared fixtures for gateway tests. Warehouse tests run against an in-memory
DuckDB database laid out like the production catalog (``memory.main`` for
registry tables, ``memory.dou`` for the audited gazette source).
"""

import os

# Keep the OTLP exporter from dialling a collector when api.main is imported
os.environ.setdefault("OTEL_EXPORTER_OTLP_ENDPOINT", "disabled")

from typing import Callable

import duckdb
import pytest

from nl_gateway.catalog import POLICY_TEXT, PROVENANCE_COLUMNS
from nl_gateway.composer import AnswerComposer
from nl_gateway.errors import LLMUnavailable
from nl_gateway.gateway import QueryGateway
from nl_gateway.llm.base import LLMInterface
from nl_gateway.llm.mock import MockLLM
from nl_gateway.lookup import DirectLookup
from nl_gateway.models import DatasetMeta
from nl_gateway.policy import (
    PolicyEnforcer,
    ProvenancePolicy,
    RowLimitPolicy,
    TableAliasRewriter,
)
from nl_gateway.safety import SQLSanitizer
from nl_gateway.schema import SchemaDescriber
from nl_gateway.warehouse import QueryExecutor, Warehouse

TEST_ALIASES = {
    "memory.main.empresas": "memory.main.empresas_2024_10",
    "memory.dou.atos": "memory.dou.atos_2024",
}

TEST_SCHEMAS = [("memory", "main"), ("memory", "dou")]

TEST_AUDITED = ["memory.dou."]

TEST_DATASETS = {
    "memory.main.empresas_2024_10": DatasetMeta(
        source="Receita Federal do Brasil",
        description="CNPJ open data",
        period="2024-10",
        url="https://example.gov.br/cnpj",
    ),
}

SEED_SQL = [
    "CREATE SCHEMA dou",
    """CREATE TABLE main.empresas_2024_10 (
        cnpj_basico VARCHAR,
        razao_social VARCHAR,
        capital_social DECIMAL(18, 2),
        porte VARCHAR
    )""",
    """INSERT INTO main.empresas_2024_10 VALUES
        ('00000000', 'BANCO DO BRASIL SA', 120000000000.00, '05'),
        ('33000167', 'PETROLEO BRASILEIRO S A PETROBRAS', 205431960490.52, '05'),
        ('12345678', 'PADARIA PAO QUENTE LTDA', 10000.00, '01')""",
    """CREATE TABLE dou.atos_2024 (
        cnpj_basico VARCHAR,
        ato VARCHAR,
        source_url VARCHAR,
        published_at DATE,
        source_line INTEGER,
        content_hash VARCHAR
    )""",
    """INSERT INTO dou.atos_2024 VALUES
        ('12345678', 'Extrato de contrato', 'https://www.in.gov.br/web/dou/-/1', DATE '2024-03-01', 120, 'a1b2'),
        ('33000167', 'Aviso de licitacao', 'https://www.in.gov.br/web/dou/-/2', DATE '2024-04-02', 77, 'c3d4')""",
]


class RecordingWarehouse(Warehouse):
    """Warehouse that remembers every statement it was asked to run."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.statements: list[str] = []

    async def query(self, sql: str):
        self.statements.append(sql)
        return await super().query(sql)


class FailingLLM(LLMInterface):
    """LLM whose every call fails."""

    def __init__(self) -> None:
        self.calls = 0

    async def generate(self, prompt, system_prompt=None, model=None, max_tokens=1024, temperature=0.0):
        self.calls += 1
        raise LLMUnavailable("LLM request failed: APIConnectionError")


def seeded_connection() -> duckdb.DuckDBPyConnection:
    conn = duckdb.connect(":memory:")
    for statement in SEED_SQL:
        conn.execute(statement)
    return conn


@pytest.fixture
def sanitizer() -> SQLSanitizer:
    return SQLSanitizer()


@pytest.fixture
def limits() -> RowLimitPolicy:
    return RowLimitPolicy(default_limit=50, max_limit=500)


@pytest.fixture
def rewriter() -> TableAliasRewriter:
    return TableAliasRewriter(TEST_ALIASES)


@pytest.fixture
def provenance() -> ProvenancePolicy:
    return ProvenancePolicy(TEST_AUDITED, PROVENANCE_COLUMNS)


@pytest.fixture
def enforcer(
    rewriter: TableAliasRewriter, limits: RowLimitPolicy, provenance: ProvenancePolicy
) -> PolicyEnforcer:
    return PolicyEnforcer(rewriter, limits, provenance, known_tables=list(TEST_DATASETS))


@pytest.fixture
def warehouse():
    """Warehouse over an in-memory DuckDB seeded with registry and gazette tables."""
    conn = seeded_connection()
    wh = RecordingWarehouse(
        database=":memory:",
        backoff=0,
        connect=lambda database, config=None: conn,
    )
    yield wh
    conn.close()


@pytest.fixture
def describer(warehouse: RecordingWarehouse, rewriter: TableAliasRewriter) -> SchemaDescriber:
    return SchemaDescriber(
        warehouse,
        TEST_SCHEMAS,
        rewriter=rewriter,
        policy_text=POLICY_TEXT,
        ttl_seconds=3600,
    )


@pytest.fixture
def failing_llm() -> FailingLLM:
    return FailingLLM()


@pytest.fixture
def gateway_factory(warehouse: RecordingWarehouse) -> Callable[..., QueryGateway]:
    """Builds gateways wired to the in-memory test catalog."""

    def build(llm: LLMInterface | None, default_limit: int = 50) -> QueryGateway:
        rewriter = TableAliasRewriter(TEST_ALIASES)
        limits = RowLimitPolicy(default_limit=default_limit, max_limit=500)
        return QueryGateway(
            describer=SchemaDescriber(
                warehouse, TEST_SCHEMAS, rewriter=rewriter, policy_text=POLICY_TEXT
            ),
            enforcer=PolicyEnforcer(
                rewriter,
                limits,
                ProvenancePolicy(TEST_AUDITED, PROVENANCE_COLUMNS),
                known_tables=list(TEST_DATASETS),
            ),
            executor=QueryExecutor(warehouse, limits),
            composer=AnswerComposer(llm),
            llm=llm,
            lookup=DirectLookup(table="memory.main.empresas"),
            datasets=TEST_DATASETS,
        )

    return build


@pytest.fixture
def bank_llm() -> MockLLM:
    """Mock LLM that drafts SQL for questions about banks and summarises anything."""
    return MockLLM(
        responses={
            # Summary prompts always carry this line; listed first so it wins
            "Rows returned": ["Foi encontrada 1 empresa: BANCO DO BRASIL SA."],
            "banks": [
                "```sql\nSELECT cnpj_basico, razao_social FROM memory.main.empresas "
                "WHERE razao_social LIKE '%BANCO%'\n```"
            ],
        }
    )
