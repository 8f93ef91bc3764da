"""
Unit Tests for Domain Policies
==============================

Table alias rewriting, row limits, provenance and the enforcer that composes
them.
"""

import pytest

from nl_gateway.catalog import PROVENANCE_COLUMNS
from nl_gateway.errors import AuditColumnsMissing
from nl_gateway.models import ValidatedStatement
from nl_gateway.policy import (
    PolicyContext,
    PolicyEnforcer,
    ProvenancePolicy,
    RowLimitPolicy,
    TableAliasRewriter,
    referenced_tables,
)

AUDITED_SQL = (
    "SELECT cnpj_basico, source_url, published_at, source_line, content_hash "
    "FROM memory.dou.atos"
)


class TestTableAliasRewriter:
    """Tests for canonical-to-physical table rewriting."""

    @pytest.fixture
    def catalog_rewriter(self) -> TableAliasRewriter:
        return TableAliasRewriter({"catalog.main.empresas": "catalog.main.empresas_v2"})

    def test_rewrites_canonical_name(self, catalog_rewriter: TableAliasRewriter) -> None:
        """Test that the canonical name is replaced by the physical one."""
        assert (
            catalog_rewriter.rewrite("SELECT * FROM catalog.main.empresas")
            == "SELECT * FROM catalog.main.empresas_v2"
        )

    def test_longer_name_untouched(self, catalog_rewriter: TableAliasRewriter) -> None:
        """Test that a longer table name sharing the prefix is left alone."""
        sql = "SELECT * FROM catalog.main.empresas_archive"
        assert catalog_rewriter.rewrite(sql) == sql

    def test_idempotent(self, catalog_rewriter: TableAliasRewriter) -> None:
        once = catalog_rewriter.rewrite("SELECT * FROM catalog.main.empresas")
        assert catalog_rewriter.rewrite(once) == once

    def test_case_insensitive(self, catalog_rewriter: TableAliasRewriter) -> None:
        assert (
            catalog_rewriter.rewrite("select * from CATALOG.MAIN.EMPRESAS e")
            == "select * from catalog.main.empresas_v2 e"
        )

    def test_every_occurrence_rewritten(self, catalog_rewriter: TableAliasRewriter) -> None:
        sql = (
            "SELECT a.cnpj_basico FROM catalog.main.empresas a "
            "JOIN catalog.main.empresas b ON a.cnpj_basico = b.cnpj_basico"
        )
        assert catalog_rewriter.rewrite(sql).count("catalog.main.empresas_v2") == 2

    def test_literal_untouched(self, catalog_rewriter: TableAliasRewriter) -> None:
        """Test that string literals mentioning the name are not rewritten."""
        sql = "SELECT 'catalog.main.empresas' AS label FROM catalog.main.empresas"
        assert (
            catalog_rewriter.rewrite(sql)
            == "SELECT 'catalog.main.empresas' AS label FROM catalog.main.empresas_v2"
        )

    def test_qualified_suffix_untouched(self, catalog_rewriter: TableAliasRewriter) -> None:
        sql = "SELECT * FROM other.catalog.main.empresas"
        assert catalog_rewriter.rewrite(sql) == sql

    def test_non_idempotent_mapping_rejected(self) -> None:
        """Test that a physical name containing a canonical name is refused."""
        with pytest.raises(ValueError):
            TableAliasRewriter({"main.t": "main.t.v2"})

    def test_empty_mapping(self) -> None:
        assert TableAliasRewriter().rewrite("SELECT 1") == "SELECT 1"

    def test_canonical_name(self, catalog_rewriter: TableAliasRewriter) -> None:
        assert catalog_rewriter.canonical_name("catalog.main.empresas_v2") == "catalog.main.empresas"
        assert catalog_rewriter.canonical_name("catalog.main.other") == "catalog.main.other"


class TestReferencedTables:
    def test_finds_known_tables(self) -> None:
        known = ["m.main.a", "m.main.b", "m.main.c"]
        sql = "SELECT * FROM m.main.b JOIN m.main.a USING (id)"
        assert referenced_tables(sql, known) == ("m.main.a", "m.main.b")

    def test_ignores_literals(self) -> None:
        assert referenced_tables("SELECT 'm.main.a'", ["m.main.a"]) == ()

    def test_no_known_tables(self) -> None:
        assert referenced_tables("SELECT 1", []) == ()


class TestRowLimitPolicy:
    """Tests for the RowLimitPolicy."""

    def test_appends_default_limit(self, limits: RowLimitPolicy) -> None:
        """Test that a non-aggregate query gets exactly one LIMIT."""
        sql = limits.apply("SELECT razao_social FROM t")
        assert sql == "SELECT razao_social FROM t LIMIT 50"
        assert sql.upper().count("LIMIT") == 1

    def test_requested_limit(self, limits: RowLimitPolicy) -> None:
        assert limits.apply("SELECT x FROM t", 10) == "SELECT x FROM t LIMIT 10"

    def test_requested_limit_capped(self, limits: RowLimitPolicy) -> None:
        assert limits.apply("SELECT x FROM t", 10_000) == "SELECT x FROM t LIMIT 500"

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT COUNT(*) FROM t",
            "SELECT uf, COUNT(DISTINCT cnpj_basico) FROM t GROUP BY uf",
            "SELECT SUM(capital_social) FROM t",
            "SELECT avg (capital_social) FROM t",
        ],
    )
    def test_aggregate_exempt(self, limits: RowLimitPolicy, sql: str) -> None:
        """Test that aggregate queries are not limited."""
        assert limits.apply(sql) == sql

    def test_subquery_aggregate_does_not_exempt(self, limits: RowLimitPolicy) -> None:
        """Test that only the outer query decides the aggregate exemption."""
        sql = "SELECT * FROM t WHERE capital_social > (SELECT AVG(capital_social) FROM t)"
        assert limits.apply(sql) == sql + " LIMIT 50"

    def test_cte_aggregate_does_not_exempt(self, limits: RowLimitPolicy) -> None:
        sql = "WITH c AS (SELECT uf, COUNT(*) AS n FROM t GROUP BY uf) SELECT * FROM c"
        assert limits.apply(sql) == sql + " LIMIT 50"

    def test_existing_limit_kept(self, limits: RowLimitPolicy) -> None:
        sql = "SELECT x FROM t LIMIT 10"
        assert limits.apply(sql) == sql

    def test_existing_limit_clamped(self, limits: RowLimitPolicy) -> None:
        assert limits.apply("SELECT x FROM t LIMIT 100000") == "SELECT x FROM t LIMIT 500"

    def test_existing_limit_with_offset_clamped(self, limits: RowLimitPolicy) -> None:
        assert (
            limits.apply("SELECT x FROM t LIMIT 9999 OFFSET 10")
            == "SELECT x FROM t LIMIT 500 OFFSET 10"
        )

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT x FROM t LIMIT ALL",
            "SELECT x FROM t LIMIT 100%",
            "SELECT x FROM t LIMIT (SELECT COUNT(*) FROM t)",
            "SELECT x FROM t LIMIT ALL OFFSET 10",
        ],
    )
    def test_unbounded_limit_wrapped(self, limits: RowLimitPolicy, sql: str) -> None:
        """Test that a LIMIT without a literal row count is bounded by an outer query."""
        bounded = limits.apply(sql)
        assert bounded == f"SELECT * FROM ({sql}) AS limited LIMIT 500"
        assert limits.apply(bounded) == bounded

    def test_limit_in_subquery_not_counted(self, limits: RowLimitPolicy) -> None:
        sql = "SELECT * FROM (SELECT x FROM t LIMIT 3) s"
        assert limits.apply(sql) == sql + " LIMIT 50"

    def test_idempotent(self, limits: RowLimitPolicy) -> None:
        once = limits.apply("SELECT x FROM t")
        assert limits.apply(once) == once

    def test_strip_limit(self, limits: RowLimitPolicy) -> None:
        assert limits.strip_limit("SELECT x FROM t LIMIT 5 OFFSET 10") == "SELECT x FROM t"
        assert limits.strip_limit("SELECT x FROM t") == "SELECT x FROM t"

    def test_resolve(self, limits: RowLimitPolicy) -> None:
        assert limits.resolve() == 50
        assert limits.resolve(0) == 50
        assert limits.resolve(20) == 20
        assert limits.resolve(501) == 500

    def test_invalid_configuration(self) -> None:
        with pytest.raises(ValueError):
            RowLimitPolicy(default_limit=100, max_limit=10)


class TestProvenancePolicy:
    """Tests for the ProvenancePolicy."""

    def test_applies_to_audited_source(self, provenance: ProvenancePolicy) -> None:
        assert provenance.applies("SELECT * FROM memory.dou.atos_2024")
        assert not provenance.applies("SELECT * FROM memory.main.empresas")

    def test_complete_projection_passes(self, provenance: ProvenancePolicy) -> None:
        provenance.check(AUDITED_SQL)

    def test_missing_column(self, provenance: ProvenancePolicy) -> None:
        """Test that a missing provenance column is named in the error."""
        sql = "SELECT cnpj_basico, source_url, published_at, source_line FROM memory.dou.atos"
        with pytest.raises(AuditColumnsMissing) as exc_info:
            provenance.check(sql)
        assert exc_info.value.missing == ["content_hash"]
        assert "content_hash" in exc_info.value.message

    def test_star_does_not_satisfy(self, provenance: ProvenancePolicy) -> None:
        with pytest.raises(AuditColumnsMissing) as exc_info:
            provenance.check("SELECT * FROM memory.dou.atos")
        assert exc_info.value.missing == PROVENANCE_COLUMNS

    def test_quoted_identifiers_count(self, provenance: ProvenancePolicy) -> None:
        provenance.check(
            'SELECT "source_url", "published_at", "source_line", "content_hash" '
            "FROM memory.dou.atos"
        )

    def test_literal_does_not_count(self, provenance: ProvenancePolicy) -> None:
        sql = (
            "SELECT source_url, published_at, source_line, 'content_hash' AS x "
            "FROM memory.dou.atos"
        )
        with pytest.raises(AuditColumnsMissing):
            provenance.check(sql)

    def test_unaudited_source_ignored(self, provenance: ProvenancePolicy) -> None:
        provenance.check("SELECT * FROM memory.main.empresas")

    def test_no_audited_sources(self) -> None:
        policy = ProvenancePolicy([], PROVENANCE_COLUMNS)
        assert not policy.applies("SELECT * FROM memory.dou.atos")


class TestPolicyEnforcer:
    """Tests for the composed enforcer."""

    def test_rewrite_and_limit(self, enforcer: PolicyEnforcer) -> None:
        enforced = enforcer.apply(ValidatedStatement("SELECT razao_social FROM memory.main.empresas"))
        assert enforced.sql == "SELECT razao_social FROM memory.main.empresas_2024_10 LIMIT 50"
        assert enforced.audit_required is False
        assert enforced.tables == ("memory.main.empresas_2024_10",)

    def test_context_limit(self, enforcer: PolicyEnforcer) -> None:
        enforced = enforcer.apply(
            ValidatedStatement("SELECT razao_social FROM memory.main.empresas"),
            PolicyContext(limit=5),
        )
        assert enforced.sql.endswith("LIMIT 5")

    def test_audited_statement(self, enforcer: PolicyEnforcer) -> None:
        """Test that audited sources are flagged after the alias rewrite."""
        enforced = enforcer.apply(ValidatedStatement(AUDITED_SQL))
        assert enforced.audit_required is True
        assert "memory.dou.atos_2024" in enforced.sql
        assert enforced.tables == ("memory.dou.atos_2024",)

    def test_audited_statement_missing_columns(self, enforcer: PolicyEnforcer) -> None:
        with pytest.raises(AuditColumnsMissing):
            enforcer.apply(ValidatedStatement("SELECT cnpj_basico FROM memory.dou.atos"))

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT razao_social FROM memory.main.empresas",
            "SELECT COUNT(*) FROM memory.main.empresas",
            AUDITED_SQL,
            "SELECT x FROM memory.main.empresas LIMIT 9999",
        ],
    )
    def test_idempotent(self, enforcer: PolicyEnforcer, sql: str) -> None:
        """Test that enforcing an enforced statement changes nothing."""
        once = enforcer.apply(ValidatedStatement(sql))
        twice = enforcer.apply(once)
        assert twice == once
