"""
Unit Tests for Dataset Metadata and Direct Lookup
=================================================
"""

from nl_gateway.catalog import PROVENANCE_COLUMNS, TABLE_ALIASES
from nl_gateway.datasets import DATASETS, extract_audit_sample, select_dataset_meta
from nl_gateway.lookup import DirectLookup
from nl_gateway.safety import sanitize


class TestSelectDatasetMeta:
    def test_known_table(self) -> None:
        meta = select_dataset_meta(["chat_rfb.main.empresas_2024_10"])
        assert meta is DATASETS["chat_rfb.main.empresas_2024_10"]

    def test_first_known_table_wins(self) -> None:
        meta = select_dataset_meta(["x.y.z", "chat_rfb.dou.atos_2024"])
        assert meta.source.startswith("Imprensa Nacional")

    def test_case_insensitive(self) -> None:
        assert select_dataset_meta(["CHAT_RFB.MAIN.SOCIOS_2024_10"]) is not None

    def test_unknown_tables(self) -> None:
        assert select_dataset_meta(["x.y.z"]) is None
        assert select_dataset_meta([]) is None

    def test_every_physical_table_described(self) -> None:
        """Test that each aliased physical table has source metadata."""
        for physical in TABLE_ALIASES.values():
            assert physical in DATASETS


class TestExtractAuditSample:
    """Tests for the provenance sample."""

    def test_first_complete_row(self) -> None:
        rows = [
            {"ato": "a", "source_url": None, "published_at": "2024-01-01", "source_line": 1, "content_hash": "h"},
            {"ato": "b", "source_url": "u", "published_at": "2024-01-02", "source_line": 2, "content_hash": "k"},
        ]
        assert extract_audit_sample(rows) == {
            "source_url": "u",
            "published_at": "2024-01-02",
            "source_line": 2,
            "content_hash": "k",
        }

    def test_column_names_case_insensitive(self) -> None:
        row = {col.upper(): 1 for col in PROVENANCE_COLUMNS}
        assert extract_audit_sample([row]) == {col: 1 for col in PROVENANCE_COLUMNS}

    def test_no_complete_row(self) -> None:
        assert extract_audit_sample([{"source_url": "u"}]) is None
        assert extract_audit_sample([]) is None


class TestDirectLookup:
    """Tests for DirectLookup SQL drafts."""

    def test_cnpj_question(self) -> None:
        """Test that a formatted CNPJ is reduced to its 8-digit root."""
        sql = DirectLookup().build_sql("Quem é o CNPJ 33.000.167/0001-01?")
        assert sql == (
            "SELECT * FROM chat_rfb.main.empresas "
            "WHERE cnpj_basico = '33000167' LIMIT 5"
        )

    def test_name_question(self) -> None:
        sql = DirectLookup().build_sql("  padaria   pao quente ")
        assert sql == (
            "SELECT * FROM chat_rfb.main.empresas "
            "WHERE upper(razao_social) LIKE '%PADARIA PAO QUENTE%' LIMIT 5"
        )

    def test_short_digit_run_is_a_name(self) -> None:
        sql = DirectLookup().build_sql("empresa 123")
        assert "LIKE '%EMPRESA 123%'" in sql

    def test_quote_escaped(self) -> None:
        sql = DirectLookup().build_sql("D'AVILA")
        assert "LIKE '%D''AVILA%'" in sql

    def test_custom_table_and_limit(self) -> None:
        sql = DirectLookup(table="memory.main.empresas", limit=2).build_sql("banco")
        assert sql.startswith("SELECT * FROM memory.main.empresas ")
        assert sql.endswith("LIMIT 2")

    def test_drafts_pass_safety_filter(self) -> None:
        for question in ["12345678", "banco do brasil", "O'REILLY"]:
            sanitize(DirectLookup().build_sql(question))
