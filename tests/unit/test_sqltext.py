"""
Unit Tests for SQL Text Helpers
===============================

Quote tracking, parenthesis depth and fence handling.
"""

from nl_gateway.sqltext import (
    collapse_whitespace,
    identifier_text,
    map_unquoted,
    split_quoted,
    strip_code_fences,
    top_level,
)


class TestSplitQuoted:
    def test_plain_text_is_one_unquoted_segment(self) -> None:
        segments = split_quoted("SELECT 1")
        assert len(segments) == 1
        assert segments[0].quoted is False

    def test_literal_and_identifier_are_quoted(self) -> None:
        segments = split_quoted("SELECT \"Razao Social\" FROM t WHERE x = 'a b'")
        quoted = [s.text for s in segments if s.quoted]
        assert quoted == ['"Razao Social"', "'a b'"]

    def test_doubled_quote_is_an_escape(self) -> None:
        segments = split_quoted("SELECT 'it''s' AS x")
        quoted = [s.text for s in segments if s.quoted]
        assert quoted == ["'it''s'"]

    def test_unterminated_quote_runs_to_end(self) -> None:
        segments = split_quoted("SELECT 'open")
        assert segments[-1].quoted is True
        assert segments[-1].text == "'open"

    def test_segments_rejoin_to_original(self) -> None:
        sql = "SELECT \"a\"\"b\", 'c' FROM t"
        assert "".join(s.text for s in split_quoted(sql)) == sql


class TestTransforms:
    def test_map_unquoted_leaves_quotes_alone(self) -> None:
        result = map_unquoted("select 'select'", str.upper)
        assert result == "SELECT 'select'"

    def test_collapse_protects_quoted_identifier_spaces(self) -> None:
        sql = 'SELECT  "Nome  Fantasia"\n\tFROM   t'
        assert collapse_whitespace(sql) == 'SELECT "Nome  Fantasia" FROM t'

    def test_collapse_protects_literal_spaces(self) -> None:
        sql = "SELECT *\nFROM t WHERE nome = 'A  B'"
        assert collapse_whitespace(sql) == "SELECT * FROM t WHERE nome = 'A  B'"

    def test_identifier_text_unwraps_identifiers_and_blanks_literals(self) -> None:
        text = identifier_text("SELECT \"source_url\" FROM t WHERE x = 'content_hash'")
        assert "source_url" in text
        assert "content_hash" not in text

    def test_top_level_drops_parenthesised_content(self) -> None:
        sql = "SELECT COUNT(*) FROM (SELECT MAX(x) FROM t GROUP BY y) s"
        assert top_level(sql) == "SELECT COUNT() FROM () s"

    def test_top_level_ignores_parens_in_literals(self) -> None:
        assert top_level("SELECT ')' , x FROM t") == "SELECT   , x FROM t"


class TestStripCodeFences:
    def test_sql_fence(self) -> None:
        assert strip_code_fences("```sql\nSELECT 1\n```") == "SELECT 1"

    def test_crlf_fence(self) -> None:
        """Test that a fence opened with a Windows line ending drops its language tag."""
        assert strip_code_fences("```sql\r\nSELECT 1\r\n```") == "SELECT 1"
        assert strip_code_fences("```sql\r\nSELECT 1") == "SELECT 1"

    def test_bare_fence(self) -> None:
        assert strip_code_fences("```\nSELECT 1\n```") == "SELECT 1"

    def test_inline_fence_keeps_select(self) -> None:
        assert strip_code_fences("```SELECT 1```") == "SELECT 1"

    def test_prose_around_fence(self) -> None:
        text = "Here is the query:\n```sql\nSELECT 1\n```\nHope it helps."
        assert strip_code_fences(text) == "SELECT 1"

    def test_unclosed_fence(self) -> None:
        assert strip_code_fences("```sql\nSELECT 1") == "SELECT 1"

    def test_no_fence(self) -> None:
        assert strip_code_fences("  SELECT 1  ") == "SELECT 1"
