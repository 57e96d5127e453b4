"""
Unit Tests for Normalization, Fallback and Schema Descriptions
==============================================================
"""

import pytest

from sql_assistant.errors import SchemaParseError
from sql_assistant.fallback import fallback_query
from sql_assistant.normalizer import normalize_query, remove_fence_markup, strip_code_fences
from sql_assistant.schema import format_schema_description, parse_schema_description


class TestNormalizeQuery:
    """Tests for fence stripping and the row ceiling."""

    def test_appends_limit(self) -> None:
        assert normalize_query("SELECT title FROM ss_the_met.objects") == (
            "SELECT title FROM ss_the_met.objects LIMIT 1000"
        )

    def test_custom_row_limit(self) -> None:
        assert normalize_query("SELECT 1", row_limit=5) == "SELECT 1 LIMIT 5"

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT title FROM ss_the_met.objects LIMIT 5",
            "select title from ss_the_met.objects limit 5",
            "SELECT title FROM ss_the_met.objects\nLimit 20",
        ],
    )
    def test_existing_limit_kept(self, sql: str) -> None:
        """Test that a query with a LIMIT clause is never given a second one."""
        result = normalize_query(sql)
        assert result == sql
        assert result.lower().count("limit") == 1

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT title FROM ss_the_met.objects",
            "```sql\nSELECT title FROM ss_the_met.objects\n```",
            "  SELECT title FROM ss_the_met.objects;  ",
            "SELECT title FROM ss_the_met.objects -- titles only",
            "```\n```sql\nSELECT 1\n```\n```",
            "```sql\nSELECT 1",
            "```sql SELECT 1```",
            ";",
        ],
    )
    def test_idempotent(self, sql: str) -> None:
        once = normalize_query(sql)
        assert normalize_query(once) == once

    def test_strips_sql_fence(self) -> None:
        sql = "```sql\nSELECT title FROM ss_the_met.objects\n```"
        assert normalize_query(sql) == "SELECT title FROM ss_the_met.objects LIMIT 1000"

    def test_strips_bare_fence(self) -> None:
        assert strip_code_fences("```\nSELECT 1\n```") == "SELECT 1"

    def test_strips_nested_fences(self) -> None:
        assert normalize_query("```\n```sql\nSELECT 1\n```\n```") == "SELECT 1 LIMIT 1000"

    @pytest.mark.parametrize("text", ["```sql SELECT 1```", "```SELECT 1```", "```sql SELECT 1"])
    def test_strips_one_line_fence(self, text: str) -> None:
        assert strip_code_fences(text) == "SELECT 1"

    def test_drops_trailing_semicolon(self) -> None:
        assert normalize_query("SELECT 1;") == "SELECT 1 LIMIT 1000"

    def test_trailing_comment_gets_new_line(self) -> None:
        assert normalize_query("SELECT 1 -- one") == "SELECT 1 -- one\nLIMIT 1000"

    def test_column_named_like_limit_is_not_a_limit(self) -> None:
        result = normalize_query("SELECT credit_limit FROM accounts")
        assert result.endswith("LIMIT 1000")

    def test_empty_query(self) -> None:
        assert normalize_query("   ") == ""

    def test_remove_fence_markup_inside_text(self) -> None:
        text = "Here it is:\n```sql\nSELECT 1\n```"
        assert remove_fence_markup(text) == "Here it is:\nSELECT 1"


class TestFallbackQuery:
    def test_plain_table(self) -> None:
        assert fallback_query("ss_the_met.objects") == "SELECT * FROM ss_the_met.objects LIMIT 10"

    def test_hyphenated_table_is_quoted(self) -> None:
        assert fallback_query("my-project.ds.t") == "SELECT * FROM `my-project.ds.t` LIMIT 10"

    def test_custom_limit(self) -> None:
        assert fallback_query("ds.t", limit=3) == "SELECT * FROM ds.t LIMIT 3"


class TestSchemaDescription:
    def test_format_and_parse(self) -> None:
        schema = format_schema_description("ds.t", [("id", "INTEGER"), ("Name", "STRING")])
        assert schema == "Schema for table ds.t:\n- id (INTEGER)\n- Name (STRING)"

        info = parse_schema_description(schema)
        assert info.table_name == "ds.t"
        assert [c.type for c in info.columns] == ["INTEGER", "STRING"]
        assert info.column_names == ["id", "name"]

    def test_missing_header_raises(self) -> None:
        with pytest.raises(SchemaParseError, match="Could not extract table name"):
            parse_schema_description("- id (INTEGER)")
