"""
Unit Tests for Supporting Modules
=================================

Stream formatting, chat history, configuration and the data engine helpers.
"""

import asyncio

import pytest

from sql_assistant.config import Settings
from sql_assistant.engine.base import (
    NO_ROWS_MESSAGE,
    NO_TABLES_MESSAGE,
    format_execution_result,
    format_rows,
    format_table_list,
    split_table_name,
)
from sql_assistant.engine.memory import InMemoryDataEngine
from sql_assistant.errors import ConfigurationError
from sql_assistant.history import ChatHistoryStore
from sql_assistant.llm.base import user
from sql_assistant.models import ExecutionResult
from sql_assistant.streaming import (
    QUERY_TOOL,
    SCHEMA_TOOL,
    MessageKind,
    StreamEvent,
    encode_sse,
    format_message,
)


class TestStreamFormatting:
    def test_tool_response(self) -> None:
        event = format_message(MessageKind.TOOL_RESPONSE, "rows", name=QUERY_TOOL)
        assert event == StreamEvent("tool_response", "Tool Response: db_query_tool\nContent: rows")

    def test_tool_call_with_table(self) -> None:
        event = format_message(MessageKind.TOOL_CALL, name=SCHEMA_TOOL, args={"table_name": "ds.t"})
        assert event.data == "Tool Called: sql_db_schema\nTable_name: ds.t"

    @pytest.mark.parametrize(
        "kind,prefix",
        [
            (MessageKind.FINAL_ANSWER, "Final Answer: "),
            (MessageKind.QUERY_GENERATED, "Generated Query: "),
            (MessageKind.QUERY_EXPLANATION, "Query Explanation: "),
            (MessageKind.INFO, ""),
        ],
    )
    def test_prefixes(self, kind: MessageKind, prefix: str) -> None:
        assert format_message(kind, "text").data == f"{prefix}text"

    def test_encode_multiline(self) -> None:
        encoded = encode_sse(StreamEvent("info", "first\nsecond"))
        assert encoded == b"event: info\ndata: first\ndata: second\n\n"


class TestChatHistoryStore:
    def test_sessions_are_isolated(self) -> None:
        store = ChatHistoryStore()
        store.append("q1", "a1", "alice")
        store.append("q2", "a2", "bob")

        assert [m.content for m in store.load("alice")] == ["q1", "a1"]
        assert [m.content for m in store.load("bob")] == ["q2", "a2"]
        assert len(store) == 2

    def test_load_returns_copy(self) -> None:
        store = ChatHistoryStore()
        store.append("q", "a")
        store.load().clear()
        assert len(store.load()) == 2

    def test_get_or_create_returns_copy(self) -> None:
        store = ChatHistoryStore()
        store.append("q", "a", "alice")
        store.get_or_create("alice").clear()
        store.get_or_create("bob").append(user("stray"))

        assert len(store.load("alice")) == 2
        assert store.load("bob") == []
        assert "bob" in store

    def test_clear(self) -> None:
        store = ChatHistoryStore()
        store.get_or_create("alice")
        assert "alice" in store
        assert store.clear("alice")
        assert not store.clear("alice")


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for key in ("MAX_REFINEMENT_ATTEMPTS", "ROW_LIMIT", "FALLBACK_ROW_LIMIT",
                    "OPENAI_API_KEY", "GOOGLE_PROJECT_ID"):
            monkeypatch.delenv(key, raising=False)

        settings = Settings.from_env(dotenv=False)

        assert settings.max_refinement_attempts == 3
        assert settings.row_limit == 1000
        assert settings.fallback_row_limit == 10
        assert not settings.use_live_collaborators

    def test_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_REFINEMENT_ATTEMPTS", "5")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("GOOGLE_PROJECT_ID", "my-project")

        settings = Settings.from_env(dotenv=False)

        assert settings.max_refinement_attempts == 5
        assert settings.use_live_collaborators

    @pytest.mark.parametrize("value", ["three", "-1"])
    def test_invalid_integer(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        monkeypatch.setenv("MAX_REFINEMENT_ATTEMPTS", value)
        with pytest.raises(ConfigurationError, match="MAX_REFINEMENT_ATTEMPTS"):
            Settings.from_env(dotenv=False)


class TestEngineHelpers:
    def test_split_table_name(self) -> None:
        assert split_table_name("ss_the_met.objects") == ("ss_the_met", "objects")
        with pytest.raises(ValueError, match="Expected 'dataset.table'"):
            split_table_name("objects")

    def test_format_table_list(self) -> None:
        assert format_table_list([]) == NO_TABLES_MESSAGE
        assert format_table_list(["a.b", "c.d"]) == "Tables in the database:\na.b\nc.d"

    def test_format_rows_flattens_nested_values(self) -> None:
        rows = format_rows([{"id": 1, "tags": ["a", "b"], "note": None}])
        assert rows == [{"id": 1, "tags": '["a", "b"]', "note": None}]

    def test_format_execution_result(self) -> None:
        assert format_execution_result(ExecutionResult()) == NO_ROWS_MESSAGE
        assert format_execution_result(ExecutionResult(error="boom")) == (
            "Error executing query: boom"
        )

    def test_schema_lookup_errors_are_text(self) -> None:
        engine = InMemoryDataEngine()
        assert asyncio.run(engine.get_schema("objects")).startswith("Error: Invalid table name")
        assert asyncio.run(engine.get_schema("ss_the_met.missing")).startswith(
            "Error getting schema for table ss_the_met.missing"
        )

    def test_list_fields(self) -> None:
        fields = asyncio.run(InMemoryDataEngine().list_fields())
        assert "ss_the_met.objects.title" in fields
