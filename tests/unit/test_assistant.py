"""
Unit Tests for the Assistant
============================

End-to-end tests of one question with a mock LLM and the in-memory engine.
"""

import asyncio

import pytest

from conftest import ANSWER_KEY, EXPLAIN_KEY, REPAIR_KEY, SELECT_KEY, TABLE, assistant_responses
from sql_assistant.assistant import SQLAssistant, extract_select_statement
from sql_assistant.engine.memory import InMemoryDataEngine
from sql_assistant.errors import LLMUnavailableError
from sql_assistant.history import ChatHistoryStore
from sql_assistant.llm.mock import MockLLM
from sql_assistant.selection import TableSelector
from sql_assistant.streaming import MessageKind


def collect(assistant: SQLAssistant, question: str, session_id: str = "default") -> list:
    async def run():
        return [event async for event in assistant.stream(question, session_id)]

    return asyncio.run(run())


class SlowEngine(InMemoryDataEngine):
    """Blocks in ``execute`` until cancelled."""

    def __init__(self) -> None:
        super().__init__()
        self.cancelled = False

    async def execute(self, query: str):
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return await super().execute(query)


class TestExtractSelectStatement:
    def test_plain_select(self) -> None:
        assert extract_select_statement("SELECT 1", TABLE) == "SELECT 1"

    def test_fenced_select(self) -> None:
        assert extract_select_statement("```sql\nSELECT 1\n```", TABLE) == "SELECT 1"

    def test_select_inside_prose(self) -> None:
        text = "Here is the query: SELECT title FROM ss_the_met.objects; hope it helps"
        assert extract_select_statement(text, TABLE) == "SELECT title FROM ss_the_met.objects;"

    def test_no_select_counts_rows(self) -> None:
        assert extract_select_statement("I cannot help", TABLE) == f"SELECT COUNT(*) FROM {TABLE}"


class TestTableSelector:
    def test_answer_is_trimmed(self) -> None:
        llm = MockLLM(responses={SELECT_KEY: ["  ss_the_met.objects \n"]})
        table = asyncio.run(TableSelector(llm).select("How many objects?", "Tables..."))
        assert table == TABLE
        assert 'Based on this question: "How many objects?"' in llm.prompts[0][-1].content


class TestSQLAssistant:
    """Tests for the full question flow."""

    def test_answers_question(self, sql_assistant: SQLAssistant, engine: InMemoryDataEngine) -> None:
        result = asyncio.run(sql_assistant.ask("List the object titles"))

        assert result.table_name == TABLE
        assert result.generated_query == f"SELECT title FROM {TABLE}"
        assert result.final_query == f"SELECT title FROM {TABLE} LIMIT 1000"
        assert not result.refinement.used_fallback
        assert result.execution.ok
        assert len(result.execution.rows) == 3
        assert result.answer.startswith("Answer:")
        assert engine.executed == [result.final_query]

    def test_history_saved_per_session(
        self, sql_assistant: SQLAssistant, history: ChatHistoryStore
    ) -> None:
        asyncio.run(sql_assistant.ask("List the object titles", session_id="alice"))

        messages = history.load("alice")
        assert [m.role for m in messages] == ["user", "assistant"]
        assert messages[0].content == "List the object titles"
        assert history.load("bob") == []

    def test_history_reaches_next_question(
        self, sql_assistant: SQLAssistant, demo_llm: MockLLM
    ) -> None:
        asyncio.run(sql_assistant.ask("List the object titles", session_id="alice"))
        demo_llm.reset()
        asyncio.run(sql_assistant.ask("And the second one?", session_id="alice"))

        selection_prompt = demo_llm.prompts[0]
        assert selection_prompt[0].content == "List the object titles"

    def test_schema_failure_is_repaired(self, engine: InMemoryDataEngine) -> None:
        llm = MockLLM(responses=assistant_responses("SELECT title FROM ss_the_met.items"))
        assistant = SQLAssistant(llm=llm, engine=engine)

        events = collect(assistant, "List the object titles")
        data = [e.data for e in events]

        assert any(
            d.startswith("Schema compatibility error: Query does not reference the table")
            for d in data
        )
        assert "Query refined successfully." in data
        assert f"Generated Query: SELECT title FROM {TABLE} LIMIT 1000" in data
        assert llm.call_counts[REPAIR_KEY] == 1

    def test_write_query_uses_fallback(self, engine: InMemoryDataEngine) -> None:
        llm = MockLLM(
            responses=assistant_responses(f"SELECT * FROM {TABLE}; DROP TABLE {TABLE}")
        )
        assistant = SQLAssistant(llm=llm, engine=engine)

        result = asyncio.run(assistant.ask("Remove everything"))

        assert result.refinement.policy_violation
        assert result.final_query == f"SELECT * FROM {TABLE} LIMIT 10"
        assert REPAIR_KEY not in llm.call_counts
        assert engine.executed == [result.final_query]

    def test_execution_error_reported_verbatim(self) -> None:
        engine = InMemoryDataEngine(dry_run_rule=lambda q: None)
        llm = MockLLM(responses=assistant_responses(f"SELECT title FROM {TABLE}_archive"))
        assistant = SQLAssistant(llm=llm, engine=engine)

        result = asyncio.run(assistant.ask("List archived titles"))

        error = "Not found: Table ss_the_met.objects_archive was not found"
        assert result.execution.error == error
        assert result.result_text == f"Error executing query: {error}"
        assert REPAIR_KEY not in llm.call_counts
        assert error in llm.prompts[-1][-1].content

    def test_stream_event_sequence(self, sql_assistant: SQLAssistant) -> None:
        events = collect(sql_assistant, "List the object titles")
        kinds = [e.event for e in events]

        assert events[0].event == MessageKind.INFO.value
        assert events[0].data == "Starting SQL agent..."
        assert kinds[-2:] == [MessageKind.QUERY_EXPLANATION.value, MessageKind.FINAL_ANSWER.value]
        assert events[-1].data.startswith("Final Answer: Answer:")
        assert f"Selecting table: {TABLE}" in [e.data for e in events]
        assert kinds.index(MessageKind.QUERY_GENERATED.value) < kinds.index(
            MessageKind.QUERY_EXPLANATION.value
        )
        assert MessageKind.ERROR.value not in kinds

    def test_stream_reports_model_outage(self, engine: InMemoryDataEngine) -> None:
        llm = MockLLM(fail_on=[SELECT_KEY])
        history = ChatHistoryStore()
        assistant = SQLAssistant(llm=llm, engine=engine, history=history)

        events = collect(assistant, "List the object titles", session_id="alice")

        assert events[-1].event == MessageKind.ERROR.value
        assert events[-1].data.startswith("Error: mock provider unavailable")
        assert "alice" not in history

    def test_stream_hands_result_to_callback(self, sql_assistant: SQLAssistant) -> None:
        results = []

        async def run():
            stream = sql_assistant.stream("List the object titles", on_result=results.append)
            return [event async for event in stream]

        events = asyncio.run(run())

        assert len(results) == 1
        assert results[0].final_query == f"SELECT title FROM {TABLE} LIMIT 1000"
        assert events[-1].event == MessageKind.FINAL_ANSWER.value

    def test_stream_skips_callback_on_error(self, engine: InMemoryDataEngine) -> None:
        assistant = SQLAssistant(llm=MockLLM(fail_on=[SELECT_KEY]), engine=engine)
        results = []

        async def run():
            stream = assistant.stream("List the object titles", on_result=results.append)
            return [event async for event in stream]

        asyncio.run(run())
        assert results == []

    def test_closing_stream_cancels_pending_call(self) -> None:
        engine = SlowEngine()
        llm = MockLLM(responses=assistant_responses(f"SELECT title FROM {TABLE}"))
        history = ChatHistoryStore()
        assistant = SQLAssistant(llm=llm, engine=engine, history=history)

        async def run():
            seen = []
            stream = assistant.stream("List the object titles", session_id="alice")
            async for event in stream:
                seen.append(event.event)
                if event.event == MessageKind.QUERY_GENERATED.value:
                    break
            await stream.aclose()
            for _ in range(3):
                await asyncio.sleep(0)
            return seen

        seen = asyncio.run(run())

        assert engine.cancelled
        assert seen[-1] == MessageKind.QUERY_GENERATED.value
        assert MessageKind.FINAL_ANSWER.value not in seen
        assert "alice" not in history
        assert EXPLAIN_KEY not in llm.call_counts

    def test_ask_propagates_model_outage(self, engine: InMemoryDataEngine) -> None:
        llm = MockLLM(
            responses=assistant_responses(f"SELECT title FROM {TABLE}"),
            fail_on=[ANSWER_KEY],
        )
        assistant = SQLAssistant(llm=llm, engine=engine)

        with pytest.raises(LLMUnavailableError):
            asyncio.run(assistant.ask("List the object titles"))
        assert len(assistant.history) == 0

    def test_final_answer_prompt_has_result(self, sql_assistant: SQLAssistant, demo_llm: MockLLM) -> None:
        asyncio.run(sql_assistant.ask("List the object titles"))
        final_prompt = demo_llm.prompts[-1][-1].content
        assert ANSWER_KEY in final_prompt.lower()
        assert "Wheat Field with Cypresses" in final_prompt
