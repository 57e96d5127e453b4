"""
SQL Assistant
=============

End-to-end flow for one question: pick a table, describe it, generate a
query, validate and refine it, execute it, then explain and answer.
"""

import asyncio
import re
from typing import AsyncIterator, Callable, Optional

import structlog

from sql_assistant.engine.base import DataEngine, format_execution_result, format_table_list
from sql_assistant.errors import AssistantError
from sql_assistant.fallback import DEFAULT_FALLBACK_LIMIT
from sql_assistant.history import DEFAULT_SESSION, ChatHistoryStore
from sql_assistant.llm.base import LLMInterface, system, user
from sql_assistant.models import (
    AssistantResult,
    PipelineResult,
    RefinementResult,
    ValidationCategory,
)
from sql_assistant.normalizer import DEFAULT_ROW_LIMIT, strip_code_fences
from sql_assistant.refinement import DEFAULT_MAX_ATTEMPTS, QueryRefiner, RefinementPipeline
from sql_assistant.repair import QueryRepairer
from sql_assistant.selection import TableSelector
from sql_assistant.streaming import (
    LIST_TABLES_TOOL,
    QUERY_TOOL,
    SCHEMA_TOOL,
    MessageKind,
    StreamEvent,
    format_message,
)
from sql_assistant.validators import (
    ComplexityValidator,
    DryRunValidator,
    SchemaCompatibilityValidator,
    SyntaxValidator,
)

logger = structlog.get_logger(__name__)

_SELECT_SPAN = re.compile(r"SELECT[\s\S]+?(?:;|$)", re.IGNORECASE)

CATEGORY_LABELS = {
    ValidationCategory.SYNTAX: "SQL syntax error",
    ValidationCategory.SCHEMA: "Schema compatibility error",
    ValidationCategory.COMPLEXITY: "Query complexity error",
    ValidationCategory.DRY_RUN: "BigQuery validation error",
    ValidationCategory.TABLE_NAMES: "Table name error",
    ValidationCategory.NULL_HANDLING: "Null handling error",
}

Emit = Callable[[StreamEvent], None]


def extract_select_statement(text: str, table_name: str) -> str:
    """
    Pull the query out of the model's answer.

    Answers that do not start with SELECT are searched for the first
    ``SELECT ...`` span; with none, a row count of the table is used.
    """
    query = strip_code_fences(text)
    if query.upper().startswith("SELECT"):
        return query
    match = _SELECT_SPAN.search(query)
    if match:
        return match.group(0).strip()
    return f"SELECT COUNT(*) FROM {table_name}"


class SQLAssistant:
    """
    Answers natural-language questions against an analytic data engine.

    The assistant:
    1. Lists the tables and asks the model which one the question is about
    2. Fetches that table's schema description
    3. Generates a query with one model call
    4. Runs the refinement pipeline (read-only gate, then syntax, schema,
       complexity and dry-run, each with its own repair budget)
    5. Executes the final query and narrates the result
    """

    QUERY_GEN_INSTRUCTION = """You are a SQL expert with a strong attention to detail.
Read the user's question and the database schema information, then:
1. Write one syntactically correct BigQuery SQL query that answers the question.
2. Never write DML or DDL statements (INSERT, UPDATE, DELETE, DROP etc.).
3. Always start the query with SELECT.
4. Quote table names that contain hyphens with backticks.
5. Wrap the argument of SUM, AVG, MIN and MAX in COALESCE.

Return ONLY the raw SQL query, no explanations or comments."""

    QUERY_EXPLANATION_INSTRUCTION = """You are a SQL expert who explains SQL queries in a clear, educational way.
Given a SQL query:
1. Explain the overall purpose of the query
2. Break down each clause (SELECT, FROM, WHERE, GROUP BY, etc.)
3. Explain any functions, operators, or special syntax used
4. Describe how the data is filtered, grouped, or transformed"""

    FINAL_ANSWER_INSTRUCTION = (
        "Based on the query results, provide a clear answer to the user's question. "
        "Start your response with 'Answer: '"
    )

    def __init__(
        self,
        llm: LLMInterface,
        engine: DataEngine,
        history: Optional[ChatHistoryStore] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        row_limit: int = DEFAULT_ROW_LIMIT,
        fallback_limit: int = DEFAULT_FALLBACK_LIMIT,
        dialect: str = "bigquery",
    ) -> None:
        """
        Initialize the assistant.

        Args:
            llm: Language model used for selection, generation, repair and narration
            engine: Data engine used for schema lookup, dry runs and execution
            history: Chat history store (a private one when omitted)
            max_attempts: Repair budget for each refinement category
            row_limit: Row ceiling appended by the normalizer
            fallback_limit: LIMIT used by the fallback query
            dialect: sqlglot dialect for the syntax check
        """
        self.llm = llm
        self.engine = engine
        self.history = history if history is not None else ChatHistoryStore()
        self.selector = TableSelector(llm)
        self.refiner = QueryRefiner(
            QueryRepairer(llm),
            max_attempts=max_attempts,
            row_limit=row_limit,
            fallback_limit=fallback_limit,
        )
        self.pipeline = RefinementPipeline(
            self.refiner,
            [
                SyntaxValidator(dialect),
                SchemaCompatibilityValidator(),
                ComplexityValidator(),
                DryRunValidator(engine),
            ],
        )

    async def generate_query(
        self, question: str, tables: str, schema: str, table_name: str, history=None
    ) -> str:
        messages = [
            system(self.QUERY_GEN_INSTRUCTION),
            *(history or []),
            user(f"Question: {question}\n\nAvailable tables: {tables}\n\nSchema: {schema}"),
        ]
        response = await self.llm.generate(messages)
        return extract_select_statement(response.content, table_name)

    def _refinement_events(self, step: RefinementResult) -> list[StreamEvent]:
        if step.category == ValidationCategory.READ_ONLY:
            return [format_message(
                MessageKind.ERROR,
                "Error: Only SELECT queries are allowed. Using fallback query.",
            )]

        events = []
        first = step.attempts[0].outcome if step.attempts else step.outcome
        if not first.valid:
            label = CATEGORY_LABELS.get(step.attempts[0].category, "Validation error")
            events.append(format_message(
                MessageKind.ERROR, f"{label}: {first.diagnostic}. Refining query..."
            ))
            if step.used_fallback:
                events.append(format_message(
                    MessageKind.ERROR, "Could not refine query. Using fallback query."
                ))
            else:
                events.append(format_message(MessageKind.INFO, "Query refined successfully."))
        if step.outcome.is_warning:
            events.append(format_message(MessageKind.INFO, step.outcome.diagnostic))
        return events

    async def run(
        self,
        question: str,
        session_id: str = DEFAULT_SESSION,
        emit: Optional[Emit] = None,
    ) -> AssistantResult:
        """
        Answer one question, reporting progress through ``emit``.

        Raises:
            AssistantError: if the model or the engine cannot be reached
        """
        def send(kind: MessageKind, content: str = "", **kwargs) -> None:
            if emit is not None:
                emit(format_message(kind, content, **kwargs))

        log = logger.bind(session_id=session_id)
        history = self.history.load(session_id)

        send(MessageKind.INFO, "Starting SQL agent...")
        tables = format_table_list(await self.engine.list_tables())
        send(MessageKind.TOOL_RESPONSE, tables, name=LIST_TABLES_TOOL)

        table_name = await self.selector.select(question, tables, history)
        send(MessageKind.INFO, f"Selecting table: {table_name}")
        log = log.bind(table=table_name)

        send(MessageKind.TOOL_CALL, name=SCHEMA_TOOL, args={"table_name": table_name})
        schema = await self.engine.get_schema(table_name)
        send(MessageKind.TOOL_RESPONSE, schema, name=SCHEMA_TOOL)

        generated = await self.generate_query(question, tables, schema, table_name, history)
        log.info("query_generated", query=generated)

        send(MessageKind.INFO, "Validating SQL query...")
        refinement = PipelineResult(initial_query=generated, final_query=generated)
        async for step in self.pipeline.iter_steps(generated, table_name, schema):
            refinement.record(step)
            for event in self._refinement_events(step):
                if emit is not None:
                    emit(event)
        final_query = refinement.final_query
        send(MessageKind.QUERY_GENERATED, final_query)

        send(MessageKind.INFO, "Executing validated query...")
        send(MessageKind.TOOL_CALL, name=QUERY_TOOL, args={"query": final_query})
        execution = await self.engine.execute(final_query)
        if not execution.ok:
            # Reported verbatim; validation already ran, so no second refinement
            log.warning("execution_failed", query=final_query, error=execution.error)
        result_text = format_execution_result(execution)
        send(MessageKind.TOOL_RESPONSE, result_text, name=QUERY_TOOL)

        explanation = (await self.llm.generate([
            system(self.QUERY_EXPLANATION_INSTRUCTION),
            user(f"Explain this SQL query: {final_query}"),
        ])).content
        send(MessageKind.QUERY_EXPLANATION, explanation)

        answer = (await self.llm.generate([
            system(self.FINAL_ANSWER_INSTRUCTION),
            *history,
            user(f"Question: {question}\n\nQuery: {final_query}\n\nQuery Result: {result_text}"),
        ])).content
        send(MessageKind.FINAL_ANSWER, answer)

        self.history.append(question, answer, session_id)
        log.info("question_answered", used_fallback=refinement.used_fallback)

        return AssistantResult(
            question=question,
            table_name=table_name,
            schema=schema,
            generated_query=generated,
            final_query=final_query,
            refinement=refinement,
            execution=execution,
            result_text=result_text,
            explanation=explanation,
            answer=answer,
        )

    async def ask(self, question: str, session_id: str = DEFAULT_SESSION) -> AssistantResult:
        return await self.run(question, session_id)

    async def stream(
        self,
        question: str,
        session_id: str = DEFAULT_SESSION,
        on_result: Optional[Callable[[AssistantResult], None]] = None,
    ) -> AsyncIterator[StreamEvent]:
        """
        Yield progress events while answering.

        ``on_result`` receives the finished AssistantResult before the
        iterator ends. Closing the iterator early (client disconnect) cancels
        the pending model or engine call; nothing is saved to the session
        history.
        """
        queue: asyncio.Queue = asyncio.Queue()
        task = asyncio.create_task(self.run(question, session_id, emit=queue.put_nowait))
        task.add_done_callback(lambda _: queue.put_nowait(None))

        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield event

            error = None if task.cancelled() else task.exception()
            if isinstance(error, AssistantError):
                logger.warning("assistant_failed", session_id=session_id, error=str(error))
                yield format_message(MessageKind.ERROR, f"Error: {error}")
            elif error is not None:
                logger.error("assistant_crashed", session_id=session_id, exc_info=error)
                yield format_message(MessageKind.ERROR, f"Error: {error}")
            elif on_result is not None and not task.cancelled():
                on_result(task.result())
        finally:
            if not task.done():
                task.cancel()
