"""
Pytest Fixtures
===============

Shared fixtures for SQL assistant tests.
"""

import sys
from pathlib import Path
from typing import Optional

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sql_assistant.assistant import SQLAssistant
from sql_assistant.engine.memory import InMemoryDataEngine
from sql_assistant.history import ChatHistoryStore
from sql_assistant.llm.mock import MockLLM
from sql_assistant.models import ValidationCategory, ValidationOutcome
from sql_assistant.refinement import QueryRefiner, RefinementPipeline
from sql_assistant.repair import QueryRepairer
from sql_assistant.schema import format_schema_description
from sql_assistant.validators.base import Validator

TABLE = "ss_the_met.objects"
REPAIR_KEY = "fix this bigquery sql query"
SELECT_KEY = "which table should i get the schema for"
GENERATE_KEY = "available tables"
EXPLAIN_KEY = "explain this sql query"
ANSWER_KEY = "query result"


class ScriptedValidator(Validator):
    """Returns the given outcomes in order, repeating the last one."""

    def __init__(
        self,
        outcomes: list[ValidationOutcome],
        category: ValidationCategory = ValidationCategory.COMPLEXITY,
    ) -> None:
        self.outcomes = outcomes
        self.category = category
        self.seen: list[str] = []

    def validate(self, query: str, schema: Optional[str] = None) -> ValidationOutcome:
        self.seen.append(query)
        return self.outcomes[min(len(self.seen) - 1, len(self.outcomes) - 1)]


def assistant_responses(generated: str, repaired: Optional[list[str]] = None) -> dict:
    """Canned replies for one full question, keyed by prompt fragments."""
    return {
        SELECT_KEY: [TABLE],
        GENERATE_KEY: [generated],
        REPAIR_KEY: repaired or ["SELECT title FROM ss_the_met.objects"],
        EXPLAIN_KEY: ["The query lists object titles."],
        ANSWER_KEY: ["Answer: The collection holds three objects."],
    }


@pytest.fixture
def sample_schema() -> str:
    """Return the schema description of the sample table."""
    return format_schema_description(
        TABLE,
        [
            ("object_id", "INTEGER"),
            ("title", "STRING"),
            ("department", "STRING"),
            ("object_date", "STRING"),
            ("artist_display_name", "STRING"),
        ],
    )


@pytest.fixture
def engine() -> InMemoryDataEngine:
    """Create an in-memory engine holding the sample table."""
    return InMemoryDataEngine()


@pytest.fixture
def repair_llm() -> MockLLM:
    """Create a mock LLM whose repairs return the same broken query."""
    return MockLLM(
        responses={
            REPAIR_KEY: [
                "SELECT * FROM ss_the_met.objects a JOIN b ON a.x = b.x JOIN c ON a.x = c.x "
                "JOIN d ON a.x = d.x JOIN e ON a.x = e.x"
            ],
        }
    )


@pytest.fixture
def refiner(repair_llm: MockLLM) -> QueryRefiner:
    """Create a refiner with the default budget of three repairs."""
    return QueryRefiner(QueryRepairer(repair_llm), max_attempts=3)


@pytest.fixture
def pipeline(refiner: QueryRefiner) -> RefinementPipeline:
    """Create a pipeline with one always-passing category."""
    return RefinementPipeline(refiner, [ScriptedValidator([ValidationOutcome.ok()])])


@pytest.fixture
def demo_llm() -> MockLLM:
    """Create a mock LLM that answers a question without any repair."""
    return MockLLM(responses=assistant_responses("SELECT title FROM ss_the_met.objects"))


@pytest.fixture
def history() -> ChatHistoryStore:
    return ChatHistoryStore()


@pytest.fixture
def sql_assistant(
    demo_llm: MockLLM, engine: InMemoryDataEngine, history: ChatHistoryStore
) -> SQLAssistant:
    """Create an assistant wired to the mock LLM and in-memory engine."""
    return SQLAssistant(llm=demo_llm, engine=engine, history=history)


def assert_outcome_passed(outcome: ValidationOutcome) -> None:
    """Helper assertion for passing outcomes."""
    assert outcome.valid, f"Expected valid, got: {outcome.diagnostic}"


def assert_outcome_failed(outcome: ValidationOutcome) -> None:
    """Helper assertion for failing outcomes."""
    assert not outcome.valid, "Expected invalid outcome"
    assert outcome.diagnostic, "A failing outcome must carry a diagnostic"
