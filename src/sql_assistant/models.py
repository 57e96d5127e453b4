"""
Data Models
===========

Core data structures for the SQL validation-and-refinement loop.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ValidationCategory(Enum):
    """Checks a candidate query goes through, in evaluation order."""

    READ_ONLY = "read_only"
    SYNTAX = "syntax"
    SCHEMA = "schema"
    COMPLEXITY = "complexity"
    DRY_RUN = "dry_run"
    TABLE_NAMES = "table_names"
    NULL_HANDLING = "null_handling"


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Result of a single check.

    A failing outcome always carries a diagnostic. A passing outcome may
    carry one too; that is a non-fatal warning and never triggers repair.
    """

    valid: bool
    diagnostic: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.valid and not self.diagnostic:
            raise ValueError("an invalid outcome requires a diagnostic")

    @property
    def is_warning(self) -> bool:
        return self.valid and bool(self.diagnostic)

    @classmethod
    def ok(cls, warning: Optional[str] = None) -> "ValidationOutcome":
        return cls(valid=True, diagnostic=warning)

    @classmethod
    def fail(cls, diagnostic: str) -> "ValidationOutcome":
        return cls(valid=False, diagnostic=diagnostic)


@dataclass(frozen=True)
class RefinementAttempt:
    """One loop iteration: the query that was checked and what the check said."""

    query: str
    outcome: ValidationOutcome
    attempt_index: int
    category: ValidationCategory


@dataclass
class RefinementResult:
    """Terminal output of one refinement call."""

    final_query: str
    outcome: ValidationOutcome
    used_fallback: bool
    category: ValidationCategory
    repair_calls: int = 0
    attempts: list[RefinementAttempt] = field(default_factory=list)

    @property
    def repaired(self) -> bool:
        return self.repair_calls > 0 and not self.used_fallback


@dataclass
class PipelineResult:
    """Outcome of running the policy gate and every repairable category."""

    initial_query: str
    final_query: str
    steps: list[RefinementResult] = field(default_factory=list)
    policy_violation: bool = False

    @property
    def used_fallback(self) -> bool:
        return self.policy_violation or any(s.used_fallback for s in self.steps)

    @property
    def warnings(self) -> list[str]:
        return [s.outcome.diagnostic for s in self.steps if s.outcome.is_warning]

    def record(self, step: RefinementResult) -> None:
        """Append a finished step; its query becomes the current one."""
        self.steps.append(step)
        self.final_query = step.final_query
        if step.category == ValidationCategory.READ_ONLY:
            self.policy_violation = True


@dataclass(frozen=True)
class ChatMessage:
    """A single message sent to or received from the language model."""

    role: str
    content: str


@dataclass
class LLMResponse:
    """Response from an LLM call."""

    content: str
    model: str
    tokens_used: int = 0


@dataclass
class ColumnInfo:
    name: str
    type: str


@dataclass
class SchemaInfo:
    """Parsed form of a schema description block."""

    table_name: str
    columns: list[ColumnInfo] = field(default_factory=list)

    @property
    def column_names(self) -> list[str]:
        return [c.name.lower() for c in self.columns]


@dataclass
class DryRunResult:
    valid: bool
    error: Optional[str] = None


@dataclass
class ExecutionResult:
    """Rows returned by the data engine, or the error it reported."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class AssistantResult:
    """Everything produced while answering one question."""

    question: str
    table_name: str
    schema: str
    generated_query: str
    final_query: str
    refinement: PipelineResult
    execution: ExecutionResult
    result_text: str
    explanation: str
    answer: str
