"""
API Schemas
===========

Pydantic models for API request/response validation.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from sql_assistant.models import PipelineResult, RefinementResult, ValidationOutcome


class AskRequest(BaseModel):
    """Request body for answering a question."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        description="Natural language question",
        examples=["Which department holds the most objects?"],
    )
    session_id: str = Field(
        default="default",
        alias="sessionId",
        min_length=1,
        max_length=128,
        description="Conversation identifier for chat history",
    )
    include_refinement: bool = Field(
        default=False,
        description="Include the full refinement trail in the response",
    )


class RefineRequest(BaseModel):
    """Request body for validating and refining a query directly."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(..., min_length=1, max_length=20000, description="Candidate SQL query")
    table_name: str = Field(..., min_length=1, description="Target table as dataset.table")
    schema_description: str | None = Field(
        default=None,
        alias="schema",
        description="Schema description; fetched from the engine when omitted",
    )
    max_attempts: int | None = Field(
        default=None,
        ge=0,
        le=10,
        description="Repair budget per category (default: 3)",
    )


class OutcomeResponse(BaseModel):
    valid: bool
    diagnostic: str | None = None

    @classmethod
    def from_outcome(cls, outcome: ValidationOutcome) -> "OutcomeResponse":
        return cls(valid=outcome.valid, diagnostic=outcome.diagnostic)


class AttemptResponse(BaseModel):
    query: str
    outcome: OutcomeResponse
    attempt_index: int
    category: str


class RefinementStepResponse(BaseModel):
    """One refinement call."""

    category: str = Field(..., description="Validator category")
    final_query: str
    outcome: OutcomeResponse
    used_fallback: bool
    repair_calls: int
    attempts: list[AttemptResponse] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: RefinementResult) -> "RefinementStepResponse":
        return cls(
            category=result.category.value,
            final_query=result.final_query,
            outcome=OutcomeResponse.from_outcome(result.outcome),
            used_fallback=result.used_fallback,
            repair_calls=result.repair_calls,
            attempts=[
                AttemptResponse(
                    query=a.query,
                    outcome=OutcomeResponse.from_outcome(a.outcome),
                    attempt_index=a.attempt_index,
                    category=a.category.value,
                )
                for a in result.attempts
            ],
        )


class RefinementResponse(BaseModel):
    """Result of the whole refinement pipeline."""

    initial_query: str
    final_query: str
    used_fallback: bool
    policy_violation: bool
    warnings: list[str] = Field(default_factory=list)
    steps: list[RefinementStepResponse] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: PipelineResult) -> "RefinementResponse":
        return cls(
            initial_query=result.initial_query,
            final_query=result.final_query,
            used_fallback=result.used_fallback,
            policy_violation=result.policy_violation,
            warnings=result.warnings,
            steps=[RefinementStepResponse.from_result(s) for s in result.steps],
        )


class AskResponse(BaseModel):
    """Response body for an answered question."""

    question: str
    table_name: str
    generated_query: str = Field(..., description="Query as first generated")
    final_query: str = Field(..., description="Query that was executed")
    used_fallback: bool
    rows: list[dict[str, Any]] = Field(default_factory=list)
    execution_error: str | None = Field(None, description="Engine error text, verbatim")
    explanation: str
    answer: str
    refinement: RefinementResponse | None = Field(
        None,
        description="Full refinement trail (if requested)",
    )
    request_id: str = Field(..., description="Unique request identifier")
    processing_time_ms: float = Field(..., description="Processing time in milliseconds")


class SchemaFieldsResponse(BaseModel):
    fields: list[str] = Field(default_factory=list, description="dataset.table.field entries")


class SessionClearedResponse(BaseModel):
    session_id: str
    cleared: bool


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(..., description="Overall health status")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual component health checks",
    )


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(..., description="Whether the service is ready to handle requests")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual readiness checks",
    )


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    request_id: str | None = Field(None, description="Request ID if available")
    details: dict[str, Any] | None = Field(None, description="Additional error details")
