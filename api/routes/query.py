"""
Query Routes
============

Question answering (streamed and plain), direct refinement, and schema
listing.
"""

import time
import uuid
from contextlib import aclosing
from typing import Annotated, AsyncIterator

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from api.schemas import (
    AskRequest,
    AskResponse,
    ErrorResponse,
    RefineRequest,
    RefinementResponse,
    SchemaFieldsResponse,
)
from observability.metrics import (
    ACTIVE_QUESTIONS,
    track_question_metrics,
    track_refinement_metrics,
)
from observability.tracing import get_tracer
from sql_assistant.assistant import SQLAssistant
from sql_assistant.errors import AssistantError, DataEngineError
from sql_assistant.models import AssistantResult
from sql_assistant.refinement import QueryRefiner, RefinementPipeline
from sql_assistant.streaming import encode_sse

router = APIRouter(prefix="/api/v1", tags=["Query"])

logger = structlog.get_logger(__name__)
tracer = get_tracer(__name__)


def get_assistant(request: Request) -> SQLAssistant:
    """Dependency to get the configured assistant from app state."""
    return request.app.state.assistant


def get_request_id(request: Request) -> str:
    """Reuse the telemetry middleware's request ID, or generate one."""
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _error_detail(error: Exception, request_id: str) -> dict:
    return ErrorResponse(
        error=type(error).__name__,
        message=str(error),
        request_id=request_id,
    ).model_dump()


@router.post(
    "/sql",
    summary="Answer a question, streaming progress",
    description="Server-Sent Events stream of every step, ending with the final answer",
    response_class=StreamingResponse,
)
async def stream_question(
    body: AskRequest,
    assistant: Annotated[SQLAssistant, Depends(get_assistant)],
) -> StreamingResponse:
    async def events() -> AsyncIterator[bytes]:
        start_time = time.perf_counter()
        results: list[AssistantResult] = []
        ACTIVE_QUESTIONS.inc()
        try:
            stream = assistant.stream(body.prompt, body.session_id, on_result=results.append)
            # Closing the body on disconnect also cancels the pending step
            async with aclosing(stream):
                async for event in stream:
                    yield encode_sse(event)
        finally:
            ACTIVE_QUESTIONS.dec()
            if results:
                track_refinement_metrics(results[0].refinement)
            track_question_metrics(
                bool(results),
                time.perf_counter() - start_time,
                execution_failed=bool(results) and not results[0].execution.ok,
            )

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.post(
    "/query",
    response_model=AskResponse,
    responses={
        502: {"model": ErrorResponse, "description": "Model or data engine unavailable"},
    },
    summary="Answer a question",
    description="Runs the full pipeline and returns the answer with the executed query",
)
async def ask_question(
    body: AskRequest,
    assistant: Annotated[SQLAssistant, Depends(get_assistant)],
    request_id: Annotated[str, Depends(get_request_id)],
) -> AskResponse:
    """
    Answer a natural language question.

    Execution errors are returned verbatim in ``execution_error``; only an
    unreachable model or engine turns into an error response.
    """
    start_time = time.perf_counter()

    with tracer.start_as_current_span("assistant.ask") as span:
        span.set_attribute("session.id", body.session_id)
        try:
            result = await assistant.ask(body.prompt, body.session_id)
        except AssistantError as e:
            track_question_metrics(False, time.perf_counter() - start_time)
            logger.warning("question_failed", error=str(e))
            raise HTTPException(status_code=502, detail=_error_detail(e, request_id))
        span.set_attribute("refinement.used_fallback", result.refinement.used_fallback)

    processing_time_ms = (time.perf_counter() - start_time) * 1000
    track_refinement_metrics(result.refinement)
    track_question_metrics(
        True, processing_time_ms / 1000, execution_failed=not result.execution.ok
    )

    return AskResponse(
        question=result.question,
        table_name=result.table_name,
        generated_query=result.generated_query,
        final_query=result.final_query,
        used_fallback=result.refinement.used_fallback,
        rows=result.execution.rows,
        execution_error=result.execution.error,
        explanation=result.explanation,
        answer=result.answer,
        refinement=(
            RefinementResponse.from_result(result.refinement)
            if body.include_refinement
            else None
        ),
        request_id=request_id,
        processing_time_ms=processing_time_ms,
    )


@router.post(
    "/refine",
    response_model=RefinementResponse,
    responses={502: {"model": ErrorResponse, "description": "Data engine unavailable"}},
    summary="Validate and refine a SQL query",
    description="Runs the read-only gate and every repairable category on a given query",
)
async def refine_query(
    body: RefineRequest,
    assistant: Annotated[SQLAssistant, Depends(get_assistant)],
    request_id: Annotated[str, Depends(get_request_id)],
) -> RefinementResponse:
    pipeline = assistant.pipeline
    if body.max_attempts is not None:
        base = assistant.refiner
        refiner = QueryRefiner(
            base.repairer,
            max_attempts=body.max_attempts,
            prechecks=base.prechecks,
            row_limit=base.row_limit,
            fallback_limit=base.fallback_limit,
        )
        pipeline = RefinementPipeline(refiner, pipeline.validators, pipeline.policy)

    schema = body.schema_description
    with tracer.start_as_current_span("assistant.refine"):
        try:
            if schema is None:
                schema = await assistant.engine.get_schema(body.table_name)
            result = await pipeline.run(body.query, body.table_name, schema)
        except AssistantError as e:
            raise HTTPException(status_code=502, detail=_error_detail(e, request_id))

    track_refinement_metrics(result)
    return RefinementResponse.from_result(result)


@router.get(
    "/schema",
    response_model=SchemaFieldsResponse,
    responses={502: {"model": ErrorResponse, "description": "Data engine unavailable"}},
    summary="List every field of every table",
)
async def list_schema_fields(
    assistant: Annotated[SQLAssistant, Depends(get_assistant)],
    request_id: Annotated[str, Depends(get_request_id)],
) -> SchemaFieldsResponse:
    try:
        fields = await assistant.engine.list_fields()
    except DataEngineError as e:
        raise HTTPException(status_code=502, detail=_error_detail(e, request_id))
    logger.info("schema_fields_listed", count=len(fields))
    return SchemaFieldsResponse(fields=fields)
