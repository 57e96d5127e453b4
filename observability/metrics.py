"""
Prometheus Metrics
==================

Application metrics for monitoring and alerting.
"""

import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
    multiprocess,
)

from sql_assistant.models import PipelineResult

# Create a custom registry for this application
REGISTRY = CollectorRegistry()

APP_INFO = Info(
    "sql_assistant",
    "SQL assistant application information",
    registry=REGISTRY,
)

# Question metrics
QUESTIONS_TOTAL = Counter(
    "sql_assistant_questions_total",
    "Total number of questions processed",
    ["status"],  # answered, failed
    registry=REGISTRY,
)

QUESTION_DURATION = Histogram(
    "sql_assistant_question_duration_seconds",
    "End-to-end question processing duration in seconds",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 40.0],
    registry=REGISTRY,
)

# Refinement metrics
REFINEMENT_OUTCOMES = Counter(
    "sql_assistant_refinement_outcomes_total",
    "Refinement calls by category and outcome",
    ["category", "outcome"],  # passed, repaired, fallback
    registry=REGISTRY,
)

REPAIR_CALLS = Histogram(
    "sql_assistant_repair_calls",
    "Repair calls per refinement call",
    ["category"],
    buckets=[0, 1, 2, 3, 5],
    registry=REGISTRY,
)

POLICY_VIOLATIONS = Counter(
    "sql_assistant_policy_violations_total",
    "Queries rejected by the read-only check",
    registry=REGISTRY,
)

EXECUTION_FAILURES = Counter(
    "sql_assistant_execution_failures_total",
    "Validated queries that still failed at execution",
    registry=REGISTRY,
)

# HTTP metrics
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
    registry=REGISTRY,
)

ACTIVE_QUESTIONS = Gauge(
    "sql_assistant_active_questions",
    "Number of questions currently being processed",
    registry=REGISTRY,
)

# /api/v1/sql tracks its own gauge while the event stream is open
_QUESTION_PATHS = {"/api/v1/query"}


def setup_metrics(app: FastAPI, version: str = "0.1.0", environment: str = "development") -> None:
    """
    Set up Prometheus metrics for the FastAPI application.

    Args:
        app: FastAPI application instance
        version: Application version reported by the info metric
        environment: Deployment environment reported by the info metric
    """
    APP_INFO.info({"version": version, "environment": environment})

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next: Callable) -> Response:
        """Middleware to track HTTP metrics."""
        start_time = time.perf_counter()

        is_question = request.url.path in _QUESTION_PATHS
        if is_question:
            ACTIVE_QUESTIONS.inc()

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            HTTP_REQUESTS_TOTAL.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code,
            ).inc()

            HTTP_REQUEST_DURATION.labels(
                method=request.method,
                endpoint=request.url.path,
            ).observe(duration)

            return response
        finally:
            if is_question:
                ACTIVE_QUESTIONS.dec()


def track_refinement_metrics(result: PipelineResult) -> None:
    """Record the outcome of every step of a refinement pipeline run."""
    if result.policy_violation:
        POLICY_VIOLATIONS.inc()

    for step in result.steps:
        category = step.category.value
        if step.used_fallback:
            outcome = "fallback"
        elif step.repair_calls:
            outcome = "repaired"
        else:
            outcome = "passed"
        REFINEMENT_OUTCOMES.labels(category=category, outcome=outcome).inc()
        REPAIR_CALLS.labels(category=category).observe(step.repair_calls)


def track_question_metrics(
    answered: bool,
    duration_seconds: float,
    execution_failed: bool = False,
) -> None:
    """
    Track metrics for a completed question.

    Args:
        answered: Whether an answer was produced
        duration_seconds: Total processing time
        execution_failed: Whether the final query errored at execution
    """
    QUESTIONS_TOTAL.labels(status="answered" if answered else "failed").inc()
    QUESTION_DURATION.observe(duration_seconds)
    if execution_failed:
        EXECUTION_FAILURES.inc()


async def metrics_endpoint(request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    # Handle multiprocess mode if using gunicorn
    try:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        metrics = generate_latest(registry)
    except ValueError:
        # Not in multiprocess mode
        metrics = generate_latest(REGISTRY)

    return Response(
        content=metrics,
        media_type=CONTENT_TYPE_LATEST,
    )
