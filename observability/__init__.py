"""
Observability Module
====================

Full-stack observability: metrics, tracing, and structured logging.
"""

from observability.logging_config import bind_context, clear_context, get_logger, setup_logging
from observability.metrics import (
    setup_metrics,
    track_question_metrics,
    track_refinement_metrics,
)
from observability.tracing import get_tracer, setup_tracing

__all__ = [
    "setup_metrics",
    "track_question_metrics",
    "track_refinement_metrics",
    "setup_tracing",
    "get_tracer",
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
