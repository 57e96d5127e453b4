"""
Health Check Routes
===================

Kubernetes-compatible health and readiness endpoints.
"""

from datetime import datetime

from fastapi import APIRouter, Request

from api import __version__
from api.schemas import HealthResponse, HealthStatus, ReadinessResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the health status of the service",
)
async def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint for load balancers and monitoring.

    Reports DEGRADED while the service runs on the demo collaborators
    instead of the hosted model and BigQuery.
    """
    settings = getattr(request.app.state, "settings", None)
    checks = {
        "api": True,
        "assistant": getattr(request.app.state, "assistant", None) is not None,
        "live_collaborators": bool(settings and settings.use_live_collaborators),
    }

    if not checks["assistant"]:
        status = HealthStatus.UNHEALTHY
    elif all(checks.values()):
        status = HealthStatus.HEALTHY
    else:
        status = HealthStatus.DEGRADED

    return HealthResponse(
        status=status,
        version=__version__,
        timestamp=datetime.utcnow(),
        checks=checks,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Returns whether the service is ready to handle requests",
)
async def readiness_check(request: Request) -> ReadinessResponse:
    """Readiness check for Kubernetes: the assistant and its history store exist."""
    assistant = getattr(request.app.state, "assistant", None)
    checks = {
        "assistant_loaded": assistant is not None,
        "history_store": getattr(request.app.state, "history", None) is not None,
    }

    return ReadinessResponse(
        ready=all(checks.values()),
        checks=checks,
    )


@router.get(
    "/live",
    summary="Liveness check",
    description="Simple liveness check",
)
async def liveness_check() -> dict:
    return {"status": "ok"}
