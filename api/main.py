"""
FastAPI Application
===================

Main FastAPI application for the SQL assistant service.
"""

import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from api import __version__
from api.middleware.telemetry import TelemetryMiddleware
from api.routes import health_router, query_router, sessions_router
from api.schemas import ErrorResponse
from observability.logging_config import get_logger, setup_logging
from observability.metrics import metrics_endpoint, setup_metrics
from observability.tracing import setup_tracing
from sql_assistant.assistant import SQLAssistant
from sql_assistant.config import Settings
from sql_assistant.engine.memory import InMemoryDataEngine
from sql_assistant.history import ChatHistoryStore
from sql_assistant.llm.mock import MockLLM

DEMO_RESPONSES = {
    "which table should i get the schema for": ["ss_the_met.objects"],
    "available tables": [
        "SELECT department, COUNT(*) AS objects FROM ss_the_met.objects "
        "GROUP BY department ORDER BY objects DESC"
    ],
    "fix this bigquery sql query": ["SELECT * FROM ss_the_met.objects LIMIT 10"],
    "explain this sql query": [
        "The query counts objects per department and orders departments by that count."
    ],
    "query result": ["Answer: European Paintings holds the most objects in the sample."],
}


def create_assistant(settings: Settings, history: ChatHistoryStore) -> SQLAssistant:
    """
    Create and configure the assistant.

    Uses the hosted model and BigQuery when both are configured, otherwise
    scripted demo collaborators.
    """
    if settings.use_live_collaborators:
        from sql_assistant.engine.bigquery import BigQueryEngine
        from sql_assistant.llm.openai_chat import OpenAIChatLLM

        llm = OpenAIChatLLM(model=settings.openai_model, api_key=settings.openai_api_key)
        engine = BigQueryEngine(project_id=settings.google_project_id)
    else:
        llm = MockLLM(responses=DEMO_RESPONSES)
        engine = InMemoryDataEngine()

    return SQLAssistant(
        llm=llm,
        engine=engine,
        history=history,
        max_attempts=settings.max_refinement_attempts,
        row_limit=settings.row_limit,
        fallback_limit=settings.fallback_row_limit,
        dialect=settings.sql_dialect,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler."""
    settings: Settings = app.state.settings
    setup_logging(settings)
    logger = get_logger(__name__)
    logger.info(
        "Starting SQL assistant API",
        version=__version__,
        live_collaborators=settings.use_live_collaborators,
    )

    if app.state.assistant is None:
        app.state.assistant = create_assistant(settings, app.state.history)

    yield

    logger.info("Shutting down SQL assistant API")


def create_app(
    settings: Optional[Settings] = None,
    assistant: Optional[SQLAssistant] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Runtime settings (default: read from the environment)
        assistant: Pre-built assistant, replacing the one built at startup
    """
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="SQL Assistant API",
        description=(
            "Answers natural language questions with validated, "
            "self-repairing SQL against an analytic data store."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.assistant = assistant
    app.state.history = assistant.history if assistant is not None else ChatHistoryStore()

    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(query_router)
    app.include_router(sessions_router)

    setup_metrics(app, version=__version__, environment=settings.environment)
    app.add_route("/metrics", metrics_endpoint)
    setup_tracing(app, version=__version__)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions without leaking a stack trace."""
        request_id = getattr(request.state, "request_id", None)
        get_logger(__name__).error("unhandled_exception", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="InternalServerError",
                message="An unexpected error occurred",
                request_id=request_id,
            ).model_dump(),
        )

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
