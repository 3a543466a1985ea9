"""
Caseflow API - FastAPI application

Exposes workflow definitions, executions and human tasks under /api/v1.
Every request goes through the correlation middleware so log lines and
audit events written while serving it share one correlation ID.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config.settings import settings
from .api.routes import api_router
from .api.middleware import CorrelationIdMiddleware, register_error_handlers
from .repositories.mongo_client import create_indexes, close_connection, health_check
from .utils.logger import setup_logging, get_logger

API_VERSION = "1.0.0"

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: ensure MongoDB indexes exist and report the AI advisor mode.
    Shutdown: close the MongoDB client.

    Index creation failures are logged, not fatal; the API still serves
    requests and /health reports the database as unhealthy.
    """
    logger.info(f"Starting Caseflow ({settings.environment})")
    try:
        create_indexes()
    except Exception as e:
        logger.error(f"Index creation failed: {e}")

    logger.info(f"AI advisor: {_ai_mode()}")

    yield

    close_connection()
    logger.info("Caseflow stopped")


def _ai_mode() -> str:
    if settings.uses_azure_openai:
        return f"azure ({settings.azure_openai_deployment})"
    if settings.openai_api_key:
        return f"openai ({settings.openai_model})"
    return "disabled"


def create_app() -> FastAPI:
    """Build the application: middleware, error handlers, routes."""
    docs_enabled = settings.debug
    application = FastAPI(
        title="Caseflow Workflow Engine",
        description="Workflow execution engine for permit and case processing",
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs" if docs_enabled else None,
        redoc_url="/api/redoc" if docs_enabled else None,
        openapi_url="/api/openapi.json" if docs_enabled else None,
    )

    _add_middleware(application)
    register_error_handlers(application)
    application.include_router(api_router, prefix="/api/v1")
    _add_service_endpoints(application)

    return application


def _add_middleware(app: FastAPI) -> None:
    # Credentials cannot be combined with a wildcard origin
    allow_all = settings.cors_origins.strip() == "*"
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_origins_list,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-Id"],
    )
    app.add_middleware(CorrelationIdMiddleware)


def _add_service_endpoints(app: FastAPI) -> None:
    @app.get("/health", tags=["Health"])
    async def health() -> Dict[str, Any]:
        """Database connectivity plus AI advisor mode"""
        mongo = health_check()
        return {
            "status": "healthy" if mongo.get("status") == "healthy" else "degraded",
            "version": API_VERSION,
            "environment": settings.environment,
            "mongo": mongo,
            "ai_advisor": _ai_mode(),
        }

    @app.get("/", tags=["Health"])
    async def root() -> Dict[str, Any]:
        return {
            "name": "Caseflow Workflow Engine",
            "version": API_VERSION,
            "docs": "/api/docs" if settings.debug else None,
        }


app = create_app()
