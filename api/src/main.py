"""
FastAPI application entry point for the Task Management API.

This module provides the FastAPI application with:
- Task and user CRUD routers
- Bearer token authentication
- Request logging, correlation IDs and Prometheus metrics
- CORS, security headers and optional HTTPS redirection
- Database engine management
- Graceful startup and shutdown
"""

import structlog
import uvicorn
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Any, List, Optional

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.httpsredirect import HTTPSRedirectMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from api.src.config import get_settings, Settings
from api.src.database import build_engine, build_session_factory, create_schema
from api.src.dependencies import get_settings_dependency
from api.src.errors import ApiError
from api.src.middleware.auth import AuthMiddleware
from api.src.middleware.request_logging import RequestLoggingMiddleware, SecurityHeadersMiddleware
from api.src.routers import tasks, users
from api.src.services.auth_service import TokenValidator, fetch_jwks
from shared.logging import configure_logging

logger = structlog.get_logger(__name__)

DOCS_PATHS = ["/docs", "/redoc", "/openapi.json"]

# ============================================================================
# Lifespan Management
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Handles:
    - Database engine and session factory initialization
    - Schema creation
    - Token validator initialization
    - Graceful shutdown and resource cleanup
    """
    settings: Settings = app.state.settings

    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment
    )

    engine = None

    try:
        engine = build_engine(settings)
        if settings.database_create_schema:
            await create_schema(engine)

        app.state.engine = engine
        app.state.session_factory = build_session_factory(engine)

        jwks = await fetch_jwks(settings.auth_jwks_url) if settings.auth_jwks_url else None
        app.state.token_validator = TokenValidator.from_settings(settings, jwks=jwks)

        logger.info(
            "application_started",
            app_name=settings.app_name,
            version=settings.app_version,
            environment=settings.environment
        )

        yield

    except Exception as e:
        logger.error("application_startup_failed", error=str(e), exc_info=True)
        raise

    finally:
        logger.info("application_shutting_down")

        if engine is not None:
            await engine.dispose()
            logger.info("database_engine_disposed")

        app.state.session_factory = None
        app.state.token_validator = None

        logger.info("application_shutdown_complete")


# ============================================================================
# Exception Handlers
# ============================================================================


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Render an ``ApiError`` as ``{"message", "error"}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_body()
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors."""
    logger.warning(
        "validation_error",
        path=request.url.path,
        errors=exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request", "error": str(exc.errors())}
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions raised by routing (404 for unknown paths, 405, ...)."""
    logger.warning(
        "http_exception",
        path=request.url.path,
        status_code=exc.status_code,
        detail=exc.detail
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None)
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unexpected_exception",
        path=request.url.path,
        error=str(exc),
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"}
    )


# ============================================================================
# Health and Metrics Endpoints
# ============================================================================


async def health_check(settings: Settings = Depends(get_settings_dependency)) -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns basic health status without checking dependencies.
    Use for container health checks.
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment
    }


async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# ============================================================================
# Application Factory
# ============================================================================


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (defaults to the cached environment settings)

    Returns:
        Configured application
    """
    settings = settings or get_settings()

    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.log_format == "json",
        service_name=settings.app_name,
        environment=settings.environment
    )

    docs = settings.serve_docs
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="CRUD API for tasks and the users they are assigned to.",
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings

    # Routers
    app.include_router(tasks.router, prefix=settings.api_prefix)
    app.include_router(users.router, prefix=settings.api_prefix)

    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    if settings.metrics_enabled:
        app.add_api_route(
            settings.metrics_endpoint,
            metrics,
            methods=["GET"],
            tags=["Monitoring"],
            response_class=PlainTextResponse
        )

    # Exception handlers
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Middleware: the last one added runs first
    exempt_paths: List[str] = ["/health", settings.metrics_endpoint]
    if docs:
        exempt_paths.extend(DOCS_PATHS)
    app.add_middleware(AuthMiddleware, exempt_paths=exempt_paths)

    if settings.security_headers_enabled:
        app.add_middleware(
            SecurityHeadersMiddleware,
            hsts_max_age=settings.security_hsts_max_age if settings.security_require_https else 0
        )

    app.add_middleware(RequestLoggingMiddleware)

    if settings.cors_enabled:
        logger.info("configuring_cors", origins=settings.cors_origins)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=settings.cors_allow_methods,
            allow_headers=settings.cors_allow_headers,
        )

    if settings.security_require_https:
        app.add_middleware(HTTPSRedirectMiddleware)

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()

    logger.info(
        "starting_uvicorn_server",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

    uvicorn.run(
        "api.src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
