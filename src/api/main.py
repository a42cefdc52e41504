"""FastAPI application initialization and configuration module.

This module serves as the main entry point for the Shree Nucleus API
application. It handles:
- Application lifecycle management (startup/shutdown)
- Middleware registration in the correct order
- Exception handler registration
- Status and health check endpoints
- API module routers

Middleware are executed in reverse order of registration, so the last one
added is the first to see a request.
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, status
from loguru import logger

from src.api.auth.routes import router as auth_router
from src.api.constants import HEALTH_MESSAGE, ROOT_MESSAGE
from src.api.docs.routes import router as docs_router
from src.api.middleware.cors import add_cors_middleware
from src.api.middleware.error_handler import (
    ErrorHandlerMiddleware,
    register_exception_handlers,
)
from src.api.middleware.request_logging import RequestLoggingMiddleware
from src.api.middleware.security_headers import SecurityHeadersMiddleware
from src.api.utils.responses import ORJSONResponse
from src.core.config import Settings, get_settings
from src.core.logging import setup_logging
from src.infrastructure.database.session import (
    check_database_connection,
    close_database,
)

PROCESS_START = time.monotonic()


@asynccontextmanager
async def lifespan(app_instance: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan events.

    The database is checked at startup but an unreachable database does not
    prevent the API from starting; requests needing it fail individually.

    Args:
        app_instance: The FastAPI application instance.

    Yields:
        None: Nothing is yielded, this is just a lifespan context.
    """
    is_healthy, error_msg = await check_database_connection()

    if is_healthy:
        logger.info("Database connection successful")
    else:
        logger.error("Database connection failed during startup: {}", error_msg)

    logger.info(
        "Application startup complete - {} v{}",
        app_instance.title,
        app_instance.version,
    )

    yield

    logger.info("Application shutdown initiated")
    await close_database()
    logger.info("Application shutdown complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance. If not provided, will use get_settings().

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    setup_logging(settings)

    # Documentation is served from the YAML documents by the docs module
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    register_exception_handlers(application)

    # 4. Request logging middleware
    application.add_middleware(RequestLoggingMiddleware, log_config=settings.log_config)

    # 3. Unhandled failures, answered before CORS and security headers apply
    application.add_middleware(ErrorHandlerMiddleware)

    # 2. CORS (answers preflight requests before they reach the routes)
    add_cors_middleware(application, settings)

    # 1. Security headers middleware (adds security headers to all responses)
    application.add_middleware(
        SecurityHeadersMiddleware, hsts_enabled=settings.is_production
    )

    @application.get("/", include_in_schema=False)
    async def root() -> dict[str, object]:
        """Report that the API is running."""
        return {"status": status.HTTP_200_OK, "message": ROOT_MESSAGE}

    @application.get("/health", include_in_schema=False)
    async def health() -> dict[str, object]:
        """Health check endpoint for monitoring and load balancers.

        Returns:
            dict[str, object]: Status, current time and process uptime in seconds.
        """
        return {
            "status": status.HTTP_200_OK,
            "message": HEALTH_MESSAGE,
            "timestamp": datetime.now(UTC).isoformat(),
            "uptime": time.monotonic() - PROCESS_START,
        }

    application.include_router(docs_router)
    application.include_router(auth_router)

    return application


app = create_app()
