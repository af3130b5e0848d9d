"""FastAPI application entry point.

This module initializes the FastAPI application with its routers,
middleware, database lifecycle management, logging and the global
exception handlers that render every error in the shared envelope.
"""

import logging
from typing import Any

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import settings
from .database import lifespan
from .exceptions import ErrorKind, register_exception_handlers
from .logging_config import LoggingMiddleware, setup_logging
from .middleware import SecurityHeadersMiddleware
from .routers import health_router, users_router

logger = logging.getLogger(__name__)

# Initialize logging before creating the app
setup_logging(settings)


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="User Directory",
        description="Registers users under unique names and looks them up by id or name",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )

    configure_middleware(app)
    register_exception_handlers(app)
    configure_routers(app)
    configure_root_endpoints(app)

    logger.info(
        "FastAPI application configured",
        extra={"error_kinds": [kind.value for kind in ErrorKind]},
    )
    return app


def configure_middleware(app: FastAPI) -> None:
    """Configure middleware stack for the application.

    Middleware added last runs first, so the logging middleware sees every
    request before the others.
    """
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.is_production)
    configure_cors_middleware(app)
    app.add_middleware(LoggingMiddleware)


def configure_cors_middleware(app: FastAPI) -> None:
    """Configure CORS middleware based on environment.

    Args:
        app: FastAPI application instance
    """
    if settings.is_development:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["Location", "X-Request-ID"],
        )
        logger.info("CORS configured for development (allow all origins)")
    elif settings.is_production:
        # No browser clients are expected; same-origin only
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[],
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type"],
        )
        logger.info("CORS configured for production (no cross-origin access)")
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type"],
            expose_headers=["Location", "X-Request-ID"],
        )
        logger.info("CORS configured for testing environment")


def configure_routers(app: FastAPI) -> None:
    app.include_router(health_router)
    app.include_router(users_router)


def configure_root_endpoints(app: FastAPI) -> None:
    """Configure root and utility endpoints.

    Args:
        app: FastAPI application instance
    """

    @app.get("/", tags=["root"], summary="API Information")
    async def root() -> dict[str, Any]:
        """Root endpoint providing API information."""
        return {
            "message": "User Directory is running",
            "version": __version__,
            "environment": settings.environment,
            "docs": None if settings.is_production else "/docs",
            "endpoints": {
                "health": "/api/health",
                "users": "/api/users",
            },
        }

    @app.get("/version", tags=["root"], summary="API Version")
    async def version() -> dict[str, str]:
        return {"version": __version__, "environment": settings.environment}


# Create the FastAPI application instance
app = create_app()

logger.info(
    "FastAPI application initialized successfully",
    extra={
        "environment": settings.environment,
        "debug": settings.debug,
        "database_url": settings.database_url.split("@")[-1],
    },
)


if __name__ == "__main__":
    uvicorn.run(
        "user_directory.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_config=None,
    )
