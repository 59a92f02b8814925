"""Main FastAPI application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException

from index_discovery.api.v1.router import api_router
from index_discovery.config import get_settings
from index_discovery.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
)
from index_discovery.core.logging import get_logger, setup_logging
from index_discovery.query_configs import get_collection_configs

# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None
    """
    # Startup
    configs = get_collection_configs()
    logger.info(
        f"Starting up Index Discovery API ({len(configs)} collections: "
        f"{', '.join(c.collection_name for c in configs)})"
    )
    yield
    # Shutdown
    logger.info("Shutting down Index Discovery API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Composite index discovery: console link decoding and index synthesis",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Register exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Include API router with versioning
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    return app


app = create_app()
