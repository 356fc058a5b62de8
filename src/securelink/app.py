"""FastAPI application factory and lifespan management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from securelink.config import Settings, load_settings
from securelink.links import LinkSigner, PathMapper
from securelink.middleware.logging import RequestLoggingMiddleware
from securelink.routes import health, listing

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log application startup and shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    logger.info(
        "app_startup",
        host=settings.host,
        port=settings.port,
        base_dir=str(app.state.mapper.base_dir),
        listing_base_path=settings.listing_base_path,
        download_base_path=settings.download_base_path,
        link_validity_hours=settings.link_validity_hours,
    )
    try:
        yield
    finally:
        logger.info("app_shutdown")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Factory function to create configured FastAPI application.

    The path mapper and link signer are built once here and shared
    read-only by every request.

    Args:
        settings: Configuration instance. Loads from the environment if None.

    Returns:
        Configured FastAPI application.

    Raises:
        ConfigurationError: If the configuration is missing or invalid.
    """
    if settings is None:
        settings = load_settings()

    mapper = PathMapper(
        settings.base_dir,
        listing_base_path=settings.listing_base_path,
        download_base_path=settings.download_base_path,
    )
    signer = LinkSigner(
        mapper,
        settings.secret.get_secret_value(),
        scheme=settings.scheme,
        validity=settings.link_validity,
    )

    app = FastAPI(
        title="SecureLink Directory Browser",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/v1/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/api/v1/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.mapper = mapper
    app.state.signer = signer

    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router, prefix="/api/v1")
    app.include_router(listing.api_router, prefix="/api/v1")
    app.include_router(
        listing.router, prefix=settings.listing_base_path.rstrip("/")
    )

    return app
