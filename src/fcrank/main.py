# src/fcrank/main.py

"""Main FastAPI application for FC Rank."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .api import cache, game, scene, statistics, user
from .config import Settings
from .db.session import create_engine, create_sessionmaker, init_models
from .dependencies import Services
from .exceptions import (
    DuplicateSceneError,
    FCRankError,
    ResourceNotFoundError,
    UpstreamError,
    UpstreamUnavailableError,
    ValidationError,
)
from .middleware.logging import RequestLoggingMiddleware
from .services import scene_registry

logger = logging.getLogger(__name__)


def _error_response(status_code: int, exc: FCRankError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error_type": type(exc).__name__},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build components on startup; persist the cache and close out on shutdown."""
    settings: Settings = app.state.settings
    services = Services.build(settings)
    app.state.services = services

    engine = create_engine(settings.database_url, echo=settings.db_echo)
    app.state.engine = engine
    app.state.sessionmaker = create_sessionmaker(engine)
    await init_models(engine)
    async with app.state.sessionmaker() as session:
        await scene_registry.seed_from_file(session, settings.scenes_file)

    restored = await services.cache.restore()
    logger.info("Player cache ready with %d entries", restored)
    services.cache.start_auto_save(settings.cache_save_interval_minutes)

    yield

    await services.cache.stop_auto_save()
    await services.cache.persist()
    await services.client.aclose()
    await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the FC Rank application.

    Args:
        settings: Explicit settings; read from the environment when omitted.
    """
    settings = settings or Settings.from_env()
    logging.getLogger("fcrank").setLevel(settings.log_level)

    app = FastAPI(title="FC Rank API", lifespan=lifespan)
    app.state.settings = settings

    # Add middleware (order matters - first added = outermost)
    app.add_middleware(RequestLoggingMiddleware)

    # =========================================================================
    # Global Exception Handlers
    # =========================================================================

    @app.exception_handler(ResourceNotFoundError)
    async def resource_not_found_handler(
        request: Request, exc: ResourceNotFoundError
    ) -> JSONResponse:
        """Handle all resource not found errors -> 404."""
        logger.warning("Resource not found: %s", exc.message, extra=exc.details)
        return _error_response(404, exc)

    @app.exception_handler(DuplicateSceneError)
    async def duplicate_scene_handler(
        request: Request, exc: DuplicateSceneError
    ) -> JSONResponse:
        logger.warning("Duplicate scene: %s", exc.message, extra=exc.details)
        return _error_response(409, exc)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        """Handle all validation errors -> 422."""
        logger.warning("Validation error: %s", exc.message, extra=exc.details)
        return _error_response(422, exc)

    @app.exception_handler(UpstreamUnavailableError)
    async def upstream_unavailable_handler(
        request: Request, exc: UpstreamUnavailableError
    ) -> JSONResponse:
        """No snapshot and no reachable upstream -> 503."""
        logger.error("Upstream unavailable: %s", exc.message, extra=exc.details)
        return _error_response(503, exc)

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(
        request: Request, exc: UpstreamError
    ) -> JSONResponse:
        """Handle upstream transport and API failures -> 502."""
        logger.error("Upstream error: %s", exc.message, extra=exc.details)
        return _error_response(502, exc)

    @app.exception_handler(FCRankError)
    async def fcrank_error_handler(request: Request, exc: FCRankError) -> JSONResponse:
        """Catch-all for any other FC Rank errors -> 500."""
        logger.error("FC Rank error: %s", exc.message, extra=exc.details, exc_info=True)
        return _error_response(500, exc)

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(
        request: Request, exc: SQLAlchemyError
    ) -> JSONResponse:
        """Catch-all for SQLAlchemy database errors."""
        logger.error("Database error: %s", exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "An internal database error occurred"},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions."""
        logger.error("Unhandled exception: %s", exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "An internal server error occurred"},
        )

    # Include routers into the main application
    app.include_router(game.router)
    app.include_router(scene.router)
    app.include_router(user.router)
    app.include_router(statistics.router)
    app.include_router(cache.router)

    @app.get("/", tags=["Root"])
    async def read_root() -> dict[str, str]:
        """Provides a welcome message."""
        return {"message": "Welcome to the FC Rank API"}

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint for monitoring."""
        return {"status": "healthy"}

    return app


app = create_app()
