"""ASGI host for the session engine: owns the registry and sweeper lifecycle.

Game commands are dispatched in-process by the chat layer; the HTTP surface
only reports health and session counts.
"""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route

from arcade.server.settings import ArcadeSettings
from arcade.session.registry import SessionRegistry
from arcade.session.sweeper import SessionSweeper
from shared.logging import setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.requests import Request

logger = structlog.get_logger()


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def status(request: Request) -> JSONResponse:
    registry: SessionRegistry = request.app.state.registry
    settings: ArcadeSettings = request.app.state.settings
    stats = registry.get_stats()
    return JSONResponse(
        {
            "status": "ok",
            "sessions": stats.model_dump(),
            "session_timeout_seconds": settings.session_timeout_seconds,
            "sweeper_running": request.app.state.sweeper.is_running,
        },
    )


def create_app(
    settings: ArcadeSettings | None = None,
    registry: SessionRegistry | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = ArcadeSettings()

    # When the app creates its own registry, it owns the teardown.
    owns_registry = registry is None
    if registry is None:
        registry = SessionRegistry()

    sweeper = SessionSweeper(
        registry,
        interval_seconds=settings.sweep_interval_seconds,
        timeout_seconds=settings.session_timeout_seconds,
    )

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        sweeper.start()
        try:
            yield
        finally:
            await sweeper.stop()
            if owns_registry:
                registry.close()

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
    ]

    app = Starlette(routes=routes, lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry
    app.state.sweeper = sweeper

    logger.info("session engine ready", session_timeout_seconds=settings.session_timeout_seconds)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    settings = ArcadeSettings()
    setup_logging(log_dir=settings.log_dir)
    return create_app(settings=settings)
