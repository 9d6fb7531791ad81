"""
FastAPI application factory.

``create_app()`` assembles the application with CORS, error handlers,
routers, and the health endpoint. The module-level ``app`` instance
allows ``uvicorn src.api.app:app --reload``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api import websocket
from src.api.middleware.error_handler import register_error_handlers
from src.api.routes import contributors, recordings, sessions, storage, training
from src.core.config import get_settings
from src.core.models import HealthResponse
from src.services.session.manager import get_session_manager
from src.services.storage.database import close_db, init_db


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    Startup: configure logging and create the database tables if needed.
    Shutdown: release open recording sessions, then dispose the DB engine.
    """
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    await init_db()
    yield
    get_session_manager().cleanup()
    await close_db()


def create_app() -> FastAPI:
    """Build and return a fully configured FastAPI application.

    Assembles CORS middleware, error handlers, REST routers, and the
    WebSocket capture endpoint into a single FastAPI instance.

    Returns:
        FastAPI: The configured application, ready for ``uvicorn``.
    """

    app = FastAPI(
        title="VoiceCorpus",
        description="Sentence-by-sentence voice recording for building TTS datasets.",
        version="0.1.0",
        lifespan=lifespan,
    )

    # -- CORS --
    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- Error handlers --
    register_error_handlers(app)

    # -- Health check (root-level, not under /api/v1) --
    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(timestamp=datetime.now(UTC))

    # -- REST routes --
    app.include_router(sessions.router, prefix="/api/v1")
    app.include_router(contributors.router, prefix="/api/v1")
    app.include_router(recordings.router, prefix="/api/v1")
    app.include_router(training.router, prefix="/api/v1")

    # -- Public blob URLs for the local provider --
    app.include_router(storage.router)

    # -- WebSocket --
    app.include_router(websocket.router)

    return app


app = create_app()
