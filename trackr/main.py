# trackr/main.py
"""FastAPI application for the trackr task backend."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trackr.auth import StaticTokenVerifier, TokenVerifier
from trackr.config import Settings, load_settings
from trackr.database import create_db_and_tables, create_db_engine
from trackr.routes.tasks import router as tasks_router
from trackr.timeutil import resolve_timezone

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    token_verifier: Optional[TokenVerifier] = None,
) -> FastAPI:
    """Build the app with its engine, token verifier and day-boundary zone."""
    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Ensure the task table exists before serving; dispose the engine on shutdown."""
        create_db_and_tables(app.state.engine)
        yield
        app.state.engine.dispose()

    app = FastAPI(title="trackr Task API", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = create_db_engine(settings.database_url)
    app.state.token_verifier = token_verifier or StaticTokenVerifier(settings.api_tokens)
    app.state.timezone = resolve_timezone(settings.timezone)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    app.include_router(tasks_router)

    @app.get("/api/health")
    def health_check():
        """Liveness check for load balancers; touches neither storage nor auth."""
        return {"status": "healthy", "service": "trackr-api"}

    logger.info("trackr API configured (timezone=%s)", app.state.timezone or "server local")
    return app
