"""Nostr Oracle API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map OracleError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - OracleContext built on startup and shut down on exit via the lifespan

Design Decisions:
    - Lifespan over @app.on_event: cleaner cleanup, one place owns startup order
    - Tables created at startup when missing; alembic owns schema changes
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nostr_oracle.api.error_handlers import register_error_handlers
from nostr_oracle.api.routes import health, lightning, live, status, verify
from nostr_oracle.config import get_settings
from nostr_oracle.core.errors import DatabaseError
from nostr_oracle.infrastructure.database import DatabaseSessionManager
from nostr_oracle.infrastructure.observability import setup_logging
from nostr_oracle.services.context import OracleContext

logger = logging.getLogger(__name__)


async def _open_database(settings) -> DatabaseSessionManager | None:
    db = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    try:
        await db.create_all()
    except (DatabaseError, OSError) as e:
        logger.warning(f"Database unavailable, running in memory-only mode: {e}")
        await db.dispose()
        return None
    return db


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = await _open_database(settings)
    oracle = OracleContext.build(settings, db)
    app.state.oracle = oracle
    oracle.start()
    logger.info(f"Nostr Oracle API started on port {settings.port}")
    yield
    logger.info("Nostr Oracle API shutting down")
    await oracle.shutdown()
    if db is not None:
        await db.dispose()


app = FastAPI(title="Nostr Oracle API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)

app.include_router(health.router)
app.include_router(status.router)
app.include_router(verify.router)
app.include_router(lightning.router)
app.include_router(live.router)

register_error_handlers(app)
