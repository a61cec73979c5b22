"""Race Ladder API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers live in api/error_handlers.py
    - CORS configured from settings (not hardcoded)
    - Database, unlock client and ladder service built on startup via lifespan;
      shutdown lets pending spoiler unlocks finish before closing the pool

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Notifications go to the log until a chat integration provides a sender
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ladder.api.error_handlers import register_error_handlers
from ladder.api.routes import health, races
from ladder.config import get_settings
from ladder.infrastructure.database import init_db
from ladder.infrastructure.notifier import LoggingNotificationSender
from ladder.infrastructure.observability import setup_logging
from ladder.infrastructure.unlock_client import SpoilerUnlockClient
from ladder.services.ladder_service import init_ladder_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    unlock_client = SpoilerUnlockClient(
        settings.unlock_api_base_url,
        settings.unlock_api_key,
        max_retries=settings.unlock_max_retries,
        base_delay_ms=settings.unlock_base_delay_ms,
        max_delay_ms=settings.unlock_max_delay_ms,
        timeout_seconds=settings.unlock_timeout_seconds,
        min_interval_ms=settings.unlock_min_interval_ms,
    )
    service = init_ladder_service(
        manager.session_factory,
        LoggingNotificationSender(),
        unlock_client,
        preparation_offset=timedelta(minutes=settings.preparation_offset_minutes),
    )
    logger.info("Race ladder API started")
    yield
    logger.info("Race ladder API shutting down")
    await service.shutdown()
    await unlock_client.aclose()
    await manager.dispose()


app = FastAPI(
    title="Race Ladder API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(races.router)

register_error_handlers(app)
