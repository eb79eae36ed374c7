"""Application factory for the relay service."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .logging_handlers import configure_logging
from .routers.relay import router as relay_router
from .services.admission import AdmissionController, AdmissionState
from .services.broadcast import ConnectionManager
from .services.ingestion import ChatEventSource, IngestionCoordinator
from .services.keepalive import IdleKeepalive

logger = logging.getLogger(__name__)


def _default_chat_source(settings: Settings) -> ChatEventSource:
    from .services.tiktok_source import TikTokChatSource

    return TikTokChatSource(
        settings.tiktok_username,
        request_timeout=settings.chat_request_timeout_seconds,
    )


def create_app(
    settings: Settings | None = None,
    chat_source: ChatEventSource | None = None,
) -> FastAPI:
    # Configure logging first thing
    configure_logging()

    # Fails with a validation error when TIKTOK_USERNAME is missing
    settings = settings or get_settings()

    manager = ConnectionManager()
    admission = AdmissionController(
        AdmissionState(),
        global_min_interval=settings.global_min_interval_seconds,
        user_cooldown=settings.user_cooldown_seconds,
        max_range_span=settings.max_range_span,
    )
    keepalive = IdleKeepalive(
        manager,
        settings.keepalive_references,
        interval=settings.keepalive_interval_seconds,
        quiet_gap=settings.keepalive_quiet_gap_seconds,
    )
    coordinator = IngestionCoordinator(
        chat_source or _default_chat_source(settings),
        admission,
        manager,
        reconnect_delay=settings.chat_reconnect_seconds,
    )
    ingestion_task: asyncio.Task[None] | None = None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        nonlocal ingestion_task
        if settings.admin_token is None:
            logger.warning("ADMIN_TOKEN is not set; manual injection is disabled")
        ingestion_task = asyncio.create_task(coordinator.run())
        keepalive.start()
        logger.info("Relaying chat from @%s", settings.tiktok_username)
        try:
            yield
        finally:
            await keepalive.stop()
            if ingestion_task is not None:
                ingestion_task.cancel()
                with suppress(asyncio.CancelledError):
                    await ingestion_task

    app = FastAPI(
        title="TikTok Verse Relay",
        version="0.1.0",
        description="Relays scripture references from live chat to read-aloud players.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.connection_manager = manager
    app.state.admission = admission
    app.state.keepalive = keepalive
    app.state.ingestion = coordinator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(relay_router)

    return app


__all__ = ["create_app"]
