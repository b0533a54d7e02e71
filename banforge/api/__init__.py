"""FastAPI application factory."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress

from aiogram import Dispatcher
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..admin.commands import build_admin_router
from ..app import ServiceApp
from ..config import BanForgeConfig
from .backups import router as backups_router
from .errors import setup_error_handlers
from .health import router as health_router
from .players import router as players_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    service: ServiceApp = app.state.service
    await service.init_backend()
    service.arm_backup_schedule()
    service.scheduler.start()

    polling_task: asyncio.Task | None = None
    if service.bot is not None and service.config.telegram.enable_admin_commands:
        dispatcher = Dispatcher()
        dispatcher.include_router(build_admin_router(service))
        polling_task = asyncio.create_task(
            dispatcher.start_polling(service.bot, handle_signals=False, close_bot_session=False)
        )
        logger.info("Telegram admin commands enabled.")

    yield

    if polling_task is not None:
        polling_task.cancel()
        with suppress(asyncio.CancelledError):
            await polling_task
    await service.aclose()


def create_app(service: ServiceApp | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    service = service or ServiceApp(BanForgeConfig.from_env())

    app = FastAPI(
        title="BanForge API",
        description="Player tracking, bans and backups for game servers",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.service = service
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_error_handlers(app)
    app.include_router(health_router, tags=["Health"])
    app.include_router(players_router)
    app.include_router(backups_router)
    return app


__all__ = ["create_app", "lifespan"]
