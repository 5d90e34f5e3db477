from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from gravity_relay.api.health import plain_http_exception_handler, router as health_router
from gravity_relay.core.config import Settings, get_settings
from gravity_relay.core.identity import IdFactory, new_client_id
from gravity_relay.core.logging_config import configure_logging
from gravity_relay.state.reaper import RoomReaper
from gravity_relay.state.room_manager import Clock, RoomRegistry
from gravity_relay.ws.manager import BroadcastRelay
from gravity_relay.ws.router import MessageRouter
from gravity_relay.ws.routes import router as ws_router


log = logging.getLogger("gravity_relay")


@asynccontextmanager
async def lifespan(app: FastAPI):
    reaper_task = asyncio.create_task(app.state.reaper.run())
    log.info("Gravity Lab relay ready port=%s", app.state.settings.port)
    try:
        yield
    finally:
        reaper_task.cancel()
        with suppress(asyncio.CancelledError):
            await reaper_task


def create_app(
    settings: Optional[Settings] = None,
    id_factory: IdFactory = new_client_id,
    clock: Optional[Clock] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(title="Gravity Lab Relay", version="0.1.0", lifespan=lifespan)

    registry = RoomRegistry(clock=clock) if clock is not None else RoomRegistry()
    relay = BroadcastRelay(registry)
    app.state.settings = settings
    app.state.registry = registry
    app.state.relay = relay
    app.state.message_router = MessageRouter(registry, relay)
    app.state.reaper = RoomReaper(
        registry,
        interval_s=settings.reaper_interval_s,
        idle_timeout_s=settings.room_idle_timeout_s,
    )
    app.state.id_factory = id_factory

    app.add_exception_handler(StarletteHTTPException, plain_http_exception_handler)
    app.include_router(health_router)
    app.include_router(ws_router)
    return app


app = create_app()
