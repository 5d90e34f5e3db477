from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket

from gravity_relay.core.identity import IdFactory
from gravity_relay.schemas.messages import Hello
from gravity_relay.ws.connection import ClientConnection
from gravity_relay.ws.manager import BroadcastRelay, pump
from gravity_relay.ws.router import MessageRouter


router = APIRouter()
log = logging.getLogger("gravity_relay.ws")


def get_router(websocket: WebSocket) -> MessageRouter:
    return websocket.app.state.message_router  # type: ignore[attr-defined]


def get_relay(websocket: WebSocket) -> BroadcastRelay:
    return websocket.app.state.relay  # type: ignore[attr-defined]


def get_id_factory(websocket: WebSocket) -> IdFactory:
    return websocket.app.state.id_factory  # type: ignore[attr-defined]


def _frame_text(message: dict) -> Optional[str]:
    text = message.get("text")
    if text is not None:
        return text
    data = message.get("bytes")
    if data is None:
        return None
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


@router.websocket("/{path:path}")
async def websocket_relay_endpoint(
    websocket: WebSocket,
    path: str,
    message_router: MessageRouter = Depends(get_router),
    relay: BroadcastRelay = Depends(get_relay),
    id_factory: IdFactory = Depends(get_id_factory),
) -> None:
    conn = ClientConnection(id=id_factory(), websocket=websocket)
    await websocket.accept()
    log.debug("connect client=%s path=/%s", conn.id, path)
    writer = asyncio.create_task(pump(conn))
    try:
        relay.send(conn, Hello(id=conn.id))
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = _frame_text(message)
            if raw is None:
                continue
            try:
                message_router.dispatch(conn, raw)
            except Exception:
                log.exception("handler failed client=%s", conn.id)
    finally:
        log.debug("disconnect client=%s", conn.id)
        message_router.leave(conn)
        writer.cancel()
        with suppress(asyncio.CancelledError):
            await writer
