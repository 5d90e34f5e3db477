from __future__ import annotations

import logging
from typing import Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from gravity_relay.schemas.messages import ServerMessage
from gravity_relay.state.room_manager import RoomRegistry
from gravity_relay.ws.connection import ClientConnection


log = logging.getLogger("gravity_relay.ws")


def is_writable(websocket: WebSocket) -> bool:
    return (
        websocket.client_state == WebSocketState.CONNECTED
        and websocket.application_state == WebSocketState.CONNECTED
    )


def post(conn: ClientConnection, text: str) -> bool:
    """Queue an already serialized frame. Returns False when the socket is not writable."""
    if not is_writable(conn.websocket):
        return False
    conn.outbox.put_nowait(text)
    return True


async def deliver(websocket: WebSocket, text: str) -> bool:
    if not is_writable(websocket):
        return False
    try:
        await websocket.send_text(text)
    except Exception as exc:
        # The close event cleans up membership; nothing to retry here
        log.debug("send skipped err=%r", exc)
        return False
    return True


async def pump(conn: ClientConnection) -> None:
    """Writer task: drains ``conn.outbox`` onto the socket until cancelled."""
    while True:
        text = await conn.outbox.get()
        try:
            await deliver(conn.websocket, text)
        finally:
            conn.outbox.task_done()


class BroadcastRelay:
    """Fans messages out to the members of a room.

    Delivery is at-most-once and fire-and-forget: sockets that are not writable
    are skipped, nothing is retried. Queuing is synchronous so callers never
    suspend between a registry change and the frames it produces.
    """

    def __init__(self, registry: RoomRegistry) -> None:
        self.registry = registry

    def send(self, conn: ClientConnection, message: ServerMessage) -> bool:
        return post(conn, message.to_text())

    def broadcast(
        self,
        room_code: str,
        message: ServerMessage,
        exclude: Optional[str] = None,
    ) -> int:
        room = self.registry.get(room_code)
        if room is None:
            return 0
        targets = [conn for client_id, conn in room.members.items() if client_id != exclude]
        if not targets:
            return 0

        text = message.to_text()
        return sum(1 for conn in targets if post(conn, text))
