from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from gravity_relay.schemas.messages import (
    MISSING_ROOM_CODE,
    SERVER_ID,
    ErrorMessage,
    LeaveNotice,
    Presence,
    SettingsMessage,
    StateMessage,
    is_settings_payload,
    is_state_payload,
    parse_frame,
)
from gravity_relay.state.room_manager import RoomRegistry, normalize_room_code
from gravity_relay.ws.connection import ClientConnection
from gravity_relay.ws.manager import BroadcastRelay


Handler = Callable[[ClientConnection, Dict[str, Any]], None]


class MessageRouter:
    """Interprets inbound frames and applies them to the registry.

    The protocol is deliberately lossy: unparsable frames, unknown types, bad
    payloads and anything but ``join`` from a connection outside a room are
    dropped without a reply. Only an empty room code on ``join`` is answered
    with an ``error`` frame.

    Handlers never suspend: each registry change and the frames it produces are
    queued in one step, so every socket sees updates in mutation order.
    """

    def __init__(self, registry: RoomRegistry, relay: BroadcastRelay) -> None:
        self.registry = registry
        self.relay = relay
        self.log = logging.getLogger("gravity_relay.router")
        self._handlers: Dict[str, Handler] = {
            "join": self.handle_join,
            "state": self.handle_state,
            "settings": self.handle_settings,
            "leave": self.handle_leave,
        }

    def dispatch(self, conn: ClientConnection, raw: str) -> None:
        data = parse_frame(raw)
        if data is None:
            self.log.debug("dropped malformed frame client=%s", conn.id)
            return
        handler = self._handlers.get(data["type"])
        if handler is None:
            self.log.debug("dropped unknown type=%r client=%s", data["type"], conn.id)
            return
        handler(conn, data)

    def handle_join(self, conn: ClientConnection, data: Dict[str, Any]) -> None:
        code = normalize_room_code(data.get("room"))
        if not code:
            self.relay.send(conn, ErrorMessage(message=MISSING_ROOM_CODE))
            return

        self.leave(conn)

        room = self.registry.add_member(code, conn.id, conn)
        conn.room = code
        self.log.debug("join client=%s room=%s members=%d", conn.id, code, len(room.members))
        if room.settings is not None:
            self.relay.send(conn, SettingsMessage(sender=SERVER_ID, room=code, payload=room.settings))
        for other_id, state in room.states.items():
            self.relay.send(conn, StateMessage(sender=other_id, room=code, payload=state))
        self.relay.broadcast(code, Presence(room=code, joined=conn.id), exclude=conn.id)

    def handle_state(self, conn: ClientConnection, data: Dict[str, Any]) -> None:
        if conn.room is None:
            return
        payload = data.get("payload")
        if not is_state_payload(payload):
            self.log.debug("dropped invalid state client=%s", conn.id)
            return
        code = conn.room
        if self.registry.set_state(code, conn.id, payload) is None:
            return
        self.relay.broadcast(
            code, StateMessage(sender=conn.id, room=code, payload=payload), exclude=conn.id
        )

    def handle_settings(self, conn: ClientConnection, data: Dict[str, Any]) -> None:
        if conn.room is None:
            return
        payload = data.get("payload")
        if not is_settings_payload(payload):
            self.log.debug("dropped invalid settings client=%s", conn.id)
            return
        code = conn.room
        if self.registry.set_settings(code, payload) is None:
            return
        self.relay.broadcast(
            code, SettingsMessage(sender=conn.id, room=code, payload=payload), exclude=conn.id
        )

    def handle_leave(self, conn: ClientConnection, data: Dict[str, Any]) -> None:
        self.leave(conn)

    def leave(self, conn: ClientConnection) -> None:
        """Take ``conn`` out of its room and tell the remaining members.

        Idempotent. The room itself is left in the registry even when empty.
        """
        code = conn.room
        if code is None:
            return
        conn.room = None
        if self.registry.remove_member(code, conn.id) is None:
            return
        self.log.debug("leave client=%s room=%s", conn.id, code)
        self.relay.broadcast(code, LeaveNotice(sender=conn.id, room=code), exclude=conn.id)
