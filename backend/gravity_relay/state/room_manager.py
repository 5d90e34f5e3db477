from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

if TYPE_CHECKING:
    from gravity_relay.ws.connection import ClientConnection


Clock = Callable[[], float]


def normalize_room_code(raw: Any) -> str:
    """Turn a client-supplied room value into a registry key.

    Follows what a browser client sees from ``String(room || "")``: falsy values
    (missing, null, 0, false, "") are empty, ``true`` becomes ``"TRUE"`` and numbers
    use their decimal text. Strings are trimmed and upper-cased. Arrays and
    objects count as empty.
    """
    if not raw:
        return ""
    if raw is True:
        return "TRUE"
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    if isinstance(raw, (int, float)):
        raw = str(raw)
    if not isinstance(raw, str):
        return ""
    return raw.strip().upper()


@dataclass
class Room:
    code: str
    last_active: float
    members: Dict[str, "ClientConnection"] = field(default_factory=dict)
    states: Dict[str, Any] = field(default_factory=dict)
    settings: Optional[Dict[str, Any]] = None

    @property
    def is_empty(self) -> bool:
        return not self.members


class RoomRegistry:
    """Owns every live Room and the per-room state store.

    In-memory and single-process only. All methods are synchronous so a caller can
    finish a whole mutation before its next await.
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self.log = logging.getLogger("gravity_relay.rooms")
        self._clock = clock
        self._rooms: Dict[str, Room] = {}

    def __contains__(self, code: str) -> bool:
        return code in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def get(self, code: str) -> Optional[Room]:
        return self._rooms.get(code)

    def codes(self) -> List[str]:
        return list(self._rooms)

    def ensure_room(self, code: str) -> Room:
        """Fetch the room for ``code``, creating it on first reference, and touch it."""
        room = self._rooms.get(code)
        if room is None:
            room = Room(code=code, last_active=self._clock())
            self._rooms[code] = room
            self.log.info("room created code=%s", code)
        else:
            room.last_active = self._clock()
        return room

    def add_member(self, code: str, client_id: str, conn: "ClientConnection") -> Room:
        room = self.ensure_room(code)
        room.members[client_id] = conn
        return room

    def remove_member(self, code: str, client_id: str) -> Optional[Room]:
        """Drop a client's membership and state entry. Returns the room, if it exists."""
        room = self._rooms.get(code)
        if room is None:
            return None
        room.members.pop(client_id, None)
        room.states.pop(client_id, None)
        room.last_active = self._clock()
        return room

    def set_state(self, code: str, client_id: str, payload: Dict[str, Any]) -> Optional[Room]:
        room = self._rooms.get(code)
        if room is None or client_id not in room.members:
            return None
        room.states[client_id] = payload
        room.last_active = self._clock()
        return room

    def set_settings(self, code: str, payload: Dict[str, Any]) -> Optional[Room]:
        room = self._rooms.get(code)
        if room is None:
            return None
        room.settings = payload
        room.last_active = self._clock()
        return room

    def sweep_idle(self, idle_timeout_s: float) -> List[str]:
        """Remove empty rooms idle for longer than ``idle_timeout_s``. Returns their codes."""
        now = self._clock()
        expired = [
            code
            for code, room in self._rooms.items()
            if room.is_empty and now - room.last_active > idle_timeout_s
        ]
        for code in expired:
            self._rooms.pop(code, None)
        return expired
