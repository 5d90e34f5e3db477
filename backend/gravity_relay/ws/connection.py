from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Optional

from fastapi import WebSocket


@dataclass
class ClientConnection:
    """One live socket and its outbound frame queue.

    Frames are queued in the order the router produces them and written by a
    single writer task, so a socket never sees them reordered.
    """

    id: str
    websocket: WebSocket
    room: Optional[str] = None
    outbox: "asyncio.Queue[str]" = field(default_factory=asyncio.Queue)
