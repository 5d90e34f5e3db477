import asyncio
import json

import pytest
from starlette.websockets import WebSocketState

from gravity_relay.state.room_manager import RoomRegistry
from gravity_relay.ws.connection import ClientConnection
from gravity_relay.ws.manager import BroadcastRelay
from gravity_relay.ws.router import MessageRouter


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSocket:
    """Stands in for a connected WebSocket; records every frame written to it."""

    def __init__(self) -> None:
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.sent: list[dict] = []

    async def send_text(self, text: str) -> None:
        # Real sockets may suspend mid-send
        await asyncio.sleep(0)
        self.sent.append(json.loads(text))

    def close(self) -> None:
        self.client_state = WebSocketState.DISCONNECTED


class RecordingConnection(ClientConnection):
    def take(self) -> list[dict]:
        """Drain the queued frames without a writer task."""
        frames = []
        while not self.outbox.empty():
            frames.append(json.loads(self.outbox.get_nowait()))
        return frames


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> RoomRegistry:
    return RoomRegistry(clock=clock)


@pytest.fixture
def relay(registry: RoomRegistry) -> BroadcastRelay:
    return BroadcastRelay(registry)


@pytest.fixture
def router(registry: RoomRegistry, relay: BroadcastRelay) -> MessageRouter:
    return MessageRouter(registry, relay)


@pytest.fixture
def connect():
    counter = {"n": 0}

    def _connect(client_id: str | None = None) -> RecordingConnection:
        counter["n"] += 1
        return RecordingConnection(id=client_id or f"c{counter['n']}", websocket=FakeSocket())

    return _connect
