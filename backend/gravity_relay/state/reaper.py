from __future__ import annotations

import asyncio
import logging
from typing import List

from gravity_relay.state.room_manager import RoomRegistry


class RoomReaper:
    """Periodically deletes empty rooms that have been idle past a threshold.

    This is the only path by which a room leaves the registry; rooms that empty
    out are kept around so a fast reconnect finds its settings again.
    """

    def __init__(self, registry: RoomRegistry, interval_s: float = 60.0, idle_timeout_s: float = 600.0) -> None:
        self.registry = registry
        self.interval_s = interval_s
        self.idle_timeout_s = idle_timeout_s
        self.log = logging.getLogger("gravity_relay.reaper")

    def sweep(self) -> List[str]:
        removed = self.registry.sweep_idle(self.idle_timeout_s)
        for code in removed:
            self.log.info("room reaped code=%s", code)
        return removed

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            try:
                self.sweep()
            except Exception:
                self.log.exception("room sweep failed")
