from __future__ import annotations

import uuid
from typing import Callable


IdFactory = Callable[[], str]


def new_client_id() -> str:
    """Return a fresh connection identity (122 random bits, hex encoded)."""
    return uuid.uuid4().hex
