from __future__ import annotations

import logging
from typing import Any

from gravity_relay.core.config import Settings


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _parse_level(value: Any, default: int) -> int:
    if isinstance(value, int):
        return value
    text = str(value or "").strip().upper()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text)
    return level if isinstance(level, int) else default


def configure_logging(settings: Settings) -> None:
    """Configure the ``gravity_relay`` logger tree.

    Safe to call more than once; handlers installed by an earlier call are replaced.
    """

    level = _parse_level(settings.log_level, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))

    log = logging.getLogger("gravity_relay")
    for h in list(log.handlers):
        log.removeHandler(h)
    log.addHandler(handler)
    log.setLevel(level)
    log.propagate = False
