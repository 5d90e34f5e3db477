from __future__ import annotations

import json
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


SERVER_ID = "server"
MISSING_ROOM_CODE = "Missing room code"


class ServerMessage(BaseModel):
    """Base for every server -> client frame."""

    model_config = ConfigDict(populate_by_name=True)

    def to_text(self) -> str:
        return self.model_dump_json(by_alias=True)


class Hello(ServerMessage):
    type: Literal["hello"] = "hello"
    id: str


class ErrorMessage(ServerMessage):
    type: Literal["error"] = "error"
    message: str


class SettingsMessage(ServerMessage):
    type: Literal["settings"] = "settings"
    sender: str = Field(alias="from")
    room: str
    payload: Dict[str, Any]


class StateMessage(ServerMessage):
    type: Literal["state"] = "state"
    sender: str = Field(alias="from")
    room: str
    payload: Dict[str, Any]


class Presence(ServerMessage):
    type: Literal["presence"] = "presence"
    room: str
    sender: str = Field(default=SERVER_ID, alias="from")
    joined: str


class LeaveNotice(ServerMessage):
    type: Literal["leave"] = "leave"
    sender: str = Field(alias="from")
    room: str


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def parse_frame(raw: str) -> Optional[Dict[str, Any]]:
    """Decode one inbound frame.

    Returns ``None`` for anything that is not a JSON object with a string ``type``;
    such frames are dropped without a reply.
    """
    try:
        data = json.loads(raw, parse_constant=_reject_constant)
    except (TypeError, ValueError, RecursionError):
        return None
    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        return None
    return data


def is_state_payload(payload: Any) -> bool:
    return isinstance(payload, dict) and isinstance(payload.get("objects"), list)


def is_settings_payload(payload: Any) -> bool:
    return isinstance(payload, dict)
