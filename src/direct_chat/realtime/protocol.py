"""WebSocket message envelope models."""
from __future__ import annotations

from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WsInbound(BaseModel):
    """Client → Server."""

    type: str  # typing | stopTyping | ping
    data: dict[str, Any] = {}


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str  # newMessage | messageEdited | messageDeleted | messagesRead | userTyping | getOnlineUsers | pong | error
    data: Any = None


class TypingData(BaseModel):
    receiver_id: UUID

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
