from __future__ import annotations

import uuid
from typing import Any

from fastapi import WebSocket

from direct_chat.domain.value_objects.enums import ConnectionState
from direct_chat.realtime.protocol import WsOutbound


class Connection:
    """One live push connection and where it is in its lifecycle."""

    def __init__(self, websocket: WebSocket, connection_id: str | None = None) -> None:
        self.id = connection_id or uuid.uuid4().hex
        self.websocket = websocket
        self.user_id: str | None = None
        self.state = ConnectionState.CONNECTING

    async def send(self, event: str, data: Any) -> None:
        raw = WsOutbound(type=event, data=data).model_dump_json()
        await self.websocket.send_text(raw)

    def __repr__(self) -> str:
        return f"Connection(id={self.id!r}, user_id={self.user_id!r}, state={self.state})"


class ConnectionTable:
    """Connections accepted by this process, keyed by connection id."""

    def __init__(self) -> None:
        self._by_id: dict[str, Connection] = {}

    def add(self, connection: Connection) -> None:
        self._by_id[connection.id] = connection

    def remove(self, connection_id: str) -> Connection | None:
        return self._by_id.pop(connection_id, None)

    def get(self, connection_id: str) -> Connection | None:
        return self._by_id.get(connection_id)

    def active(self) -> list[Connection]:
        return [c for c in self._by_id.values() if c.state == ConnectionState.ACTIVE]

    def __len__(self) -> int:
        return len(self._by_id)
