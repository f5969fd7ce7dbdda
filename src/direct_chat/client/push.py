"""Push-channel client: receives server events and emits typing indicators."""
from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import urlencode
from uuid import UUID

import websockets

from direct_chat.domain.value_objects.enums import ClientEvent

logger = logging.getLogger(__name__)

OnPushEvent = Callable[[str, Any], None]


class PushClient:
    def __init__(
        self,
        url: str,
        user_id: UUID,
        on_event: OnPushEvent,
        *,
        token: str | None = None,
    ) -> None:
        self._url = url
        self._user_id = user_id
        self._on_event = on_event
        self._token = token
        self._ws: Any = None

    @property
    def uri(self) -> str:
        params = {"userId": str(self._user_id)}
        if self._token:
            params["token"] = self._token
        return f"{self._url}?{urlencode(params)}"

    async def run(self) -> None:
        """Receive until the server closes the connection."""
        async with websockets.connect(self.uri) as ws:
            self._ws = ws
            try:
                async for raw in ws:
                    self.dispatch(raw)
            except websockets.ConnectionClosed:
                logger.info("Push connection closed")
            finally:
                self._ws = None

    def dispatch(self, raw: str | bytes) -> None:
        try:
            envelope = json.loads(raw)
            event = envelope["type"]
        except (ValueError, KeyError, TypeError):
            logger.warning("Dropping malformed push frame")
            return
        self._on_event(event, envelope.get("data"))

    async def _emit(self, event: str, data: dict[str, Any]) -> None:
        if self._ws is None:
            return
        await self._ws.send(json.dumps({"type": event, "data": data}))

    async def emit_typing(self, receiver_id: UUID) -> None:
        await self._emit(ClientEvent.TYPING, {"receiverId": str(receiver_id)})

    async def emit_stop_typing(self, receiver_id: UUID) -> None:
        await self._emit(ClientEvent.STOP_TYPING, {"receiverId": str(receiver_id)})

    async def ping(self) -> None:
        await self._emit(ClientEvent.PING, {})
