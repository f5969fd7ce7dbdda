from __future__ import annotations

import asyncio
import logging
from uuid import UUID

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from direct_chat.application.ports.auth import TokenVerifier
from direct_chat.domain.value_objects.enums import ClientEvent, ConnectionState, PushEvent
from direct_chat.realtime.connections import Connection, ConnectionTable
from direct_chat.realtime.protocol import TypingData, WsInbound
from direct_chat.realtime.registry import SessionRegistry
from direct_chat.realtime.router import EventRouter

logger = logging.getLogger(__name__)

CLOSE_AUTH_FAILED = 4001


class ConnectionGateway:
    """Drives each push connection through CONNECTING → AUTHENTICATING → ACTIVE → CLOSED.

    With ``verifier`` set, the handshake must carry a token whose subject is the
    claimed ``userId``; without it the ``userId`` metadata is trusted as-is.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        connections: ConnectionTable,
        router: EventRouter,
        verifier: TokenVerifier | None = None,
        *,
        heartbeat_seconds: float = 30,
    ) -> None:
        self._registry = registry
        self._connections = connections
        self._router = router
        self._verifier = verifier
        self._heartbeat_seconds = heartbeat_seconds

    async def serve(
        self,
        websocket: WebSocket,
        user_id_raw: str | None,
        token: str | None = None,
    ) -> None:
        connection = Connection(websocket)
        connection.state = ConnectionState.AUTHENTICATING

        user_id = await self._authenticate(user_id_raw, token)
        if user_id is None:
            connection.state = ConnectionState.CLOSED
            logger.warning("WS connection rejected: missing or invalid userId")
            await websocket.close(code=CLOSE_AUTH_FAILED, reason="Authentication failed")
            return

        await websocket.accept()
        connection.user_id = user_id
        connection.state = ConnectionState.ACTIVE
        self._connections.add(connection)
        await self.open_session(connection)

        heartbeat_task = asyncio.create_task(
            self._heartbeat(connection), name=f"ws-heartbeat-{connection.id}",
        )
        try:
            await self._read_loop(connection)
        except WebSocketDisconnect:
            pass
        except Exception:
            logger.exception("WS error for %s", user_id)
        finally:
            heartbeat_task.cancel()
            await self.close_session(connection)

    async def _authenticate(self, user_id_raw: str | None, token: str | None) -> str | None:
        if not user_id_raw or user_id_raw == "undefined":
            return None
        try:
            user_id = str(UUID(user_id_raw))
        except ValueError:
            return None

        if self._verifier is None:
            return user_id
        if not token:
            return None
        try:
            principal = await self._verifier.verify(token)
        except Exception:
            logger.debug("WS auth failed", exc_info=True)
            return None
        if str(principal.user_id) != user_id:
            logger.warning("WS token subject does not match userId %s", user_id)
            return None
        return user_id

    async def open_session(self, connection: Connection) -> None:
        self._registry.register(connection.user_id, connection.id)
        logger.info("User %s connected (connection=%s)", connection.user_id, connection.id)
        await self.broadcast_presence()

    async def close_session(self, connection: Connection) -> None:
        connection.state = ConnectionState.CLOSED
        self._connections.remove(connection.id)
        logger.info("User %s disconnected (connection=%s)", connection.user_id, connection.id)
        if self._registry.unregister(connection.user_id, connection.id):
            await self.broadcast_presence()

    async def broadcast_presence(self) -> None:
        await self._router.broadcast(PushEvent.ONLINE_USERS, self._registry.online_user_ids())

    async def _heartbeat(self, connection: Connection) -> None:
        try:
            while True:
                await asyncio.sleep(self._heartbeat_seconds)
                await connection.send(PushEvent.PONG, {})
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.debug("Heartbeat stopped for %s", connection.id, exc_info=True)

    async def _read_loop(self, connection: Connection) -> None:
        ws = connection.websocket
        while True:
            raw = await ws.receive_text()
            try:
                msg = WsInbound.model_validate_json(raw)
            except ValidationError:
                await connection.send(PushEvent.ERROR, {"code": "invalid_payload"})
                continue

            if msg.type == ClientEvent.PING:
                await connection.send(PushEvent.PONG, {})

            elif msg.type in (ClientEvent.TYPING, ClientEvent.STOP_TYPING):
                await self._relay_typing(connection, msg)

            else:
                await connection.send(
                    PushEvent.ERROR, {"code": "unknown_type", "type": msg.type},
                )

    async def _relay_typing(self, connection: Connection, msg: WsInbound) -> None:
        try:
            data = TypingData.model_validate(msg.data)
        except ValidationError:
            await connection.send(PushEvent.ERROR, {"code": "invalid_data", "type": msg.type})
            return

        await self._router.deliver(
            data.receiver_id,
            PushEvent.USER_TYPING,
            {
                "senderId": connection.user_id,
                "isTyping": msg.type == ClientEvent.TYPING,
            },
        )
