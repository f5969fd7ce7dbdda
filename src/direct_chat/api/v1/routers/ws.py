from __future__ import annotations

from fastapi import APIRouter, Query, WebSocket

from direct_chat.api.middleware.correlation_id import (
    bound_correlation_id,
    incoming_correlation_id,
)
from direct_chat.config import settings
from direct_chat.realtime.gateway import ConnectionGateway

router = APIRouter(tags=["websocket"])


@router.websocket("/ws")
async def ws_push(
    websocket: WebSocket,
    user_id: str | None = Query(None, alias="userId"),
    token: str | None = Query(None),
) -> None:
    """Push channel. Handshake: ``/ws?userId=<uuid>&token=<jwt>`` or the auth cookie."""
    gateway: ConnectionGateway = websocket.app.state.gateway
    token = token or websocket.cookies.get(settings.AUTH_COOKIE_NAME)
    with bound_correlation_id(incoming_correlation_id(websocket.headers)):
        await gateway.serve(websocket, user_id, token)
