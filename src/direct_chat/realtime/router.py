from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from direct_chat.domain.value_objects.enums import DeliveryResult
from direct_chat.realtime.connections import ConnectionTable
from direct_chat.realtime.registry import SessionRegistry

logger = logging.getLogger(__name__)


class EventRouter:
    """Best-effort, at-most-once push of named events to a user's live connection.

    Implements application.ports.delivery.EventDelivery.
    """

    def __init__(self, registry: SessionRegistry, connections: ConnectionTable) -> None:
        self._registry = registry
        self._connections = connections

    async def deliver(
        self,
        user_id: UUID | str,
        event: str,
        payload: Any,
    ) -> DeliveryResult:
        connection_id = self._registry.lookup(user_id)
        if connection_id is None:
            logger.debug("%s for %s dropped: offline", event, user_id)
            return DeliveryResult.OFFLINE

        connection = self._connections.get(connection_id)
        if connection is None:
            return DeliveryResult.OFFLINE

        try:
            await connection.send(event, payload)
        except Exception:
            # The read loop of that connection notices the broken transport and unregisters it
            logger.warning("Push %s to %s failed", event, connection_id, exc_info=True)
            return DeliveryResult.OFFLINE
        return DeliveryResult.DELIVERED

    async def broadcast(self, event: str, payload: Any) -> int:
        """Send to every active connection. Returns how many sends succeeded."""
        sent = 0
        for connection in self._connections.active():
            try:
                await connection.send(event, payload)
            except Exception:
                logger.debug("Broadcast %s to %s failed", event, connection.id, exc_info=True)
                continue
            sent += 1
        return sent
