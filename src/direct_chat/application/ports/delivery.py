from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID

from direct_chat.domain.value_objects.enums import DeliveryResult


class EventDelivery(Protocol):
    async def deliver(
        self, user_id: UUID | str, event: str, payload: Any,
    ) -> DeliveryResult: ...

    async def broadcast(self, event: str, payload: Any) -> int: ...
