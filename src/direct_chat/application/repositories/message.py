from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from direct_chat.domain.entities.message import Message


class MessageReader(Protocol):
    async def get_by_id(self, message_id: UUID) -> Message | None: ...

    async def get_by_client_msg_id(
        self, sender_id: UUID, client_msg_id: UUID,
    ) -> Message | None: ...

    async def list_between(
        self,
        user_a: UUID,
        user_b: UUID,
        *,
        offset: int = 0,
        limit: int = 20,
    ) -> list[Message]:
        """Messages exchanged between two users in either direction, newest first."""
        ...

    async def count_between(self, user_a: UUID, user_b: UUID) -> int: ...

    async def unread_counts(self, receiver_id: UUID) -> dict[UUID, int]:
        """Unread, non-deleted messages addressed to receiver, grouped by sender."""
        ...


class MessageWriter(Protocol):
    async def create_if_not_exists(self, message: Message) -> tuple[Message, bool]:
        """Insert message. Return (message, created). On client_msg_id conflict → return existing."""
        ...

    async def save(self, message: Message) -> Message:
        """Persist edit/delete state of an existing message."""
        ...

    async def mark_read(
        self, sender_id: UUID, receiver_id: UUID, read_at: datetime,
    ) -> int:
        """Flag unread, non-deleted messages sender → receiver as read. Return count."""
        ...
