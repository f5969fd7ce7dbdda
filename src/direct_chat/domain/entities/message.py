from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    sender_id: UUID
    receiver_id: UUID
    text: str | None
    image: str | None
    client_msg_id: UUID | None
    created_at: datetime
    updated_at: datetime
    is_read: bool = False
    read_at: datetime | None = None
    is_edited: bool = False
    edited_at: datetime | None = None
    is_deleted: bool = False
    deleted_at: datetime | None = None

    def edited(self, text: str, at: datetime) -> Message:
        return replace(self, text=text, is_edited=True, edited_at=at, updated_at=at)

    def soft_deleted(self, at: datetime) -> Message:
        """Content is cleared; the record itself is kept."""
        return replace(
            self,
            text=None,
            image=None,
            is_deleted=True,
            deleted_at=at,
            updated_at=at,
        )
