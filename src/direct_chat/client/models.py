from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import StrEnum
from uuid import UUID

from direct_chat.api.v1.schemas.message import MessageResponse


class MessageState(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"


@dataclass(frozen=True, slots=True)
class MessageView:
    """A message as the client shows it.

    ``correlation_id`` is generated locally before the server assigns ``id``;
    it is sent along as ``clientMsgId`` so pushes and responses can be matched.
    """

    correlation_id: str
    sender_id: UUID
    receiver_id: UUID
    created_at: datetime
    text: str | None = None
    image: str | None = None
    state: MessageState = MessageState.CONFIRMED
    id: UUID | None = None
    is_read: bool = False
    read_at: datetime | None = None
    is_edited: bool = False
    edited_at: datetime | None = None
    is_deleted: bool = False
    deleted_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.state == MessageState.PENDING

    @classmethod
    def pending(
        cls,
        correlation_id: str,
        sender_id: UUID,
        receiver_id: UUID,
        text: str | None,
        image: str | None,
    ) -> MessageView:
        return cls(
            correlation_id=correlation_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            created_at=datetime.now(timezone.utc),
            text=text,
            image=image,
            state=MessageState.PENDING,
        )

    @classmethod
    def confirmed(cls, record: MessageResponse, correlation_id: str | None = None) -> MessageView:
        if correlation_id is None:
            correlation_id = str(record.client_msg_id or record.id)
        return cls(
            correlation_id=correlation_id,
            sender_id=record.sender_id,
            receiver_id=record.receiver_id,
            created_at=record.created_at,
            text=record.text,
            image=record.image,
            state=MessageState.CONFIRMED,
            id=record.id,
            is_read=record.is_read,
            read_at=record.read_at,
            is_edited=record.is_edited,
            edited_at=record.edited_at,
            is_deleted=record.is_deleted,
            deleted_at=record.deleted_at,
        )

    def updated_from(self, record: MessageResponse) -> MessageView:
        """Apply server-side changes (edit, delete, read) keeping local identity."""
        return replace(
            MessageView.confirmed(record, correlation_id=self.correlation_id),
            created_at=self.created_at,
        )
