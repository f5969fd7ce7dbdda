from __future__ import annotations

import math
from dataclasses import dataclass, field
from uuid import UUID

from direct_chat.domain.entities.message import Message


@dataclass(frozen=True, slots=True)
class SendMessageDTO:
    receiver_id: UUID
    text: str | None = None
    image: str | None = None
    client_msg_id: UUID | None = None


@dataclass(frozen=True, slots=True)
class Pagination:
    current_page: int
    total_pages: int
    total_messages: int
    has_more: bool

    @classmethod
    def compute(cls, page: int, limit: int, returned: int, total: int) -> Pagination:
        skip = (page - 1) * limit
        return cls(
            current_page=page,
            total_pages=math.ceil(total / limit),
            total_messages=total,
            has_more=skip + returned < total,
        )


@dataclass(frozen=True, slots=True)
class MessagePage:
    """One page of a conversation, oldest first."""

    messages: list[Message] = field(default_factory=list)
    pagination: Pagination | None = None


@dataclass(frozen=True, slots=True)
class ReadReceipt:
    read_by: UUID
    sender_id: UUID
    marked_count: int
