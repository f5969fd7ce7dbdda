from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field, model_validator

from direct_chat.api.v1.schemas.common import CamelModel


class SendMessageRequest(CamelModel):
    text: str | None = None
    image: str | None = None
    client_msg_id: UUID | None = None

    @model_validator(mode="after")
    def _has_content(self) -> SendMessageRequest:
        if not self.text and not self.image:
            raise ValueError("Message must contain either text or image")
        return self


class EditMessageRequest(CamelModel):
    text: str = Field(min_length=1)


class MessageResponse(CamelModel):
    id: UUID
    sender_id: UUID
    receiver_id: UUID
    text: str | None
    image: str | None
    client_msg_id: UUID | None = None
    is_read: bool = False
    read_at: datetime | None = None
    is_edited: bool = False
    edited_at: datetime | None = None
    is_deleted: bool = False
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None


class PaginationResponse(CamelModel):
    current_page: int
    total_pages: int
    total_messages: int
    has_more: bool


class MessagePageResponse(CamelModel):
    messages: list[MessageResponse]
    pagination: PaginationResponse


class MarkReadResponse(CamelModel):
    marked_count: int
