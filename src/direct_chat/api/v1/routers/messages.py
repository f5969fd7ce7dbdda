from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Query

from direct_chat.api.deps import CurrentPrincipal, EventRouterDep, ImageHostDep, UoWDep
from direct_chat.api.v1.schemas.common import Envelope
from direct_chat.api.v1.schemas.message import (
    EditMessageRequest,
    MarkReadResponse,
    MessagePageResponse,
    MessageResponse,
    SendMessageRequest,
)
from direct_chat.api.v1.schemas.user import UserResponse
from direct_chat.application.dto.message import SendMessageDTO
from direct_chat.config import settings
from direct_chat.domain.entities.message import Message
from direct_chat.domain.value_objects.enums import PushEvent
from direct_chat.services import message_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/messages", tags=["messages"])


def _wire(message: Message) -> dict[str, Any]:
    return MessageResponse.model_validate(message).model_dump(mode="json", by_alias=True)


# Static routes before /{user_id}
@router.get("/users", response_model=list[UserResponse])
async def list_users(principal: CurrentPrincipal, uow: UoWDep) -> list[UserResponse]:
    users = await message_service.list_users(principal, uow)
    return [UserResponse.model_validate(u) for u in users]


@router.get("/unread/all", response_model=Envelope[dict[str, int]])
async def unread_counts(principal: CurrentPrincipal, uow: UoWDep) -> Envelope[dict[str, int]]:
    counts = await message_service.unread_counts(principal, uow)
    return Envelope(data={str(sender_id): n for sender_id, n in counts.items()})


@router.get("/{user_id}", response_model=Envelope[MessagePageResponse])
async def list_messages(
    user_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    page: int = Query(1, gt=0),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, gt=0, le=settings.MAX_PAGE_SIZE),
) -> Envelope[MessagePageResponse]:
    result = await message_service.list_messages(principal, user_id, page, limit, uow)
    return Envelope(data=MessagePageResponse.model_validate(result))


@router.post("/send/{receiver_id}", response_model=MessageResponse, status_code=201)
async def send_message(
    receiver_id: UUID,
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    images: ImageHostDep,
    events: EventRouterDep,
) -> MessageResponse:
    msg, created = await message_service.send_message(
        principal,
        SendMessageDTO(
            receiver_id=receiver_id,
            text=body.text,
            image=body.image,
            client_msg_id=body.client_msg_id,
        ),
        images,
        uow,
    )
    if created:
        result = await events.deliver(receiver_id, PushEvent.NEW_MESSAGE, _wire(msg))
        logger.debug("newMessage %s -> %s: %s", msg.id, receiver_id, result)
    return MessageResponse.model_validate(msg)


@router.put("/read/{sender_id}", response_model=Envelope[MarkReadResponse])
async def mark_read(
    sender_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    events: EventRouterDep,
) -> Envelope[MarkReadResponse]:
    receipt = await message_service.mark_read(principal, sender_id, uow)
    await events.deliver(
        sender_id,
        PushEvent.MESSAGES_READ,
        {"readBy": str(receipt.read_by), "count": receipt.marked_count},
    )
    return Envelope(data=MarkReadResponse(marked_count=receipt.marked_count))


@router.put("/edit/{message_id}", response_model=Envelope[MessageResponse])
async def edit_message(
    message_id: UUID,
    body: EditMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    events: EventRouterDep,
) -> Envelope[MessageResponse]:
    msg = await message_service.edit_message(principal, message_id, body.text, uow)
    await events.deliver(msg.receiver_id, PushEvent.MESSAGE_EDITED, _wire(msg))
    return Envelope(data=MessageResponse.model_validate(msg))


@router.delete("/{message_id}", response_model=Envelope[MessageResponse])
async def delete_message(
    message_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    events: EventRouterDep,
) -> Envelope[MessageResponse]:
    msg = await message_service.delete_message(principal, message_id, uow)
    await events.deliver(msg.receiver_id, PushEvent.MESSAGE_DELETED, {"messageId": str(msg.id)})
    return Envelope(data=MessageResponse.model_validate(msg))
