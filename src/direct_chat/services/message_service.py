from __future__ import annotations

import uuid
from datetime import datetime, timezone

from direct_chat.application.dto.message import (
    MessagePage,
    Pagination,
    ReadReceipt,
    SendMessageDTO,
)
from direct_chat.application.dto.principal import Principal
from direct_chat.application.exceptions import ConflictError, NotFoundError, ValidationError
from direct_chat.application.policies.permissions import assert_message_owner
from direct_chat.application.ports.images import ImageHost
from direct_chat.application.uow import UnitOfWork
from direct_chat.domain.entities.message import Message
from direct_chat.domain.entities.user import User
from direct_chat.services.upload_service import resolve_image


async def list_users(principal: Principal, uow: UnitOfWork) -> list[User]:
    return await uow.users.list_except(principal.user_id)


async def _require_user(user_id: uuid.UUID, uow: UnitOfWork) -> User:
    user = await uow.users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def list_messages(
    principal: Principal,
    other_user_id: uuid.UUID,
    page: int,
    limit: int,
    uow: UnitOfWork,
) -> MessagePage:
    """Return one page of the conversation with other_user_id.

    Page 1 holds the newest messages; within a page messages are oldest first.
    """
    await _require_user(other_user_id, uow)
    newest_first = await uow.messages.list_between(
        principal.user_id, other_user_id, offset=(page - 1) * limit, limit=limit,
    )
    total = await uow.messages.count_between(principal.user_id, other_user_id)
    return MessagePage(
        messages=list(reversed(newest_first)),
        pagination=Pagination.compute(page, limit, len(newest_first), total),
    )


async def send_message(
    principal: Principal,
    dto: SendMessageDTO,
    images: ImageHost,
    uow: UnitOfWork,
) -> tuple[Message, bool]:
    """Create a message idempotently.

    Returns (message, created). If the sender already used dto.client_msg_id
    the existing message is returned with created=False, before any image
    is uploaded.
    """
    text = dto.text.strip() if dto.text else ""
    if not text and not dto.image:
        raise ValidationError("Message must contain text or an image")

    if dto.client_msg_id is not None:
        existing = await uow.messages.get_by_client_msg_id(principal.user_id, dto.client_msg_id)
        if existing is not None:
            return _replayed(existing, dto), False

    await _require_user(dto.receiver_id, uow)

    image_url = await resolve_image(dto.image, images) if dto.image else None

    now = datetime.now(timezone.utc)
    msg = Message(
        id=uuid.uuid4(),
        sender_id=principal.user_id,
        receiver_id=dto.receiver_id,
        text=text or None,
        image=image_url,
        client_msg_id=dto.client_msg_id,
        created_at=now,
        updated_at=now,
    )

    msg, created = await uow.messages_w.create_if_not_exists(msg)
    if not created:
        return _replayed(msg, dto), False
    await uow.commit()
    return msg, True


def _replayed(existing: Message, dto: SendMessageDTO) -> Message:
    if existing.receiver_id != dto.receiver_id:
        raise ConflictError("clientMsgId already used for another conversation")
    return existing


async def mark_read(
    principal: Principal,
    sender_id: uuid.UUID,
    uow: UnitOfWork,
) -> ReadReceipt:
    """Mark everything sender_id sent to the caller as read."""
    count = await uow.messages_w.mark_read(
        sender_id, principal.user_id, datetime.now(timezone.utc),
    )
    await uow.commit()
    return ReadReceipt(read_by=principal.user_id, sender_id=sender_id, marked_count=count)


async def unread_counts(principal: Principal, uow: UnitOfWork) -> dict[uuid.UUID, int]:
    return await uow.messages.unread_counts(principal.user_id)


async def edit_message(
    principal: Principal,
    message_id: uuid.UUID,
    text: str,
    uow: UnitOfWork,
) -> Message:
    text = text.strip()
    if not text:
        raise ValidationError("Message text cannot be empty")

    message = await uow.messages.get_by_id(message_id)
    message = assert_message_owner(principal, message, "edit")

    message = await uow.messages_w.save(message.edited(text, datetime.now(timezone.utc)))
    await uow.commit()
    return message


async def delete_message(
    principal: Principal,
    message_id: uuid.UUID,
    uow: UnitOfWork,
) -> Message:
    message = await uow.messages.get_by_id(message_id)
    message = assert_message_owner(principal, message, "delete")

    message = await uow.messages_w.save(message.soft_deleted(datetime.now(timezone.utc)))
    await uow.commit()
    return message
