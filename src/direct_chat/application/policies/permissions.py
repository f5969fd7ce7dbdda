from __future__ import annotations

from direct_chat.application.dto.principal import Principal
from direct_chat.application.exceptions import ForbiddenError, MessageDeletedError, NotFoundError
from direct_chat.domain.entities.message import Message


def assert_message_owner(
    principal: Principal,
    message: Message | None,
    action: str,
) -> Message:
    """Raise unless message exists, belongs to principal and is not deleted."""
    if message is None:
        raise NotFoundError("Message not found")

    # Only the sender may modify a message
    if message.sender_id != principal.user_id:
        raise ForbiddenError(f"Not authorized to {action} this message")

    if message.is_deleted:
        if action == "delete":
            raise MessageDeletedError("Message already deleted")
        raise MessageDeletedError(f"Cannot {action} deleted message")

    return message
