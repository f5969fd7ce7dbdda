from __future__ import annotations

from typing import Any

from direct_chat.domain.entities.message import Message
from direct_chat.infrastructure.db.models.message import MessageModel

_COLUMNS = (
    "id",
    "sender_id",
    "receiver_id",
    "text",
    "image",
    "client_msg_id",
    "is_read",
    "read_at",
    "is_edited",
    "edited_at",
    "is_deleted",
    "deleted_at",
    "created_at",
    "updated_at",
)


def model_to_entity(model: MessageModel) -> Message:
    return Message(**{name: getattr(model, name) for name in _COLUMNS})


def entity_to_values(entity: Message) -> dict[str, Any]:
    """Column values for INSERT/UPDATE statements."""
    return {name: getattr(entity, name) for name in _COLUMNS}
