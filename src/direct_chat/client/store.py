"""Client-side message list for the active conversation.

Three sources feed the list: local optimistic sends, REST responses that
confirm or reject them, and events pushed by the server. They may interleave
in any order; each logical message stays visible exactly once.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Protocol
from uuid import UUID

from direct_chat.api.v1.schemas.message import MessagePageResponse, MessageResponse
from direct_chat.client.models import MessageView
from direct_chat.domain.value_objects.enums import PushEvent

logger = logging.getLogger(__name__)


class MessageApi(Protocol):
    async def get_messages(
        self, user_id: UUID, *, page: int = 1, limit: int = 20,
    ) -> MessagePageResponse: ...

    async def send_message(
        self,
        receiver_id: UUID,
        *,
        text: str | None = None,
        image: str | None = None,
        client_msg_id: UUID | None = None,
    ) -> MessageResponse: ...


class SendFailedError(Exception):
    """A send was rejected or never reached the server; its pending entry is gone."""


class NoActiveConversationError(Exception):
    pass


class ConversationStore:
    def __init__(
        self,
        api: MessageApi,
        me: UUID,
        *,
        page_size: int = 20,
        correlation_ids: Callable[[], UUID] = uuid.uuid4,
    ) -> None:
        self._api = api
        self._me = me
        self._page_size = page_size
        self._correlation_ids = correlation_ids
        self._page = 0

        self.active_partner: UUID | None = None
        self.messages: list[MessageView] = []
        self.typing: dict[str, bool] = {}
        self.online_users: set[str] = set()
        self.unread_counts: dict[str, int] = {}
        self.has_more = False

    # queries

    def _index_of_id(self, message_id: UUID) -> int | None:
        for i, view in enumerate(self.messages):
            if view.id == message_id:
                return i
        return None

    def _index_of_correlation(self, correlation_id: str) -> int | None:
        for i, view in enumerate(self.messages):
            if view.correlation_id == correlation_id:
                return i
        return None

    def is_typing(self, user_id: UUID | str) -> bool:
        return self.typing.get(str(user_id), False)

    def is_online(self, user_id: UUID | str) -> bool:
        return str(user_id) in self.online_users

    # conversation lifecycle

    async def switch_conversation(self, user_id: UUID) -> None:
        """Drop everything about the previous conversation and load the newest page."""
        self.active_partner = user_id
        self.messages = []
        self.typing = {}
        self.has_more = False
        self._page = 0
        self.unread_counts.pop(str(user_id), None)
        await self.load_older()

    async def load_older(self) -> int:
        """Fetch the next (older) page and put it in front. Returns how many entries were added."""
        partner = self.active_partner
        if partner is None:
            raise NoActiveConversationError("No conversation selected")

        page = await self._api.get_messages(partner, page=self._page + 1, limit=self._page_size)
        if self.active_partner != partner:
            # Switched away while the page was in flight
            return 0

        self._page += 1
        self.has_more = page.pagination.has_more
        older = [
            MessageView.confirmed(record)
            for record in page.messages
            if self._index_of_id(record.id) is None
        ]
        self.messages[0:0] = older
        return len(older)

    # optimistic send

    async def send(self, text: str | None = None, image: str | None = None) -> MessageView:
        partner = self.active_partner
        if partner is None:
            raise NoActiveConversationError("No conversation selected")

        correlation_id = self._correlation_ids()
        key = str(correlation_id)
        self.messages.append(MessageView.pending(key, self._me, partner, text, image))

        try:
            record = await self._api.send_message(
                partner, text=text, image=image, client_msg_id=correlation_id,
            )
        except Exception as exc:
            idx = self._index_of_correlation(key)
            if idx is not None:
                del self.messages[idx]
            logger.warning("Send to %s failed: %s", partner, exc)
            raise SendFailedError(str(exc)) from exc

        return self._confirm(key, record)

    def _confirm(self, correlation_id: str, record: MessageResponse) -> MessageView:
        """Swap the pending entry for the server record, in place."""
        pending_idx = self._index_of_correlation(correlation_id)
        existing_idx = self._index_of_id(record.id)

        if existing_idx is not None:
            # The canonical record got here first; the pending twin goes
            if pending_idx is not None and pending_idx != existing_idx:
                del self.messages[pending_idx]
                existing_idx = self._index_of_id(record.id)
            return self.messages[existing_idx]

        confirmed = MessageView.confirmed(record, correlation_id=correlation_id)
        if pending_idx is not None:
            self.messages[pending_idx] = confirmed
        return confirmed

    # push events

    def on_new_message(self, data: dict[str, Any] | MessageResponse) -> bool:
        """Merge a pushed message. Returns True if the visible list changed."""
        record = MessageResponse.model_validate(data)
        if record.sender_id != self.active_partner:
            if record.receiver_id == self._me:
                key = str(record.sender_id)
                self.unread_counts[key] = self.unread_counts.get(key, 0) + 1
            return False

        if self._index_of_id(record.id) is not None:
            return False

        if record.client_msg_id is not None:
            key = str(record.client_msg_id)
            if self._index_of_correlation(key) is not None:
                self._confirm(key, record)
                return True

        self._insert_by_time(MessageView.confirmed(record))
        return True

    def _insert_by_time(self, view: MessageView) -> None:
        # Walk back from the tail; equal timestamps keep arrival order
        i = len(self.messages)
        while i > 0 and self.messages[i - 1].created_at > view.created_at:
            i -= 1
        self.messages.insert(i, view)

    def on_message_edited(self, data: dict[str, Any] | MessageResponse) -> bool:
        record = MessageResponse.model_validate(data)
        idx = self._index_of_id(record.id)
        if idx is None:
            return False
        self.messages[idx] = self.messages[idx].updated_from(record)
        return True

    def on_message_deleted(self, data: dict[str, Any]) -> bool:
        idx = self._index_of_id(UUID(str(data["messageId"])))
        if idx is None:
            return False
        self.messages[idx] = replace(
            self.messages[idx],
            text=None,
            image=None,
            is_deleted=True,
            deleted_at=datetime.now(timezone.utc),
        )
        return True

    def on_messages_read(self, data: dict[str, Any]) -> int:
        """The partner read what we sent them. Returns how many entries flipped."""
        read_by = UUID(str(data["readBy"]))
        if read_by != self.active_partner:
            return 0
        flipped = 0
        for i, view in enumerate(self.messages):
            if view.sender_id == self._me and view.id is not None and not view.is_read:
                self.messages[i] = replace(view, is_read=True)
                flipped += 1
        return flipped

    def on_typing(self, data: dict[str, Any]) -> None:
        self.typing[str(data["senderId"])] = bool(data["isTyping"])

    def on_online_users(self, user_ids: list[str]) -> None:
        self.online_users = {str(u) for u in user_ids}

    def handle_event(self, event: str, data: Any) -> None:
        """Apply one pushed envelope. Unknown events are ignored."""
        handler = {
            PushEvent.NEW_MESSAGE: self.on_new_message,
            PushEvent.MESSAGE_EDITED: self.on_message_edited,
            PushEvent.MESSAGE_DELETED: self.on_message_deleted,
            PushEvent.MESSAGES_READ: self.on_messages_read,
            PushEvent.USER_TYPING: self.on_typing,
            PushEvent.ONLINE_USERS: self.on_online_users,
        }.get(event)
        if handler is None:
            logger.debug("Ignoring push event %s", event)
            return
        handler(data)

