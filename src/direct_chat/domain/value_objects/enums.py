from __future__ import annotations

from enum import StrEnum


class ConnectionState(StrEnum):
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    ACTIVE = "active"
    CLOSED = "closed"


class DeliveryResult(StrEnum):
    DELIVERED = "delivered"
    OFFLINE = "offline"


class PushEvent(StrEnum):
    """Server → client event names."""

    NEW_MESSAGE = "newMessage"
    MESSAGE_EDITED = "messageEdited"
    MESSAGE_DELETED = "messageDeleted"
    MESSAGES_READ = "messagesRead"
    USER_TYPING = "userTyping"
    ONLINE_USERS = "getOnlineUsers"
    PONG = "pong"
    ERROR = "error"


class ClientEvent(StrEnum):
    """Client → server event names."""

    TYPING = "typing"
    STOP_TYPING = "stopTyping"
    PING = "ping"
