"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
from fastapi import WebSocketDisconnect

from direct_chat.application.dto.principal import Principal
from direct_chat.application.dto.upload import UploadSignature
from direct_chat.application.exceptions import ConflictError
from direct_chat.domain.entities.message import Message
from direct_chat.domain.entities.user import User
from direct_chat.infrastructure.auth.passwords import Pbkdf2Hasher

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_user(
    *,
    user_id: UUID | None = None,
    email: str | None = None,
    full_name: str = "Test User",
    password_hash: str = "",
) -> User:
    user_id = user_id or uuid.uuid4()
    return User(
        id=user_id,
        email=email or f"{user_id.hex[:8]}@example.com",
        full_name=full_name,
        password_hash=password_hash,
        profile_pic="",
        created_at=T0,
        updated_at=T0,
    )


def make_message(
    sender_id: UUID,
    receiver_id: UUID,
    *,
    text: str | None = "hello",
    image: str | None = None,
    created_at: datetime | None = None,
    client_msg_id: UUID | None = None,
    is_read: bool = False,
    is_deleted: bool = False,
) -> Message:
    created_at = created_at or datetime.now(timezone.utc)
    return Message(
        id=uuid.uuid4(),
        sender_id=sender_id,
        receiver_id=receiver_id,
        text=text,
        image=image,
        client_msg_id=client_msg_id,
        created_at=created_at,
        updated_at=created_at,
        is_read=is_read,
        is_deleted=is_deleted,
    )


def make_conversation(a: UUID, b: UUID, n: int, *, start: datetime = T0) -> list[Message]:
    """n messages alternating a→b / b→a, one second apart, oldest first."""
    return [
        make_message(
            a if i % 2 == 0 else b,
            b if i % 2 == 0 else a,
            text=f"m{i}",
            created_at=start + timedelta(seconds=i),
        )
        for i in range(n)
    ]


@pytest.fixture
def alice() -> User:
    return make_user(email="alice@example.com", full_name="Alice")


@pytest.fixture
def bob() -> User:
    return make_user(email="bob@example.com", full_name="Bob")


@pytest.fixture
def alice_principal(alice: User) -> Principal:
    return Principal(user_id=alice.id)


@pytest.fixture
def hasher() -> Pbkdf2Hasher:
    return Pbkdf2Hasher(iterations=1_000)


@dataclass
class FakeUserReader:
    _store: dict[UUID, User] = field(default_factory=dict)

    async def get_by_id(self, user_id: UUID) -> User | None:
        return self._store.get(user_id)

    async def get_by_email(self, email: str) -> User | None:
        for u in self._store.values():
            if u.email == email:
                return u
        return None

    async def list_except(self, user_id: UUID) -> list[User]:
        return sorted(
            (u for u in self._store.values() if u.id != user_id),
            key=lambda u: u.full_name,
        )


@dataclass
class FakeUserWriter:
    _reader: FakeUserReader

    async def create(self, user: User) -> User:
        if any(u.email == user.email for u in self._reader._store.values()):
            raise ConflictError("Email already exists")
        self._reader._store[user.id] = user
        return user

    async def update_profile_pic(self, user_id: UUID, url: str) -> User:
        user = replace(self._reader._store[user_id], profile_pic=url)
        self._reader._store[user_id] = user
        return user


@dataclass
class FakeMessageReader:
    _messages: list[Message] = field(default_factory=list)

    def _between(self, a: UUID, b: UUID) -> list[Message]:
        return [
            m for m in self._messages
            if (m.sender_id, m.receiver_id) in ((a, b), (b, a))
        ]

    async def get_by_id(self, message_id: UUID) -> Message | None:
        for m in self._messages:
            if m.id == message_id:
                return m
        return None

    async def get_by_client_msg_id(self, sender_id: UUID, client_msg_id: UUID) -> Message | None:
        for m in self._messages:
            if m.sender_id == sender_id and m.client_msg_id == client_msg_id:
                return m
        return None

    async def list_between(
        self, user_a: UUID, user_b: UUID, *, offset: int = 0, limit: int = 20,
    ) -> list[Message]:
        newest_first = sorted(self._between(user_a, user_b), key=lambda m: m.created_at, reverse=True)
        return newest_first[offset:offset + limit]

    async def count_between(self, user_a: UUID, user_b: UUID) -> int:
        return len(self._between(user_a, user_b))

    async def unread_counts(self, receiver_id: UUID) -> dict[UUID, int]:
        counts: dict[UUID, int] = {}
        for m in self._messages:
            if m.receiver_id == receiver_id and not m.is_read and not m.is_deleted:
                counts[m.sender_id] = counts.get(m.sender_id, 0) + 1
        return counts


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader

    async def create_if_not_exists(self, message: Message) -> tuple[Message, bool]:
        if message.client_msg_id is not None:
            for m in self._reader._messages:
                if m.sender_id == message.sender_id and m.client_msg_id == message.client_msg_id:
                    return m, False
        self._reader._messages.append(message)
        return message, True

    async def save(self, message: Message) -> Message:
        for i, m in enumerate(self._reader._messages):
            if m.id == message.id:
                self._reader._messages[i] = message
                return message
        raise KeyError(message.id)

    async def mark_read(self, sender_id: UUID, receiver_id: UUID, read_at: datetime) -> int:
        count = 0
        for i, m in enumerate(self._reader._messages):
            if (
                m.sender_id == sender_id
                and m.receiver_id == receiver_id
                and not m.is_read
                and not m.is_deleted
            ):
                self._reader._messages[i] = replace(m, is_read=True, read_at=read_at)
                count += 1
        return count


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    users: FakeUserReader = field(default_factory=FakeUserReader)
    users_w: FakeUserWriter | None = None
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    commits: int = 0

    def __post_init__(self) -> None:
        if self.users_w is None:
            self.users_w = FakeUserWriter(self.users)
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)

    def add_users(self, *users: User) -> None:
        for u in users:
            self.users._store[u.id] = u

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        pass


@dataclass
class FakeImageHost:
    uploaded: list[str] = field(default_factory=list)

    async def upload(self, data_uri: str) -> str:
        self.uploaded.append(data_uri)
        return f"https://img.example.com/chat_images/{len(self.uploaded)}.png"

    def sign_upload(self, timestamp: int) -> UploadSignature:
        return UploadSignature(
            signature=f"sig-{timestamp}",
            timestamp=timestamp,
            cloud_name="demo",
            api_key="123456",
            upload_preset="chat_app",
            folder="chat_images",
        )


class FakeWebSocket:
    """Stands in for a Starlette WebSocket: records what is sent, replays queued input."""

    def __init__(self, *, fail_sends: bool = False) -> None:
        self.sent: list[str] = []
        self.accepted = False
        self.close_code: int | None = None
        self.fail_sends = fail_sends
        self._inbox: asyncio.Queue[str | None] = asyncio.Queue()

    async def accept(self) -> None:
        self.accepted = True

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.close_code = code

    async def send_text(self, data: str) -> None:
        if self.fail_sends:
            raise RuntimeError("transport closed")
        self.sent.append(data)

    async def receive_text(self) -> str:
        item = await self._inbox.get()
        if item is None:
            raise WebSocketDisconnect(code=1000)
        return item

    def feed(self, raw: str) -> None:
        self._inbox.put_nowait(raw)

    def disconnect(self) -> None:
        self._inbox.put_nowait(None)
