from __future__ import annotations

import asyncio
import threading
import uuid
from dataclasses import replace

import pytest

from direct_chat.application.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from direct_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from direct_chat.infrastructure.auth.passwords import Pbkdf2Hasher
from direct_chat.services import auth_service
from tests.conftest import FakeImageHost, FakeUoW


@pytest.mark.asyncio
async def test_signup_stores_hashed_password(hasher):
    uow = FakeUoW()

    user = await auth_service.signup("Alice", "Alice@Example.com", "secret1", hasher, uow)

    assert user.email == "alice@example.com"
    assert user.password_hash != "secret1"
    assert hasher.verify("secret1", user.password_hash)
    assert uow.commits == 1
    assert await uow.users.get_by_email("alice@example.com") == user


@pytest.mark.asyncio
async def test_signup_duplicate_email(hasher):
    uow = FakeUoW()
    await auth_service.signup("Alice", "alice@example.com", "secret1", hasher, uow)

    with pytest.raises(ConflictError, match="Email already exists"):
        await auth_service.signup("Other", "ALICE@example.com", "secret2", hasher, uow)


@pytest.mark.asyncio
async def test_login(hasher):
    uow = FakeUoW()
    created = await auth_service.signup("Alice", "alice@example.com", "secret1", hasher, uow)

    user = await auth_service.login("alice@example.com", "secret1", hasher, uow)

    assert user.id == created.id


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "email,password",
    [("alice@example.com", "wrong-password"), ("nobody@example.com", "secret1")],
)
async def test_login_invalid_credentials(hasher, email, password):
    uow = FakeUoW()
    await auth_service.signup("Alice", "alice@example.com", "secret1", hasher, uow)

    with pytest.raises(ValidationError, match="Invalid credentials"):
        await auth_service.login(email, password, hasher, uow)


@pytest.mark.asyncio
async def test_get_user_missing():
    with pytest.raises(NotFoundError):
        await auth_service.get_user(uuid.uuid4(), FakeUoW())


@pytest.mark.asyncio
async def test_update_profile_pic_uploads_data_uri(hasher):
    uow = FakeUoW()
    images = FakeImageHost()
    user = await auth_service.signup("Alice", "alice@example.com", "secret1", hasher, uow)

    updated = await auth_service.update_profile_pic(
        user.id, "data:image/jpeg;base64,/9j/4AAQ", images, uow,
    )

    assert updated.profile_pic == "https://img.example.com/chat_images/1.png"
    assert (await uow.users.get_by_id(user.id)).profile_pic == updated.profile_pic


def test_password_hasher_rejects_foreign_encoding(hasher):
    assert hasher.verify("secret1", "bcrypt$whatever") is False
    assert hasher.verify("secret1", "not-encoded") is False


def test_password_hash_is_salted(hasher):
    assert hasher.hash("secret1") != hasher.hash("secret1")


@pytest.mark.asyncio
async def test_token_round_trip():
    verifier = HS256Verifier("k" * 32)
    user_id = uuid.uuid4()

    principal = await verifier.verify(verifier.issue(user_id))

    assert principal.user_id == user_id


class ThreadRecordingHasher:
    """Pbkdf2Hasher wrapper that records which thread did the hashing."""

    def __init__(self, inner):
        self._inner = inner
        self.threads: list[int] = []

    def hash(self, password: str) -> str:
        self.threads.append(threading.get_ident())
        return self._inner.hash(password)

    def verify(self, password: str, encoded: str) -> bool:
        self.threads.append(threading.get_ident())
        return self._inner.verify(password, encoded)


@pytest.mark.asyncio
async def test_password_hashing_runs_off_the_event_loop(hasher):
    uow = FakeUoW()
    recording = ThreadRecordingHasher(hasher)
    loop_thread = threading.get_ident()

    await auth_service.signup("Alice", "alice@example.com", "secret1", recording, uow)
    await auth_service.login("alice@example.com", "secret1", recording, uow)

    assert len(recording.threads) == 2
    assert loop_thread not in recording.threads


@pytest.mark.asyncio
async def test_signup_keeps_event_loop_responsive():
    uow = FakeUoW()
    slow = Pbkdf2Hasher(iterations=200_000)
    ticks = 0

    async def ticker() -> None:
        nonlocal ticks
        while True:
            ticks += 1
            await asyncio.sleep(0)

    task = asyncio.create_task(ticker())
    try:
        await auth_service.signup("Alice", "alice@example.com", "secret1", slow, uow)
    finally:
        task.cancel()

    assert ticks > 1


@pytest.mark.parametrize(
    "encoded",
    [
        "pbkdf2_sha256$abc$salt$digest",
        "pbkdf2_sha256$$salt$digest",
        "pbkdf2_sha256$0$salt$digest",
        "pbkdf2_sha256$-5$salt$digest",
    ],
)
def test_password_hasher_rejects_malformed_iterations(hasher, encoded):
    assert hasher.verify("secret1", encoded) is False


@pytest.mark.asyncio
async def test_login_with_corrupt_stored_hash_is_invalid_credentials(hasher, alice):
    uow = FakeUoW()
    uow.add_users(replace(alice, password_hash="pbkdf2_sha256$lots$salt$digest"))

    with pytest.raises(InvalidCredentialsError):
        await auth_service.login(alice.email, "secret1", hasher, uow)
