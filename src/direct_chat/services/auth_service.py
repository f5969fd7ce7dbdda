from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from uuid import UUID

from direct_chat.application.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
)
from direct_chat.application.ports.auth import PasswordHasher
from direct_chat.application.ports.images import ImageHost
from direct_chat.application.uow import UnitOfWork
from direct_chat.domain.entities.user import User
from direct_chat.services.upload_service import resolve_image


async def signup(
    full_name: str,
    email: str,
    password: str,
    hasher: PasswordHasher,
    uow: UnitOfWork,
) -> User:
    email = email.lower()
    if await uow.users.get_by_email(email) is not None:
        raise ConflictError("Email already exists")

    # PBKDF2 is CPU-bound; run it off the event loop
    password_hash = await asyncio.to_thread(hasher.hash, password)
    now = datetime.now(timezone.utc)
    user = User(
        id=uuid.uuid4(),
        email=email,
        full_name=full_name,
        password_hash=password_hash,
        profile_pic="",
        created_at=now,
        updated_at=now,
    )
    user = await uow.users_w.create(user)
    await uow.commit()
    return user


async def login(
    email: str,
    password: str,
    hasher: PasswordHasher,
    uow: UnitOfWork,
) -> User:
    user = await uow.users.get_by_email(email.lower())
    if user is None:
        raise InvalidCredentialsError()
    if not await asyncio.to_thread(hasher.verify, password, user.password_hash):
        raise InvalidCredentialsError()
    return user


async def get_user(user_id: UUID, uow: UnitOfWork) -> User:
    user = await uow.users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def update_profile_pic(
    user_id: UUID,
    profile_pic: str,
    images: ImageHost,
    uow: UnitOfWork,
) -> User:
    await get_user(user_id, uow)
    url = await resolve_image(profile_pic, images)
    user = await uow.users_w.update_profile_pic(user_id, url)
    await uow.commit()
    return user
