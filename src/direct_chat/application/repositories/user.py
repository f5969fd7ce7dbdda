from __future__ import annotations

from typing import Protocol
from uuid import UUID

from direct_chat.domain.entities.user import User


class UserReader(Protocol):
    async def get_by_id(self, user_id: UUID) -> User | None: ...

    async def get_by_email(self, email: str) -> User | None: ...

    async def list_except(self, user_id: UUID) -> list[User]: ...


class UserWriter(Protocol):
    async def create(self, user: User) -> User:
        """Insert user. Raises ConflictError if the email is already taken."""
        ...

    async def update_profile_pic(self, user_id: UUID, url: str) -> User: ...
