from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from direct_chat.application.exceptions import ConflictError
from direct_chat.infrastructure.db.repositories.user import UserWriterRepo
from direct_chat.services import auth_service
from tests.conftest import FakeUoW, make_user


class DuplicateEmailSession:
    """AsyncSession stand-in whose flush hits the unique email index."""

    def __init__(self) -> None:
        self.added: list[object] = []

    def add(self, model: object) -> None:
        self.added.append(model)

    async def flush(self) -> None:
        raise IntegrityError("INSERT INTO users", {}, Exception("duplicate key value"))


@pytest.mark.asyncio
async def test_create_maps_unique_violation_to_conflict():
    session = DuplicateEmailSession()

    with pytest.raises(ConflictError, match="Email already exists"):
        await UserWriterRepo(session).create(make_user())

    assert len(session.added) == 1


@pytest.mark.asyncio
async def test_signup_race_surfaces_conflict(hasher):
    uow = FakeUoW()
    uow.add_users(make_user(email="alice@example.com"))

    async def lookup_before_other_insert(email: str):
        return None

    # The existence check sees no row; the insert then collides
    uow.users.get_by_email = lookup_before_other_insert

    with pytest.raises(ConflictError, match="Email already exists"):
        await auth_service.signup("Alice", "alice@example.com", "secret1", hasher, uow)
    assert uow.commits == 0
