"""FastAPI dependency injection helpers."""
from __future__ import annotations

from datetime import timedelta
from typing import Annotated, AsyncIterator

from fastapi import Depends
from fastapi.requests import HTTPConnection
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from direct_chat.application.dto.principal import Principal
from direct_chat.application.exceptions import UnauthorizedError
from direct_chat.application.ports.delivery import EventDelivery
from direct_chat.application.ports.images import ImageHost
from direct_chat.config import settings
from direct_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from direct_chat.infrastructure.auth.passwords import Pbkdf2Hasher
from direct_chat.infrastructure.db.session import AsyncSessionLocal
from direct_chat.infrastructure.db.uow import SqlAlchemyUoW

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with AsyncSessionLocal() as session, SqlAlchemyUoW(session) as uow:
        yield uow


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]


_verifier: HS256Verifier | None = None


def get_verifier() -> HS256Verifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = HS256Verifier(
            settings.JWT_SECRET,
            settings.JWT_ALGORITHM,
            timedelta(days=settings.JWT_EXPIRES_DAYS),
        )
    return _verifier


VerifierDep = Annotated[HS256Verifier, Depends(get_verifier)]


def get_hasher() -> Pbkdf2Hasher:
    return Pbkdf2Hasher()


HasherDep = Annotated[Pbkdf2Hasher, Depends(get_hasher)]


async def get_current_principal(
    conn: HTTPConnection,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> Principal:
    token = credentials.credentials if credentials else conn.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token:
        raise UnauthorizedError("Unauthorized - No Token Provided")
    try:
        return await get_verifier().verify(token)
    except Exception as exc:
        raise UnauthorizedError("Unauthorized - Invalid Token") from exc


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


def get_image_host(conn: HTTPConnection) -> ImageHost:
    return conn.app.state.image_host


ImageHostDep = Annotated[ImageHost, Depends(get_image_host)]


def get_event_router(conn: HTTPConnection) -> EventDelivery:
    return conn.app.state.event_router


EventRouterDep = Annotated[EventDelivery, Depends(get_event_router)]
