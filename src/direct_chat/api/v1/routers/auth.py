from __future__ import annotations

from fastapi import APIRouter, Response

from direct_chat.api.deps import (
    CurrentPrincipal,
    HasherDep,
    ImageHostDep,
    UoWDep,
    VerifierDep,
)
from direct_chat.api.v1.schemas.user import (
    LoginRequest,
    SignupRequest,
    UpdateProfileRequest,
    UserResponse,
)
from direct_chat.config import settings
from direct_chat.domain.entities.user import User
from direct_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from direct_chat.services import auth_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _set_auth_cookie(response: Response, user: User, verifier: HS256Verifier) -> None:
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        verifier.issue(user.id),
        max_age=settings.JWT_EXPIRES_DAYS * 24 * 60 * 60,
        httponly=True,
        samesite="strict",
        secure=settings.AUTH_COOKIE_SECURE,
    )


@router.post("/signup", response_model=UserResponse, status_code=201)
async def signup(
    body: SignupRequest,
    response: Response,
    uow: UoWDep,
    hasher: HasherDep,
    verifier: VerifierDep,
) -> UserResponse:
    user = await auth_service.signup(body.full_name, body.email, body.password, hasher, uow)
    _set_auth_cookie(response, user, verifier)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=UserResponse)
async def login(
    body: LoginRequest,
    response: Response,
    uow: UoWDep,
    hasher: HasherDep,
    verifier: VerifierDep,
) -> UserResponse:
    user = await auth_service.login(body.email, body.password, hasher, uow)
    _set_auth_cookie(response, user, verifier)
    return UserResponse.model_validate(user)


@router.post("/logout")
async def logout(response: Response) -> dict[str, str]:
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return {"message": "Logged out successfully"}


@router.put("/update-profile", response_model=UserResponse)
async def update_profile(
    body: UpdateProfileRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    images: ImageHostDep,
) -> UserResponse:
    user = await auth_service.update_profile_pic(
        principal.user_id, body.profile_pic, images, uow,
    )
    return UserResponse.model_validate(user)


@router.get("/check", response_model=UserResponse)
async def check(principal: CurrentPrincipal, uow: UoWDep) -> UserResponse:
    user = await auth_service.get_user(principal.user_id, uow)
    return UserResponse.model_validate(user)
