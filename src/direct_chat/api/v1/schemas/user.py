from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field

from direct_chat.api.v1.schemas.common import CamelModel


class SignupRequest(CamelModel):
    full_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UpdateProfileRequest(CamelModel):
    profile_pic: str = Field(min_length=1)


class UserResponse(CamelModel):
    id: UUID
    email: str
    full_name: str
    profile_pic: str
    created_at: datetime
    updated_at: datetime
