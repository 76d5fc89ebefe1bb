# ---------------------------------------------------------------------------
# Project : rasta
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the user endpoints."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from rasta.models.user import AccountType, RegionType


# -- Envelopes -------------------------------------------------------------


class SuccessResponse(BaseModel):
    status: str = "success"
    data: Any = None


class ErrorResponse(BaseModel):
    status: str = "error"
    message: str


# -- Requests --------------------------------------------------------------


class SignupRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=64)
    last_name: str = Field(min_length=1, max_length=64)
    username: str = Field(max_length=64)
    email: str = Field(max_length=128)
    password: str
    region: RegionType


class LoginRequest(BaseModel):
    # username or email
    username: str
    password: str = Field(min_length=8)
    otp: str | None = None


class EmailRequest(BaseModel):
    email: str


class VerifyEmailRequest(BaseModel):
    otp: str = Field(min_length=8, max_length=8)


class ResetPasswordRequest(BaseModel):
    otp: str = Field(min_length=8, max_length=8)
    new_password1: str
    new_password2: str


class UpdatePasswordRequest(BaseModel):
    old_password: str
    new_password1: str
    new_password2: str


class UpdateProfileRequest(BaseModel):
    username: str | None = None
    region: RegionType | None = None


class OAuthCodeRequest(BaseModel):
    oauth: str = Field(min_length=6, max_length=6)


# -- Responses -------------------------------------------------------------


class OAuthStatus(BaseModel):
    enabled: bool


class UserPublic(BaseModel):
    """What anyone with a token may see about an account."""

    id: uuid.UUID
    first_name: str
    last_name: str
    username: str
    account: AccountType
    region: RegionType
    created_at: datetime

    model_config = {"from_attributes": True}


class UserPrivate(UserPublic):
    """The account owner's (and an admin's) view."""

    email: str
    is_verified: bool
    is_disabled: bool
    updated_at: datetime
    oauth: OAuthStatus

    @classmethod
    def from_user(cls, user) -> "UserPrivate":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            username=user.username,
            account=user.account,
            region=user.region,
            created_at=user.created_at,
            email=user.email,
            is_verified=user.is_verified,
            is_disabled=user.is_disabled,
            updated_at=user.updated_at,
            oauth=OAuthStatus(enabled=user.oauth_enabled),
        )


class LoginResponse(BaseModel):
    status: str = "success"
    user: UserPublic
    token: str


class OAuthSecretResponse(BaseModel):
    secret: str
    url: str
