"""Auth and profile schemas (REST layer)."""

from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from fintrek.schemas.common import CamelModel, NonEmptyStr


class SignupRequest(CamelModel):
    email: EmailStr
    password: Annotated[str, Field(min_length=6, max_length=72)]
    first_name: NonEmptyStr
    last_name: NonEmptyStr

    @field_validator("email")
    def normalize_email(cls, v):
        return v.lower()


class LoginRequest(CamelModel):
    email: EmailStr
    password: Annotated[str, Field(min_length=1)]

    @field_validator("email")
    def normalize_email(cls, v):
        return v.lower()


class RefreshRequest(CamelModel):
    refresh_token: Annotated[str, Field(min_length=1)]


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str


class AuthUser(CamelModel):
    uid: UUID
    email: str
    first_name: str
    last_name: str


class AuthResponse(CamelModel):
    message: str
    user: AuthUser
    tokens: TokenPair


class TokensResponse(CamelModel):
    tokens: TokenPair


class ProfileOut(CamelModel):
    uid: UUID
    email: str
    first_name: str
    last_name: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileEnvelope(CamelModel):
    profile: ProfileOut


class ProfileUpdate(CamelModel):
    first_name: Optional[NonEmptyStr] = None
    last_name: Optional[NonEmptyStr] = None
    avatar_url: Optional[str] = None
