"""Local auth request/response schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from autogestao.schemas.tenant import PublicTenantResponse


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: str | None = None


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class SignOutRequest(BaseModel):
    refresh_token: str | None = None


class EmailRequest(BaseModel):
    email: EmailStr


class TokenRequest(BaseModel):
    token: str


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str = Field(min_length=8)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    name: str | None = None
    role: str
    email_verified: bool
    last_signed_in: datetime | None = None


class SessionResponse(BaseModel):
    """Sign-in / sign-up / refresh response; the token is also set as a cookie."""

    token: str
    refresh_token: str
    user: UserResponse


class MeResponse(BaseModel):
    """GET /v1/auth/me: the user plus their role in the resolved tenant."""

    user: UserResponse | None = None
    tenant_subdomain: str | None = None
    tenant_role: str | None = None


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    role: str
    is_active: bool
    tenant: PublicTenantResponse
