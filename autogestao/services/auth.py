"""Local email/password authentication.

Session tokens are short-lived JWTs carried in a cookie. Refresh, email
verification and password reset use one-time tokens stored in
``auth_tokens``; each is deleted when consumed, and an expired token is
deleted and rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from autogestao.core.config import settings
from autogestao.core.exceptions import (
    BadRequestError,
    InvalidCredentialsError,
    InvalidTokenError,
)
from autogestao.core.security import (
    create_jwt_token,
    generate_one_time_token,
    hash_password,
    verify_password,
)
from autogestao.models.auth_token import AuthToken
from autogestao.models.profile import Profile
from autogestao.models.tenant import Tenant
from autogestao.models.user import User

logger = structlog.get_logger(__name__)

TOKEN_REFRESH = "refresh"
TOKEN_VERIFY_EMAIL = "verify_email"
TOKEN_PASSWORD_RESET = "password_reset"


@dataclass
class SessionTokens:
    token: str
    refresh_token: str
    user: User


class LoggingMailer:
    """Mail transport that only emits a structured log event."""

    async def send(self, to: str, subject: str, body: str) -> None:
        logger.info("email_sent", to=to, subject=subject, body=body)


def normalize_email(email: str) -> str:
    return email.lower().strip()


class AuthService:
    """Sign-up, sign-in and one-time token flows for local accounts."""

    def __init__(self, db: AsyncSession, mailer: LoggingMailer | None = None) -> None:
        self._db = db
        self._mailer = mailer or LoggingMailer()

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self._db.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        result = await self._db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def sign_up(
        self, email: str, password: str, name: str | None = None
    ) -> SessionTokens:
        email = normalize_email(email)
        if await self.get_user_by_email(email) is not None:
            raise BadRequestError("User already exists")

        user = User(
            email=email,
            name=name,
            password_hash=hash_password(password),
            role="user",
            last_signed_in=datetime.now(timezone.utc),
        )
        self._db.add(user)
        await self._db.flush()

        logger.info("user_signed_up", user_id=str(user.id))
        return await self._issue_session(user)

    async def sign_in(self, email: str, password: str) -> SessionTokens:
        user = await self.get_user_by_email(email)
        if (
            user is None
            or user.password_hash is None
            or not verify_password(password, user.password_hash)
        ):
            raise InvalidCredentialsError()

        user.last_signed_in = datetime.now(timezone.utc)
        await self._db.flush()
        return await self._issue_session(user)

    async def refresh_session(self, refresh_token: str) -> SessionTokens:
        email = await self.consume_token(refresh_token, TOKEN_REFRESH)
        user = await self.get_user_by_email(email)
        if user is None:
            raise InvalidTokenError()
        return await self._issue_session(user)

    async def sign_out(self, refresh_token: str | None) -> None:
        if refresh_token:
            await self._db.execute(
                delete(AuthToken).where(
                    AuthToken.token == refresh_token,
                    AuthToken.type == TOKEN_REFRESH,
                )
            )

    async def send_verification_email(self, email: str) -> None:
        email = normalize_email(email)
        token = await self.create_token(
            email, TOKEN_VERIFY_EMAIL, settings.verify_email_token_ttl_minutes
        )
        link = f"{settings.project_url}/auth/verify?token={token}"
        await self._mailer.send(email, "Verify your email", f"Click to verify:\n{link}")

    async def verify_email(self, token: str) -> None:
        email = await self.consume_token(token, TOKEN_VERIFY_EMAIL)
        user = await self.get_user_by_email(email)
        if user is None:
            raise InvalidTokenError()
        user.email_verified = True
        await self._db.flush()

    async def request_password_reset(self, email: str) -> None:
        email = normalize_email(email)
        # Same response whether or not the account exists.
        if await self.get_user_by_email(email) is None:
            logger.info("password_reset_unknown_email")
            return
        token = await self.create_token(
            email, TOKEN_PASSWORD_RESET, settings.password_reset_token_ttl_minutes
        )
        link = f"{settings.project_url}/auth/reset?token={token}"
        await self._mailer.send(
            email,
            "Reset your password",
            f"Use this link to reset your password:\n{link}",
        )

    async def reset_password(self, token: str, new_password: str) -> None:
        email = await self.consume_token(token, TOKEN_PASSWORD_RESET)
        user = await self.get_user_by_email(email)
        if user is None:
            raise InvalidTokenError()
        user.password_hash = hash_password(new_password)
        await self._db.flush()
        logger.info("password_reset", user_id=str(user.id))

    async def list_profiles(self, user_id: UUID) -> list[tuple[Profile, Tenant]]:
        """Active profiles of a user with their (active) tenants."""
        result = await self._db.execute(
            select(Profile, Tenant)
            .join(Tenant, Tenant.id == Profile.tenant_id)
            .where(
                Profile.user_id == user_id,
                Profile.is_active.is_(True),
                Tenant.is_active.is_(True),
            )
        )
        return [(profile, tenant) for profile, tenant in result.all()]

    async def create_token(self, email: str, token_type: str, ttl_minutes: int) -> str:
        token = generate_one_time_token()
        self._db.add(
            AuthToken(
                token=token,
                type=token_type,
                email=email,
                expires_at=datetime.now(timezone.utc) + timedelta(minutes=ttl_minutes),
            )
        )
        await self._db.flush()
        return token

    async def consume_token(self, token: str, token_type: str) -> str:
        """Validate and delete a one-time token, returning its email."""
        result = await self._db.execute(
            select(AuthToken).where(
                AuthToken.token == token,
                AuthToken.type == token_type,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise InvalidTokenError()

        await self._db.execute(delete(AuthToken).where(AuthToken.id == row.id))

        if row.expires_at < datetime.now(timezone.utc):
            # Persist the cleanup even though the request is about to fail.
            await self._db.commit()
            raise InvalidTokenError()
        return row.email

    async def _issue_session(self, user: User) -> SessionTokens:
        token = create_jwt_token({"sub": str(user.id), "email": user.email})
        refresh_token = await self.create_token(
            user.email, TOKEN_REFRESH, settings.refresh_token_ttl_minutes
        )
        return SessionTokens(token=token, refresh_token=refresh_token, user=user)
