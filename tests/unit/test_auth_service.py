"""Unit tests for AuthService.

Tests:
  - sign-up rejects an existing email, hashes the password, issues a session
  - sign-in rejects bad credentials with UNAUTHORIZED
  - one-time tokens are deleted on use; expired tokens are rejected
  - password reset for an unknown email is silent
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from autogestao.core.exceptions import (
    BadRequestError,
    InvalidCredentialsError,
    InvalidTokenError,
)
from autogestao.core.security import decode_session_token, hash_password
from autogestao.models.auth_token import AuthToken
from autogestao.models.user import User
from autogestao.services.auth import AuthService, TOKEN_PASSWORD_RESET, TOKEN_REFRESH


def _mailer() -> MagicMock:
    mailer = MagicMock()
    mailer.send = AsyncMock()
    return mailer


def _token(token_type: str, expires_in: timedelta) -> AuthToken:
    return AuthToken(
        id=uuid.uuid4(),
        token="tok",
        type=token_type,
        email="cliente@example.com",
        expires_at=datetime.now(timezone.utc) + expires_in,
    )


class TestSignUp:
    @pytest.mark.asyncio
    async def test_existing_email(self, test_db, make_result, sample_user) -> None:
        test_db.execute.return_value = make_result(sample_user)

        with pytest.raises(BadRequestError):
            await AuthService(test_db).sign_up("Dono@Loja-A.com.br", "senha1234")

    @pytest.mark.asyncio
    async def test_creates_user_and_session(self, test_db, make_result) -> None:
        test_db.execute.return_value = make_result(None)

        session = await AuthService(test_db).sign_up(
            " Novo@Example.com ", "senha1234", name="Novo"
        )

        user = test_db.add.call_args_list[0][0][0]
        assert isinstance(user, User)
        assert user.email == "novo@example.com"
        assert user.password_hash.startswith("scrypt$")
        assert session.refresh_token
        refresh = test_db.add.call_args_list[1][0][0]
        assert refresh.type == TOKEN_REFRESH


class TestSignIn:
    @pytest.mark.asyncio
    async def test_wrong_password(self, test_db, make_result) -> None:
        user = User(id=uuid.uuid4(), email="a@b.com", password_hash=hash_password("certa"))
        test_db.execute.return_value = make_result(user)

        with pytest.raises(InvalidCredentialsError) as exc:
            await AuthService(test_db).sign_in("a@b.com", "errada")
        assert exc.value.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_user(self, test_db, make_result) -> None:
        test_db.execute.return_value = make_result(None)

        with pytest.raises(InvalidCredentialsError):
            await AuthService(test_db).sign_in("ninguem@b.com", "x")

    @pytest.mark.asyncio
    async def test_success_issues_jwt(self, test_db, make_result) -> None:
        user = User(id=uuid.uuid4(), email="a@b.com", password_hash=hash_password("certa"))
        test_db.execute.return_value = make_result(user)

        session = await AuthService(test_db).sign_in("a@b.com", "certa")

        claims = decode_session_token(session.token)
        assert claims["sub"] == str(user.id)
        assert user.last_signed_in is not None


class TestOneTimeTokens:
    @pytest.mark.asyncio
    async def test_consume_deletes_token(self, test_db, make_result) -> None:
        row = _token(TOKEN_PASSWORD_RESET, timedelta(minutes=30))
        test_db.execute.side_effect = [make_result(row), MagicMock()]

        email = await AuthService(test_db).consume_token("tok", TOKEN_PASSWORD_RESET)

        assert email == "cliente@example.com"
        delete_stmt = str(test_db.execute.call_args_list[1][0][0])
        assert delete_stmt.startswith("DELETE FROM auth_tokens")

    @pytest.mark.asyncio
    async def test_expired_token_is_deleted_and_rejected(
        self, test_db, make_result
    ) -> None:
        row = _token(TOKEN_PASSWORD_RESET, timedelta(minutes=-1))
        test_db.execute.side_effect = [make_result(row), MagicMock()]

        with pytest.raises(InvalidTokenError):
            await AuthService(test_db).consume_token("tok", TOKEN_PASSWORD_RESET)

        assert test_db.execute.await_count == 2
        test_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_token(self, test_db, make_result) -> None:
        test_db.execute.return_value = make_result(None)

        with pytest.raises(InvalidTokenError):
            await AuthService(test_db).consume_token("nope", TOKEN_REFRESH)

    @pytest.mark.asyncio
    async def test_reset_password(self, test_db, make_result) -> None:
        row = _token(TOKEN_PASSWORD_RESET, timedelta(minutes=30))
        user = User(id=uuid.uuid4(), email="cliente@example.com", password_hash="old")
        test_db.execute.side_effect = [make_result(row), MagicMock(), make_result(user)]

        await AuthService(test_db).reset_password("tok", "nova-senha-123")

        assert user.password_hash.startswith("scrypt$")


class TestMail:
    @pytest.mark.asyncio
    async def test_reset_for_unknown_email_is_silent(self, test_db, make_result) -> None:
        test_db.execute.return_value = make_result(None)
        mailer = _mailer()

        await AuthService(test_db, mailer=mailer).request_password_reset("x@y.com")

        mailer.send.assert_not_called()
        test_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_verification_email_contains_link(self, test_db) -> None:
        mailer = _mailer()

        await AuthService(test_db, mailer=mailer).send_verification_email("A@B.com")

        to, subject, body = mailer.send.call_args[0]
        assert to == "a@b.com"
        assert "/auth/verify?token=" in body
