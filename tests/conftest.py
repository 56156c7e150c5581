"""Shared pytest fixtures for the Autogestao test suite.

Provides:
  - test_db: mock AsyncSession (models use PostgreSQL-only column types)
  - sample_tenant_id / other_tenant_id / sample_user_id: fixed UUIDs
  - sample_tenant, other_tenant, sample_user: ORM instances
  - owner_profile / manager_profile / viewer_profile: memberships of
    sample_user in sample_tenant
  - make_result: factory for SQLAlchemy Result mocks
"""

from __future__ import annotations

import uuid
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from autogestao.models.profile import Profile
from autogestao.models.tenant import Tenant
from autogestao.models.user import User


# ---------------------------------------------------------------------------
# Async Database Session (mock: PG-specific types prevent real SQLite)
# ---------------------------------------------------------------------------


@pytest.fixture
def test_db() -> MagicMock:
    """Mock async database session."""
    session = MagicMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.execute = AsyncMock()
    session.close = AsyncMock()
    session.info = {}
    return session


@pytest.fixture
def make_result() -> Callable[..., MagicMock]:
    """Build a Result mock answering scalar_one_or_none() and scalars().all()."""

    def _make(value: Any = None, items: list[Any] | None = None) -> MagicMock:
        result = MagicMock()
        result.scalar_one_or_none.return_value = value
        result.scalar_one.return_value = value
        result.scalars.return_value.all.return_value = items or []
        return result

    return _make


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_tenant_id() -> uuid.UUID:
    """Fixed tenant UUID for testing."""
    return uuid.UUID("00000000-0000-0000-0000-000000000001")


@pytest.fixture
def other_tenant_id() -> uuid.UUID:
    return uuid.UUID("00000000-0000-0000-0000-000000000002")


@pytest.fixture
def sample_user_id() -> uuid.UUID:
    return uuid.UUID("00000000-0000-0000-0000-0000000000aa")


# ---------------------------------------------------------------------------
# Sample ORM objects
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_tenant(sample_tenant_id: uuid.UUID) -> Tenant:
    return Tenant(
        id=sample_tenant_id,
        subdomain="loja-a",
        name="Loja A Veiculos",
        city="Curitiba",
        state="PR",
        is_active=True,
    )


@pytest.fixture
def other_tenant(other_tenant_id: uuid.UUID) -> Tenant:
    return Tenant(
        id=other_tenant_id,
        subdomain="loja-b",
        name="Loja B Multimarcas",
        is_active=True,
    )


@pytest.fixture
def sample_user(sample_user_id: uuid.UUID) -> User:
    return User(
        id=sample_user_id,
        email="dono@loja-a.com.br",
        name="Dono da Loja",
        role="user",
        email_verified=True,
    )


def _profile(user_id: uuid.UUID, tenant_id: uuid.UUID, role: str) -> Profile:
    return Profile(
        id=uuid.uuid4(),
        user_id=user_id,
        tenant_id=tenant_id,
        role=role,
        is_active=True,
    )


@pytest.fixture
def owner_profile(sample_user_id: uuid.UUID, sample_tenant_id: uuid.UUID) -> Profile:
    return _profile(sample_user_id, sample_tenant_id, "owner")


@pytest.fixture
def manager_profile(sample_user_id: uuid.UUID, sample_tenant_id: uuid.UUID) -> Profile:
    return _profile(sample_user_id, sample_tenant_id, "manager")


@pytest.fixture
def viewer_profile(sample_user_id: uuid.UUID, sample_tenant_id: uuid.UUID) -> Profile:
    return _profile(sample_user_id, sample_tenant_id, "viewer")
