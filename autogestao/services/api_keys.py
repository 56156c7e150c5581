"""API key lifecycle and bearer-token authentication.

Keys are ``ag_`` + 64 hex chars, bound 1:1 to a tenant and stored as the
literal string. Authentication is an exact match against *active* keys of
*active* tenants; anything else fails closed with 401.

The ``last_used_at`` update after a successful authentication is a
fire-and-forget background task with its own DB session. Its failures are
logged and never reach the request.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from autogestao.core.exceptions import ApiKeyNotFoundError, InvalidAPIKeyError
from autogestao.core.security import (
    generate_api_key,
    get_key_prefix,
    parse_bearer_token,
)
from autogestao.db.postgres import background_session
from autogestao.models.api_key import ApiKey
from autogestao.models.tenant import Tenant
from autogestao.services.tenancy.context import TenantRole

logger = structlog.get_logger(__name__)

# Strong references so pending touch tasks are not garbage-collected mid-flight.
_background_tasks: set[asyncio.Task] = set()


@dataclass(frozen=True)
class ApiKeyIdentity:
    """What a valid API key attaches to the request."""

    tenant_id: UUID
    api_key_id: UUID
    role: TenantRole

    @property
    def can_write(self) -> bool:
        return self.role.at_least(TenantRole.MANAGER)


class ApiKeyService:
    """Create, list, revoke, delete and authenticate tenant API keys."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def create(
        self,
        tenant_id: UUID,
        name: str,
        description: str | None = None,
        role: TenantRole = TenantRole.MANAGER,
    ) -> tuple[ApiKey, str]:
        """Create a key. Returns (row, raw key); the raw key is shown once."""
        if role is TenantRole.OWNER:
            raise ValueError("API keys cannot carry the owner role")

        raw_key = generate_api_key()
        api_key = ApiKey(
            tenant_id=tenant_id,
            name=name,
            key=raw_key,
            key_prefix=get_key_prefix(raw_key),
            description=description or None,
            role=role.value,
            is_active=True,
        )
        self._db.add(api_key)
        await self._db.flush()

        logger.info(
            "api_key_created",
            tenant_id=str(tenant_id),
            api_key_id=str(api_key.id),
            key_prefix=api_key.key_prefix,
        )
        return api_key, raw_key

    async def get_active_by_key(self, key: str) -> ApiKey | None:
        """Exact match against active keys whose tenant is active."""
        result = await self._db.execute(
            select(ApiKey)
            .join(Tenant, Tenant.id == ApiKey.tenant_id)
            .where(
                ApiKey.key == key,
                ApiKey.is_active.is_(True),
                Tenant.is_active.is_(True),
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_for_tenant(self, tenant_id: UUID) -> list[ApiKey]:
        result = await self._db.execute(
            select(ApiKey)
            .where(ApiKey.tenant_id == tenant_id)
            .order_by(ApiKey.created_at.desc())
        )
        return list(result.scalars().all())

    async def _get_owned(self, key_id: UUID, tenant_id: UUID) -> ApiKey:
        result = await self._db.execute(
            select(ApiKey).where(
                ApiKey.id == key_id,
                ApiKey.tenant_id == tenant_id,
            )
        )
        api_key = result.scalar_one_or_none()
        if api_key is None:
            raise ApiKeyNotFoundError()
        return api_key

    async def revoke(self, key_id: UUID, tenant_id: UUID) -> None:
        """Disable a key without deleting it."""
        api_key = await self._get_owned(key_id, tenant_id)
        api_key.is_active = False
        await self._db.flush()
        logger.info(
            "api_key_revoked", tenant_id=str(tenant_id), api_key_id=str(key_id)
        )

    async def delete(self, key_id: UUID, tenant_id: UUID) -> None:
        await self._get_owned(key_id, tenant_id)
        await self._db.execute(
            delete(ApiKey).where(
                ApiKey.id == key_id,
                ApiKey.tenant_id == tenant_id,
            )
        )
        logger.info(
            "api_key_deleted", tenant_id=str(tenant_id), api_key_id=str(key_id)
        )

    async def authenticate(self, authorization: str | None) -> ApiKeyIdentity:
        """Validate an Authorization header and return the key's identity."""
        key = parse_bearer_token(authorization)
        if key is None:
            raise InvalidAPIKeyError("Missing or invalid API key")

        api_key = await self.get_active_by_key(key)
        if api_key is None:
            logger.info("api_key_rejected", key_prefix=get_key_prefix(key))
            raise InvalidAPIKeyError()

        schedule_touch_last_used(key)

        return ApiKeyIdentity(
            tenant_id=api_key.tenant_id,
            api_key_id=api_key.id,
            role=TenantRole.parse(api_key.role) or TenantRole.VIEWER,
        )


async def touch_last_used(key: str) -> None:
    """Set last_used_at for *key* in a dedicated session. Never raises."""
    try:
        async with background_session() as db:
            await db.execute(
                update(ApiKey)
                .where(ApiKey.key == key)
                .values(last_used_at=datetime.now(timezone.utc))
            )
    except Exception as e:
        logger.error(
            "api_key_touch_failed",
            key_prefix=get_key_prefix(key),
            error=str(e),
        )


def schedule_touch_last_used(key: str) -> None:
    """Fire-and-forget last_used_at update."""
    task = asyncio.create_task(touch_last_used(key))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
