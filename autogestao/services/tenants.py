"""Tenant and profile lookups used by request scoping."""

from __future__ import annotations

import re
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from autogestao.core.config import settings
from autogestao.models.profile import Profile
from autogestao.models.tenant import Tenant

logger = structlog.get_logger(__name__)

_SUBDOMAIN_RE = re.compile(r"^[a-z0-9-]{3,32}$")


class TenantService:
    """Read access to tenants and tenant memberships."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_by_subdomain(
        self, subdomain: str, active_only: bool = True
    ) -> Tenant | None:
        """Look up a tenant by subdomain. Inactive tenants count as missing."""
        query = select(Tenant).where(Tenant.subdomain == subdomain)
        if active_only:
            query = query.where(Tenant.is_active.is_(True))
        result = await self._db.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def get_by_id(self, tenant_id: UUID) -> Tenant | None:
        result = await self._db.execute(
            select(Tenant).where(Tenant.id == tenant_id)
        )
        return result.scalar_one_or_none()

    async def get_user_profile(
        self, user_id: UUID, tenant_id: UUID
    ) -> Profile | None:
        """Active profile binding *user_id* to *tenant_id*, if any."""
        result = await self._db.execute(
            select(Profile).where(
                Profile.user_id == user_id,
                Profile.tenant_id == tenant_id,
                Profile.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def check_subdomain_available(self, subdomain: str) -> tuple[bool, str | None]:
        """Return (available, reason) for a prospective tenant subdomain."""
        sub = (subdomain or "").lower().strip()

        if not _SUBDOMAIN_RE.match(sub):
            return False, "Invalid subdomain"

        if sub in settings.reserved_subdomains:
            return False, "Reserved subdomain"

        existing = await self.get_by_subdomain(sub, active_only=False)
        if existing is not None:
            return False, "Subdomain already exists"

        return True, None
