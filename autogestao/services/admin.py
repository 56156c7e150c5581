"""Platform back-office: tenant lifecycle and platform-wide statistics.

Callers must pass require_platform_admin() first. Tenants are never
hard-deleted; deactivation flips is_active, after which the tenant's
subdomain resolves to the public site and its API keys stop working.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from autogestao.core.exceptions import BadRequestError, TenantNotFoundError
from autogestao.models.api_key import ApiKey
from autogestao.models.lead import WhatsAppLead
from autogestao.models.profile import Profile
from autogestao.models.tenant import Tenant
from autogestao.models.user import User
from autogestao.models.vehicle import Vehicle
from autogestao.services.tenants import TenantService

logger = structlog.get_logger(__name__)

_TENANT_FIELDS = (
    "name",
    "description",
    "logo_url",
    "contact_email",
    "phone",
    "address",
    "city",
    "state",
    "zip_code",
    "country",
)


@dataclass
class TenantStats:
    vehicle_count: int
    user_count: int
    lead_count: int


@dataclass
class PlatformStats:
    total_tenants: int
    active_tenants: int
    total_vehicles: int
    total_leads: int
    total_users: int
    total_api_keys: int


class AdminService:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def _count(self, model, *criteria) -> int:
        query = select(func.count()).select_from(model)
        if criteria:
            query = query.where(*criteria)
        result = await self._db.execute(query)
        return int(result.scalar_one() or 0)

    async def list_tenants(self) -> list[Tenant]:
        result = await self._db.execute(
            select(Tenant).order_by(Tenant.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_tenant(self, tenant_id: UUID) -> Tenant:
        tenant = await TenantService(self._db).get_by_id(tenant_id)
        if tenant is None:
            raise TenantNotFoundError()
        return tenant

    async def get_tenant_stats(self, tenant_id: UUID) -> tuple[Tenant, TenantStats]:
        tenant = await self.get_tenant(tenant_id)
        stats = TenantStats(
            vehicle_count=await self._count(Vehicle, Vehicle.tenant_id == tenant_id),
            user_count=await self._count(Profile, Profile.tenant_id == tenant_id),
            lead_count=await self._count(
                WhatsAppLead, WhatsAppLead.tenant_id == tenant_id
            ),
        )
        return tenant, stats

    async def create_tenant(
        self,
        subdomain: str,
        name: str,
        owner_user_id: UUID | None = None,
        **fields: Any,
    ) -> Tenant:
        """Create a tenant; optionally bind *owner_user_id* as its owner."""
        subdomain = subdomain.lower().strip()
        available, reason = await TenantService(self._db).check_subdomain_available(
            subdomain
        )
        if not available:
            raise BadRequestError(reason or "Subdomain unavailable")

        tenant = Tenant(
            subdomain=subdomain,
            name=name,
            is_active=True,
            **{k: v for k, v in fields.items() if k in _TENANT_FIELDS},
        )
        self._db.add(tenant)
        await self._db.flush()

        if owner_user_id is not None:
            self._db.add(
                Profile(
                    user_id=owner_user_id,
                    tenant_id=tenant.id,
                    role="owner",
                    is_active=True,
                )
            )
            await self._db.flush()

        logger.info("tenant_created", tenant_id=str(tenant.id), subdomain=subdomain)
        return tenant

    async def update_tenant(self, tenant_id: UUID, changes: dict[str, Any]) -> Tenant:
        tenant = await self.get_tenant(tenant_id)
        for field, value in changes.items():
            if field in _TENANT_FIELDS and value is not None:
                setattr(tenant, field, value)
        await self._db.flush()
        return tenant

    async def set_tenant_status(self, tenant_id: UUID, is_active: bool) -> Tenant:
        tenant = await self.get_tenant(tenant_id)
        tenant.is_active = is_active
        await self._db.flush()
        logger.info(
            "tenant_status_changed", tenant_id=str(tenant_id), is_active=is_active
        )
        return tenant

    async def get_platform_stats(self) -> PlatformStats:
        return PlatformStats(
            total_tenants=await self._count(Tenant),
            active_tenants=await self._count(Tenant, Tenant.is_active.is_(True)),
            total_vehicles=await self._count(Vehicle),
            total_leads=await self._count(WhatsAppLead),
            total_users=await self._count(User),
            total_api_keys=await self._count(ApiKey),
        )
