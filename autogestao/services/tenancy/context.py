"""Tenant request context and authorization guards.

Every request is enriched once with the resolved tenant and the current
user's role inside it. Guards are synchronous predicates over that
context: they return None on success and raise a typed AutogestaoError
otherwise, so handlers read as a flat sequence of checks.

Role order: owner > manager > viewer. Viewers never mutate.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from autogestao.core.exceptions import (
    ForbiddenError,
    TenantContextRequiredError,
    UnauthorizedError,
)
from autogestao.models.user import User
from autogestao.services.tenants import TenantService

logger = structlog.get_logger(__name__)


class TenantRole(str, Enum):
    OWNER = "owner"
    MANAGER = "manager"
    VIEWER = "viewer"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def at_least(self, minimum: "TenantRole") -> bool:
        return self.rank >= minimum.rank

    @classmethod
    def parse(cls, value: str | None) -> "TenantRole | None":
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


_ROLE_RANK = {
    TenantRole.VIEWER: 1,
    TenantRole.MANAGER: 2,
    TenantRole.OWNER: 3,
}


@dataclass
class TenantContext:
    """Per-request identity: who is calling, and for which tenant."""

    user: User | None = None
    tenant_id: UUID | None = None
    tenant_subdomain: str | None = None
    user_tenant_role: TenantRole | None = None

    @property
    def has_tenant(self) -> bool:
        return self.tenant_id is not None and bool(self.tenant_subdomain)


async def enrich_context_with_tenant(
    db: AsyncSession,
    user: User | None,
    subdomain: str | None,
) -> TenantContext:
    """Build the TenantContext for a request.

    A missing subdomain, an unknown subdomain and an inactive tenant all
    yield the public context (no tenant) instead of an error, so the
    public site keeps rendering.
    """
    ctx = TenantContext(user=user)

    if not subdomain:
        return ctx

    tenants = TenantService(db)
    tenant = await tenants.get_by_subdomain(subdomain)
    if tenant is None:
        logger.debug("tenant_not_found", subdomain=subdomain)
        return ctx

    ctx.tenant_id = tenant.id
    ctx.tenant_subdomain = subdomain

    if user is not None:
        profile = await tenants.get_user_profile(user.id, tenant.id)
        if profile is not None:
            ctx.user_tenant_role = TenantRole.parse(profile.role)

    return ctx


def require_tenant(ctx: TenantContext) -> None:
    if not ctx.has_tenant:
        raise TenantContextRequiredError()


def require_tenant_auth(ctx: TenantContext) -> None:
    if ctx.user is None:
        raise UnauthorizedError("Authentication required")
    if not ctx.has_tenant:
        raise TenantContextRequiredError()


def require_tenant_admin(ctx: TenantContext) -> None:
    require_tenant_auth(ctx)
    role = ctx.user_tenant_role
    if role is None or not role.at_least(TenantRole.MANAGER):
        raise ForbiddenError()


def require_tenant_owner(ctx: TenantContext) -> None:
    require_tenant_auth(ctx)
    if ctx.user_tenant_role is not TenantRole.OWNER:
        raise ForbiddenError("Only the store owner can perform this action")


def require_platform_admin(user: User | None) -> None:
    """Platform back-office access: users.role == 'admin'."""
    if user is None:
        raise UnauthorizedError("Authentication required")
    if not user.is_platform_admin:
        raise ForbiddenError("Only platform admins can access this endpoint")
