"""Shared FastAPI dependencies: sessions, identity, tenant scoping, services.

Request identity is assembled in layers. The session cookie yields the
user, the injected TenantResolver yields a candidate subdomain, and
enrich_context_with_tenant() validates it and attaches the user's role.
Route guards (require_*) are thin Depends() wrappers over the predicates
in services.tenancy so handlers only ever receive an already-checked
TenantContext.
"""

from uuid import UUID

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from autogestao.core.config import settings
from autogestao.core.exceptions import ForbiddenError
from autogestao.core.security import decode_session_token
from autogestao.db.postgres import get_async_session
from autogestao.models.user import User
from autogestao.services.admin import AdminService
from autogestao.services.api_keys import ApiKeyIdentity, ApiKeyService
from autogestao.services.auth import AuthService
from autogestao.services.images import ImageService, LocalImageStorage
from autogestao.services.leads import LeadService
from autogestao.services.tenancy import (
    TenantContext,
    TenantResolver,
    build_resolver,
    enrich_context_with_tenant,
    require_platform_admin,
    require_tenant,
    require_tenant_admin,
    require_tenant_auth,
    require_tenant_owner,
)
from autogestao.services.tenants import TenantService
from autogestao.services.vehicles import VehicleService
from autogestao.services.webhooks import WebhookService

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

async def get_db(
    session: AsyncSession = Depends(get_async_session),
) -> AsyncSession:
    """Yield an async database session."""
    return session


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

def get_tenant_resolver() -> TenantResolver:
    """Return the resolver selected by settings.tenant_resolution."""
    return build_resolver()


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Load the user behind the session cookie, or None when anonymous."""
    claims = decode_session_token(request.cookies.get(settings.session_cookie_name))
    if claims is None:
        return None
    try:
        user_id = UUID(str(claims.get("sub")))
    except ValueError:
        return None
    return await AuthService(db).get_user_by_id(user_id)


async def get_tenant_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_current_user),
    resolver: TenantResolver = Depends(get_tenant_resolver),
) -> TenantContext:
    subdomain = resolver.resolve(request)
    ctx = await enrich_context_with_tenant(db, user, subdomain)
    if ctx.has_tenant:
        logger.debug(
            "tenant_resolved",
            subdomain=ctx.tenant_subdomain,
            role=ctx.user_tenant_role.value if ctx.user_tenant_role else None,
        )
    return ctx


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------

async def tenant_required(
    ctx: TenantContext = Depends(get_tenant_context),
) -> TenantContext:
    require_tenant(ctx)
    return ctx


async def tenant_auth_required(
    ctx: TenantContext = Depends(get_tenant_context),
) -> TenantContext:
    require_tenant_auth(ctx)
    return ctx


async def tenant_admin_required(
    ctx: TenantContext = Depends(get_tenant_context),
) -> TenantContext:
    require_tenant_admin(ctx)
    return ctx


async def tenant_owner_required(
    ctx: TenantContext = Depends(get_tenant_context),
) -> TenantContext:
    require_tenant_owner(ctx)
    return ctx


async def platform_admin_required(
    user: User | None = Depends(get_current_user),
) -> User:
    require_platform_admin(user)
    return user


async def get_api_key_identity(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> ApiKeyIdentity:
    """Authenticate ``Authorization: Bearer ag_...`` against active keys."""
    return await ApiKeyService(db).authenticate(request.headers.get("authorization"))


async def api_key_writer_required(
    identity: ApiKeyIdentity = Depends(get_api_key_identity),
) -> ApiKeyIdentity:
    if not identity.can_write:
        raise ForbiddenError("This API key is read-only")
    return identity


# ---------------------------------------------------------------------------
# Service constructors, wired via Depends()
# ---------------------------------------------------------------------------

async def get_tenant_service(db: AsyncSession = Depends(get_db)) -> TenantService:
    return TenantService(db)


async def get_webhook_service(db: AsyncSession = Depends(get_db)) -> WebhookService:
    return WebhookService(db)


async def get_vehicle_service(
    db: AsyncSession = Depends(get_db),
    webhooks: WebhookService = Depends(get_webhook_service),
) -> VehicleService:
    """Return a VehicleService that emits vehicle.* webhook events."""
    return VehicleService(db, webhooks=webhooks)


def get_image_storage() -> LocalImageStorage:
    return LocalImageStorage()


async def get_image_service(
    db: AsyncSession = Depends(get_db),
    storage: LocalImageStorage = Depends(get_image_storage),
) -> ImageService:
    return ImageService(db, storage)


async def get_lead_service(
    db: AsyncSession = Depends(get_db),
    webhooks: WebhookService = Depends(get_webhook_service),
) -> LeadService:
    return LeadService(db, webhooks=webhooks)


async def get_api_key_service(db: AsyncSession = Depends(get_db)) -> ApiKeyService:
    return ApiKeyService(db)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


async def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminService:
    return AdminService(db)
