"""Tenant lookup endpoints for the storefront and the sign-up flow."""

from fastapi import APIRouter, Depends, Query

from autogestao.api.deps import get_tenant_service, tenant_required
from autogestao.core.exceptions import TenantNotFoundError
from autogestao.schemas.tenant import PublicTenantResponse, SubdomainAvailability
from autogestao.services.tenancy import TenantContext
from autogestao.services.tenants import TenantService

router = APIRouter(prefix="/tenant", tags=["tenant"])


@router.get("/check-subdomain", response_model=SubdomainAvailability)
async def check_subdomain(
    subdomain: str = Query(...),
    tenants: TenantService = Depends(get_tenant_service),
) -> SubdomainAvailability:
    available, reason = await tenants.check_subdomain_available(subdomain.lower())
    return SubdomainAvailability(available=available, message=reason)


@router.get("/current", response_model=PublicTenantResponse)
async def get_current_tenant(
    ctx: TenantContext = Depends(tenant_required),
    tenants: TenantService = Depends(get_tenant_service),
) -> PublicTenantResponse:
    tenant = await tenants.get_by_id(ctx.tenant_id)
    if tenant is None:
        raise TenantNotFoundError()
    return PublicTenantResponse.model_validate(tenant)
