"""Platform back-office endpoints (users.role == 'admin' only)."""

from uuid import UUID

from fastapi import APIRouter, Depends

from autogestao.api.deps import get_admin_service, platform_admin_required
from autogestao.models.user import User
from autogestao.schemas.tenant import (
    PlatformStatsResponse,
    TenantCreate,
    TenantResponse,
    TenantStatsResponse,
    TenantStatusUpdate,
    TenantUpdate,
)
from autogestao.services.admin import AdminService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/tenants", response_model=list[TenantResponse])
async def list_tenants(
    _: User = Depends(platform_admin_required),
    admin: AdminService = Depends(get_admin_service),
) -> list[TenantResponse]:
    tenants = await admin.list_tenants()
    return [TenantResponse.model_validate(t) for t in tenants]


@router.post("/tenants", response_model=TenantResponse, status_code=201)
async def create_tenant(
    body: TenantCreate,
    _: User = Depends(platform_admin_required),
    admin: AdminService = Depends(get_admin_service),
) -> TenantResponse:
    fields = body.model_dump(exclude={"subdomain", "name", "owner_user_id"})
    tenant = await admin.create_tenant(
        body.subdomain,
        body.name,
        owner_user_id=body.owner_user_id,
        **{k: v for k, v in fields.items() if v is not None},
    )
    return TenantResponse.model_validate(tenant)


@router.get("/tenants/{tenant_id}/stats", response_model=TenantStatsResponse)
async def tenant_stats(
    tenant_id: UUID,
    _: User = Depends(platform_admin_required),
    admin: AdminService = Depends(get_admin_service),
) -> TenantStatsResponse:
    tenant, stats = await admin.get_tenant_stats(tenant_id)
    return TenantStatsResponse(
        tenant=TenantResponse.model_validate(tenant),
        vehicle_count=stats.vehicle_count,
        user_count=stats.user_count,
        lead_count=stats.lead_count,
    )


@router.patch("/tenants/{tenant_id}", response_model=TenantResponse)
async def update_tenant(
    tenant_id: UUID,
    body: TenantUpdate,
    _: User = Depends(platform_admin_required),
    admin: AdminService = Depends(get_admin_service),
) -> TenantResponse:
    tenant = await admin.update_tenant(tenant_id, body.model_dump(exclude_unset=True))
    return TenantResponse.model_validate(tenant)


@router.patch("/tenants/{tenant_id}/status", response_model=TenantResponse)
async def set_tenant_status(
    tenant_id: UUID,
    body: TenantStatusUpdate,
    _: User = Depends(platform_admin_required),
    admin: AdminService = Depends(get_admin_service),
) -> TenantResponse:
    tenant = await admin.set_tenant_status(tenant_id, body.is_active)
    return TenantResponse.model_validate(tenant)


@router.get("/stats", response_model=PlatformStatsResponse)
async def platform_stats(
    _: User = Depends(platform_admin_required),
    admin: AdminService = Depends(get_admin_service),
) -> PlatformStatsResponse:
    stats = await admin.get_platform_stats()
    return PlatformStatsResponse.model_validate(stats)
