"""API key management for the current tenant.

Listing is open to owners and managers; creating, revoking and deleting
keys is reserved to the store owner.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from autogestao.api.deps import (
    get_api_key_service,
    tenant_admin_required,
    tenant_owner_required,
)
from autogestao.schemas.api_key import (
    ApiKeyCreate,
    ApiKeyCreated,
    ApiKeyListResponse,
    ApiKeySummary,
)
from autogestao.schemas.common import SuccessResponse
from autogestao.services.api_keys import ApiKeyService
from autogestao.services.tenancy import TenantContext, TenantRole

router = APIRouter(prefix="/api-keys", tags=["api-keys"])


@router.post("", response_model=ApiKeyCreated, status_code=201)
async def create_api_key(
    body: ApiKeyCreate,
    ctx: TenantContext = Depends(tenant_owner_required),
    service: ApiKeyService = Depends(get_api_key_service),
) -> ApiKeyCreated:
    api_key, raw_key = await service.create(
        ctx.tenant_id,
        body.name,
        description=body.description,
        role=TenantRole(body.role),
    )
    return ApiKeyCreated(id=api_key.id, key=raw_key, key_prefix=api_key.key_prefix)


@router.get("", response_model=ApiKeyListResponse)
async def list_api_keys(
    ctx: TenantContext = Depends(tenant_admin_required),
    service: ApiKeyService = Depends(get_api_key_service),
) -> ApiKeyListResponse:
    keys = await service.list_for_tenant(ctx.tenant_id)
    return ApiKeyListResponse(
        data=[ApiKeySummary.model_validate(k) for k in keys],
        count=len(keys),
    )


@router.post("/{key_id}/revoke", response_model=SuccessResponse)
async def revoke_api_key(
    key_id: UUID,
    ctx: TenantContext = Depends(tenant_owner_required),
    service: ApiKeyService = Depends(get_api_key_service),
) -> SuccessResponse:
    await service.revoke(key_id, ctx.tenant_id)
    return SuccessResponse(message="API key revoked successfully")


@router.delete("/{key_id}", response_model=SuccessResponse)
async def delete_api_key(
    key_id: UUID,
    ctx: TenantContext = Depends(tenant_owner_required),
    service: ApiKeyService = Depends(get_api_key_service),
) -> SuccessResponse:
    await service.delete(key_id, ctx.tenant_id)
    return SuccessResponse(message="API key deleted successfully")
