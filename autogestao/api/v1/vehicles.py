"""Session-surface vehicle endpoints.

Public reads are scoped to the tenant resolved from the request and only
show available vehicles. Management endpoints require a signed-in member
of that tenant; mutations require owner or manager.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from autogestao.api.deps import (
    get_tenant_context,
    get_vehicle_service,
    tenant_admin_required,
    tenant_auth_required,
    tenant_required,
)
from autogestao.models.vehicle import Vehicle
from autogestao.schemas.vehicle import (
    ImageResponse,
    VehicleCreate,
    VehicleMutationResponse,
    VehicleResponse,
    VehicleUpdate,
    VehicleWithImages,
)
from autogestao.services.tenancy import TenantContext
from autogestao.services.vehicles import VehicleService

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


async def _with_images(
    service: VehicleService, vehicles: list[Vehicle], tenant_id: UUID
) -> list[VehicleWithImages]:
    images = await service.images_for([v.id for v in vehicles], tenant_id)
    return [
        VehicleWithImages(
            **VehicleResponse.model_validate(v).model_dump(),
            images=[ImageResponse.model_validate(i) for i in images.get(v.id, [])],
        )
        for v in vehicles
    ]


@router.get("", response_model=list[VehicleWithImages])
async def list_public_vehicles(
    ctx: TenantContext = Depends(get_tenant_context),
    service: VehicleService = Depends(get_vehicle_service),
) -> list[VehicleWithImages]:
    """Available vehicles of the resolved tenant; empty on the public site."""
    if not ctx.has_tenant:
        return []
    vehicles = await service.list_for_tenant(ctx.tenant_id, available_only=True)
    return await _with_images(service, vehicles, ctx.tenant_id)


@router.get("/admin", response_model=list[VehicleWithImages])
async def list_all_vehicles(
    ctx: TenantContext = Depends(tenant_auth_required),
    service: VehicleService = Depends(get_vehicle_service),
) -> list[VehicleWithImages]:
    """Every vehicle of the tenant, including unavailable ones."""
    vehicles = await service.list_for_tenant(ctx.tenant_id)
    return await _with_images(service, vehicles, ctx.tenant_id)


@router.get("/{vehicle_id}", response_model=VehicleWithImages)
async def get_public_vehicle(
    vehicle_id: UUID,
    ctx: TenantContext = Depends(tenant_required),
    service: VehicleService = Depends(get_vehicle_service),
) -> VehicleWithImages:
    vehicle = await service.get(vehicle_id, ctx.tenant_id, available_only=True)
    (result,) = await _with_images(service, [vehicle], ctx.tenant_id)
    return result


@router.post("", response_model=VehicleMutationResponse, status_code=201)
async def create_vehicle(
    body: VehicleCreate,
    ctx: TenantContext = Depends(tenant_admin_required),
    service: VehicleService = Depends(get_vehicle_service),
) -> VehicleMutationResponse:
    vehicle = await service.create(ctx.tenant_id, body.model_dump())
    return VehicleMutationResponse(
        message="Vehicle created successfully", vehicle_id=vehicle.id
    )


@router.patch("/{vehicle_id}", response_model=VehicleMutationResponse)
async def update_vehicle(
    vehicle_id: UUID,
    body: VehicleUpdate,
    ctx: TenantContext = Depends(tenant_admin_required),
    service: VehicleService = Depends(get_vehicle_service),
) -> VehicleMutationResponse:
    await service.update(vehicle_id, ctx.tenant_id, body.model_dump(exclude_unset=True))
    return VehicleMutationResponse(
        message="Vehicle updated successfully", vehicle_id=vehicle_id
    )


@router.delete("/{vehicle_id}", response_model=VehicleMutationResponse)
async def delete_vehicle(
    vehicle_id: UUID,
    ctx: TenantContext = Depends(tenant_admin_required),
    service: VehicleService = Depends(get_vehicle_service),
) -> VehicleMutationResponse:
    """Soft delete: the vehicle is marked unavailable."""
    await service.soft_delete(vehicle_id, ctx.tenant_id)
    return VehicleMutationResponse(
        message="Vehicle deleted successfully", vehicle_id=vehicle_id
    )
