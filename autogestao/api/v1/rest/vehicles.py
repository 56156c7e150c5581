"""Vehicle CRUD for integrations, authenticated by ``Bearer ag_...`` keys.

The key determines the tenant; the request host is ignored. Keys with
the viewer role may only read.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from autogestao.api.deps import (
    api_key_writer_required,
    get_api_key_identity,
    get_vehicle_service,
)
from autogestao.schemas.vehicle import (
    ImageResponse,
    VehicleCreate,
    VehicleEnvelope,
    VehicleListEnvelope,
    VehicleMutationResponse,
    VehicleResponse,
    VehicleUpdate,
    VehicleWithImages,
)
from autogestao.services.api_keys import ApiKeyIdentity
from autogestao.services.vehicles import VehicleService

router = APIRouter(prefix="/vehicles", tags=["rest"])


@router.get("", response_model=VehicleListEnvelope)
async def list_vehicles(
    identity: ApiKeyIdentity = Depends(get_api_key_identity),
    service: VehicleService = Depends(get_vehicle_service),
) -> VehicleListEnvelope:
    vehicles = await service.list_for_tenant(identity.tenant_id, available_only=True)
    images = await service.images_for([v.id for v in vehicles], identity.tenant_id)
    data = [
        VehicleWithImages(
            **VehicleResponse.model_validate(v).model_dump(),
            images=[ImageResponse.model_validate(i) for i in images.get(v.id, [])],
        )
        for v in vehicles
    ]
    return VehicleListEnvelope(data=data, count=len(data))


@router.get("/{vehicle_id}", response_model=VehicleEnvelope)
async def get_vehicle(
    vehicle_id: UUID,
    identity: ApiKeyIdentity = Depends(get_api_key_identity),
    service: VehicleService = Depends(get_vehicle_service),
) -> VehicleEnvelope:
    vehicle = await service.get(vehicle_id, identity.tenant_id)
    images = await service.images_for([vehicle.id], identity.tenant_id)
    return VehicleEnvelope(
        data=VehicleWithImages(
            **VehicleResponse.model_validate(vehicle).model_dump(),
            images=[ImageResponse.model_validate(i) for i in images[vehicle.id]],
        )
    )


@router.post("", response_model=VehicleMutationResponse, status_code=201)
async def create_vehicle(
    body: VehicleCreate,
    identity: ApiKeyIdentity = Depends(api_key_writer_required),
    service: VehicleService = Depends(get_vehicle_service),
) -> VehicleMutationResponse:
    vehicle = await service.create(identity.tenant_id, body.model_dump())
    return VehicleMutationResponse(
        message="Vehicle created successfully", vehicle_id=vehicle.id
    )


@router.put("/{vehicle_id}", response_model=VehicleMutationResponse)
async def update_vehicle(
    vehicle_id: UUID,
    body: VehicleUpdate,
    identity: ApiKeyIdentity = Depends(api_key_writer_required),
    service: VehicleService = Depends(get_vehicle_service),
) -> VehicleMutationResponse:
    await service.update(
        vehicle_id, identity.tenant_id, body.model_dump(exclude_unset=True)
    )
    return VehicleMutationResponse(
        message="Vehicle updated successfully", vehicle_id=vehicle_id
    )


@router.delete("/{vehicle_id}", response_model=VehicleMutationResponse)
async def delete_vehicle(
    vehicle_id: UUID,
    identity: ApiKeyIdentity = Depends(api_key_writer_required),
    service: VehicleService = Depends(get_vehicle_service),
) -> VehicleMutationResponse:
    await service.soft_delete(vehicle_id, identity.tenant_id)
    return VehicleMutationResponse(
        message="Vehicle deleted successfully", vehicle_id=vehicle_id
    )
