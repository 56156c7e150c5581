"""Vehicle image endpoints, nested under /vehicles/{vehicle_id}/images."""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile

from autogestao.api.deps import (
    get_image_service,
    tenant_admin_required,
    tenant_auth_required,
)
from autogestao.core.exceptions import BadRequestError, ImageNotFoundError
from autogestao.schemas.common import SuccessResponse
from autogestao.schemas.vehicle import ImageOrderUpdate, ImageResponse
from autogestao.services.images import ImageService
from autogestao.services.tenancy import TenantContext

router = APIRouter(prefix="/vehicles/{vehicle_id}/images", tags=["images"])


@router.post("", response_model=ImageResponse, status_code=201)
async def upload_image(
    vehicle_id: UUID,
    file: UploadFile = File(...),
    set_as_cover: bool = Form(False),
    ctx: TenantContext = Depends(tenant_admin_required),
    service: ImageService = Depends(get_image_service),
) -> ImageResponse:
    content = await file.read()
    if not content:
        raise BadRequestError("Empty file")
    image = await service.upload(
        ctx.tenant_id,
        vehicle_id,
        content,
        filename=file.filename or "image",
        mime_type=file.content_type or "application/octet-stream",
        set_as_cover=set_as_cover,
    )
    return ImageResponse.model_validate(image)


@router.get("", response_model=list[ImageResponse])
async def list_images(
    vehicle_id: UUID,
    ctx: TenantContext = Depends(tenant_auth_required),
    service: ImageService = Depends(get_image_service),
) -> list[ImageResponse]:
    images = await service.list_for_vehicle(vehicle_id, ctx.tenant_id)
    return [ImageResponse.model_validate(i) for i in images]


@router.get("/cover", response_model=ImageResponse)
async def get_cover_image(
    vehicle_id: UUID,
    ctx: TenantContext = Depends(tenant_auth_required),
    service: ImageService = Depends(get_image_service),
) -> ImageResponse:
    image = await service.get_cover(vehicle_id, ctx.tenant_id)
    if image is None:
        raise ImageNotFoundError("Vehicle has no cover image")
    return ImageResponse.model_validate(image)


@router.post("/{image_id}/cover", response_model=ImageResponse)
async def set_cover_image(
    vehicle_id: UUID,
    image_id: UUID,
    ctx: TenantContext = Depends(tenant_admin_required),
    service: ImageService = Depends(get_image_service),
) -> ImageResponse:
    image = await service.set_cover(image_id, vehicle_id, ctx.tenant_id)
    return ImageResponse.model_validate(image)


@router.patch("/{image_id}/order", response_model=ImageResponse)
async def update_image_order(
    vehicle_id: UUID,
    image_id: UUID,
    body: ImageOrderUpdate,
    ctx: TenantContext = Depends(tenant_admin_required),
    service: ImageService = Depends(get_image_service),
) -> ImageResponse:
    image = await service.update_display_order(
        image_id, vehicle_id, ctx.tenant_id, body.display_order
    )
    return ImageResponse.model_validate(image)


@router.delete("/{image_id}", response_model=SuccessResponse)
async def delete_image(
    vehicle_id: UUID,
    image_id: UUID,
    ctx: TenantContext = Depends(tenant_admin_required),
    service: ImageService = Depends(get_image_service),
) -> SuccessResponse:
    await service.delete(image_id, vehicle_id, ctx.tenant_id)
    return SuccessResponse(message="Image deleted")
