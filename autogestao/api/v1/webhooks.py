"""Webhook subscription endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends

from autogestao.api.deps import (
    get_webhook_service,
    tenant_admin_required,
    tenant_owner_required,
)
from autogestao.schemas.common import SuccessResponse
from autogestao.schemas.webhook import WebhookCreate, WebhookCreated, WebhookResponse
from autogestao.services.tenancy import TenantContext
from autogestao.services.webhooks import WebhookService

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.get("", response_model=list[WebhookResponse])
async def list_webhooks(
    ctx: TenantContext = Depends(tenant_admin_required),
    service: WebhookService = Depends(get_webhook_service),
) -> list[WebhookResponse]:
    webhooks = await service.list_for_tenant(ctx.tenant_id)
    return [WebhookResponse.model_validate(w) for w in webhooks]


@router.post("", response_model=WebhookCreated, status_code=201)
async def create_webhook(
    body: WebhookCreate,
    ctx: TenantContext = Depends(tenant_owner_required),
    service: WebhookService = Depends(get_webhook_service),
) -> WebhookCreated:
    webhook = await service.create(ctx.tenant_id, str(body.url), body.events)
    return WebhookCreated.model_validate(webhook)


@router.delete("/{webhook_id}", response_model=SuccessResponse)
async def delete_webhook(
    webhook_id: UUID,
    ctx: TenantContext = Depends(tenant_owner_required),
    service: WebhookService = Depends(get_webhook_service),
) -> SuccessResponse:
    await service.delete(webhook_id, ctx.tenant_id)
    return SuccessResponse(message="Webhook deleted")
