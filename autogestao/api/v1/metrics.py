"""Lead capture and dealership dashboard endpoints."""

from fastapi import APIRouter, Depends, Request

from autogestao.api.deps import get_lead_service, tenant_auth_required, tenant_required
from autogestao.schemas.common import SuccessResponse
from autogestao.schemas.metrics import (
    DealershipMetricsResponse,
    DistributionResponse,
    LeadCreate,
    PriceRangeResponse,
)
from autogestao.services.leads import LeadService
from autogestao.services.tenancy import TenantContext

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.post("/leads", response_model=SuccessResponse, status_code=201)
async def record_lead(
    body: LeadCreate,
    request: Request,
    ctx: TenantContext = Depends(tenant_required),
    leads: LeadService = Depends(get_lead_service),
) -> SuccessResponse:
    """Record a WhatsApp click from the public storefront."""
    await leads.record_whatsapp_lead(
        ctx.tenant_id,
        body.vehicle_id,
        visitor_id=body.visitor_id,
        user_agent=request.headers.get("user-agent"),
    )
    return SuccessResponse(message="Lead recorded")


@router.get("/dealership", response_model=DealershipMetricsResponse)
async def dealership_metrics(
    ctx: TenantContext = Depends(tenant_auth_required),
    leads: LeadService = Depends(get_lead_service),
) -> DealershipMetricsResponse:
    metrics = await leads.get_dealership_metrics(ctx.tenant_id)
    return DealershipMetricsResponse.model_validate(metrics)


@router.get("/fuel-types", response_model=DistributionResponse)
async def vehicles_by_fuel_type(
    ctx: TenantContext = Depends(tenant_auth_required),
    leads: LeadService = Depends(get_lead_service),
) -> DistributionResponse:
    return DistributionResponse(
        distribution=await leads.get_vehicles_by_fuel_type(ctx.tenant_id)
    )


@router.get("/body-types", response_model=DistributionResponse)
async def vehicles_by_body_type(
    ctx: TenantContext = Depends(tenant_auth_required),
    leads: LeadService = Depends(get_lead_service),
) -> DistributionResponse:
    return DistributionResponse(
        distribution=await leads.get_vehicles_by_body_type(ctx.tenant_id)
    )


@router.get("/price-range", response_model=PriceRangeResponse)
async def price_range(
    ctx: TenantContext = Depends(tenant_auth_required),
    leads: LeadService = Depends(get_lead_service),
) -> PriceRangeResponse:
    stats = await leads.get_price_range_stats(ctx.tenant_id)
    return PriceRangeResponse.model_validate(stats)
