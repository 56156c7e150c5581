"""WhatsApp lead capture and dealership dashboard metrics.

All aggregates filter on tenant_id. Leads are append-only: there is no
update or delete path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from autogestao.models.lead import WhatsAppLead
from autogestao.models.vehicle import Vehicle
from autogestao.services.vehicles import VehicleService
from autogestao.services.webhooks import WebhookService

logger = structlog.get_logger(__name__)


@dataclass
class RecentLead:
    vehicle_id: UUID
    vehicle_name: str
    clicked_at: datetime


@dataclass
class DealershipMetrics:
    total_vehicles: int
    total_inventory_value: float
    whatsapp_clicks: int
    whatsapp_clicks_this_month: int
    recent_leads: list[RecentLead] = field(default_factory=list)


@dataclass
class PriceRangeStats:
    min_price: float
    max_price: float
    avg_price: float


def _month_start(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class LeadService:
    """Records leads and computes per-tenant dashboard aggregates."""

    def __init__(
        self,
        db: AsyncSession,
        webhooks: WebhookService | None = None,
    ) -> None:
        self._db = db
        self._webhooks = webhooks

    async def record_whatsapp_lead(
        self,
        tenant_id: UUID,
        vehicle_id: UUID,
        visitor_id: str | None = None,
        user_agent: str | None = None,
    ) -> WhatsAppLead:
        # The vehicle must belong to the tenant (404 otherwise).
        await VehicleService(self._db).get(vehicle_id, tenant_id)

        lead = WhatsAppLead(
            tenant_id=tenant_id,
            vehicle_id=vehicle_id,
            visitor_id=visitor_id or None,
            user_agent=user_agent or None,
            was_completed=True,
        )
        self._db.add(lead)
        await self._db.flush()

        logger.info(
            "whatsapp_lead_recorded",
            tenant_id=str(tenant_id),
            vehicle_id=str(vehicle_id),
        )
        if self._webhooks is not None:
            await self._webhooks.dispatch(
                tenant_id,
                "lead.created",
                {
                    "lead_id": str(lead.id),
                    "vehicle_id": str(vehicle_id),
                    "visitor_id": lead.visitor_id,
                },
            )
        return lead

    async def _scalar(self, query) -> int | float | None:
        result = await self._db.execute(query)
        return result.scalar_one_or_none()

    async def get_dealership_metrics(
        self, tenant_id: UUID, recent_limit: int = 10
    ) -> DealershipMetrics:
        available = (
            Vehicle.tenant_id == tenant_id,
            Vehicle.is_available.is_(True),
        )

        total_vehicles = await self._scalar(
            select(func.count()).select_from(Vehicle).where(*available)
        )
        inventory_value = await self._scalar(
            select(func.coalesce(func.sum(Vehicle.price), 0)).where(*available)
        )
        clicks = await self._scalar(
            select(func.count())
            .select_from(WhatsAppLead)
            .where(WhatsAppLead.tenant_id == tenant_id)
        )
        clicks_this_month = await self._scalar(
            select(func.count())
            .select_from(WhatsAppLead)
            .where(
                WhatsAppLead.tenant_id == tenant_id,
                WhatsAppLead.created_at >= _month_start(),
            )
        )

        recent = await self._db.execute(
            select(
                WhatsAppLead.vehicle_id,
                Vehicle.make,
                Vehicle.model,
                WhatsAppLead.created_at,
            )
            .join(Vehicle, Vehicle.id == WhatsAppLead.vehicle_id)
            .where(
                WhatsAppLead.tenant_id == tenant_id,
                Vehicle.tenant_id == tenant_id,
            )
            .order_by(WhatsAppLead.created_at.desc())
            .limit(recent_limit)
        )

        return DealershipMetrics(
            total_vehicles=int(total_vehicles or 0),
            total_inventory_value=float(inventory_value or 0),
            whatsapp_clicks=int(clicks or 0),
            whatsapp_clicks_this_month=int(clicks_this_month or 0),
            recent_leads=[
                RecentLead(
                    vehicle_id=row.vehicle_id,
                    vehicle_name=f"{row.make} {row.model}",
                    clicked_at=row.created_at,
                )
                for row in recent.all()
            ],
        )

    async def _distribution(self, tenant_id: UUID, column) -> dict[str, int]:
        result = await self._db.execute(
            select(column, func.count())
            .where(Vehicle.tenant_id == tenant_id)
            .group_by(column)
        )
        return {(key or "unknown"): int(count) for key, count in result.all()}

    async def get_vehicles_by_fuel_type(self, tenant_id: UUID) -> dict[str, int]:
        return await self._distribution(tenant_id, Vehicle.fuel_type)

    async def get_vehicles_by_body_type(self, tenant_id: UUID) -> dict[str, int]:
        return await self._distribution(tenant_id, Vehicle.body_type)

    async def get_price_range_stats(self, tenant_id: UUID) -> PriceRangeStats:
        result = await self._db.execute(
            select(
                func.min(Vehicle.price),
                func.max(Vehicle.price),
                func.avg(Vehicle.price),
            ).where(Vehicle.tenant_id == tenant_id)
        )
        row = result.one()
        min_price, max_price, avg_price = row
        return PriceRangeStats(
            min_price=float(min_price or 0),
            max_price=float(max_price or 0),
            avg_price=float(avg_price or 0),
        )
