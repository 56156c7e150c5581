"""Tenant-scoped vehicle inventory.

Every query filters on tenant_id. A vehicle that exists under another
tenant is indistinguishable from a missing one (VehicleNotFoundError),
so cross-tenant reads never leak existence.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from autogestao.core.exceptions import VehicleNotFoundError
from autogestao.models.image import Image
from autogestao.models.vehicle import Vehicle
from autogestao.services.webhooks import WebhookService

logger = structlog.get_logger(__name__)

_MUTABLE_FIELDS = (
    "make",
    "model",
    "year",
    "price",
    "color",
    "mileage",
    "fuel_type",
    "transmission",
    "body_type",
    "description",
    "is_available",
    "is_featured",
)


def vehicle_event_data(vehicle: Vehicle) -> dict[str, Any]:
    return {
        "vehicle_id": str(vehicle.id),
        "make": vehicle.make,
        "model": vehicle.model,
        "year": vehicle.year,
        "price": vehicle.price,
        "is_available": vehicle.is_available,
    }


class VehicleService:
    """CRUD over one tenant's vehicles."""

    def __init__(
        self,
        db: AsyncSession,
        webhooks: WebhookService | None = None,
    ) -> None:
        self._db = db
        self._webhooks = webhooks

    async def list_for_tenant(
        self, tenant_id: UUID, available_only: bool = False
    ) -> list[Vehicle]:
        query = select(Vehicle).where(Vehicle.tenant_id == tenant_id)
        if available_only:
            query = query.where(Vehicle.is_available.is_(True))
        result = await self._db.execute(
            query.order_by(Vehicle.is_featured.desc(), Vehicle.created_at.desc())
        )
        return list(result.scalars().all())

    async def get(
        self,
        vehicle_id: UUID,
        tenant_id: UUID,
        available_only: bool = False,
    ) -> Vehicle:
        result = await self._db.execute(
            select(Vehicle).where(
                Vehicle.id == vehicle_id,
                Vehicle.tenant_id == tenant_id,
            )
        )
        vehicle = result.scalar_one_or_none()
        if vehicle is None:
            raise VehicleNotFoundError()
        if available_only and not vehicle.is_available:
            raise VehicleNotFoundError("Vehicle not available")
        return vehicle

    async def images_for(
        self, vehicle_ids: list[UUID], tenant_id: UUID
    ) -> dict[UUID, list[Image]]:
        """Images of several vehicles, grouped by vehicle and display order."""
        grouped: dict[UUID, list[Image]] = {vid: [] for vid in vehicle_ids}
        if not vehicle_ids:
            return grouped

        result = await self._db.execute(
            select(Image)
            .where(
                Image.vehicle_id.in_(vehicle_ids),
                Image.tenant_id == tenant_id,
            )
            .order_by(Image.display_order.asc())
        )
        for image in result.scalars().all():
            grouped.setdefault(image.vehicle_id, []).append(image)
        return grouped

    async def create(self, tenant_id: UUID, data: dict[str, Any]) -> Vehicle:
        fields = {k: v for k, v in data.items() if k in _MUTABLE_FIELDS}
        fields.setdefault("is_available", True)
        fields.setdefault("is_featured", False)

        vehicle = Vehicle(tenant_id=tenant_id, **fields)
        self._db.add(vehicle)
        await self._db.flush()

        logger.info(
            "vehicle_created", tenant_id=str(tenant_id), vehicle_id=str(vehicle.id)
        )
        await self._emit(tenant_id, "vehicle.created", vehicle)
        return vehicle

    async def update(
        self, vehicle_id: UUID, tenant_id: UUID, changes: dict[str, Any]
    ) -> Vehicle:
        vehicle = await self.get(vehicle_id, tenant_id)

        for field, value in changes.items():
            if field in _MUTABLE_FIELDS:
                setattr(vehicle, field, value)
        await self._db.flush()

        await self._emit(tenant_id, "vehicle.updated", vehicle)
        return vehicle

    async def soft_delete(self, vehicle_id: UUID, tenant_id: UUID) -> Vehicle:
        """Mark a vehicle unavailable; rows are never hard-deleted here."""
        vehicle = await self.get(vehicle_id, tenant_id)
        vehicle.is_available = False
        await self._db.flush()

        logger.info(
            "vehicle_deleted", tenant_id=str(tenant_id), vehicle_id=str(vehicle_id)
        )
        await self._emit(tenant_id, "vehicle.deleted", vehicle)
        return vehicle

    async def _emit(self, tenant_id: UUID, event: str, vehicle: Vehicle) -> None:
        if self._webhooks is not None:
            await self._webhooks.dispatch(
                tenant_id, event, vehicle_event_data(vehicle)
            )
