"""Lead capture and dashboard metrics schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class LeadCreate(BaseModel):
    """POST /v1/metrics/leads request body."""

    vehicle_id: uuid.UUID
    visitor_id: str | None = None


class RecentLeadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    vehicle_id: uuid.UUID
    vehicle_name: str
    clicked_at: datetime


class DealershipMetricsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_vehicles: int
    total_inventory_value: float
    whatsapp_clicks: int
    whatsapp_clicks_this_month: int
    recent_leads: list[RecentLeadResponse] = []


class DistributionResponse(BaseModel):
    distribution: dict[str, int]


class PriceRangeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    min_price: float
    max_price: float
    avg_price: float
