"""Tenant request/response schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class SubdomainAvailability(BaseModel):
    """GET /v1/tenant/check-subdomain response body."""

    available: bool
    message: str | None = None


class PublicTenantResponse(BaseModel):
    """Storefront-safe view of a tenant."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    subdomain: str
    name: str
    description: str | None = None
    logo_url: str | None = None
    phone: str | None = None
    city: str | None = None
    state: str | None = None


class TenantResponse(PublicTenantResponse):
    """Full tenant record for the platform back-office."""

    contact_email: str | None = None
    address: str | None = None
    zip_code: str | None = None
    country: str | None = None
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TenantCreate(BaseModel):
    """POST /v1/admin/tenants request body."""

    subdomain: str = Field(min_length=3, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    contact_email: EmailStr | None = None
    phone: str | None = None
    description: str | None = None
    city: str | None = None
    owner_user_id: uuid.UUID | None = None


class TenantUpdate(BaseModel):
    """PATCH /v1/admin/tenants/{id} request body."""

    name: str | None = None
    contact_email: EmailStr | None = None
    phone: str | None = None
    logo_url: str | None = None
    description: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None


class TenantStatusUpdate(BaseModel):
    is_active: bool


class TenantStatsResponse(BaseModel):
    tenant: TenantResponse
    vehicle_count: int
    user_count: int
    lead_count: int


class PlatformStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_tenants: int
    active_tenants: int
    total_vehicles: int
    total_leads: int
    total_users: int
    total_api_keys: int
