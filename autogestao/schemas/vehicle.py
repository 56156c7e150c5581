"""Vehicle and image request/response schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VehicleCreate(BaseModel):
    """POST /v1/vehicles and POST /api/v1/vehicles request body."""

    model_config = ConfigDict(from_attributes=True)

    make: str = Field(min_length=1)
    model: str = Field(min_length=1)
    year: int = Field(ge=1900, le=2100)
    price: float = Field(gt=0)
    color: str | None = None
    mileage: int | None = Field(default=None, ge=0)
    fuel_type: str | None = None
    transmission: str | None = None
    body_type: str | None = None
    description: str | None = None
    is_featured: bool = False


class VehicleUpdate(BaseModel):
    """PATCH /v1/vehicles/{id} and PUT /api/v1/vehicles/{id} request body.

    Only fields present in the request are applied.
    """

    model_config = ConfigDict(from_attributes=True)

    make: str | None = Field(default=None, min_length=1)
    model: str | None = Field(default=None, min_length=1)
    year: int | None = Field(default=None, ge=1900, le=2100)
    price: float | None = Field(default=None, gt=0)
    color: str | None = None
    mileage: int | None = Field(default=None, ge=0)
    fuel_type: str | None = None
    transmission: str | None = None
    body_type: str | None = None
    description: str | None = None
    is_available: bool | None = None
    is_featured: bool | None = None

    @field_validator(
        "make", "model", "year", "price", "is_available", "is_featured"
    )
    @classmethod
    def _not_null(cls, value):
        # Omit a field to leave it unchanged; these columns are NOT NULL.
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class ImageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    vehicle_id: uuid.UUID
    url: str
    filename: str
    mime_type: str
    file_size: int
    is_cover: bool
    display_order: int
    created_at: datetime | None = None


class ImageOrderUpdate(BaseModel):
    """PATCH /v1/vehicles/{id}/images/{image_id}/order request body."""

    display_order: int = Field(ge=0)


class VehicleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    make: str
    model: str
    year: int
    price: float
    color: str | None = None
    mileage: int | None = None
    fuel_type: str | None = None
    transmission: str | None = None
    body_type: str | None = None
    description: str | None = None
    is_available: bool
    is_featured: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class VehicleWithImages(VehicleResponse):
    images: list[ImageResponse] = []


class VehicleListEnvelope(BaseModel):
    """GET /api/v1/vehicles response body."""

    success: bool = True
    data: list[VehicleWithImages]
    count: int


class VehicleEnvelope(BaseModel):
    """GET /api/v1/vehicles/{id} response body."""

    success: bool = True
    data: VehicleWithImages


class VehicleMutationResponse(BaseModel):
    success: bool = True
    message: str
    vehicle_id: uuid.UUID
