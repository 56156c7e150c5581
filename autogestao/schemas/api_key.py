"""API key management schemas."""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ApiKeyCreate(BaseModel):
    """POST /v1/api-keys request body."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    role: Literal["manager", "viewer"] = "manager"


class ApiKeyCreated(BaseModel):
    """POST /v1/api-keys response body. The only time the full key is returned."""

    success: bool = True
    message: str = "API key created successfully"
    id: uuid.UUID
    key: str
    key_prefix: str


class ApiKeySummary(BaseModel):
    """A listed key; never includes the full key."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    key_prefix: str
    description: str | None = None
    role: str
    is_active: bool
    last_used_at: datetime | None = None
    created_at: datetime | None = None


class ApiKeyListResponse(BaseModel):
    success: bool = True
    data: list[ApiKeySummary]
    count: int
