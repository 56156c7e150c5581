"""Webhook subscription schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator


class WebhookCreate(BaseModel):
    """POST /v1/webhooks request body."""

    url: HttpUrl
    events: list[str] = Field(min_length=1)

    @field_validator("url")
    @classmethod
    def _https_only(cls, url: HttpUrl) -> HttpUrl:
        if url.scheme != "https":
            raise ValueError("webhook URL must use https")
        return url


class WebhookResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    url: str
    events: list[str]
    is_active: bool
    last_delivery_at: datetime | None = None
    last_status_code: int | None = None
    created_at: datetime | None = None


class WebhookCreated(WebhookResponse):
    """Includes the signing secret, returned once."""

    secret: str
