"""Shared response schemas."""

from pydantic import BaseModel, ConfigDict


class SuccessResponse(BaseModel):
    """Acknowledgement body for mutations with nothing else to return."""

    model_config = ConfigDict(from_attributes=True)

    success: bool = True
    message: str | None = None
