"""Pydantic schemas for kitchen display endpoints."""

from typing import Annotated

from pydantic import BaseModel, Field


class PinLoginRequest(BaseModel):
    """Request body for POST /kitchen/{slug}/pin."""

    pin: str = Field(..., min_length=4, max_length=12, pattern=r"^\d+$")


class PinLoginErrorResponse(BaseModel):
    """Response for a rejected PIN login."""

    error: str
    rate_limited: bool
    retry_after_seconds: int
    attempts_remaining: int | None


class KitchenPinSettingsRequest(BaseModel):
    """Request body for POST /dashboard/kitchen-pin. A null PIN disables kitchen access."""

    kitchen_pin: Annotated[str, Field(pattern=r"^\d{4,6}$")] | None


class KitchenPinSettingsResponse(BaseModel):
    """Whether the business's kitchen display is PIN-protected."""

    kitchen_pin_enabled: bool
