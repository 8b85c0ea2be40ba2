"""Kitchen display schemas - PIN gate and kitchen session contracts."""

from datetime import datetime

from pydantic import BaseModel, Field


class RateLimitStatus(BaseModel):
    """Result of a rate-limit check for a tenant's kitchen PIN."""

    rate_limited: bool
    retry_after_seconds: int = Field(default=0, ge=0)
    attempts_remaining: int = Field(default=0, ge=0)


class KitchenSession(BaseModel):
    """A validated kitchen display session, persisted client side."""

    tenant_id: int
    tenant_slug: str
    tenant_name: str
    validated_at: datetime
