"""Pydantic schemas for subscription checkout and account connection."""

from pydantic import BaseModel, Field

from optima_schemas import PlanType


class SubscriptionCheckoutRequest(BaseModel):
    """Request body for POST /payments/subscriptions/checkout."""

    plan_type: PlanType
    payer_email: str = Field(..., pattern=r"^[^@]+@[^@]+\.[^@]+$")
    payer_name: str = Field(default="", max_length=200)


class SubscriptionCheckoutResponse(BaseModel):
    """Response for POST /payments/subscriptions/checkout."""

    preference_id: str
    init_point: str | None
    sandbox_init_point: str | None


class MercadoPagoConnectResponse(BaseModel):
    """Response for POST /payments/mercadopago/connect."""

    authorization_url: str
