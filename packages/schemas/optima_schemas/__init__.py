"""Optima Schemas - Pydantic models for data contracts."""

from optima_schemas.kitchen import KitchenSession, RateLimitStatus
from optima_schemas.orders import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    AlertState,
    DeliveryType,
    OrderSnapshot,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from optima_schemas.payments import (
    CheckoutPreference,
    OAuthToken,
    PlanType,
    ProviderPayer,
    ProviderPayment,
    WebhookNotification,
    parse_notification,
)

__all__ = [
    # Orders
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "AlertState",
    "DeliveryType",
    "OrderSnapshot",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    # Kitchen
    "KitchenSession",
    "RateLimitStatus",
    # Payments
    "CheckoutPreference",
    "OAuthToken",
    "PlanType",
    "ProviderPayer",
    "ProviderPayment",
    "WebhookNotification",
    "parse_notification",
]
