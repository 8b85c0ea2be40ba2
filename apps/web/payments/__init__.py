"""Payments module - MercadoPago integration for orders and subscriptions."""

from apps.web.payments.exceptions import (
    CheckoutRateLimited,
    MalformedPaymentError,
    OAuthConnectionError,
    PaymentConfigurationError,
    PaymentError,
    PaymentProviderError,
)

__all__ = [
    "CheckoutRateLimited",
    "MalformedPaymentError",
    "OAuthConnectionError",
    "PaymentConfigurationError",
    "PaymentError",
    "PaymentProviderError",
]
