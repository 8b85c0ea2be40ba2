"""Payment integration exceptions."""


class PaymentError(Exception):
    """Error during payment processing."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class PaymentProviderError(PaymentError):
    """Request to MercadoPago failed (transport error or non-2xx response)."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message, code)
        self.status_code = status_code
        self.response_body = response_body


class MalformedPaymentError(PaymentError):
    """A provider payment lacks the data we need to act on it."""


class PaymentConfigurationError(PaymentError):
    """A required credential or secret is not configured."""


class CheckoutRateLimited(PaymentError):
    """Too many checkout attempts in the current window."""


class OAuthConnectionError(PaymentError):
    """A MercadoPago account connection could not be completed."""
