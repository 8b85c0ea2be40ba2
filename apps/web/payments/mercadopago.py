"""MercadoPago API client - payments, checkout preferences and seller OAuth."""

import asyncio
import logging
from typing import Any, TypeVar

from django.conf import settings

import httpx
from optima_schemas import CheckoutPreference, OAuthToken, ProviderPayment

from apps.web.payments.exceptions import PaymentProviderError

logger = logging.getLogger(__name__)

_M = TypeVar("_M", ProviderPayment, CheckoutPreference, OAuthToken)


class MercadoPagoAPI:
    """
    Thin async client for the MercadoPago REST API.

    Each call takes the access token to use, since order payments are made
    with the business's own token and subscriptions with the platform token.

    API Reference: https://www.mercadopago.com.ar/developers/en/reference
    """

    DEFAULT_BASE_URL = "https://api.mercadopago.com"

    # Retry configuration (transport failures only)
    MAX_RETRIES = 3
    RETRY_DELAY = 0.1

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
    ) -> None:
        """
        Initialize the MercadoPago client.

        Args:
            http_client: Optional HTTP client for dependency injection (testing).
            base_url: API base URL (defaults to settings.MERCADOPAGO_API_BASE_URL).
        """
        self._client = http_client or httpx.AsyncClient(timeout=15.0)
        self._owns_client = http_client is None
        self._base_url = (
            base_url
            or getattr(settings, "MERCADOPAGO_API_BASE_URL", "")
            or self.DEFAULT_BASE_URL
        ).rstrip("/")

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "MercadoPagoAPI":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _request_with_retry(
        self,
        method: str,
        path: str,
        access_token: str | None,
        max_attempts: int | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Make an HTTP request, retrying transport failures.

        Transport errors (timeouts, dropped connections) are retried with a
        linear backoff. HTTP error responses are never retried.
        Pass max_attempts=1 for non-idempotent calls, and no access_token
        for unauthenticated endpoints such as the OAuth token exchange.

        Raises:
            PaymentProviderError: On a non-2xx response or after the last retry.
        """
        headers = {"Accept": "application/json", **kwargs.pop("headers", {})}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        url = f"{self._base_url}{path}"
        attempts = max_attempts or self.MAX_RETRIES
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                response = await self._client.request(
                    method, url, headers=headers, **kwargs
                )
            except httpx.TransportError as e:
                last_error = e
                if attempt < attempts:
                    delay = self.RETRY_DELAY * attempt
                    logger.warning(
                        "MercadoPago %s %s failed (attempt %d/%d), retry in %.1fs: %s",
                        method,
                        path,
                        attempt,
                        attempts,
                        delay,
                        e,
                    )
                    await asyncio.sleep(delay)
                continue

            if response.is_error:
                raise PaymentProviderError(
                    f"MercadoPago {method} {path} returned {response.status_code}",
                    code="provider_error",
                    status_code=response.status_code,
                    response_body=response.text[:1000],
                )
            return response

        raise PaymentProviderError(
            f"MercadoPago {method} {path} failed after {attempts} attempts: "
            f"{last_error}",
            code="provider_unreachable",
        )

    async def get_payment(self, payment_id: str, access_token: str) -> ProviderPayment:
        """Fetch a payment by id."""
        response = await self._request_with_retry(
            "GET", f"/v1/payments/{payment_id}", access_token
        )
        return _parse(ProviderPayment, response)

    async def create_preference(
        self, preference: dict[str, Any], access_token: str
    ) -> CheckoutPreference:
        """Create a checkout preference."""
        response = await self._request_with_retry(
            "POST",
            "/checkout/preferences",
            access_token,
            max_attempts=1,
            json=preference,
        )
        return _parse(CheckoutPreference, response)

    async def exchange_oauth_code(
        self,
        code: str,
        redirect_uri: str,
        client_id: str,
        client_secret: str,
    ) -> OAuthToken:
        """
        Exchange an authorization code for a seller's credentials.

        Codes are single use, so the exchange is attempted once.
        """
        response = await self._request_with_retry(
            "POST",
            "/oauth/token",
            None,
            max_attempts=1,
            data={
                "grant_type": "authorization_code",
                "client_id": client_id,
                "client_secret": client_secret,
                "code": code,
                "redirect_uri": redirect_uri,
            },
        )
        return _parse(OAuthToken, response)


def _parse(model: type[_M], response: httpx.Response) -> _M:
    """Validate a provider response body."""
    try:
        return model.model_validate(response.json())
    except ValueError as e:
        # Covers both JSON decode errors and pydantic ValidationError
        raise PaymentProviderError(
            f"Unexpected MercadoPago response: {e}",
            code="invalid_response",
            status_code=response.status_code,
            response_body=response.text[:1000],
        ) from e
