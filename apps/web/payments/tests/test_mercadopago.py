"""Tests for the MercadoPago API client."""

from urllib.parse import parse_qs

import httpx
import pytest
import respx

from apps.web.payments.exceptions import PaymentProviderError
from apps.web.payments.mercadopago import MercadoPagoAPI

BASE_URL = "https://api.mercadopago.test"


@pytest.fixture
def api():
    client = MercadoPagoAPI(base_url=BASE_URL)
    client.RETRY_DELAY = 0
    return client


class TestGetPayment:
    """Tests for MercadoPagoAPI.get_payment."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_payment(self, api):
        """Payments are fetched with the given bearer token."""
        route = respx.get(f"{BASE_URL}/v1/payments/123").mock(
            return_value=httpx.Response(
                200,
                json={
                    "id": 123,
                    "status": "approved",
                    "external_reference": "order-1",
                    "transaction_amount": 2400.0,
                    "payer": {"email": "ana@example.com"},
                    "metadata": None,
                    "unknown_field": "kept",
                },
            )
        )

        payment = await api.get_payment("123", "TEST-token")
        await api.close()

        assert payment.id == "123"
        assert payment.status == "approved"
        assert payment.payer.email == "ana@example.com"
        assert payment.metadata == {}
        assert route.calls.last.request.headers["Authorization"] == "Bearer TEST-token"

    @pytest.mark.asyncio
    @respx.mock
    async def test_retries_transport_errors(self, api):
        """Transport failures are retried until a response arrives."""
        route = respx.get(f"{BASE_URL}/v1/payments/123").mock(
            side_effect=[
                httpx.ConnectError("refused"),
                httpx.ReadTimeout("slow"),
                httpx.Response(200, json={"id": "123", "status": "pending"}),
            ]
        )

        payment = await api.get_payment("123", "TEST-token")
        await api.close()

        assert payment.status == "pending"
        assert route.call_count == 3

    @pytest.mark.asyncio
    @respx.mock
    async def test_gives_up_after_max_retries(self, api):
        """Exhausting retries raises provider_unreachable."""
        route = respx.get(f"{BASE_URL}/v1/payments/123").mock(
            side_effect=httpx.ConnectError("refused")
        )

        with pytest.raises(PaymentProviderError) as exc_info:
            await api.get_payment("123", "TEST-token")
        await api.close()

        assert exc_info.value.code == "provider_unreachable"
        assert route.call_count == MercadoPagoAPI.MAX_RETRIES

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_errors_not_retried(self, api):
        """Error responses fail immediately."""
        route = respx.get(f"{BASE_URL}/v1/payments/123").mock(
            return_value=httpx.Response(404, json={"message": "not found"})
        )

        with pytest.raises(PaymentProviderError) as exc_info:
            await api.get_payment("123", "TEST-token")
        await api.close()

        assert exc_info.value.code == "provider_error"
        assert exc_info.value.status_code == 404
        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_invalid_body(self, api):
        """Non-JSON bodies raise invalid_response."""
        respx.get(f"{BASE_URL}/v1/payments/123").mock(
            return_value=httpx.Response(200, text="<html>")
        )

        with pytest.raises(PaymentProviderError) as exc_info:
            await api.get_payment("123", "TEST-token")
        await api.close()

        assert exc_info.value.code == "invalid_response"


class TestCreatePreference:
    """Tests for MercadoPagoAPI.create_preference."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_create_preference_not_retried(self, api):
        """Preference creation is attempted once."""
        route = respx.post(f"{BASE_URL}/checkout/preferences").mock(
            side_effect=httpx.ConnectError("refused")
        )

        with pytest.raises(PaymentProviderError):
            await api.create_preference({"items": []}, "TEST-token")
        await api.close()

        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_create_preference(self, api):
        """The created preference is parsed."""
        respx.post(f"{BASE_URL}/checkout/preferences").mock(
            return_value=httpx.Response(
                201, json={"id": "pref-1", "init_point": "https://mp/pref-1"}
            )
        )

        async with api:
            preference = await api.create_preference({"items": []}, "TEST-token")

        assert preference.id == "pref-1"
        assert preference.init_point == "https://mp/pref-1"
        assert preference.sandbox_init_point is None


class TestExchangeOAuthCode:
    """Tests for MercadoPagoAPI.exchange_oauth_code."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_exchange(self, api):
        """The code is posted form-encoded without a bearer token."""
        route = respx.post(f"{BASE_URL}/oauth/token").mock(
            return_value=httpx.Response(
                200,
                json={
                    "access_token": "APP_USR-seller",
                    "refresh_token": "TG-refresh",
                    "user_id": 987654,
                    "public_key": "APP_USR-public",
                    "expires_in": 15552000,
                },
            )
        )

        async with api:
            token = await api.exchange_oauth_code(
                "TG-code", "https://api.example.com/cb", "app-id", "app-secret"
            )

        assert token.access_token == "APP_USR-seller"
        assert token.refresh_token == "TG-refresh"
        assert token.user_id == "987654"
        assert token.public_key == "APP_USR-public"
        request = route.calls.last.request
        assert "Authorization" not in request.headers
        assert parse_qs(request.content.decode()) == {
            "grant_type": ["authorization_code"],
            "client_id": ["app-id"],
            "client_secret": ["app-secret"],
            "code": ["TG-code"],
            "redirect_uri": ["https://api.example.com/cb"],
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_exchange_not_retried(self, api):
        """Codes are single use, so transport failures are not retried."""
        route = respx.post(f"{BASE_URL}/oauth/token").mock(
            side_effect=httpx.ConnectError("refused")
        )

        with pytest.raises(PaymentProviderError):
            await api.exchange_oauth_code("TG-code", "https://cb", "app-id", "app-secret")
        await api.close()

        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_rejected_code(self, api):
        """An invalid grant surfaces as a provider error."""
        respx.post(f"{BASE_URL}/oauth/token").mock(
            return_value=httpx.Response(400, json={"error": "invalid_grant"})
        )

        with pytest.raises(PaymentProviderError) as exc_info:
            await api.exchange_oauth_code("TG-used", "https://cb", "app-id", "app-secret")
        await api.close()

        assert exc_info.value.status_code == 400
