"""
Integration tests for restaurant API views.
"""

import json
import uuid
from decimal import Decimal

from django.db import connection
from django.test import Client as DjangoClient

import httpx
import pytest
import respx

from apps.web.restaurant.models import Order, OrderStatus, PaymentStatus
from apps.web.restaurant.tests.factories import (
    ClientFactory,
    MenuItemFactory,
    OrderFactory,
    OrderItemFactory,
)

PREFERENCES_URL = "https://api.mercadopago.com/checkout/preferences"


@pytest.fixture
def api_client() -> DjangoClient:
    """Django test client for API requests."""
    return DjangoClient()


@pytest.fixture
def restaurant_client():
    """A business with MercadoPago connected."""
    return ClientFactory(slug="la-esquina", mercadopago_access_token="TEST-esquina")


@pytest.fixture
def empanada(restaurant_client):
    return MenuItemFactory(
        client=restaurant_client, name="Empanada", price=Decimal("1200.00")
    )


def _post_order(api_client, slug, payload, key=None):
    return api_client.post(
        f"/api/clients/{slug}/orders",
        data=json.dumps(payload),
        content_type="application/json",
        HTTP_IDEMPOTENCY_KEY=key or str(uuid.uuid4()),
    )


def _payload(item, payment_method="cash", **overrides):
    payload = {
        "customer": {"name": "Ana", "phone": "+5491100000000"},
        "delivery_type": "pickup",
        "payment_method": payment_method,
        "items": [{"menu_item_id": item.pk, "quantity": 2}],
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
class TestCreateOrder:
    """Tests for POST /api/clients/{slug}/orders."""

    def test_cash_order_created(self, api_client, restaurant_client, empanada):
        """A cash order is created without a checkout URL."""
        response = _post_order(api_client, restaurant_client.slug, _payload(empanada))

        assert response.status_code == 201
        data = response.json()
        assert data["order_number"] == 1
        assert data["status"] == "pending"
        assert data["payment_status"] is None
        assert data["checkout_url"] is None
        assert Decimal(data["total"]) == Decimal("2400.00")
        assert response["Access-Control-Allow-Origin"] == "*"

    @respx.mock
    def test_online_order_returns_checkout_url(
        self, api_client, restaurant_client, empanada
    ):
        """Online orders get a MercadoPago preference created with the business token."""
        route = respx.post(PREFERENCES_URL).mock(
            return_value=httpx.Response(
                201,
                json={
                    "id": "pref-123",
                    "init_point": "https://mp.example/checkout/pref-123",
                    "sandbox_init_point": "https://sandbox.mp.example/pref-123",
                },
            )
        )

        response = _post_order(
            api_client, restaurant_client.slug, _payload(empanada, "online")
        )

        assert response.status_code == 201
        data = response.json()
        assert data["checkout_url"] == "https://mp.example/checkout/pref-123"
        assert data["payment_status"] == "processing"

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer TEST-esquina"
        body = json.loads(request.content)
        order = Order.objects.get(pk=data["order_id"])
        assert body["external_reference"] == str(order.pk)
        assert body["notification_url"] == (
            f"https://api.example.com/payments/webhooks/mercadopago?orderId={order.pk}"
        )
        assert body["items"][0]["quantity"] == 2
        assert body["items"][0]["unit_price"] == 1200.0
        assert order.mercadopago_preference_id == "pref-123"
        assert order.payment_status == PaymentStatus.PROCESSING

    @respx.mock
    def test_provider_failure_cancels_order(
        self, api_client, restaurant_client, empanada
    ):
        """If the preference cannot be created the committed order is cancelled."""
        respx.post(PREFERENCES_URL).mock(return_value=httpx.Response(500, json={}))

        response = _post_order(
            api_client, restaurant_client.slug, _payload(empanada, "online")
        )

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Payment processing failed"
        order = Order.objects.get(client=restaurant_client)
        assert data["order_id"] == str(order.pk)
        assert order.status == OrderStatus.CANCELLED
        assert order.payment_status == PaymentStatus.FAILED
        assert order.mercadopago_preference_id == ""

    def test_online_order_without_mercadopago(self, api_client, empanada):
        """Businesses without MercadoPago cannot take online orders."""
        client = empanada.client
        client.mercadopago_access_token = ""
        client.save()

        response = _post_order(api_client, client.slug, _payload(empanada, "online"))

        assert response.status_code == 500
        assert not Order.objects.exists()

    def test_idempotent_replay(self, api_client, restaurant_client, empanada):
        """Replaying the same Idempotency-Key returns the first response."""
        first = _post_order(
            api_client, restaurant_client.slug, _payload(empanada), key="same-key"
        )
        second = _post_order(
            api_client, restaurant_client.slug, _payload(empanada), key="same-key"
        )

        assert first.json()["order_id"] == second.json()["order_id"]
        assert Order.objects.count() == 1

    def test_missing_idempotency_key(self, api_client, restaurant_client, empanada):
        """Order creation requires an Idempotency-Key header."""
        response = api_client.post(
            f"/api/clients/{restaurant_client.slug}/orders",
            data=json.dumps(_payload(empanada)),
            content_type="application/json",
        )

        assert response.status_code == 400

    def test_schema_validation_error(self, api_client, restaurant_client):
        """Invalid payloads return field-level errors."""
        response = _post_order(
            api_client,
            restaurant_client.slug,
            {"customer": {"name": "Ana"}, "items": []},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "validation_error"
        fields = {d["field"] for d in data["details"]}
        assert "customer.phone" in fields
        assert "items" in fields

    def test_item_validation_error(self, api_client, restaurant_client):
        """Catalog errors are reported with the item field."""
        foreign = MenuItemFactory()

        response = _post_order(api_client, restaurant_client.slug, _payload(foreign))

        assert response.status_code == 400
        assert response.json()["details"] == [
            {"field": "items[0].menu_item_id", "message": "Item not found"}
        ]

    def test_invalid_json(self, api_client, restaurant_client):
        """Malformed bodies are rejected."""
        response = api_client.post(
            f"/api/clients/{restaurant_client.slug}/orders",
            data="{not json",
            content_type="application/json",
            HTTP_IDEMPOTENCY_KEY="k1",
        )

        assert response.status_code == 400

    def test_unknown_business(self, api_client):
        """Unknown slugs 404."""
        response = _post_order(
            api_client,
            "nope",
            {"customer": {}, "items": []},
        )

        assert response.status_code == 404


@pytest.mark.django_db
class TestOrderDetail:
    """Tests for GET /api/clients/{slug}/orders/{order_id}."""

    def test_order_detail(self, api_client, restaurant_client):
        """Customers can follow their order."""
        order = OrderFactory(client=restaurant_client, status=OrderStatus.READY)
        OrderItemFactory(order=order)

        response = api_client.get(
            f"/api/clients/{restaurant_client.slug}/orders/{order.pk}"
        )

        assert response.status_code == 200
        data = response.json()
        assert data["order_id"] == str(order.pk)
        assert data["status"] == "ready"
        assert data["customer"]["name"] == order.customer_name
        assert len(data["items"]) == 1

    def test_order_of_other_business(self, api_client, restaurant_client):
        """Orders are only visible under their own business."""
        order = OrderFactory()

        response = api_client.get(
            f"/api/clients/{restaurant_client.slug}/orders/{order.pk}"
        )

        assert response.status_code == 404


@pytest.mark.django_db(transaction=True)
class TestCreateOrderLocking:
    """The provider round-trip happens outside the order transaction."""

    @respx.mock
    def test_preference_created_after_commit(self, api_client, restaurant_client, empanada):
        """No transaction (and so no tenant row lock) is open during the provider call."""
        seen = {}

        def _create_preference(request):
            seen["in_atomic_block"] = connection.in_atomic_block
            return httpx.Response(
                201,
                json={
                    "id": "pref-9",
                    "init_point": "https://mp.example/checkout/pref-9",
                    "sandbox_init_point": "https://sandbox.mp.example/pref-9",
                },
            )

        respx.post(PREFERENCES_URL).mock(side_effect=_create_preference)

        response = _post_order(
            api_client, restaurant_client.slug, _payload(empanada, "online")
        )

        assert response.status_code == 201
        assert seen == {"in_atomic_block": False}
        order = Order.objects.get(client=restaurant_client)
        assert order.mercadopago_preference_id == "pref-9"
