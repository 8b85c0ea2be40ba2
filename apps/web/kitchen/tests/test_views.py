"""Integration tests for kitchen display views."""

import json
from datetime import UTC, datetime, timedelta

from django.test import Client as DjangoClient

import pytest

from apps.web.restaurant.models import OrderStatus
from apps.web.restaurant.tests.factories import ClientFactory, OrderFactory


@pytest.fixture
def business(db):
    client = ClientFactory(slug="cocina", name="Cocina Central")
    client.set_kitchen_pin("2468")
    client.save()
    return client


@pytest.fixture
def display(business) -> DjangoClient:
    """A kitchen display already unlocked with the PIN."""
    http = DjangoClient()
    response = _login(http, "2468")
    assert response.status_code == 200
    return http


def _login(http, pin, slug="cocina"):
    return http.post(
        f"/kitchen/{slug}/pin",
        data=json.dumps({"pin": pin}),
        content_type="application/json",
    )


def _post(http, url, payload):
    return http.post(url, data=json.dumps(payload), content_type="application/json")


@pytest.mark.django_db
class TestPinLogin:
    """Tests for POST /kitchen/{slug}/pin."""

    def test_correct_pin(self, business):
        """The right PIN returns the kitchen session."""
        response = _login(DjangoClient(), "2468")

        assert response.status_code == 200
        data = response.json()
        assert data["tenant_id"] == business.pk
        assert data["tenant_slug"] == "cocina"
        assert data["tenant_name"] == "Cocina Central"

    def test_wrong_pin(self, business):
        """Wrong PINs get a 401 with the remaining attempts."""
        response = _login(DjangoClient(), "1357")

        assert response.status_code == 401
        data = response.json()
        assert data["attempts_remaining"] == 4
        assert data["error"] == "Incorrect PIN. 4 attempt(s) remaining."

    def test_lockout(self, business):
        """The sixth attempt after five failures is rate limited."""
        http = DjangoClient()
        for _ in range(4):
            _login(http, "1357")
        fifth = _login(http, "1357")
        sixth = _login(http, "2468")

        assert fifth.status_code == 429
        assert fifth.json()["error"] == "Incorrect PIN. Access blocked for 15 minutes."
        assert sixth.status_code == 429
        assert sixth.json()["rate_limited"] is True
        assert sixth.json()["retry_after_seconds"] > 0

    def test_invalid_pin_format(self, business):
        """PINs must be 4-12 digits."""
        response = _login(DjangoClient(), "12a")

        assert response.status_code == 400

    def test_unknown_business(self, db):
        """Unknown businesses never unlock."""
        response = _login(DjangoClient(), "2468", slug="nope")

        assert response.status_code == 401


@pytest.mark.django_db
class TestKitchenOrders:
    """Tests for the kitchen order board."""

    def test_requires_session(self, business):
        """Without a PIN session the board is closed."""
        response = DjangoClient().get("/kitchen/orders")

        assert response.status_code == 401

    def test_active_orders_oldest_first(self, display, business):
        """Only active orders are shown, oldest first, with kitchen alerts."""
        now = datetime.now(UTC)
        newer = OrderFactory(client=business, status_changed_at=now)
        older = OrderFactory(
            client=business,
            status=OrderStatus.PREPARING,
            status_changed_at=now - timedelta(minutes=11),
        )
        older.created_at = now - timedelta(minutes=20)
        older.save(update_fields=["created_at"])
        OrderFactory(client=business, status=OrderStatus.DISPATCHED)
        OrderFactory(status_changed_at=now - timedelta(hours=1))

        response = display.get("/kitchen/orders")

        assert response.status_code == 200
        data = response.json()
        assert [o["order_id"] for o in data["orders"]] == [str(older.pk), str(newer.pk)]
        assert data["alert_threshold_seconds"] == 600
        assert data["orders"][0]["alert"]["is_alert"] is True
        assert data["orders"][1]["alert"]["is_alert"] is False

    def test_header_cannot_switch_tenant(self, display):
        """A kitchen session only ever sees its own business."""
        other = ClientFactory(slug="otra")

        response = display.get("/kitchen/orders", HTTP_X_CLIENT_ID=other.slug)

        assert response.status_code == 401

    def test_logout(self, display):
        """Logging out closes the board."""
        assert display.post("/kitchen/logout").json() == {"ok": True}

        assert display.get("/kitchen/orders").status_code == 401


@pytest.mark.django_db
class TestKitchenActions:
    """Tests for kitchen status changes and snoozes."""

    def test_update_status(self, display, business):
        """The kitchen can advance an order."""
        order = OrderFactory(client=business)

        response = _post(display, f"/kitchen/orders/{order.pk}/status", {"status": "preparing"})

        assert response.status_code == 200
        assert response.json()["status"] == "preparing"
        order.refresh_from_db()
        assert order.status == OrderStatus.PREPARING

    def test_terminal_order_rejected(self, display, business):
        """Dispatched orders cannot be reopened."""
        order = OrderFactory(client=business, status=OrderStatus.DISPATCHED)

        response = _post(display, f"/kitchen/orders/{order.pk}/status", {"status": "pending"})

        assert response.status_code == 400

    def test_other_business_order(self, display):
        """Orders of other businesses are not found."""
        order = OrderFactory()

        response = _post(display, f"/kitchen/orders/{order.pk}/status", {"status": "ready"})

        assert response.status_code == 404

    def test_invalid_status(self, display, business):
        """Unknown statuses are a validation error."""
        order = OrderFactory(client=business)

        response = _post(display, f"/kitchen/orders/{order.pk}/status", {"status": "eaten"})

        assert response.status_code == 400

    def test_snooze(self, display, business):
        """Snoozing suppresses the alert."""
        order = OrderFactory(
            client=business,
            status_changed_at=datetime.now(UTC) - timedelta(minutes=30),
        )

        response = _post(display, f"/kitchen/orders/{order.pk}/snooze", {"minutes": 5})

        assert response.status_code == 200
        alert = response.json()["alert"]
        assert alert["is_snoozed"] is True
        assert alert["is_alert"] is False

    def test_snooze_validation(self, display, business):
        """Snooze minutes must be positive."""
        order = OrderFactory(client=business)

        response = _post(display, f"/kitchen/orders/{order.pk}/snooze", {"minutes": 0})

        assert response.status_code == 400
