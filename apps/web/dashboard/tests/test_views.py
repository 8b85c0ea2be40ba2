"""
Tests for dashboard views.
"""

import json
from datetime import UTC, datetime, timedelta

from django.contrib.auth import get_user_model
from django.test import Client as DjangoTestClient
from django.urls import reverse

import pytest

from apps.web.restaurant.models import OrderStatus
from apps.web.restaurant.tests.factories import ClientFactory, OrderFactory

User = get_user_model()


@pytest.fixture
def authenticated_client(user: User) -> DjangoTestClient:
    """Create an authenticated test client."""
    client = DjangoTestClient()
    client.force_login(user)
    return client


def _post(http, url, payload=None):
    return http.post(url, data=json.dumps(payload or {}), content_type="application/json")


@pytest.mark.django_db
class TestOrdersList:
    """Tests for GET /dashboard/orders/."""

    def test_requires_login(self):
        """Anonymous requests get a 401."""
        response = DjangoTestClient().get(reverse("dashboard:orders"))

        assert response.status_code == 401

    def test_user_without_client(self):
        """Users not attached to a business get a 403."""
        user = User.objects.create_user(username="orphan", password="testpass123")
        http = DjangoTestClient()
        http.force_login(user)

        response = http.get(reverse("dashboard:orders"))

        assert response.status_code == 403

    def test_lists_own_orders_newest_first(self, authenticated_client, client_tenant):
        """Staff see their business's orders, newest first, with counts."""
        now = datetime.now(UTC)
        older = OrderFactory(client=client_tenant, status=OrderStatus.DISPATCHED)
        older.created_at = now - timedelta(hours=1)
        older.save(update_fields=["created_at"])
        newer = OrderFactory(client=client_tenant)
        OrderFactory()

        response = authenticated_client.get(reverse("dashboard:orders"))

        assert response.status_code == 200
        data = response.json()
        assert [o["order_id"] for o in data["orders"]] == [str(newer.pk), str(older.pk)]
        assert data["counts"]["pending"] == 1
        assert data["counts"]["dispatched"] == 1
        assert data["alert_threshold_seconds"] == 180
        assert data["snooze_choices"] == [3, 5]

    def test_status_filter(self, authenticated_client, client_tenant):
        """?status= narrows the list."""
        OrderFactory(client=client_tenant)
        ready = OrderFactory(client=client_tenant, status=OrderStatus.READY)

        response = authenticated_client.get(reverse("dashboard:orders"), {"status": "ready"})

        assert [o["order_id"] for o in response.json()["orders"]] == [str(ready.pk)]

    def test_unknown_status_filter(self, authenticated_client):
        """Unknown statuses are rejected."""
        response = authenticated_client.get(reverse("dashboard:orders"), {"status": "eaten"})

        assert response.status_code == 400

    def test_stale_order_alerts(self, authenticated_client, client_tenant):
        """Orders past three minutes alert on the dashboard."""
        OrderFactory(
            client=client_tenant,
            status_changed_at=datetime.now(UTC) - timedelta(minutes=4),
        )

        card = authenticated_client.get(reverse("dashboard:orders")).json()["orders"][0]

        assert card["alert"]["is_alert"] is True


@pytest.mark.django_db
class TestOrderActions:
    """Tests for dashboard order actions."""

    def test_update_status(self, authenticated_client, client_tenant):
        """Staff can move an order along."""
        order = OrderFactory(client=client_tenant)

        response = _post(
            authenticated_client,
            reverse("dashboard:order_status", args=[order.pk]),
            {"status": "ready"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "ready"
        assert response.json()["alert"]["elapsed_seconds"] < 5

    def test_terminal_order_rejected(self, authenticated_client, client_tenant):
        """Cancelled orders cannot be reopened."""
        order = OrderFactory(client=client_tenant, status=OrderStatus.CANCELLED)

        response = _post(
            authenticated_client,
            reverse("dashboard:order_status", args=[order.pk]),
            {"status": "pending"},
        )

        assert response.status_code == 400

    def test_cancel(self, authenticated_client, client_tenant):
        """Staff can cancel an order."""
        order = OrderFactory(client=client_tenant, status=OrderStatus.PREPARING)

        response = _post(authenticated_client, reverse("dashboard:order_cancel", args=[order.pk]))

        assert response.status_code == 200
        order.refresh_from_db()
        assert order.status == OrderStatus.CANCELLED

    def test_cancel_dispatched_rejected(self, authenticated_client, client_tenant):
        """Dispatched orders cannot be cancelled."""
        order = OrderFactory(client=client_tenant, status=OrderStatus.DISPATCHED)

        response = _post(authenticated_client, reverse("dashboard:order_cancel", args=[order.pk]))

        assert response.status_code == 400

    def test_other_business_order(self, authenticated_client):
        """Orders of other businesses are not found."""
        order = OrderFactory()

        response = _post(authenticated_client, reverse("dashboard:order_cancel", args=[order.pk]))

        assert response.status_code == 404

    def test_snooze(self, authenticated_client, client_tenant):
        """Staff can snooze an alerting order."""
        order = OrderFactory(
            client=client_tenant,
            status_changed_at=datetime.now(UTC) - timedelta(minutes=10),
        )

        response = _post(
            authenticated_client,
            reverse("dashboard:order_snooze", args=[order.pk]),
            {"minutes": 3},
        )

        assert response.status_code == 200
        assert response.json()["alert"]["is_alert"] is False
        order.refresh_from_db()
        assert order.snoozed_until is not None

    def test_invalid_json(self, authenticated_client, client_tenant):
        """Malformed bodies are rejected."""
        order = OrderFactory(client=client_tenant)

        response = authenticated_client.post(
            reverse("dashboard:order_snooze", args=[order.pk]),
            data="{nope",
            content_type="application/json",
        )

        assert response.status_code == 400

    def test_get_not_allowed(self, authenticated_client, client_tenant):
        """Actions are POST only."""
        order = OrderFactory(client=client_tenant)

        response = authenticated_client.get(reverse("dashboard:order_cancel", args=[order.pk]))

        assert response.status_code == 405


@pytest.mark.django_db
class TestTenantIsolation:
    """The X-Client-ID header cannot reach another business's orders."""

    @pytest.fixture
    def other_order(self):
        return OrderFactory(client=ClientFactory(slug="other-shop"))

    def test_list_with_foreign_header(self, authenticated_client, other_order):
        """Listing with another business's slug is forbidden."""
        response = authenticated_client.get(
            reverse("dashboard:orders"), HTTP_X_CLIENT_ID="other-shop"
        )

        assert response.status_code == 403
        assert "orders" not in response.json()

    def test_cancel_with_foreign_header(self, authenticated_client, other_order):
        """Cancelling another business's order is forbidden and leaves it alone."""
        response = authenticated_client.post(
            reverse("dashboard:order_cancel", args=[other_order.pk]),
            data="{}",
            content_type="application/json",
            HTTP_X_CLIENT_ID="other-shop",
        )

        assert response.status_code == 403
        other_order.refresh_from_db()
        assert other_order.status == OrderStatus.PENDING

    def test_status_and_snooze_with_foreign_header(self, authenticated_client, other_order):
        """Status changes and snoozes are refused the same way."""
        actions = (
            ("dashboard:order_status", {"status": "ready"}),
            ("dashboard:order_snooze", {"minutes": 3}),
        )
        for name, payload in actions:
            response = authenticated_client.post(
                reverse(name, args=[other_order.pk]),
                data=json.dumps(payload),
                content_type="application/json",
                HTTP_X_CLIENT_ID="other-shop",
            )
            assert response.status_code == 403

        other_order.refresh_from_db()
        assert other_order.status == OrderStatus.PENDING
        assert other_order.snoozed_until is None

    def test_own_slug_in_header_allowed(self, authenticated_client, client_tenant):
        """Naming the user's own business in the header still works."""
        OrderFactory(client=client_tenant)

        response = authenticated_client.get(
            reverse("dashboard:orders"), HTTP_X_CLIENT_ID=client_tenant.slug
        )

        assert response.status_code == 200
        assert len(response.json()["orders"]) == 1


@pytest.mark.django_db
class TestKitchenPinSettings:
    """Tests for POST /dashboard/kitchen-pin."""

    def test_owner_sets_pin(self, authenticated_client, client_tenant):
        """Owners set a PIN, which then unlocks the kitchen display."""
        response = _post(
            authenticated_client, reverse("dashboard:kitchen_pin"), {"kitchen_pin": "4321"}
        )

        assert response.status_code == 200
        assert response.json() == {"kitchen_pin_enabled": True}
        client_tenant.refresh_from_db()
        assert client_tenant.check_kitchen_pin("4321")

        login = DjangoTestClient().post(
            f"/kitchen/{client_tenant.slug}/pin",
            data=json.dumps({"pin": "4321"}),
            content_type="application/json",
        )
        assert login.status_code == 200

    def test_owner_clears_pin(self, authenticated_client, client_tenant):
        """A null PIN disables kitchen access."""
        client_tenant.set_kitchen_pin("4321")
        client_tenant.save()

        response = _post(
            authenticated_client, reverse("dashboard:kitchen_pin"), {"kitchen_pin": None}
        )

        assert response.status_code == 200
        assert response.json() == {"kitchen_pin_enabled": False}
        client_tenant.refresh_from_db()
        assert client_tenant.kitchen_pin == ""

    @pytest.mark.parametrize("pin", ["123", "1234567", "12ab", ""])
    def test_invalid_pin(self, authenticated_client, client_tenant, pin):
        """PINs must be 4 to 6 digits."""
        response = _post(
            authenticated_client, reverse("dashboard:kitchen_pin"), {"kitchen_pin": pin}
        )

        assert response.status_code == 400
        client_tenant.refresh_from_db()
        assert client_tenant.kitchen_pin == ""

    def test_missing_field(self, authenticated_client):
        """The kitchen_pin key is required, even when clearing."""
        response = _post(
            authenticated_client, reverse("dashboard:kitchen_pin"), {}
        )

        assert response.status_code == 400

    def test_staff_cannot_change_pin(self, staff_user, client_tenant):
        """Staff members get a 403."""
        http = DjangoTestClient()
        http.force_login(staff_user)

        response = _post(http, reverse("dashboard:kitchen_pin"), {"kitchen_pin": "4321"})

        assert response.status_code == 403
        client_tenant.refresh_from_db()
        assert client_tenant.kitchen_pin == ""

    def test_anonymous(self, client_tenant):
        """Anonymous requests get a 401."""
        response = _post(
            DjangoTestClient(), reverse("dashboard:kitchen_pin"), {"kitchen_pin": "4321"}
        )

        assert response.status_code == 401
