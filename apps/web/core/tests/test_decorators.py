"""Tests for request decorators."""

import json

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.http import JsonResponse
from django.test import RequestFactory

import pytest

from apps.web.core.decorators import client_required, idempotency_key_required
from apps.web.core.models import Client


@idempotency_key_required
def _counting_view(request):
    _counting_view.calls += 1
    return JsonResponse({"call": _counting_view.calls}, status=201)


_counting_view.calls = 0


@pytest.fixture(autouse=True)
def _reset_calls():
    _counting_view.calls = 0


class TestIdempotencyKeyRequired:
    """Tests for the Idempotency-Key decorator."""

    def test_missing_key_is_rejected(self):
        """Requests without a key get a 400."""
        request = RequestFactory().post("/api/clients/x/orders")

        response = _counting_view(request)

        assert response.status_code == 400

    def test_repeated_key_returns_cached_response(self):
        """The second request with the same key does not run the view."""
        factory = RequestFactory()
        first = _counting_view(
            factory.post("/api/clients/x/orders", HTTP_IDEMPOTENCY_KEY="abc")
        )
        second = _counting_view(
            factory.post("/api/clients/x/orders", HTTP_IDEMPOTENCY_KEY="abc")
        )

        assert first.status_code == 201
        assert second.status_code == 201
        assert json.loads(second.content) == {"call": 1}
        assert _counting_view.calls == 1

    def test_same_key_on_other_path_is_independent(self):
        """Keys are scoped to the request path."""
        factory = RequestFactory()
        _counting_view(factory.post("/api/clients/a/orders", HTTP_IDEMPOTENCY_KEY="k"))
        response = _counting_view(
            factory.post("/api/clients/b/orders", HTTP_IDEMPOTENCY_KEY="k")
        )

        assert json.loads(response.content) == {"call": 2}


@client_required
def _staff_view(request):
    return JsonResponse({"client": request.client.slug})


@pytest.mark.django_db
class TestClientRequired:
    """Tests for the staff tenant decorator."""

    def _request(self, user, client):
        request = RequestFactory().get("/dashboard/orders/")
        request.user = user
        request.client = client
        return request

    def test_anonymous(self, client_tenant):
        """Anonymous users get a 401."""
        response = _staff_view(self._request(AnonymousUser(), client_tenant))

        assert response.status_code == 401

    def test_own_business(self, user, client_tenant):
        """The user's own business passes through."""
        response = _staff_view(self._request(user, client_tenant))

        assert response.status_code == 200
        assert json.loads(response.content) == {"client": "test-client"}

    def test_foreign_business(self, user):
        """A client resolved for another business is refused."""
        other = Client.objects.create(slug="other-shop", name="Other", email="o@example.com")

        response = _staff_view(self._request(user, other))

        assert response.status_code == 403

    def test_user_without_business(self, client_tenant):
        """Users with no business cannot act on any, even with a resolved client."""
        loner = get_user_model().objects.create_user(username="loner", password="x")

        response = _staff_view(self._request(loner, client_tenant))

        assert response.status_code == 403
