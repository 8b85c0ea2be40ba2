"""
Pytest configuration for Django app tests.
"""

from django.contrib.auth import get_user_model

import pytest

from apps.web.core.models import Client


@pytest.fixture
def client_tenant(db) -> Client:
    """Create a test client (tenant)."""
    return Client.objects.create(
        slug="test-client",
        name="Test Client",
        email="test@example.com",
        mercadopago_access_token="TEST-business-token",
    )


@pytest.fixture
def user(client_tenant: Client) -> get_user_model():
    """Create an owner user associated with the client tenant."""
    User = get_user_model()
    return User.objects.create_user(
        username="testuser",
        email="testuser@example.com",
        password="testpass123",
        client=client_tenant,
        role=User.Role.OWNER,
    )


@pytest.fixture
def staff_user(client_tenant: Client) -> get_user_model():
    """Create a staff (non-owner) user for the client tenant."""
    User = get_user_model()
    return User.objects.create_user(
        username="staffuser",
        email="staff@example.com",
        password="testpass123",
        client=client_tenant,
        role=User.Role.STAFF,
    )


@pytest.fixture(autouse=True)
def _clear_cache():
    """Idempotency keys and other cached state must not leak between tests."""
    from django.core.cache import cache

    cache.clear()
    yield
    cache.clear()
