"""
Client middleware - attaches current client to request.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING

from django.http import HttpRequest, HttpResponse

if TYPE_CHECKING:
    from optima_schemas import KitchenSession

    from .models import Client

# Paths that never carry a tenant (provider callbacks, admin)
_UNSCOPED_PREFIXES = ("/admin/", "/payments/webhooks/")


class ClientMiddleware:
    """
    Middleware that attaches the current client to the request.

    Client is determined by (in order):
    1. X-Client-ID header (for API/worker calls)
    2. Kitchen session (for PIN-authenticated kitchen displays)
    3. User's assigned client (for dashboard)

    Sets request.client and request.kitchen_session (None when unresolved);
    views decide whether a missing client is an error.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        if request.path.startswith(_UNSCOPED_PREFIXES):
            request.client = None  # type: ignore[attr-defined]
            request.kitchen_session = None  # type: ignore[attr-defined]
            return self.get_response(request)

        request.kitchen_session = self._get_kitchen_session(request)  # type: ignore[attr-defined]
        request.client = self._get_client(request)  # type: ignore[attr-defined]
        return self.get_response(request)

    def _get_kitchen_session(self, request: HttpRequest) -> "KitchenSession | None":
        """Load a still-valid kitchen session, if the request has one."""
        # Lazy import to avoid circular dependency
        from apps.web.kitchen.session import KitchenSessionStore

        session = getattr(request, "session", None)
        if session is None:
            return None
        return KitchenSessionStore(session).load()

    def _get_client(self, request: HttpRequest) -> "Client | None":
        """Resolve client from request."""
        # Lazy import to avoid circular dependency
        from .models import Client

        # 1. Header (for API calls)
        client_id = request.headers.get("X-Client-ID")
        if client_id:
            try:
                return Client.objects.get(slug=client_id, is_active=True)
            except Client.DoesNotExist:
                return None

        # 2. Kitchen session
        kitchen_session = getattr(request, "kitchen_session", None)
        if kitchen_session is not None and request.path.startswith("/kitchen/"):
            return Client.objects.filter(
                pk=kitchen_session.tenant_id, is_active=True
            ).first()

        # 3. User's client
        if request.user.is_authenticated:
            return getattr(request.user, "client", None)

        return None
