"""
Decorators for request handling and validation.
"""

import json
from collections.abc import Callable
from functools import wraps
from typing import Any

from django.core.cache import cache
from django.http import HttpRequest, JsonResponse


def idempotency_key_required(view_func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator that requires an Idempotency-Key header for POST requests.

    If the same key is used twice on the same path, returns the cached
    response from the first request. Cached responses are stored for 24 hours.

    Usage:
        @idempotency_key_required
        def create_order(request, slug):
            ...
    """

    @wraps(view_func)
    def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> Any:
        key = request.headers.get("Idempotency-Key")

        if not key:
            return JsonResponse(
                {"error": "Idempotency-Key header is required"},
                status=400,
            )

        cache_key = f"idempotency:{request.path}:{key}"
        cached = cache.get(cache_key)

        if cached:
            # Return cached response
            return JsonResponse(
                cached["data"],
                status=cached["status"],
            )

        # Call the actual view
        response = view_func(request, *args, **kwargs)

        # Cache successful responses for 24 hours
        if response.status_code < 400:
            cache.set(
                cache_key,
                {
                    "data": json.loads(response.content),
                    "status": response.status_code,
                },
                timeout=86400,  # 24 hours
            )

        return response

    return wrapper


def client_required(view_func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator for staff JSON views: the request must resolve to the user's tenant.

    Returns 401 for anonymous requests and 403 when the user has no client
    or the resolved client (e.g. from an X-Client-ID header) is not theirs.
    """

    @wraps(view_func)
    def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> Any:
        if not request.user.is_authenticated:
            return JsonResponse({"error": "Authentication required"}, status=401)
        client = getattr(request, "client", None)
        if client is None or getattr(request.user, "client_id", None) is None:
            return JsonResponse({"error": "No business for this user"}, status=403)
        if client.pk != request.user.client_id:
            return JsonResponse({"error": "Not a member of this business"}, status=403)
        return view_func(request, *args, **kwargs)

    return wrapper


def kitchen_session_required(view_func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator for kitchen display views: requires a valid kitchen PIN session.

    The session and its tenant are attached by ClientMiddleware. The resolved
    client must be the tenant the session was issued for.
    """

    @wraps(view_func)
    def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> Any:
        kitchen_session = getattr(request, "kitchen_session", None)
        client = getattr(request, "client", None)
        if (
            kitchen_session is None
            or client is None
            or client.pk != kitchen_session.tenant_id
        ):
            return JsonResponse({"error": "Kitchen PIN required"}, status=401)
        return view_func(request, *args, **kwargs)

    return wrapper
