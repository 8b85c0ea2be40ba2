"""
Dashboard views - staff order management and business settings.

JSON endpoints behind the staff login. Order cards use the dashboard alert
threshold (``ORDER_ALERT_SECONDS``).
"""

import json
from uuid import UUID

from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET, require_POST

from pydantic import ValidationError as PydanticValidationError

from apps.web.core.decorators import client_required
from apps.web.kitchen.pin import change_kitchen_pin
from apps.web.kitchen.serializers import (
    KitchenPinSettingsRequest,
    KitchenPinSettingsResponse,
)
from apps.web.restaurant.exceptions import InvalidTransition, OrderNotFound
from apps.web.restaurant.models import Order, OrderStatus
from apps.web.restaurant.serializers import (
    SnoozeRequest,
    StatusUpdateRequest,
    validation_error_response,
)
from apps.web.restaurant.services import (
    cancel_order,
    order_board,
    order_card,
    snooze_order,
    update_status,
)


def _card_response(order: Order) -> JsonResponse:
    card = order_card(
        order, now=timezone.now(), threshold_seconds=settings.ORDER_ALERT_SECONDS
    )
    return JsonResponse(card.model_dump(mode="json"))


def _parse_json(request: HttpRequest) -> dict[str, object] | None:
    try:
        body = json.loads(request.body or b"{}")
    except json.JSONDecodeError:
        return None
    return body if isinstance(body, dict) else None


@require_GET
@client_required
def orders_list(request: HttpRequest) -> JsonResponse:
    """
    GET /dashboard/orders/?status=<status>

    The business's orders, newest first, with order-card alert state.
    """
    orders = Order.objects.for_client(request).prefetch_related("items")

    status = request.GET.get("status")
    if status:
        if status not in OrderStatus.values:
            return JsonResponse({"error": f"Unknown status: {status}"}, status=400)
        orders = orders.filter(status=status)

    board = order_board(
        orders.order_by("-created_at"),
        threshold_seconds=settings.ORDER_ALERT_SECONDS,
    )
    return JsonResponse(board.model_dump(mode="json"))


@require_POST
@client_required
def order_update_status(request: HttpRequest, order_id: UUID) -> JsonResponse:
    """
    POST /dashboard/orders/{order_id}/status

    Request body: StatusUpdateRequest schema
    Response: OrderCardSchema (200), 400 on invalid transition, 404 if unknown
    """
    body = _parse_json(request)
    if body is None:
        return JsonResponse({"error": "Invalid JSON in request body"}, status=400)
    try:
        status_request = StatusUpdateRequest.model_validate(body)
    except PydanticValidationError as e:
        return JsonResponse(validation_error_response(e).model_dump(), status=400)

    try:
        order = update_status(request.client, order_id, status_request.status)  # type: ignore[attr-defined]
    except OrderNotFound as e:
        return JsonResponse({"error": e.message}, status=404)
    except InvalidTransition as e:
        return JsonResponse({"error": e.message}, status=400)

    return _card_response(order)


@require_POST
@client_required
def order_cancel(request: HttpRequest, order_id: UUID) -> JsonResponse:
    """POST /dashboard/orders/{order_id}/cancel"""
    try:
        order = cancel_order(request.client, order_id)  # type: ignore[attr-defined]
    except OrderNotFound as e:
        return JsonResponse({"error": e.message}, status=404)
    except InvalidTransition as e:
        return JsonResponse({"error": e.message}, status=400)

    return _card_response(order)


@require_POST
@client_required
def order_snooze(request: HttpRequest, order_id: UUID) -> JsonResponse:
    """
    POST /dashboard/orders/{order_id}/snooze

    Request body: SnoozeRequest schema (minutes > 0)
    """
    body = _parse_json(request)
    if body is None:
        return JsonResponse({"error": "Invalid JSON in request body"}, status=400)
    try:
        snooze_request = SnoozeRequest.model_validate(body)
    except PydanticValidationError as e:
        return JsonResponse(validation_error_response(e).model_dump(), status=400)

    try:
        order = snooze_order(request.client, order_id, snooze_request.minutes)  # type: ignore[attr-defined]
    except OrderNotFound as e:
        return JsonResponse({"error": e.message}, status=404)

    return _card_response(order)


@require_POST
@client_required
def kitchen_pin_settings(request: HttpRequest) -> JsonResponse:
    """
    POST /dashboard/kitchen-pin

    Set (4-6 digits) or clear (null) the kitchen display PIN. Owners and
    admins only.

    Request body: KitchenPinSettingsRequest schema
    Response: KitchenPinSettingsResponse schema (200)
    """
    if not request.user.can_manage_settings:  # type: ignore[union-attr]
        return JsonResponse({"error": "Only owners can change the kitchen PIN"}, status=403)

    body = _parse_json(request)
    if body is None:
        return JsonResponse({"error": "Invalid JSON in request body"}, status=400)
    try:
        pin_request = KitchenPinSettingsRequest.model_validate(body)
    except PydanticValidationError as e:
        return JsonResponse(validation_error_response(e).model_dump(), status=400)

    client = change_kitchen_pin(request.client, pin_request.kitchen_pin)  # type: ignore[attr-defined]

    response = KitchenPinSettingsResponse(kitchen_pin_enabled=bool(client.kitchen_pin))
    return JsonResponse(response.model_dump())
