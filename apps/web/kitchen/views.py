"""
Kitchen display views.

A kitchen display unlocks with the business's PIN and then works the
order board without a staff login. Its alert threshold is the kitchen one
(``KITCHEN_ALERT_SECONDS``), independent of the dashboard's.
"""

import json
import logging
from uuid import UUID

from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from pydantic import ValidationError as PydanticValidationError

from apps.web.core.decorators import kitchen_session_required
from apps.web.kitchen.pin import DatabasePinGate
from apps.web.kitchen.serializers import PinLoginErrorResponse, PinLoginRequest
from apps.web.kitchen.session import KitchenSessionStore, login_with_pin
from apps.web.restaurant.exceptions import InvalidTransition, OrderNotFound
from apps.web.restaurant.models import ACTIVE_ORDER_STATUSES, Order
from apps.web.restaurant.serializers import (
    SnoozeRequest,
    StatusUpdateRequest,
    validation_error_response,
)
from apps.web.restaurant.services import (
    order_board,
    order_card,
    snooze_order,
    update_status,
)

logger = logging.getLogger(__name__)


def _card_response(order: Order) -> JsonResponse:
    card = order_card(
        order, now=timezone.now(), threshold_seconds=settings.KITCHEN_ALERT_SECONDS
    )
    return JsonResponse(card.model_dump(mode="json"))


@csrf_exempt
@require_POST
def pin_login(request: HttpRequest, slug: str) -> JsonResponse:
    """
    POST /kitchen/{slug}/pin

    Validate the kitchen PIN and start a kitchen session.

    Request body: PinLoginRequest schema
    Response: KitchenSession (200), PinLoginErrorResponse (401 / 429)
    """
    try:
        login_request = PinLoginRequest.model_validate(json.loads(request.body))
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON in request body"}, status=400)
    except PydanticValidationError as e:
        return JsonResponse(validation_error_response(e).model_dump(), status=400)

    result = login_with_pin(
        DatabasePinGate(),
        KitchenSessionStore(request.session),
        slug,
        login_request.pin,
    )

    if not result.success or result.session is None:
        response = PinLoginErrorResponse(
            error=result.error or "Incorrect PIN",
            rate_limited=result.rate_limited,
            retry_after_seconds=result.retry_after_seconds,
            attempts_remaining=result.attempts_remaining,
        )
        return JsonResponse(
            response.model_dump(), status=429 if result.rate_limited else 401
        )

    # New key for the newly authorized session
    request.session.cycle_key()
    return JsonResponse(result.session.model_dump(mode="json"))


@csrf_exempt
@require_POST
def logout(request: HttpRequest) -> JsonResponse:
    """POST /kitchen/logout - end the kitchen session."""
    KitchenSessionStore(request.session).clear()
    return JsonResponse({"ok": True})


@require_GET
@kitchen_session_required
def kitchen_orders(request: HttpRequest) -> JsonResponse:
    """
    GET /kitchen/orders

    Active orders, oldest first, with kitchen alert state.
    """
    orders = (
        Order.objects.for_client(request)
        .filter(status__in=ACTIVE_ORDER_STATUSES)
        .prefetch_related("items")
        .order_by("created_at")
    )
    board = order_board(orders, threshold_seconds=settings.KITCHEN_ALERT_SECONDS)
    return JsonResponse(board.model_dump(mode="json"))


@require_POST
@kitchen_session_required
def kitchen_update_status(request: HttpRequest, order_id: UUID) -> JsonResponse:
    """POST /kitchen/orders/{order_id}/status"""
    try:
        status_request = StatusUpdateRequest.model_validate(json.loads(request.body))
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON in request body"}, status=400)
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
@kitchen_session_required
def kitchen_snooze(request: HttpRequest, order_id: UUID) -> JsonResponse:
    """POST /kitchen/orders/{order_id}/snooze"""
    try:
        snooze_request = SnoozeRequest.model_validate(json.loads(request.body))
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON in request body"}, status=400)
    except PydanticValidationError as e:
        return JsonResponse(validation_error_response(e).model_dump(), status=400)

    try:
        order = snooze_order(request.client, order_id, snooze_request.minutes)  # type: ignore[attr-defined]
    except OrderNotFound as e:
        return JsonResponse({"error": e.message}, status=404)

    return _card_response(order)
