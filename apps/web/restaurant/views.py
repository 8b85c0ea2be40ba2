"""
Order API views - public endpoints used by the storefront checkout.

- Order creation (with a MercadoPago checkout for online payment)
- Order status tracking
"""

import json
import logging
from typing import Any
from uuid import UUID

from django.db import transaction
from django.http import Http404, HttpRequest, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from pydantic import ValidationError as PydanticValidationError

from apps.web.core.decorators import idempotency_key_required
from apps.web.core.models import Client
from apps.web.payments.exceptions import PaymentError
from apps.web.payments.services import create_order_preference, fail_order_checkout
from apps.web.restaurant.exceptions import OrderNotFound, OrderSubmissionError
from apps.web.restaurant.models import PaymentMethod
from apps.web.restaurant.serializers import (
    OrderCreateRequest,
    OrderCreateResponse,
    OrderDetailResponse,
    OrderItemResponseSchema,
    ValidationErrorDetail,
    ValidationErrorResponse,
    validation_error_response,
)
from apps.web.restaurant.services import customer_schema, get_order, submit_order

logger = logging.getLogger(__name__)


def _cors_headers() -> dict[str, str]:
    """CORS headers for storefront access."""
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Idempotency-Key",
    }


def _json_response(data: dict[str, Any], status: int = 200) -> JsonResponse:
    """Create a JSON response with CORS headers."""
    response = JsonResponse(data, status=status)
    for key, value in _cors_headers().items():
        response[key] = value
    return response


def _get_client_or_404(slug: str) -> Client:
    """Get active client by slug or raise 404."""
    return get_object_or_404(Client, slug=slug, is_active=True)


@csrf_exempt
@require_POST
@idempotency_key_required
def create_order(request: HttpRequest, slug: str) -> JsonResponse:
    """
    POST /api/clients/{slug}/orders

    Create a new order. Online orders also get a MercadoPago checkout URL.

    Request body: OrderCreateRequest schema
    Response: OrderCreateResponse schema (201) or ValidationErrorResponse (400)
    """
    client = _get_client_or_404(slug)

    try:
        order_request = OrderCreateRequest.model_validate(json.loads(request.body))
    except json.JSONDecodeError:
        return _json_response({"error": "Invalid JSON in request body"}, status=400)
    except PydanticValidationError as e:
        return _json_response(validation_error_response(e).model_dump(), status=400)

    online = order_request.payment_method == PaymentMethod.ONLINE
    if online and not client.mercadopago_access_token:
        logger.error("Online order refused for client %s: MercadoPago not connected", slug)
        return _json_response(
            {
                "error": "Payment processing failed",
                "details": "Online payment is not available",
            },
            status=500,
        )

    try:
        with transaction.atomic():
            order = submit_order(client, order_request)
    except OrderSubmissionError as e:
        if e.errors:
            response = ValidationErrorResponse(
                error="validation_error",
                details=[
                    ValidationErrorDetail(field=field, message=message)
                    for field, message in e.errors
                ],
            )
            return _json_response(response.model_dump(), status=400)
        return _json_response({"error": e.message}, status=400)

    # The provider call runs after commit so no tenant lock is held across it
    checkout_url = None
    if online:
        try:
            checkout_url = create_order_preference(order).init_point
        except PaymentError as e:
            logger.error(
                "Checkout failed for order %s (client %s): %s", order.pk, slug, e.message
            )
            fail_order_checkout(order)
            return _json_response(
                {
                    "error": "Payment processing failed",
                    "details": e.message,
                    "order_id": str(order.pk),
                },
                status=500,
            )

    order_response = OrderCreateResponse(
        order_id=str(order.pk),
        order_number=order.order_number,
        status=order.status,
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        total=order.total,
        checkout_url=checkout_url,
        created_at=order.created_at,
    )
    return _json_response(order_response.model_dump(mode="json"), status=201)


@require_GET
def order_detail(_request: HttpRequest, slug: str, order_id: UUID) -> JsonResponse:
    """
    GET /api/clients/{slug}/orders/{order_id}

    Order status for the customer.

    Response: OrderDetailResponse schema (200) or 404
    """
    client = _get_client_or_404(slug)

    try:
        order = get_order(client, order_id)
    except OrderNotFound as exc:
        raise Http404(exc.message) from exc

    response = OrderDetailResponse(
        order_id=str(order.pk),
        order_number=order.order_number,
        status=order.status,
        customer=customer_schema(order),
        delivery_type=order.delivery_type,
        payment_method=order.payment_method,
        payment_status=order.payment_status or None,
        items=[OrderItemResponseSchema.model_validate(item) for item in order.items.all()],
        total=order.total,
        created_at=order.created_at,
        status_changed_at=order.status_changed_at,
    )
    return _json_response(response.model_dump(mode="json"))
