"""
MercadoPago webhook handlers.

Two endpoints receive provider notifications:
- /payments/webhooks/mercadopago: order payments (business credentials)
- /payments/webhooks/subscription: subscription payments (platform credentials)

Both verify the ``x-signature`` header and fail closed when the webhook
secret is not configured.
"""

import json
import logging
from typing import Any

from django.conf import settings
from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from optima_schemas import parse_notification

from apps.web.payments.exceptions import (
    MalformedPaymentError,
    PaymentConfigurationError,
    PaymentProviderError,
)
from apps.web.payments.services import (
    reconcile_order_payment,
    reconcile_subscription_payment,
)
from apps.web.payments.signatures import verify_webhook_signature

logger = logging.getLogger(__name__)


def _reject_unverified(request: HttpRequest, endpoint: str) -> HttpResponse | None:
    """Return an error response if the request signature does not verify."""
    secret = settings.MERCADOPAGO_WEBHOOK_SECRET
    if not secret:
        logger.critical("MERCADOPAGO_WEBHOOK_SECRET is not configured (%s)", endpoint)
        return HttpResponse("Server configuration error", status=500)

    result = verify_webhook_signature(
        request.headers.get("x-signature"),
        request.headers.get("x-request-id"),
        request.GET.get("data.id") or request.GET.get("id"),
        secret,
    )
    if not result.valid:
        logger.warning(
            "Rejected MercadoPago %s webhook: %s", endpoint, result.message
        )
        return HttpResponse(result.message, status=401)

    return None


def _parse_body(request: HttpRequest) -> dict[str, Any]:
    """Decode a JSON body, tolerating empty or form-encoded deliveries."""
    if not request.body:
        return {}
    try:
        body = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.debug("MercadoPago webhook body is not JSON")
        return {}
    return body if isinstance(body, dict) else {}


@csrf_exempt
@require_POST
def mercadopago_webhook(request: HttpRequest) -> HttpResponse:
    """
    Handle order payment notifications.

    POST /payments/webhooks/mercadopago?orderId=<uuid>&data.id=<payment id>

    Always acknowledges with 200 once the signature verifies, so MercadoPago
    does not retry deliveries we cannot act on.
    """
    rejection = _reject_unverified(request, "order")
    if rejection is not None:
        return rejection

    try:
        notification = parse_notification(_parse_body(request), request.GET)
        logger.info(
            "Received MercadoPago notification: topic=%s id=%s shape=%s",
            notification.topic,
            notification.resource_id,
            notification.shape,
        )
        outcome = reconcile_order_payment(notification, request.GET.get("orderId"))
        logger.info("MercadoPago order notification outcome: %s", outcome.value)
    except Exception as e:
        logger.exception("Error processing MercadoPago webhook: %s", e)

    return HttpResponse("OK", status=200)


@csrf_exempt
@require_POST
def subscription_webhook(request: HttpRequest) -> HttpResponse:
    """
    Handle subscription payment notifications.

    POST /payments/webhooks/subscription?topic=payment&id=<payment id>

    Responses:
    - 400: missing topic/id, or the payment lacks tenant/plan metadata
    - 401: signature rejected
    - 500: webhook secret or platform token not configured
    - 200: everything else, including provider fetch failures
    """
    rejection = _reject_unverified(request, "subscription")
    if rejection is not None:
        return rejection

    notification = parse_notification({}, request.GET)
    if not notification.topic or not notification.resource_id:
        return HttpResponse("Missing parameters", status=400)

    if not notification.is_payment:
        logger.info("Ignoring subscription notification topic=%s", notification.topic)
        return HttpResponse("OK", status=200)

    try:
        reconcile_subscription_payment(notification.resource_id)
    except MalformedPaymentError as e:
        logger.error("Invalid subscription payment %s: %s", notification.resource_id, e.message)
        return HttpResponse("Invalid payment metadata", status=400)
    except PaymentConfigurationError as e:
        logger.critical("Subscription webhook misconfigured: %s", e.message)
        return HttpResponse("Server configuration error", status=500)
    except PaymentProviderError as e:
        logger.error(
            "Failed to fetch subscription payment %s: %s",
            notification.resource_id,
            e.message,
        )
    except Exception as e:
        logger.exception("Error processing subscription webhook: %s", e)

    return HttpResponse("OK", status=200)
