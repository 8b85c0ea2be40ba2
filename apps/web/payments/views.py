"""Subscription checkout and MercadoPago account connection views."""

import json
import logging
from urllib.parse import urlencode

from django.conf import settings
from django.http import HttpRequest, HttpResponseRedirect, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from pydantic import ValidationError as PydanticValidationError

from apps.web.core.decorators import client_required
from apps.web.payments.exceptions import (
    CheckoutRateLimited,
    OAuthConnectionError,
    PaymentConfigurationError,
    PaymentError,
    PaymentProviderError,
)
from apps.web.payments.oauth import complete_connection, start_connection
from apps.web.payments.serializers import (
    MercadoPagoConnectResponse,
    SubscriptionCheckoutRequest,
    SubscriptionCheckoutResponse,
)
from apps.web.payments.services import create_subscription_checkout
from apps.web.restaurant.serializers import validation_error_response

logger = logging.getLogger(__name__)


@require_POST
@client_required
def subscription_checkout(request: HttpRequest) -> JsonResponse:
    """
    POST /payments/subscriptions/checkout

    Start a MercadoPago checkout for the user's business plan. Only owners
    and admins may do this.

    Request body: SubscriptionCheckoutRequest schema
    Response: SubscriptionCheckoutResponse schema (200)
    """
    if not request.user.can_manage_billing:  # type: ignore[union-attr]
        return JsonResponse({"error": "Only owners can manage billing"}, status=403)

    try:
        checkout_request = SubscriptionCheckoutRequest.model_validate(
            json.loads(request.body)
        )
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON in request body"}, status=400)
    except PydanticValidationError as e:
        return JsonResponse(validation_error_response(e).model_dump(), status=400)

    try:
        preference = create_subscription_checkout(
            request.client,  # type: ignore[attr-defined]
            checkout_request.plan_type,
            checkout_request.payer_email,
            checkout_request.payer_name,
        )
    except CheckoutRateLimited as e:
        return JsonResponse({"error": e.message}, status=429)
    except PaymentConfigurationError as e:
        logger.critical("Subscription checkout misconfigured: %s", e.message)
        return JsonResponse({"error": "Payments are not configured"}, status=500)
    except PaymentError as e:
        return JsonResponse(
            {"error": "Payment processing failed", "details": e.message},
            status=502,
        )

    response = SubscriptionCheckoutResponse(
        preference_id=preference.id,
        init_point=preference.init_point,
        sandbox_init_point=preference.sandbox_init_point,
    )
    return JsonResponse(response.model_dump())


@require_POST
@client_required
def mercadopago_connect(request: HttpRequest) -> JsonResponse:
    """
    POST /payments/mercadopago/connect

    Start connecting the business's MercadoPago account. Owners and admins
    only. The frontend sends the browser to the returned URL.

    Response: MercadoPagoConnectResponse schema (200)
    """
    if not request.user.can_manage_billing:  # type: ignore[union-attr]
        return JsonResponse({"error": "Only owners can connect MercadoPago"}, status=403)

    try:
        authorization_url = start_connection(request.client)  # type: ignore[attr-defined]
    except PaymentConfigurationError as e:
        logger.critical("MercadoPago connection misconfigured: %s", e.message)
        return JsonResponse({"error": "Payments are not configured"}, status=500)

    response = MercadoPagoConnectResponse(authorization_url=authorization_url)
    return JsonResponse(response.model_dump())


def _dashboard_redirect(**params: str) -> HttpResponseRedirect:
    return HttpResponseRedirect(f"{settings.FRONTEND_URL}/dashboard?{urlencode(params)}")


@require_GET
def mercadopago_oauth_callback(request: HttpRequest) -> HttpResponseRedirect:
    """
    GET /payments/mercadopago/oauth/callback?code=<code>&state=<state>

    MercadoPago redirects the owner's browser here after authorization. The
    state identifies the business; the browser is always sent back to the
    dashboard with ``mp_success=true`` or an ``mp_error`` code.
    """
    error = request.GET.get("error")
    if error:
        logger.warning("MercadoPago authorization declined: %s", error)
        return _dashboard_redirect(mp_error=error)

    code = request.GET.get("code")
    state = request.GET.get("state")
    if not code or not state:
        return _dashboard_redirect(mp_error="missing_params")

    try:
        complete_connection(state, code)
    except OAuthConnectionError as e:
        logger.warning("MercadoPago callback rejected: %s", e.message)
        return _dashboard_redirect(mp_error=e.code or "invalid_request")
    except PaymentConfigurationError as e:
        logger.critical("MercadoPago connection misconfigured: %s", e.message)
        return _dashboard_redirect(mp_error="internal_error")
    except PaymentProviderError as e:
        logger.error("MercadoPago token exchange failed: %s", e.message)
        return _dashboard_redirect(mp_error="token_exchange_failed")

    return _dashboard_redirect(mp_success="true")
