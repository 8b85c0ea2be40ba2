"""
Payment services - MercadoPago integration.

Reconciles provider payment state into local orders and tenant
subscriptions, and creates checkout preferences. Provider calls go through
the async ``MercadoPagoAPI`` and are bridged into this synchronous code
with ``asyncio.run``.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from optima_schemas import (
    CheckoutPreference,
    PlanType,
    ProviderPayment,
    WebhookNotification,
)

from apps.web.core.models import Client
from apps.web.payments.exceptions import (
    CheckoutRateLimited,
    MalformedPaymentError,
    PaymentConfigurationError,
    PaymentError,
    PaymentProviderError,
)
from apps.web.payments.mercadopago import MercadoPagoAPI
from apps.web.payments.models import SubscriptionPayment
from apps.web.restaurant.models import Order, OrderStatus, PaymentStatus

logger = logging.getLogger(__name__)

# Provider payment status -> local order payment status
ORDER_PAYMENT_STATUS_MAP: dict[str, PaymentStatus] = {
    "approved": PaymentStatus.PAID,
    "pending": PaymentStatus.PROCESSING,
    "in_process": PaymentStatus.PROCESSING,
    "in_mediation": PaymentStatus.PROCESSING,
    "rejected": PaymentStatus.FAILED,
    "cancelled": PaymentStatus.FAILED,
    "refunded": PaymentStatus.REFUNDED,
    "charged_back": PaymentStatus.REFUNDED,
}

SUBSCRIPTION_PERIODS: dict[PlanType, timedelta] = {
    PlanType.MONTHLY: timedelta(days=30),
    PlanType.ANNUAL: timedelta(days=365),
}

# Subscription checkouts allowed per tenant per window
CHECKOUT_RATE_LIMIT = 5
CHECKOUT_RATE_WINDOW = timedelta(hours=1)


class ReconcileOutcome(str, Enum):
    """What an order payment notification led to."""

    UPDATED = "updated"
    UNCHANGED = "unchanged"
    IGNORED = "ignored"
    NOT_FOUND = "not_found"
    UPSTREAM_ERROR = "upstream_error"


def map_payment_status(provider_status: str | None) -> PaymentStatus | None:
    """
    Map a MercadoPago payment status to the local order payment status.

    Returns None for statuses we do not track, meaning "leave unchanged".
    """
    if not provider_status:
        return None
    return ORDER_PAYMENT_STATUS_MAP.get(provider_status)


# =============================================================================
# Provider bridge
# =============================================================================


async def _fetch_payment_async(
    payment_id: str, access_token: str, api: MercadoPagoAPI | None
) -> ProviderPayment:
    if api is not None:
        return await api.get_payment(payment_id, access_token)
    async with MercadoPagoAPI() as owned:
        return await owned.get_payment(payment_id, access_token)


async def _create_preference_async(
    preference: dict[str, Any], access_token: str, api: MercadoPagoAPI | None
) -> CheckoutPreference:
    if api is not None:
        return await api.create_preference(preference, access_token)
    async with MercadoPagoAPI() as owned:
        return await owned.create_preference(preference, access_token)


def fetch_payment(
    payment_id: str, access_token: str, *, api: MercadoPagoAPI | None = None
) -> ProviderPayment:
    """
    Fetch a payment from MercadoPago.

    Raises:
        PaymentProviderError: If the provider call fails.
    """
    return asyncio.run(_fetch_payment_async(payment_id, access_token, api))


def create_preference(
    preference: dict[str, Any],
    access_token: str,
    *,
    api: MercadoPagoAPI | None = None,
) -> CheckoutPreference:
    """
    Create a checkout preference on MercadoPago.

    Raises:
        PaymentProviderError: If the provider call fails.
    """
    return asyncio.run(_create_preference_async(preference, access_token, api))


# =============================================================================
# Order payments
# =============================================================================


def reconcile_order_payment(
    notification: WebhookNotification,
    order_id: str | None,
    *,
    api: MercadoPagoAPI | None = None,
) -> ReconcileOutcome:
    """
    Apply a payment notification to an order.

    The order id comes from the notification URL we registered with the
    preference; it also tells us whose access token to fetch the payment with.

    Args:
        notification: Parsed webhook notification.
        order_id: ``orderId`` query parameter.
        api: Optional client (testing).

    Returns:
        ReconcileOutcome describing what happened.
    """
    if not notification.is_payment and notification.topic:
        logger.info("Ignoring MercadoPago notification topic=%s", notification.topic)
        return ReconcileOutcome.IGNORED

    if not notification.resource_id:
        logger.info("MercadoPago notification without payment id (shape=%s)", notification.shape)
        return ReconcileOutcome.IGNORED

    if not order_id:
        logger.warning(
            "MercadoPago payment %s notified without orderId, cannot resolve credentials",
            notification.resource_id,
        )
        return ReconcileOutcome.IGNORED

    try:
        order = Order.objects.select_related("client").get(pk=order_id)
    except (Order.DoesNotExist, ValidationError, ValueError):
        logger.error("Order not found for MercadoPago payment: order_id=%s", order_id)
        return ReconcileOutcome.NOT_FOUND

    access_token = order.client.mercadopago_access_token
    if not access_token:
        logger.error("Client %s has no MercadoPago credentials", order.client.slug)
        return ReconcileOutcome.IGNORED

    try:
        payment = fetch_payment(notification.resource_id, access_token, api=api)
    except PaymentProviderError as e:
        logger.error(
            "Failed to fetch MercadoPago payment %s: %s",
            notification.resource_id,
            e.message,
        )
        return ReconcileOutcome.UPSTREAM_ERROR

    if payment.external_reference and payment.external_reference != str(order.pk):
        logger.warning(
            "Payment %s external_reference %s does not match order %s",
            payment.id,
            payment.external_reference,
            order.pk,
        )
        return ReconcileOutcome.IGNORED

    new_status = map_payment_status(payment.status)
    if new_status is None:
        logger.info(
            "Unmapped MercadoPago status %s for order %s, leaving payment_status",
            payment.status,
            order.pk,
        )
        return ReconcileOutcome.UNCHANGED

    order.payment_status = new_status
    order.mercadopago_payment_id = payment.id
    order.save(update_fields=["payment_status", "mercadopago_payment_id", "updated_at"])

    logger.info(
        "Order %s payment_status=%s (MercadoPago %s %s)",
        order.pk,
        new_status,
        payment.id,
        payment.status,
    )
    return ReconcileOutcome.UPDATED


def create_order_preference(
    order: Order, *, api: MercadoPagoAPI | None = None
) -> CheckoutPreference:
    """
    Create a MercadoPago checkout preference for an online order.

    Raises:
        PaymentError: If the order already has a preference.
        PaymentConfigurationError: If the business has no MercadoPago token.
        PaymentProviderError: If the provider call fails.
    """
    if order.mercadopago_preference_id:
        raise PaymentError(
            "A payment preference already exists for this order",
            code="duplicate_preference",
        )

    access_token = order.client.mercadopago_access_token
    if not access_token:
        raise PaymentConfigurationError(
            "This business has not connected MercadoPago",
            code="not_connected",
        )

    items = [
        {
            "title": (
                f"{item.name} ({item.weight}{item.weight_unit})"
                if item.sold_by_weight
                else item.name
            ),
            "quantity": 1 if item.sold_by_weight else item.quantity,
            "unit_price": float(item.subtotal if item.sold_by_weight else item.unit_price),
            "currency_id": settings.MERCADOPAGO_CURRENCY,
        }
        for item in order.items.all()
    ]
    order_url = f"{settings.FRONTEND_URL}/{order.client.slug}/orders/{order.pk}"
    preference = {
        "items": items,
        "external_reference": str(order.pk),
        "notification_url": (
            f"{settings.PUBLIC_BASE_URL}/payments/webhooks/mercadopago?orderId={order.pk}"
        ),
        "back_urls": {
            "success": f"{order_url}?payment=success",
            "failure": f"{order_url}?payment=failure",
            "pending": f"{order_url}?payment=pending",
        },
        "auto_return": "approved",
    }

    result = create_preference(preference, access_token, api=api)

    order.mercadopago_preference_id = result.id
    order.save(update_fields=["mercadopago_preference_id", "updated_at"])

    logger.info("Created MercadoPago preference %s for order %s", result.id, order.pk)
    return result


def fail_order_checkout(order: Order, *, now: datetime | None = None) -> Order:
    """
    Cancel an online order whose checkout preference could not be created.

    The order was already committed, so it is closed out rather than deleted
    and boards see it leave through the usual change notification.
    """
    order.status = OrderStatus.CANCELLED
    order.status_changed_at = now or timezone.now()
    order.payment_status = PaymentStatus.FAILED
    order.save(
        update_fields=["status", "status_changed_at", "payment_status", "updated_at"]
    )

    logger.warning("Order %s cancelled: checkout could not be created", order.pk)
    return order


# =============================================================================
# Subscriptions
# =============================================================================


def activate_subscription(
    client: Client, plan_type: PlanType, *, now: datetime | None = None
) -> Client:
    """Put a tenant on a paid plan starting at ``now``."""
    now = now or timezone.now()
    client.subscription_status = Client.SubscriptionStatus.ACTIVE
    client.plan_type = plan_type.value
    client.subscription_started_at = now
    client.subscription_ends_at = now + SUBSCRIPTION_PERIODS[plan_type]
    client.save(
        update_fields=[
            "subscription_status",
            "plan_type",
            "subscription_started_at",
            "subscription_ends_at",
            "updated_at",
        ]
    )
    logger.info(
        "Activated %s subscription for client %s until %s",
        plan_type.value,
        client.slug,
        client.subscription_ends_at,
    )
    return client


def _subscription_target(payment: ProviderPayment) -> tuple[Client, PlanType]:
    """Resolve the tenant and plan a subscription payment is for."""
    tenant_id = payment.metadata.get("tenant_id")
    plan = payment.metadata.get("plan_type")
    if not tenant_id or not plan:
        raise MalformedPaymentError(
            f"Payment {payment.id} is missing tenant_id or plan_type metadata",
            code="missing_metadata",
        )

    try:
        plan_type = PlanType(plan)
    except ValueError as e:
        raise MalformedPaymentError(
            f"Payment {payment.id} has unknown plan_type {plan!r}",
            code="invalid_plan",
        ) from e

    try:
        client = Client.objects.get(pk=int(tenant_id))
    except (Client.DoesNotExist, TypeError, ValueError) as e:
        raise MalformedPaymentError(
            f"Payment {payment.id} references unknown tenant {tenant_id!r}",
            code="unknown_tenant",
        ) from e

    return client, plan_type


def reconcile_subscription_payment(
    payment_id: str,
    *,
    api: MercadoPagoAPI | None = None,
    now: datetime | None = None,
) -> SubscriptionPayment:
    """
    Apply a subscription payment notification.

    Fetches the payment with the platform token, records it against its
    external reference and activates the tenant's plan on approval.
    Activation happens once per external reference: a re-delivered approval
    refreshes the stored snapshot but does not extend the subscription again.

    Raises:
        PaymentConfigurationError: If the platform token is not configured.
        PaymentProviderError: If the payment cannot be fetched.
        MalformedPaymentError: If the payment lacks tenant/plan metadata.
    """
    access_token = settings.PLATFORM_MP_ACCESS_TOKEN
    if not access_token:
        raise PaymentConfigurationError(
            "PLATFORM_MP_ACCESS_TOKEN is not configured", code="not_configured"
        )

    now = now or timezone.now()
    payment = fetch_payment(payment_id, access_token, api=api)
    client, plan_type = _subscription_target(payment)
    external_reference = payment.external_reference or f"payment_{payment.id}"

    with transaction.atomic():
        record = (
            SubscriptionPayment.objects.select_for_update()
            .filter(external_reference=external_reference)
            .first()
        )
        if record is None:
            record = SubscriptionPayment(
                client=client,
                plan_type=plan_type.value,
                amount=payment.transaction_amount or Decimal("0"),
                external_reference=external_reference,
            )

        already_approved = record.is_approved
        record.payment_id = payment.id
        record.payment_method = payment.payment_method_id or ""
        record.payer_email = (payment.payer.email if payment.payer else None) or ""
        record.metadata = payment.model_dump(mode="json")

        activate = False
        if already_approved:
            logger.info(
                "Subscription payment %s already approved, refreshing snapshot only",
                external_reference,
            )
        elif payment.status:
            record.status = payment.status
            if record.is_approved:
                record.approved_at = now
                activate = True

        record.save()

        if activate:
            activate_subscription(client, plan_type, now=now)

    logger.info(
        "Subscription payment %s for client %s: status=%s",
        external_reference,
        client.slug,
        record.status,
    )
    return record


def create_subscription_checkout(
    client: Client,
    plan_type: PlanType,
    payer_email: str,
    payer_name: str = "",
    *,
    api: MercadoPagoAPI | None = None,
    now: datetime | None = None,
) -> CheckoutPreference:
    """
    Start a subscription checkout for a tenant.

    Creates the MercadoPago preference with the platform token and records
    a pending SubscriptionPayment under a fresh external reference.

    Raises:
        CheckoutRateLimited: After 5 attempts in the last hour.
        PaymentConfigurationError: If the platform token is not configured.
        PaymentProviderError: If the provider call fails.
    """
    now = now or timezone.now()

    access_token = settings.PLATFORM_MP_ACCESS_TOKEN
    if not access_token:
        raise PaymentConfigurationError(
            "PLATFORM_MP_ACCESS_TOKEN is not configured", code="not_configured"
        )

    recent = SubscriptionPayment.objects.for_tenant(client).filter(
        created_at__gte=now - CHECKOUT_RATE_WINDOW
    )
    if recent.count() >= CHECKOUT_RATE_LIMIT:
        raise CheckoutRateLimited(
            "Too many payment attempts. Please try again later.",
            code="rate_limited",
        )

    amount = Decimal(str(settings.SUBSCRIPTION_PRICES[plan_type.value]))
    external_reference = (
        f"subscription_{client.pk}_{plan_type.value}_{int(now.timestamp() * 1000)}"
    )
    title = "Monthly plan" if plan_type == PlanType.MONTHLY else "Annual plan"
    preference = {
        "items": [
            {
                "title": f"{title} - {client.name}",
                "quantity": 1,
                "unit_price": float(amount),
                "currency_id": settings.MERCADOPAGO_CURRENCY,
            }
        ],
        "payer": {"email": payer_email, "name": payer_name},
        "external_reference": external_reference,
        "notification_url": f"{settings.PUBLIC_BASE_URL}/payments/webhooks/subscription",
        "back_urls": {
            "success": f"{settings.FRONTEND_URL}/dashboard?payment=success",
            "failure": f"{settings.FRONTEND_URL}/upgrade?payment=failure",
            "pending": f"{settings.FRONTEND_URL}/upgrade?payment=pending",
        },
        "auto_return": "approved",
        "metadata": {
            "tenant_id": str(client.pk),
            "plan_type": plan_type.value,
            "tenant_name": client.name,
        },
    }

    result = create_preference(preference, access_token, api=api)

    SubscriptionPayment.objects.create(
        client=client,
        plan_type=plan_type.value,
        amount=amount,
        preference_id=result.id,
        external_reference=external_reference,
        status=SubscriptionPayment.PENDING,
    )

    logger.info(
        "Created subscription checkout %s for client %s (%s)",
        result.id,
        client.slug,
        plan_type.value,
    )
    return result
