"""
Order lifecycle services.

Status changes, snoozing and checkout submission. Every write goes through
``Order.save(update_fields=...)`` so the post-save realtime notification
fires for all viewers of the tenant.
"""

import logging
from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Max
from django.utils import timezone

from apps.web.core.models import Client
from apps.web.restaurant.alerts import compute_alert
from apps.web.restaurant.exceptions import (
    InvalidTransition,
    OrderNotFound,
    OrderSubmissionError,
)
from apps.web.restaurant.models import (
    DeliveryType,
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from apps.web.restaurant.serializers import (
    CustomerSchema,
    OrderBoardResponse,
    OrderCardSchema,
    OrderItemResponseSchema,
)

if TYPE_CHECKING:
    from apps.web.restaurant.serializers import OrderCreateRequest

logger = logging.getLogger(__name__)


# =============================================================================
# State Machine
# =============================================================================


def get_order(client: Client, order_id: str | UUID) -> Order:
    """
    Fetch one of the tenant's orders.

    Raises:
        OrderNotFound: If the id is malformed or belongs to no order of this tenant.
    """
    try:
        return Order.objects.for_tenant(client).get(pk=order_id)
    except (Order.DoesNotExist, ValidationError, ValueError) as e:
        raise OrderNotFound(f"Order {order_id} not found", order_id=str(order_id)) from e


def update_status(
    client: Client,
    order_id: str | UUID,
    new_status: OrderStatus | str,
    *,
    now: datetime | None = None,
) -> Order:
    """
    Move an order to a new status.

    The status and its timestamp are written together. Writing the current
    status again is allowed and restamps ``status_changed_at``.

    Args:
        client: Tenant that owns the order.
        order_id: Order UUID.
        new_status: Target status.
        now: Transition time (defaults to the current time).

    Returns:
        The updated order.

    Raises:
        OrderNotFound: If the order does not exist for this tenant.
        InvalidTransition: If the order is dispatched/cancelled and the
            target status differs.
        ValueError: If ``new_status`` is not a known status.
    """
    new_status = OrderStatus(new_status)
    order = get_order(client, order_id)

    if order.is_terminal and new_status != order.status:
        raise InvalidTransition(
            f"Order is already {order.status} and cannot change status",
            order_id=str(order.pk),
            current_status=order.status,
            requested_status=new_status,
        )

    previous = order.status
    order.status = new_status
    order.status_changed_at = now or timezone.now()
    order.save(update_fields=["status", "status_changed_at", "updated_at"])

    logger.info(
        "Order %s status %s -> %s (client=%s)",
        order.pk,
        previous,
        new_status,
        client.slug,
    )
    return order


def cancel_order(
    client: Client, order_id: str | UUID, *, now: datetime | None = None
) -> Order:
    """Cancel an order. Cancelling an already-cancelled order is a no-op restamp."""
    return update_status(client, order_id, OrderStatus.CANCELLED, now=now)


def snooze_order(
    client: Client,
    order_id: str | UUID,
    minutes: int,
    *,
    now: datetime | None = None,
) -> Order:
    """
    Suppress an order's staleness alert for a number of minutes.

    Does not touch the order's status.

    Raises:
        ValueError: If minutes is not positive.
        OrderNotFound: If the order does not exist for this tenant.
    """
    if minutes <= 0:
        raise ValueError("Snooze minutes must be positive")

    order = get_order(client, order_id)
    order.snoozed_until = (now or timezone.now()) + timedelta(minutes=minutes)
    order.save(update_fields=["snoozed_until", "updated_at"])

    logger.info("Order %s snoozed for %d min (client=%s)", order.pk, minutes, client.slug)
    return order


# =============================================================================
# Submission
# =============================================================================


def _price_items(
    client: Client, order_request: "OrderCreateRequest"
) -> list[OrderItem]:
    """Validate requested items against the catalog and build unsaved line items."""
    errors: list[tuple[str, str]] = []
    lines: list[OrderItem] = []

    menu_items = MenuItem.objects.for_tenant(client).in_bulk(
        [item.menu_item_id for item in order_request.items]
    )

    for i, item_data in enumerate(order_request.items):
        field = f"items[{i}]"
        menu_item = menu_items.get(item_data.menu_item_id)

        if menu_item is None:
            errors.append((f"{field}.menu_item_id", "Item not found"))
            continue

        if not menu_item.is_available:
            errors.append(
                (f"{field}.menu_item_id", f"'{menu_item.name}' is currently unavailable")
            )
            continue

        if menu_item.sold_by_weight and item_data.weight is None:
            errors.append((f"{field}.weight", f"'{menu_item.name}' is sold by weight"))
            continue
        if not menu_item.sold_by_weight and item_data.quantity is None:
            errors.append((f"{field}.quantity", f"'{menu_item.name}' needs a quantity"))
            continue

        quantity = None if menu_item.sold_by_weight else item_data.quantity
        weight = item_data.weight if menu_item.sold_by_weight else None
        lines.append(
            OrderItem(
                client=client,
                menu_item=menu_item,
                name=menu_item.name,
                unit_price=menu_item.price,
                sold_by_weight=menu_item.sold_by_weight,
                quantity=quantity,
                weight=weight,
                weight_unit=menu_item.weight_unit if menu_item.sold_by_weight else "",
                subtotal=OrderItem.compute_subtotal(menu_item.price, quantity, weight),
            )
        )

    if errors:
        raise OrderSubmissionError("Invalid order items", errors=errors)
    return lines


def submit_order(
    client: Client,
    order_request: "OrderCreateRequest",
    *,
    now: datetime | None = None,
) -> Order:
    """
    Create a pending order from a checkout submission.

    Line items are snapshotted from the catalog and the total is computed
    once here. Online orders start with payment_status ``processing``.
    Must be called inside a transaction.

    Raises:
        OrderSubmissionError: If the business cannot take orders or the
            request does not validate against the catalog.
    """
    now = now or timezone.now()

    if not client.can_operate(now):
        raise OrderSubmissionError("This business is not accepting orders")

    if (
        order_request.delivery_type == DeliveryType.DELIVERY
        and not order_request.customer.address
    ):
        raise OrderSubmissionError(
            "Invalid order",
            errors=[("customer.address", "Delivery address is required for delivery orders")],
        )

    lines = _price_items(client, order_request)
    total = sum((line.subtotal for line in lines), Decimal("0"))

    # Lock the tenant row so order numbers are assigned serially
    Client.objects.select_for_update().filter(pk=client.pk).first()
    last_number = Order.objects.for_tenant(client).aggregate(n=Max("order_number"))["n"]

    online = order_request.payment_method == PaymentMethod.ONLINE
    order = Order.objects.create(
        client=client,
        order_number=(last_number or 0) + 1,
        status=OrderStatus.PENDING,
        status_changed_at=now,
        customer_name=order_request.customer.name,
        customer_phone=order_request.customer.phone,
        delivery_address=order_request.customer.address,
        notes=order_request.customer.notes,
        delivery_type=order_request.delivery_type,
        payment_method=order_request.payment_method,
        total=total,
        payment_status=PaymentStatus.PROCESSING if online else None,
    )
    for line in lines:
        line.order = order
    OrderItem.objects.bulk_create(lines)

    logger.info(
        "Order %s (#%d) submitted for client %s: total=%s payment=%s",
        order.pk,
        order.order_number,
        client.slug,
        total,
        order.payment_method,
    )
    return order


# =============================================================================
# Boards
# =============================================================================


def _serialize_items(order: Order) -> list[OrderItemResponseSchema]:
    return [OrderItemResponseSchema.model_validate(item) for item in order.items.all()]


def order_card(order: Order, *, now: datetime, threshold_seconds: int) -> OrderCardSchema:
    """Serialize an order for a live board, including its alert state."""
    return OrderCardSchema(
        order_id=str(order.pk),
        order_number=order.order_number,
        status=order.status,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        delivery_type=order.delivery_type,
        delivery_address=order.delivery_address,
        notes=order.notes,
        payment_method=order.payment_method,
        payment_status=order.payment_status or None,
        total=order.total,
        items=_serialize_items(order),
        created_at=order.created_at,
        status_changed_at=order.status_changed_at,
        snoozed_until=order.snoozed_until,
        alert=compute_alert(
            order.status,
            order.status_changed_at,
            order.snoozed_until,
            now,
            threshold_seconds,
            order_id=str(order.pk),
        ),
    )


def order_board(
    orders: Iterable[Order],
    *,
    threshold_seconds: int,
    now: datetime | None = None,
) -> OrderBoardResponse:
    """Serialize a list of orders with per-status counts."""
    now = now or timezone.now()
    cards = [order_card(o, now=now, threshold_seconds=threshold_seconds) for o in orders]
    counts = Counter(card.status.value for card in cards)
    return OrderBoardResponse(
        orders=cards,
        counts={status.value: counts.get(status.value, 0) for status in OrderStatus},
        alert_threshold_seconds=threshold_seconds,
        snooze_choices=list(settings.SNOOZE_CHOICES),
    )


def customer_schema(order: Order) -> CustomerSchema:
    """Customer block of an order response."""
    return CustomerSchema(
        name=order.customer_name,
        phone=order.customer_phone,
        address=order.delivery_address,
        notes=order.notes,
    )
