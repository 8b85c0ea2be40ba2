"""
Restaurant models - menu catalog rows and customer orders.

Orders are tenant-scoped and follow a small lifecycle:
pending -> preparing -> ready -> dispatched, with cancellation.
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from optima_schemas import OrderSnapshot

from apps.web.core.models import ClientScopedModel


class MenuItem(ClientScopedModel):
    """
    Catalog item used to price order submissions.

    Catalog management lives outside this service; rows are maintained
    through the admin.
    """

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Unit price, or price per weight unit when sold by weight",
    )
    sold_by_weight = models.BooleanField(default=False)
    weight_unit = models.CharField(
        max_length=10,
        blank=True,
        help_text='Weight unit for priced-by-weight items (e.g. "kg")',
    )

    # Availability (sold out when False)
    is_available = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["client", "is_available"], name="restaurant__client__a8f2c1_idx"),
        ]

    def __str__(self) -> str:
        return self.name


# =============================================================================
# Orders
# =============================================================================


class OrderStatus(models.TextChoices):
    """Order lifecycle status."""

    PENDING = "pending", "Pending"
    PREPARING = "preparing", "Preparing"
    READY = "ready", "Ready"
    DISPATCHED = "dispatched", "Dispatched"
    CANCELLED = "cancelled", "Cancelled"


TERMINAL_ORDER_STATUSES = (OrderStatus.DISPATCHED, OrderStatus.CANCELLED)
ACTIVE_ORDER_STATUSES = (OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.READY)


class DeliveryType(models.TextChoices):
    """Order fulfillment type."""

    PICKUP = "pickup", "Pickup"
    DELIVERY = "delivery", "Delivery"


class PaymentMethod(models.TextChoices):
    """How the customer pays."""

    CASH = "cash", "Cash"
    ONLINE = "online", "Online (MercadoPago)"


class PaymentStatus(models.TextChoices):
    """Payment status, driven by provider webhooks."""

    PROCESSING = "processing", "Processing"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class Order(ClientScopedModel):
    """
    Customer order.

    Customer details, items and total are fixed at submission. Only the
    status fields, snooze and payment fields change afterwards.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.PositiveIntegerField(
        help_text="Per-business display number",
    )

    # Lifecycle
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    status_changed_at = models.DateTimeField(
        help_text="Reset on every status write; drives staleness alerts",
    )
    snoozed_until = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Alerts are suppressed until this time",
    )

    # Customer information
    customer_name = models.CharField(max_length=200)
    customer_phone = models.CharField(max_length=30)
    delivery_address = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    delivery_type = models.CharField(
        max_length=20,
        choices=DeliveryType.choices,
        default=DeliveryType.PICKUP,
    )
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH,
    )

    # Pricing (computed once at submission)
    total = models.DecimalField(max_digits=12, decimal_places=2)

    # Payment
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        null=True,
        blank=True,
    )
    mercadopago_preference_id = models.CharField(max_length=255, blank=True)
    mercadopago_payment_id = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["client", "order_number"],
                name="unique_order_number_per_client",
            ),
        ]
        indexes = [
            models.Index(fields=["client", "status"], name="restaurant__client__3b9d0e_idx"),
            models.Index(fields=["client", "created_at"], name="restaurant__client__7c41f5_idx"),
            models.Index(
                fields=["mercadopago_payment_id"], name="restaurant__mercado_e2a7b9_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"Order #{self.order_number} - {self.customer_name}"

    @property
    def is_terminal(self) -> bool:
        """Dispatched and cancelled orders never change status again."""
        return self.status in TERMINAL_ORDER_STATUSES

    def to_snapshot(self) -> OrderSnapshot:
        """Build the row shape pushed to live viewers."""
        return OrderSnapshot(
            id=str(self.pk),
            client_id=self.client_id,
            order_number=self.order_number,
            status=self.status,
            status_changed_at=self.status_changed_at,
            created_at=self.created_at,
            snoozed_until=self.snoozed_until,
            customer_name=self.customer_name,
            delivery_type=self.delivery_type,
            payment_method=self.payment_method,
            payment_status=self.payment_status or None,
            total=self.total,
        )


class OrderItem(ClientScopedModel):
    """
    Line item in an order.

    Stores a snapshot of the menu item at order time. Discrete items carry
    ``quantity``; items sold by weight carry ``weight`` and ``weight_unit``.
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items",
    )
    menu_item = models.ForeignKey(
        MenuItem,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
        help_text="Reference to the menu item (for analytics)",
    )

    # Snapshot of item at order time
    name = models.CharField(max_length=200)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    sold_by_weight = models.BooleanField(default=False)
    quantity = models.PositiveIntegerField(null=True, blank=True)
    weight = models.DecimalField(
        max_digits=8,
        decimal_places=3,
        null=True,
        blank=True,
    )
    weight_unit = models.CharField(max_length=10, blank=True)

    subtotal = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="unit_price * quantity, or unit_price * weight",
    )

    class Meta:
        ordering = ["pk"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(
                        sold_by_weight=False,
                        quantity__isnull=False,
                        weight__isnull=True,
                    )
                    | Q(
                        sold_by_weight=True,
                        quantity__isnull=True,
                        weight__isnull=False,
                    )
                ),
                name="order_item_quantity_xor_weight",
            ),
        ]

    def __str__(self) -> str:
        if self.sold_by_weight:
            return f"{self.weight}{self.weight_unit} {self.name}"
        return f"{self.quantity}x {self.name}"

    def clean(self) -> None:
        if self.sold_by_weight:
            if self.weight is None or self.quantity is not None:
                raise ValidationError("Items sold by weight need a weight and no quantity")
        elif self.quantity is None or self.weight is not None:
            raise ValidationError("Items sold by unit need a quantity and no weight")

    @staticmethod
    def compute_subtotal(
        unit_price: Decimal, quantity: int | None, weight: Decimal | None
    ) -> Decimal:
        """Line subtotal, rounded to cents."""
        amount = weight if weight is not None else Decimal(quantity or 0)
        return (unit_price * amount).quantize(Decimal("0.01"))
