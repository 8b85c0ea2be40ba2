"""Order lifecycle schemas - data contracts shared by the board, kitchen and API."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict

# =============================================================================
# Enums
# =============================================================================


class OrderStatus(str, Enum):
    """Order lifecycle status."""

    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    DISPATCHED = "dispatched"
    CANCELLED = "cancelled"


# Once reached, an order never leaves these statuses.
TERMINAL_STATUSES = frozenset({OrderStatus.DISPATCHED, OrderStatus.CANCELLED})

# Statuses that count toward staleness alerts.
ACTIVE_STATUSES = frozenset(
    {OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.READY}
)


class PaymentStatus(str, Enum):
    """Order payment status as tracked locally."""

    PROCESSING = "processing"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class DeliveryType(str, Enum):
    """Order fulfillment type."""

    PICKUP = "pickup"
    DELIVERY = "delivery"


class PaymentMethod(str, Enum):
    """How the customer pays."""

    CASH = "cash"
    ONLINE = "online"


# =============================================================================
# Snapshots
# =============================================================================


class OrderSnapshot(BaseModel):
    """
    Authoritative row shape pushed to live viewers of a tenant's orders.

    A snapshot always replaces whatever the viewer held for the same id.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    client_id: int
    order_number: int
    status: OrderStatus
    status_changed_at: datetime
    created_at: datetime
    snoozed_until: datetime | None = None
    customer_name: str = ""
    delivery_type: DeliveryType = DeliveryType.PICKUP
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_status: PaymentStatus | None = None
    total: Decimal = Decimal("0")


class AlertState(BaseModel):
    """Derived staleness state of one order at one instant."""

    model_config = ConfigDict(frozen=True)

    order_id: str | None = None
    elapsed_seconds: int
    elapsed_display: str
    is_active: bool
    is_snoozed: bool
    is_alert: bool
