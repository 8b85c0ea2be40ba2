"""
Pydantic schemas for the order API and the staff/kitchen order boards.

These schemas define the public API contract for order data.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from optima_schemas import (
    AlertState,
    DeliveryType,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)

# =============================================================================
# Order Submission
# =============================================================================


class CustomerSchema(BaseModel):
    """Customer information for an order."""

    name: str = Field(..., min_length=1, max_length=200)
    phone: str = Field(..., min_length=1, max_length=30)
    address: str = Field(default="", max_length=500)
    notes: str = Field(default="", max_length=1000)


class OrderItemCreateSchema(BaseModel):
    """A single item in an order creation request."""

    menu_item_id: int
    quantity: int | None = Field(default=None, ge=1, le=99)
    weight: Decimal | None = Field(default=None, gt=0, le=100)

    @model_validator(mode="after")
    def _quantity_xor_weight(self) -> "OrderItemCreateSchema":
        if (self.quantity is None) == (self.weight is None):
            raise ValueError("Provide either quantity or weight, not both")
        return self


class OrderCreateRequest(BaseModel):
    """Request body for POST /api/clients/{slug}/orders."""

    customer: CustomerSchema
    delivery_type: DeliveryType
    payment_method: PaymentMethod
    items: list[OrderItemCreateSchema] = Field(..., min_length=1)


class OrderItemResponseSchema(BaseModel):
    """A line item in an order response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    unit_price: Decimal
    sold_by_weight: bool
    quantity: int | None
    weight: Decimal | None
    weight_unit: str
    subtotal: Decimal


class OrderCreateResponse(BaseModel):
    """Response for POST /api/clients/{slug}/orders."""

    order_id: str
    order_number: int
    status: OrderStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus | None
    total: Decimal
    checkout_url: str | None = None
    created_at: datetime


class OrderDetailResponse(BaseModel):
    """Response for GET /api/clients/{slug}/orders/{order_id}."""

    order_id: str
    order_number: int
    status: OrderStatus
    customer: CustomerSchema
    delivery_type: DeliveryType
    payment_method: PaymentMethod
    payment_status: PaymentStatus | None
    items: list[OrderItemResponseSchema]
    total: Decimal
    created_at: datetime
    status_changed_at: datetime


# =============================================================================
# Staff / Kitchen Boards
# =============================================================================


class OrderCardSchema(BaseModel):
    """An order as shown on a live board, with its staleness state."""

    order_id: str
    order_number: int
    status: OrderStatus
    customer_name: str
    customer_phone: str
    delivery_type: DeliveryType
    delivery_address: str
    notes: str
    payment_method: PaymentMethod
    payment_status: PaymentStatus | None
    total: Decimal
    items: list[OrderItemResponseSchema]
    created_at: datetime
    status_changed_at: datetime
    snoozed_until: datetime | None
    alert: AlertState


class OrderBoardResponse(BaseModel):
    """Response for the dashboard and kitchen order lists."""

    orders: list[OrderCardSchema]
    counts: dict[str, int]
    alert_threshold_seconds: int
    snooze_choices: list[int]


class StatusUpdateRequest(BaseModel):
    """Request body for order status changes."""

    status: OrderStatus


class SnoozeRequest(BaseModel):
    """Request body for snoozing an order's alert."""

    minutes: int = Field(..., gt=0, le=120)


# =============================================================================
# Errors
# =============================================================================


class ValidationErrorDetail(BaseModel):
    """A single validation error."""

    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    """Response for validation errors."""

    error: Literal["validation_error"]
    details: list[ValidationErrorDetail]


def validation_error_response(exc: PydanticValidationError) -> ValidationErrorResponse:
    """Convert a pydantic ValidationError into the API error shape."""
    return ValidationErrorResponse(
        error="validation_error",
        details=[
            ValidationErrorDetail(
                field=".".join(str(loc) for loc in err["loc"]),
                message=err["msg"],
            )
            for err in exc.errors()
        ],
    )
