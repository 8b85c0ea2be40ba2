"""MercadoPago schemas - provider payloads and webhook notifications."""

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# Enums
# =============================================================================


class PlanType(str, Enum):
    """Paid subscription plans."""

    MONTHLY = "monthly"
    ANNUAL = "annual"


# =============================================================================
# Provider payloads
# =============================================================================


class ProviderPayer(BaseModel):
    """Payer block of a MercadoPago payment."""

    model_config = ConfigDict(extra="allow")

    email: str | None = None


class ProviderPayment(BaseModel):
    """
    A MercadoPago payment as returned by GET /v1/payments/{id}.

    Only the fields we act on are declared; the rest are kept so the full
    payload can be stored as a snapshot.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    status: str | None = None
    status_detail: str | None = None
    external_reference: str | None = None
    payment_method_id: str | None = None
    transaction_amount: Decimal | None = None
    date_approved: datetime | None = None
    payer: ProviderPayer | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # MercadoPago returns numeric payment ids
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("metadata", mode="before")
    @classmethod
    def _default_metadata(cls, value: Any) -> Any:
        return value or {}


class CheckoutPreference(BaseModel):
    """A created checkout preference."""

    model_config = ConfigDict(extra="allow")

    id: str
    init_point: str | None = None
    sandbox_init_point: str | None = None


class OAuthToken(BaseModel):
    """
    Credentials returned when a seller authorizes our application.

    ``user_id`` arrives as a number and is kept as a string.
    """

    model_config = ConfigDict(extra="allow")

    access_token: str
    refresh_token: str = ""
    user_id: str = ""
    public_key: str = ""
    expires_in: int | None = None

    @field_validator("user_id", mode="before")
    @classmethod
    def _user_id_as_str(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, int):
            return str(value)
        return value


# =============================================================================
# Webhook notifications
# =============================================================================


class WebhookNotification(BaseModel):
    """
    A normalized inbound payment notification.

    MercadoPago delivers the same event in several shapes: the v2 webhook body
    (``{"type": "payment", "data": {"id": ...}}``), the legacy IPN body
    (``{"topic": "payment", "id": ...}``) and bare query parameters. ``shape``
    records which one supplied the resource id.
    """

    model_config = ConfigDict(frozen=True)

    topic: str | None = None
    resource_id: str | None = None
    shape: Literal["webhook", "ipn", "query", "empty"] = "empty"

    @property
    def is_payment(self) -> bool:
        """Whether the notification concerns a payment resource."""
        return bool(self.topic) and (
            self.topic == "payment" or self.topic.startswith("payment.")
        )


def _as_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def parse_notification(
    body: Mapping[str, Any] | None, query: Mapping[str, Any] | None
) -> WebhookNotification:
    """
    Normalize a webhook delivery into a single notification.

    The topic comes from the body's ``topic``, ``type`` or ``action`` (in that
    order), falling back to the ``topic``/``type`` query parameters.

    The resource id is taken from the query string first, because that is
    the value covered by the request signature, then from the body: the v2
    ``data.id``, or the IPN ``id`` when the topic is ``payment``. An IPN
    ``merchant_order`` notification carries no payment id.

    Args:
        body: Decoded JSON body, or None/empty when there was none.
        query: Query string parameters.

    Returns:
        WebhookNotification (shape ``"empty"`` when no id was found).
    """
    body = body or {}
    query = query or {}

    topic = (
        _as_str(body.get("topic"))
        or _as_str(body.get("type"))
        or _as_str(body.get("action"))
        or _as_str(query.get("topic"))
        or _as_str(query.get("type"))
    )

    query_id = _as_str(query.get("data.id")) or _as_str(query.get("id"))
    if query_id:
        return WebhookNotification(topic=topic, resource_id=query_id, shape="query")

    data = body.get("data")
    if isinstance(data, Mapping) and _as_str(data.get("id")):
        return WebhookNotification(
            topic=topic, resource_id=_as_str(data.get("id")), shape="webhook"
        )

    body_id = _as_str(body.get("id"))
    if body_id and body.get("topic") == "payment":
        return WebhookNotification(topic=topic, resource_id=body_id, shape="ipn")

    return WebhookNotification(topic=topic, resource_id=None, shape="empty")
