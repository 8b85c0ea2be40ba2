"""Payment models - platform subscription billing and seller account connection."""

from datetime import datetime

from django.db import models

from apps.web.core.models import ClientScopedModel


class SubscriptionPayment(ClientScopedModel):
    """
    One subscription checkout and the provider payment that settled it.

    Keyed by ``external_reference``, the correlation id we hand to
    MercadoPago when creating the preference. Once ``approved`` the status
    is never overwritten.
    """

    class PlanType(models.TextChoices):
        MONTHLY = "monthly", "Monthly"
        ANNUAL = "annual", "Annual"

    APPROVED = "approved"
    PENDING = "pending"

    plan_type = models.CharField(max_length=20, choices=PlanType.choices)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    preference_id = models.CharField(max_length=255, blank=True)
    external_reference = models.CharField(max_length=255, unique=True)

    # Provider state string (pending, approved, rejected, ...)
    status = models.CharField(max_length=30, default=PENDING)
    payment_id = models.CharField(max_length=255, blank=True)
    payment_method = models.CharField(max_length=50, blank=True)
    payer_email = models.EmailField(blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Latest provider payment snapshot",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["client", "created_at"], name="payments_su_client__5d1e8a_idx"),
            models.Index(fields=["payment_id"], name="payments_su_payment_9f3c2b_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.client} {self.plan_type} ({self.status})"

    @property
    def is_approved(self) -> bool:
        return self.status == self.APPROVED


class OAuthState(ClientScopedModel):
    """
    Single-use ``state`` token for a MercadoPago account connection.

    Issued when an owner starts the OAuth flow and consumed by the callback,
    which learns from it which business is being connected.
    """

    state = models.CharField(max_length=64, unique=True)
    expires_at = models.DateTimeField()
    used_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "OAuth state"

    def __str__(self) -> str:
        return f"OAuth state for {self.client} ({'used' if self.used_at else 'open'})"

    def is_usable(self, now: datetime) -> bool:
        return self.used_at is None and self.expires_at > now
