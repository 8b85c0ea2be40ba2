"""
Core models - Multi-tenancy foundation.

All tenant-scoped models inherit from ClientScopedModel.
"""

import math
from datetime import datetime

from django.contrib.auth.hashers import check_password, make_password
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone

from .managers import ClientScopedManager


class Client(models.Model):
    """
    Tenant - represents a restaurant business.

    All data is scoped to a Client.
    """

    class SubscriptionStatus(models.TextChoices):
        TRIAL = "trial", "Trial"
        ACTIVE = "active", "Active"
        PAST_DUE = "past_due", "Past Due"
        CANCELLED = "cancelled", "Cancelled"
        EXPIRED = "expired", "Expired"

    class PlanType(models.TextChoices):
        FREE = "free", "Free"
        MONTHLY = "monthly", "Monthly"
        ANNUAL = "annual", "Annual"

    slug = models.SlugField(unique=True, help_text="URL-safe identifier")
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=20, blank=True)
    address = models.TextField(blank=True)

    # Payments
    mercadopago_access_token = models.CharField(
        max_length=255,
        blank=True,
        help_text="MercadoPago access token (blank = not connected)",
    )
    mercadopago_refresh_token = models.CharField(max_length=255, blank=True)
    mercadopago_user_id = models.CharField(
        max_length=50,
        blank=True,
        help_text="Seller account id on MercadoPago",
    )
    mercadopago_public_key = models.CharField(max_length=255, blank=True)
    mercadopago_connected_at = models.DateTimeField(null=True, blank=True)

    # Kitchen display
    kitchen_pin = models.CharField(
        max_length=128,
        blank=True,
        help_text="Hashed kitchen PIN (blank = kitchen PIN disabled)",
    )

    # Trial / subscription
    trial_ends_at = models.DateTimeField(null=True, blank=True)
    subscription_status = models.CharField(
        max_length=20,
        choices=SubscriptionStatus.choices,
        default=SubscriptionStatus.TRIAL,
    )
    plan_type = models.CharField(
        max_length=20,
        choices=PlanType.choices,
        default=PlanType.FREE,
    )
    subscription_started_at = models.DateTimeField(null=True, blank=True)
    subscription_ends_at = models.DateTimeField(null=True, blank=True)

    # Status
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    # =========================================================================
    # Kitchen PIN
    # =========================================================================

    def set_kitchen_pin(self, raw_pin: str | None) -> None:
        """Hash and store the kitchen PIN. An empty PIN disables kitchen access."""
        self.kitchen_pin = make_password(raw_pin) if raw_pin else ""

    def check_kitchen_pin(self, raw_pin: str) -> bool:
        """Check a raw PIN against the stored hash."""
        if not self.kitchen_pin or not raw_pin:
            return False
        return check_password(raw_pin, self.kitchen_pin)

    # =========================================================================
    # Trial / subscription
    # =========================================================================

    def is_subscription_expired(self, now: datetime | None = None) -> bool:
        """Whether a paid subscription has passed its end date."""
        if self.subscription_status != self.SubscriptionStatus.ACTIVE:
            return False
        if self.subscription_ends_at is None:
            return False
        return self.subscription_ends_at < (now or timezone.now())

    def is_trial_expired(self, now: datetime | None = None) -> bool:
        """
        Whether the tenant's trial (or paid plan, when active) has run out.

        Tenants without a trial end date never expire.
        """
        if self.subscription_status == self.SubscriptionStatus.ACTIVE:
            return self.is_subscription_expired(now)
        if self.trial_ends_at is None:
            return False
        return self.trial_ends_at < (now or timezone.now())

    def days_remaining(self, now: datetime | None = None) -> int:
        """Whole days left in the paid plan (when active) or the trial, rounded up."""
        now = now or timezone.now()
        if (
            self.subscription_status == self.SubscriptionStatus.ACTIVE
            and self.subscription_ends_at
        ):
            ends_at = self.subscription_ends_at
        elif self.trial_ends_at:
            ends_at = self.trial_ends_at
        else:
            return 0
        return max(0, math.ceil((ends_at - now).total_seconds() / 86400))

    def can_operate(self, now: datetime | None = None) -> bool:
        """Whether this tenant may accept and process orders."""
        return self.is_active and not self.is_trial_expired(now)


class User(AbstractUser):
    """
    Custom user model with client association.

    Users belong to one Client (staff) or none (superuser).
    """

    client = models.ForeignKey(
        Client,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="users",
        help_text="Null for superusers",
    )

    class Role(models.TextChoices):
        OWNER = "owner", "Owner"
        ADMIN = "admin", "Admin"
        KITCHEN = "kitchen", "Kitchen"
        STAFF = "staff", "Staff"

    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.STAFF,
    )

    class Meta:
        ordering = ["username"]

    def __str__(self) -> str:
        if self.client:
            return f"{self.username} ({self.client.slug})"
        return self.username

    @property
    def can_manage_billing(self) -> bool:
        """Owners and admins may start subscription checkouts."""
        return self.role in (self.Role.OWNER, self.Role.ADMIN)

    @property
    def can_manage_settings(self) -> bool:
        """Owners and admins may change business settings such as the kitchen PIN."""
        return self.role in (self.Role.OWNER, self.Role.ADMIN)


class ClientScopedModel(models.Model):
    """
    Abstract base for all tenant-scoped models.

    Provides:
    - Automatic client FK
    - ClientScopedManager for filtered queries
    - Created/updated timestamps
    """

    client = models.ForeignKey(
        Client,
        on_delete=models.CASCADE,
        related_name="%(class)ss",  # e.g., client.orders, client.menuitems
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ClientScopedManager()

    class Meta:
        abstract = True
