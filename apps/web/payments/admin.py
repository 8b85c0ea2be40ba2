"""Admin registrations for payment models."""

from django.contrib import admin

from .models import OAuthState, SubscriptionPayment


@admin.register(SubscriptionPayment)
class SubscriptionPaymentAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    """Admin for subscription payments (read-mostly; webhooks own the state)."""

    list_display = [
        "client",
        "plan_type",
        "amount",
        "status",
        "payment_id",
        "approved_at",
        "created_at",
    ]
    list_filter = ["status", "plan_type"]
    search_fields = ["client__name", "client__slug", "external_reference", "payment_id"]
    readonly_fields = [
        "external_reference",
        "preference_id",
        "payment_id",
        "payment_method",
        "payer_email",
        "approved_at",
        "metadata",
        "created_at",
        "updated_at",
    ]


@admin.register(OAuthState)
class OAuthStateAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["client", "expires_at", "used_at", "created_at"]
    list_filter = ["used_at"]
    search_fields = ["client__name", "client__slug"]
    readonly_fields = ["state", "expires_at", "used_at", "created_at", "updated_at"]
