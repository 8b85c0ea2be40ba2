"""Admin registrations for core models."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Client, User


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = [
        "name",
        "slug",
        "subscription_status",
        "plan_type",
        "subscription_ends_at",
        "is_active",
    ]
    list_filter = ["is_active", "subscription_status", "plan_type"]
    search_fields = ["name", "slug", "email"]
    prepopulated_fields = {"slug": ("name",)}
    readonly_fields = ["kitchen_pin", "mercadopago_connected_at", "created_at", "updated_at"]
    fieldsets = [
        (None, {"fields": ["name", "slug", "email", "phone", "address", "is_active"]}),
        (
            "Payments",
            {
                "fields": [
                    "mercadopago_access_token",
                    "mercadopago_refresh_token",
                    "mercadopago_user_id",
                    "mercadopago_public_key",
                    "mercadopago_connected_at",
                ]
            },
        ),
        ("Kitchen", {"fields": ["kitchen_pin"]}),
        (
            "Subscription",
            {
                "fields": [
                    "subscription_status",
                    "plan_type",
                    "trial_ends_at",
                    "subscription_started_at",
                    "subscription_ends_at",
                ]
            },
        ),
        ("Timestamps", {"fields": ["created_at", "updated_at"]}),
    ]


@admin.register(User)
class UserAdmin(BaseUserAdmin):  # type: ignore[type-arg]
    list_display = ["username", "email", "client", "role", "is_staff", "is_active"]
    list_filter = ["is_staff", "is_active", "role", "client"]
    search_fields = ["username", "email"]
    fieldsets = (
        *BaseUserAdmin.fieldsets,  # type: ignore[misc]
        ("Client Info", {"fields": ("client", "role")}),
    )
    add_fieldsets = (
        *BaseUserAdmin.add_fieldsets,
        ("Client Info", {"fields": ("client", "role")}),
    )
