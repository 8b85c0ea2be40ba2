"""Admin registrations for restaurant models."""

from django.contrib import admin

from .models import MenuItem, Order, OrderItem


class OrderItemInline(admin.TabularInline):  # type: ignore[type-arg]
    """Read-only line items on the order page."""

    model = OrderItem
    extra = 0
    can_delete = False
    fields = ["name", "quantity", "weight", "weight_unit", "unit_price", "subtotal"]
    readonly_fields = fields


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    """Admin for catalog items."""

    list_display = ["name", "client", "price", "sold_by_weight", "is_available"]
    list_filter = ["is_available", "sold_by_weight", "client"]
    search_fields = ["name", "description"]
    readonly_fields = ["created_at", "updated_at"]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    """Admin for orders."""

    list_display = [
        "order_number",
        "client",
        "customer_name",
        "status",
        "payment_method",
        "payment_status",
        "total",
        "created_at",
    ]
    list_filter = ["status", "payment_status", "payment_method", "delivery_type", "client"]
    search_fields = ["customer_name", "customer_phone", "mercadopago_payment_id"]
    inlines = [OrderItemInline]
    readonly_fields = [
        "id",
        "order_number",
        "total",
        "status_changed_at",
        "mercadopago_preference_id",
        "mercadopago_payment_id",
        "created_at",
        "updated_at",
    ]

    fieldsets = [
        (None, {"fields": ["id", "client", "order_number"]}),
        ("Status", {"fields": ["status", "status_changed_at", "snoozed_until"]}),
        (
            "Customer",
            {
                "fields": [
                    "customer_name",
                    "customer_phone",
                    "delivery_type",
                    "delivery_address",
                    "notes",
                ]
            },
        ),
        (
            "Payment",
            {
                "fields": [
                    "payment_method",
                    "payment_status",
                    "total",
                    "mercadopago_preference_id",
                    "mercadopago_payment_id",
                ]
            },
        ),
        ("Timestamps", {"fields": ["created_at", "updated_at"]}),
    ]
