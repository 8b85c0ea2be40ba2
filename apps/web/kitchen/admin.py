"""Admin registrations for kitchen models."""

from django.contrib import admin

from .models import KitchenPinLock


@admin.register(KitchenPinLock)
class KitchenPinLockAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    """Admin for PIN lockouts. Delete a row to unlock a business."""

    list_display = ["client", "failed_attempts", "locked_until", "last_failed_at"]
    search_fields = ["client__name", "client__slug"]
    readonly_fields = ["failed_attempts", "locked_until", "last_failed_at"]
