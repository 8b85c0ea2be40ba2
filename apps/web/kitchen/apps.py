"""Django app configuration for kitchen display module."""

from django.apps import AppConfig


class KitchenConfig(AppConfig):
    """Kitchen display app configuration."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.web.kitchen"
    verbose_name = "Kitchen Display"
