"""Kitchen display models - PIN attempt tracking."""

from django.db import models

from apps.web.core.models import Client


class KitchenPinLock(models.Model):
    """
    Failed kitchen PIN attempts for one business.

    After too many consecutive failures the PIN is locked until
    ``locked_until``.
    """

    client = models.OneToOneField(
        Client,
        on_delete=models.CASCADE,
        related_name="kitchen_pin_lock",
    )
    failed_attempts = models.PositiveIntegerField(default=0)
    locked_until = models.DateTimeField(null=True, blank=True)
    last_failed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "kitchen PIN lock"

    def __str__(self) -> str:
        return f"PIN lock for {self.client} ({self.failed_attempts} failed)"
