"""
Rate-limited kitchen PIN gate.

Kitchen displays unlock with a per-business PIN. Consecutive wrong PINs
are counted per business; after ``KITCHEN_PIN_MAX_ATTEMPTS`` failures the
PIN is locked for ``KITCHEN_PIN_LOCKOUT_MINUTES``. Failures older than the
lockout window no longer count.
"""

import logging
import math
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Protocol

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from optima_schemas import RateLimitStatus

from apps.web.core.models import Client
from apps.web.kitchen.models import KitchenPinLock

logger = logging.getLogger(__name__)


class PinGate(Protocol):
    """The two calls a kitchen PIN login needs."""

    def check_rate_limit(self, tenant_slug: str) -> RateLimitStatus:
        """Report whether the business's PIN is currently locked."""
        ...

    def validate_pin(self, tenant_slug: str, pin: str) -> int | None:
        """Return the business id if the PIN is correct, else None."""
        ...


class DatabasePinGate:
    """PinGate backed by the KitchenPinLock table."""

    def __init__(
        self,
        max_attempts: int | None = None,
        lockout: timedelta | None = None,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self.max_attempts = max_attempts or settings.KITCHEN_PIN_MAX_ATTEMPTS
        self.lockout = lockout or timedelta(minutes=settings.KITCHEN_PIN_LOCKOUT_MINUTES)
        self._clock = clock

    def _is_locked(self, lock: KitchenPinLock, now: datetime) -> bool:
        return lock.locked_until is not None and lock.locked_until > now

    def _is_stale(self, lock: KitchenPinLock, now: datetime) -> bool:
        """Whether previous failures fall outside the window and should be forgotten."""
        if lock.locked_until is not None and lock.locked_until <= now:
            return True
        return lock.last_failed_at is not None and now - lock.last_failed_at >= self.lockout

    def check_rate_limit(self, tenant_slug: str) -> RateLimitStatus:
        now = self._clock()
        lock = KitchenPinLock.objects.filter(client__slug=tenant_slug).first()

        if lock is None:
            return RateLimitStatus(rate_limited=False, attempts_remaining=self.max_attempts)

        if self._is_locked(lock, now):
            retry_after = math.ceil((lock.locked_until - now).total_seconds())
            return RateLimitStatus(
                rate_limited=True,
                retry_after_seconds=max(1, retry_after),
                attempts_remaining=0,
            )

        failed = 0 if self._is_stale(lock, now) else lock.failed_attempts
        return RateLimitStatus(
            rate_limited=False,
            attempts_remaining=max(0, self.max_attempts - failed),
        )

    def validate_pin(self, tenant_slug: str, pin: str) -> int | None:
        client = Client.objects.filter(slug=tenant_slug, is_active=True).first()
        if client is None or not client.kitchen_pin:
            return None

        now = self._clock()
        with transaction.atomic():
            lock, _ = KitchenPinLock.objects.select_for_update().get_or_create(
                client=client
            )

            if self._is_locked(lock, now):
                return None

            if self._is_stale(lock, now):
                lock.failed_attempts = 0
                lock.locked_until = None

            if client.check_kitchen_pin(pin):
                if lock.failed_attempts or lock.locked_until:
                    lock.failed_attempts = 0
                    lock.locked_until = None
                    lock.save(update_fields=["failed_attempts", "locked_until"])
                return client.pk

            lock.failed_attempts += 1
            lock.last_failed_at = now
            if lock.failed_attempts >= self.max_attempts:
                lock.locked_until = now + self.lockout
                logger.warning(
                    "Kitchen PIN locked for %s after %d failed attempts",
                    client.slug,
                    lock.failed_attempts,
                )
            lock.save(update_fields=["failed_attempts", "last_failed_at", "locked_until"])

        return None


def change_kitchen_pin(client: Client, raw_pin: str | None) -> Client:
    """
    Set or clear a business's kitchen PIN.

    A new PIN starts with a clean failure count; a cleared PIN disables
    kitchen display logins.
    """
    with transaction.atomic():
        client.set_kitchen_pin(raw_pin)
        client.save(update_fields=["kitchen_pin", "updated_at"])
        KitchenPinLock.objects.filter(client=client).delete()

    logger.info(
        "Kitchen PIN %s for %s", "set" if raw_pin else "cleared", client.slug
    )
    return client
