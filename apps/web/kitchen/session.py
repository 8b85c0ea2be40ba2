"""
Kitchen display sessions.

A successful PIN login mints a ``KitchenSession`` that lives in the
browser's Django session for ``KITCHEN_SESSION_HOURS``. Views receive the
store explicitly; nothing here is module-level state.
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from django.conf import settings
from django.contrib.sessions.backends.base import SessionBase
from django.utils import timezone

from pydantic import ValidationError as PydanticValidationError

from optima_schemas import KitchenSession

from apps.web.core.models import Client
from apps.web.kitchen.pin import PinGate

logger = logging.getLogger(__name__)

SESSION_KEY = "kitchen_pin_session"


class KitchenSessionStore:
    """Load, save and clear the kitchen session held in a Django session."""

    def __init__(
        self,
        session: SessionBase,
        lifetime: timedelta | None = None,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._session = session
        self.lifetime = lifetime or timedelta(hours=settings.KITCHEN_SESSION_HOURS)
        self._clock = clock

    def load(self) -> KitchenSession | None:
        """Return the stored session, discarding it if expired or unreadable."""
        raw = self._session.get(SESSION_KEY)
        if raw is None:
            return None

        try:
            kitchen_session = KitchenSession.model_validate(raw)
        except PydanticValidationError:
            logger.warning("Discarding unreadable kitchen session")
            self.clear()
            return None

        if self._clock() - kitchen_session.validated_at > self.lifetime:
            logger.info("Kitchen session for %s expired", kitchen_session.tenant_slug)
            self.clear()
            return None

        return kitchen_session

    def save(self, kitchen_session: KitchenSession) -> None:
        self._session[SESSION_KEY] = kitchen_session.model_dump(mode="json")

    def clear(self) -> None:
        self._session.pop(SESSION_KEY, None)


@dataclass(frozen=True)
class PinLoginResult:
    """Outcome of a kitchen PIN login attempt."""

    success: bool
    session: KitchenSession | None = None
    error: str | None = None
    rate_limited: bool = False
    retry_after_seconds: int = 0
    attempts_remaining: int | None = None


def login_with_pin(
    gate: PinGate,
    store: KitchenSessionStore,
    tenant_slug: str,
    pin: str,
    *,
    now: datetime | None = None,
) -> PinLoginResult:
    """
    Check the rate limit, validate the PIN and persist a kitchen session.

    Args:
        gate: PIN validation collaborator.
        store: Where the session is persisted on success.
        tenant_slug: Business slug from the kitchen URL.
        pin: PIN entered on the display.
        now: Login time (defaults to the current time).

    Returns:
        PinLoginResult with either the new session or a user-facing error.
    """
    status = gate.check_rate_limit(tenant_slug)
    if status.rate_limited:
        minutes = max(1, math.ceil(status.retry_after_seconds / 60))
        return PinLoginResult(
            success=False,
            error=f"Too many failed attempts. Wait {minutes} minute(s).",
            rate_limited=True,
            retry_after_seconds=status.retry_after_seconds,
            attempts_remaining=0,
        )

    tenant_id = gate.validate_pin(tenant_slug, pin)
    if tenant_id is None:
        after = gate.check_rate_limit(tenant_slug)
        if after.rate_limited or after.attempts_remaining == 0:
            lockout = settings.KITCHEN_PIN_LOCKOUT_MINUTES
            error = f"Incorrect PIN. Access blocked for {lockout} minutes."
        else:
            error = f"Incorrect PIN. {after.attempts_remaining} attempt(s) remaining."
        logger.info("Failed kitchen PIN attempt for %s", tenant_slug)
        return PinLoginResult(
            success=False,
            error=error,
            rate_limited=after.rate_limited,
            retry_after_seconds=after.retry_after_seconds,
            attempts_remaining=after.attempts_remaining,
        )

    client = Client.objects.filter(pk=tenant_id).first()
    if client is None:
        return PinLoginResult(success=False, error="Business not found")

    kitchen_session = KitchenSession(
        tenant_id=client.pk,
        tenant_slug=client.slug,
        tenant_name=client.name,
        validated_at=now or timezone.now(),
    )
    store.save(kitchen_session)
    logger.info("Kitchen session started for %s", client.slug)
    return PinLoginResult(success=True, session=kitchen_session)
