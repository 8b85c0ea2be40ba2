"""
Staleness alerts for displayed orders.

An order is "stale" when it has sat in an active status longer than a
board's threshold. Each board (order cards, kitchen display) has its own
threshold. A snooze suppresses the alert until ``snoozed_until``.

All displayed orders share one ``AlertTicker``: a single loop recomputes
every displayed order once per tick, and orders leave the ticker when
their ``display()`` block exits.
"""

import asyncio
import logging
import math
from collections import Counter
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime

from django.utils import timezone

from optima_schemas import ACTIVE_STATUSES, AlertState, OrderSnapshot, OrderStatus

logger = logging.getLogger(__name__)

AlertListener = Callable[[list[AlertState]], None]
OrderLookup = Callable[[str], OrderSnapshot | None]


def format_elapsed(seconds: int) -> str:
    """Render elapsed seconds as ``M:SS``."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}:{secs:02d}"


def compute_alert(
    status: OrderStatus | str,
    status_changed_at: datetime,
    snoozed_until: datetime | None,
    now: datetime,
    threshold_seconds: int,
    *,
    order_id: str | None = None,
) -> AlertState:
    """
    Compute the alert state of one order at ``now``.

    Args:
        status: Current order status.
        status_changed_at: When the status was last written.
        snoozed_until: End of the snooze window, if any.
        now: Evaluation time.
        threshold_seconds: Seconds in one status before the order alerts.
        order_id: Carried through to the result for listeners.

    Returns:
        AlertState with floored elapsed seconds and the derived flags.
    """
    elapsed = max(0, math.floor((now - status_changed_at).total_seconds()))
    is_active = OrderStatus(status) in ACTIVE_STATUSES
    is_snoozed = snoozed_until is not None and now < snoozed_until

    return AlertState(
        order_id=order_id,
        elapsed_seconds=elapsed,
        elapsed_display=format_elapsed(elapsed),
        is_active=is_active,
        is_snoozed=is_snoozed,
        is_alert=is_active and elapsed >= threshold_seconds and not is_snoozed,
    )


def alert_for_snapshot(
    snapshot: OrderSnapshot, now: datetime, threshold_seconds: int
) -> AlertState:
    """Compute the alert state of a pushed order snapshot."""
    return compute_alert(
        snapshot.status,
        snapshot.status_changed_at,
        snapshot.snoozed_until,
        now,
        threshold_seconds,
        order_id=snapshot.id,
    )


class AlertTicker:
    """
    Shared tick loop for every order currently on screen.

    Usage:
        ticker = AlertTicker(board.get, threshold_seconds=180)
        ticker.add_listener(render)

        with ticker.display(order_id):
            ...  # order is recomputed on every tick until the block exits

        await ticker.run(stop_event)
    """

    def __init__(
        self,
        lookup: OrderLookup,
        threshold_seconds: int,
        *,
        interval: float = 1.0,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        """
        Args:
            lookup: Returns the latest snapshot for an order id (None if gone).
            threshold_seconds: Alert threshold for this board.
            interval: Seconds between ticks.
            clock: Source of the current time.
        """
        self._lookup = lookup
        self.threshold_seconds = threshold_seconds
        self.interval = interval
        self._clock = clock
        # Reference counts: the same order may be shown by several widgets
        self._displayed: Counter[str] = Counter()
        self._listeners: list[AlertListener] = []

    @property
    def displayed(self) -> frozenset[str]:
        """Order ids currently registered for recomputation."""
        return frozenset(self._displayed)

    @contextmanager
    def display(self, order_id: str) -> Iterator[None]:
        """Register an order for recomputation for the duration of the block."""
        self._displayed[order_id] += 1
        try:
            yield
        finally:
            self._displayed[order_id] -= 1
            if self._displayed[order_id] <= 0:
                del self._displayed[order_id]

    def add_listener(self, listener: AlertListener) -> Callable[[], None]:
        """Register a listener for tick results. Returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def tick(self, now: datetime | None = None) -> list[AlertState]:
        """Recompute every displayed order and notify listeners."""
        now = now or self._clock()
        states: list[AlertState] = []

        for order_id in list(self._displayed):
            snapshot = self._lookup(order_id)
            if snapshot is None:
                continue
            states.append(alert_for_snapshot(snapshot, now, self.threshold_seconds))

        for listener in list(self._listeners):
            try:
                listener(states)
            except Exception as e:
                logger.exception("Alert listener %r failed: %s", listener, e)

        return states

    async def run(self, stop: asyncio.Event) -> None:
        """Tick every ``interval`` seconds until ``stop`` is set."""
        while not stop.is_set():
            self.tick()
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval)
            except TimeoutError:
                pass
