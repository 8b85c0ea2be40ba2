"""
Realtime order feed.

Live viewers (staff dashboard, kitchen display) hold an ``OrderBoard`` per
tenant. The board is fed authoritative ``OrderSnapshot`` rows from an
``OrderChangeSource``; pushed rows always replace what the board holds, so
out-of-order or duplicate deliveries converge on the latest persisted row.
"""

import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from typing import Any, Protocol

from optima_schemas import OrderSnapshot, OrderStatus

from apps.web.restaurant.signals import order_changed

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[OrderSnapshot], None]


class OrderChangeSource(Protocol):
    """A feed of persisted order rows, filtered per tenant."""

    def subscribe(
        self, client_id: int, callback: SnapshotCallback
    ) -> Callable[[], None]:
        """Deliver every changed row of ``client_id`` to ``callback``. Returns an unsubscriber."""
        ...


class SignalOrderChangeSource:
    """In-process change source backed by the ``order_changed`` signal."""

    def subscribe(
        self, client_id: int, callback: SnapshotCallback
    ) -> Callable[[], None]:
        def on_change(sender: Any, snapshot: OrderSnapshot, **kwargs: Any) -> None:
            if snapshot.client_id == client_id:
                callback(snapshot)

        order_changed.connect(on_change, weak=False)

        def unsubscribe() -> None:
            order_changed.disconnect(on_change)

        return unsubscribe


class OrderBoard:
    """
    In-memory view of one tenant's orders.

    ``reflect`` applies an optimistic local edit right after a staff action;
    the next pushed snapshot for the same order overwrites it.
    """

    def __init__(self, client_id: int) -> None:
        self.client_id = client_id
        self._orders: dict[str, OrderSnapshot] = {}

    def __len__(self) -> int:
        return len(self._orders)

    def __contains__(self, order_id: object) -> bool:
        return order_id in self._orders

    def load(self, snapshots: Iterable[OrderSnapshot]) -> None:
        """Replace the board's contents with a fresh fetch."""
        self._orders = {s.id: s for s in snapshots if s.client_id == self.client_id}

    def apply_snapshot(self, snapshot: OrderSnapshot) -> None:
        """Apply a pushed row. Rows of other tenants are ignored."""
        if snapshot.client_id != self.client_id:
            logger.warning(
                "Ignoring order %s for client %s on board of client %s",
                snapshot.id,
                snapshot.client_id,
                self.client_id,
            )
            return
        self._orders[snapshot.id] = snapshot

    def reflect(self, order_id: str, **changes: Any) -> OrderSnapshot | None:
        """Apply an optimistic local change. Returns the updated snapshot."""
        current = self._orders.get(order_id)
        if current is None:
            return None
        updated = current.model_copy(update=changes)
        self._orders[order_id] = updated
        return updated

    def remove(self, order_id: str) -> None:
        self._orders.pop(order_id, None)

    def get(self, order_id: str) -> OrderSnapshot | None:
        return self._orders.get(order_id)

    def orders(self, status: OrderStatus | None = None) -> list[OrderSnapshot]:
        """Orders on the board, oldest first, optionally filtered by status."""
        rows = sorted(self._orders.values(), key=lambda s: s.created_at)
        if status is not None:
            rows = [s for s in rows if s.status == status]
        return rows

    @contextmanager
    def subscribed(self, source: OrderChangeSource) -> Iterator["OrderBoard"]:
        """Receive pushed rows for the duration of the block."""
        unsubscribe = source.subscribe(self.client_id, self.apply_snapshot)
        try:
            yield self
        finally:
            unsubscribe()
