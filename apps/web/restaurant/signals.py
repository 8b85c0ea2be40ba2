"""
Order signals.

Every persisted order write is re-broadcast as ``order_changed`` once the
surrounding transaction commits, carrying the authoritative row snapshot.
"""

import logging
from typing import Any

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import Signal, receiver

from apps.web.restaurant.models import Order

logger = logging.getLogger(__name__)

# Signals this module emits
order_changed = Signal()  # Provides: snapshot, created


@receiver(post_save, sender=Order, dispatch_uid="restaurant.order_changed")
def broadcast_order_change(
    sender: type[Order], instance: Order, created: bool, **kwargs: Any
) -> None:
    """Queue an order_changed broadcast for after commit."""
    snapshot = instance.to_snapshot()

    def send() -> None:
        logger.debug("Broadcasting order %s (%s)", snapshot.id, snapshot.status.value)
        order_changed.send(sender=Order, snapshot=snapshot, created=created)

    transaction.on_commit(send)
