"""
Report orders that have sat too long in an active status.

Usage:
    uv run python apps/web/manage.py watch_stale_orders
    uv run python apps/web/manage.py watch_stale_orders --once --client my-restaurant
    uv run python apps/web/manage.py watch_stale_orders --threshold 600
"""

import logging
import time
from contextlib import ExitStack
from typing import Any

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from optima_schemas import AlertState

from apps.web.core.models import Client
from apps.web.restaurant.alerts import AlertTicker
from apps.web.restaurant.models import ACTIVE_ORDER_STATUSES, Order
from apps.web.restaurant.realtime import OrderBoard

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Report active orders past the alert threshold"

    def add_arguments(self, parser: Any) -> None:
        parser.add_argument(
            "--once",
            action="store_true",
            help="Scan once and exit (default: scan every --interval seconds)",
        )
        parser.add_argument(
            "--interval",
            type=float,
            default=5.0,
            help="Seconds between scans (default: 5)",
        )
        parser.add_argument(
            "--client",
            help="Only watch this business slug",
        )
        parser.add_argument(
            "--threshold",
            type=int,
            default=None,
            help="Alert threshold in seconds (default: ORDER_ALERT_SECONDS)",
        )

    def handle(self, *_args: Any, **options: Any) -> None:
        once = options["once"]
        interval = options["interval"]
        threshold = options["threshold"] or settings.ORDER_ALERT_SECONDS

        clients = Client.objects.filter(is_active=True)
        if options["client"]:
            clients = clients.filter(slug=options["client"])
            if not clients.exists():
                raise CommandError(f"Unknown client: {options['client']}")

        boards: dict[int, OrderBoard] = {}

        self.stdout.write(f"Watching for orders older than {threshold}s...")

        while True:
            alerts = 0
            for client in clients:
                board = boards.setdefault(client.pk, OrderBoard(client.pk))
                alerts += len(self.scan(client, board, threshold))

            if alerts:
                self.stdout.write(f"{alerts} order(s) need attention")

            if once:
                break

            time.sleep(interval)

    def scan(self, client: Client, board: OrderBoard, threshold: int) -> list[AlertState]:
        """Refresh one business's board and return the orders in alert."""
        board.load(
            order.to_snapshot()
            for order in Order.objects.for_tenant(client).filter(
                status__in=ACTIVE_ORDER_STATUSES
            )
        )

        ticker = AlertTicker(board.get, threshold)
        with ExitStack() as stack:
            for snapshot in board.orders():
                stack.enter_context(ticker.display(snapshot.id))
            states = ticker.tick()

        alerting = [state for state in states if state.is_alert]
        for state in alerting:
            snapshot = board.get(state.order_id or "")
            if snapshot is None:
                continue
            logger.warning(
                "Order #%d (%s) for %s has been %s for %s",
                snapshot.order_number,
                snapshot.id,
                client.slug,
                snapshot.status.value,
                state.elapsed_display,
            )
            self.stdout.write(
                f"  {client.slug} #{snapshot.order_number} "
                f"{snapshot.status.value} {state.elapsed_display}"
            )
        return alerting
