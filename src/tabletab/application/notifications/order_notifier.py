"""Fan-out of order changes to the admin, per-order and per-table channels.

Publishing is best effort: a failed publish is logged and counted but never
propagates, since clients also poll the read endpoints. Callers only notify
after the order has been persisted. Envelopes are built in the caller's thread
so they capture the persisted state and request context; delivery runs on a
single background worker so a slow bus never delays the response, and events
keep the order in which they were emitted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from functools import partial

from tabletab.application.mappers.event_envelope import serialize_order_event
from tabletab.application.metrics.order_lifecycle import record_publish_failure
from tabletab.application.ports.publisher import EventPublisher
from tabletab.application.use_cases.context import TraceContext
from tabletab.domain.common.ids import BatchId, OrderId, TableId
from tabletab.domain.order.entities import Order
from tabletab.domain.order.events import OrderEventType

logger = logging.getLogger(__name__)

ADMIN_CHANNEL = "admin"
EVENTS_PREFIX = "events:"

_delivery_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="order-events")


def dispatch_in_background(deliver: Callable[[], None]) -> None:
    _delivery_executor.submit(deliver)


def order_channel(order_id: OrderId | str) -> str:
    return f"order:{order_id}"


def table_channel(table_id: TableId | str) -> str:
    return f"table:{table_id}"


def bus_channel(channel: str) -> str:
    return f"{EVENTS_PREFIX}{channel}"


class OrderNotifier:
    def __init__(self, publisher: EventPublisher) -> None:
        self._publisher = publisher

    def order_placed(self, order: Order, trace_ctx: TraceContext) -> None:
        self._publish(ADMIN_CHANNEL, OrderEventType.NEW, order, None, trace_ctx)
        self._publish(order_channel(order.order_id), OrderEventType.UPDATE, order, None, trace_ctx)

    def order_changed(
        self,
        order: Order,
        trace_ctx: TraceContext,
        batch_id: BatchId | None = None,
        admin_event: OrderEventType = OrderEventType.UPDATE,
    ) -> None:
        self._publish(ADMIN_CHANNEL, admin_event, order, batch_id, trace_ctx)
        self._publish(
            order_channel(order.order_id), OrderEventType.UPDATE, order, batch_id, trace_ctx
        )
        self._publish(
            table_channel(order.table_id), OrderEventType.UPDATE, order, batch_id, trace_ctx
        )

    def _publish(
        self,
        channel: str,
        event_type: OrderEventType,
        order: Order,
        batch_id: BatchId | None,
        trace_ctx: TraceContext,
    ) -> None:
        message = serialize_order_event(
            event_type=event_type,
            occurred_at=datetime.now(timezone.utc),
            channel=channel,
            order=order,
            batch_id=batch_id,
            trace_id=trace_ctx.trace_id,
            request_id=trace_ctx.request_id,
        )
        dispatch_in_background(
            partial(self._deliver, channel, event_type, str(order.order_id), message)
        )

    def _deliver(
        self,
        channel: str,
        event_type: OrderEventType,
        order_id: str,
        message: str,
    ) -> None:
        try:
            self._publisher.publish(channel=bus_channel(channel), message=message)
        except Exception:
            record_publish_failure(event_type.value)
            logger.warning(
                "order_event_publish_failed",
                exc_info=True,
                extra={"order_id": order_id, "channel": channel, "event_type": event_type.value},
            )
