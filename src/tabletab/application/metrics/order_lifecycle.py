from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

from tabletab.domain.order.entities import Order
from tabletab.domain.order.status import OrderStatus

ORDERS_PLACED_TOTAL = Counter(
    "tabletab_orders_placed_total",
    "Total number of orders placed.",
)

BATCHES_ADDED_TOTAL = Counter(
    "tabletab_batches_added_total",
    "Total number of batches appended to existing orders.",
)

ORDER_TRANSITION_TOTAL = Counter(
    "tabletab_order_transition_total",
    "Total number of status transitions.",
    ["scope", "from", "to"],
)

ORDERS_SERVED_TOTAL = Counter(
    "tabletab_orders_served_total",
    "Total number of orders that reached the served step.",
)

ORDERS_COMPLETED_TOTAL = Counter(
    "tabletab_orders_completed_total",
    "Total number of orders completed.",
)

ORDER_TIME_TO_SERVE_SECONDS = Histogram(
    "tabletab_order_time_to_serve_seconds",
    "Time between order placement and serving.",
)

ORDER_SAVE_CONFLICTS_TOTAL = Counter(
    "tabletab_order_save_conflicts_total",
    "Total number of optimistic save conflicts.",
    ["operation"],
)

ORDER_EVENT_PUBLISH_FAILURES_TOTAL = Counter(
    "tabletab_order_event_publish_failures_total",
    "Total number of order events that could not be published.",
    ["event_type"],
)

LIVE_ORDERS = Gauge(
    "tabletab_live_orders",
    "Number of non-completed orders returned by the live view.",
)


def record_order_placed() -> None:
    ORDERS_PLACED_TOTAL.inc()


def record_batch_added() -> None:
    BATCHES_ADDED_TOTAL.inc()


def record_transition(scope: str, from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(
        **{"scope": scope, "from": from_status.value, "to": to_status.value}
    ).inc()


def record_served(before: Order, after: Order) -> None:
    if before.served_at is not None or after.served_at is None:
        return
    ORDERS_SERVED_TOTAL.inc()
    elapsed = (after.served_at - after.created_at).total_seconds()
    ORDER_TIME_TO_SERVE_SECONDS.observe(max(elapsed, 0.0))


def record_completed() -> None:
    ORDERS_COMPLETED_TOTAL.inc()


def record_save_conflict(operation: str) -> None:
    ORDER_SAVE_CONFLICTS_TOTAL.labels(operation=operation).inc()


def record_publish_failure(event_type: str) -> None:
    ORDER_EVENT_PUBLISH_FAILURES_TOTAL.labels(event_type=event_type).inc()


def record_live_orders(size: int) -> None:
    LIVE_ORDERS.set(size)
