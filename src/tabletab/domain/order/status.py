"""Order and batch status progression.

Statuses move forward one step at a time or backward by any number of steps.
``COMPLETED`` is reachable only through the explicit complete action, so the
last step an ordinary transition can reach is ``SERVED``.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum


class OrderStatus(str, Enum):
    PLACED = "PLACED"
    IN_PREPARATION = "IN_PREPARATION"
    READY = "READY"
    SERVED = "SERVED"
    COMPLETED = "COMPLETED"


STATUS_FLOW: tuple[OrderStatus, ...] = (
    OrderStatus.PLACED,
    OrderStatus.IN_PREPARATION,
    OrderStatus.READY,
    OrderStatus.SERVED,
    OrderStatus.COMPLETED,
)

INITIAL_STATUS = OrderStatus.PLACED
SERVED_STATUS = OrderStatus.SERVED


def parse_status(value: OrderStatus | str | None) -> OrderStatus | None:
    if isinstance(value, OrderStatus):
        return value
    if not value:
        return None
    try:
        return OrderStatus(value)
    except ValueError:
        return None


def _position(status: OrderStatus) -> int:
    return STATUS_FLOW.index(status)


def is_valid_transition(current: OrderStatus | str, target: OrderStatus | str) -> bool:
    current_status = parse_status(current)
    target_status = parse_status(target)
    if current_status is None or target_status is None:
        return False
    if current_status == target_status:
        return False

    current_index = _position(current_status)
    target_index = _position(target_status)
    if target_index < current_index:
        return True
    return target_index == current_index + 1


def step_after(status: OrderStatus) -> OrderStatus | None:
    index = _position(status)
    if index + 1 >= len(STATUS_FLOW):
        return None
    return STATUS_FLOW[index + 1]


def next_working_step(status: OrderStatus) -> OrderStatus | None:
    """The step the advance action would move to, or None once served."""
    if _position(status) >= _position(SERVED_STATUS):
        return None
    return step_after(status)


def is_at_or_past(status: OrderStatus, reference: OrderStatus) -> bool:
    return _position(status) >= _position(reference)


def derive_order_status(batch_statuses: Iterable[OrderStatus]) -> OrderStatus:
    statuses = list(batch_statuses)
    if statuses and all(status == SERVED_STATUS for status in statuses):
        return SERVED_STATUS
    if any(is_at_or_past(status, OrderStatus.READY) for status in statuses):
        return OrderStatus.READY
    if any(status == OrderStatus.IN_PREPARATION for status in statuses):
        return OrderStatus.IN_PREPARATION
    return INITIAL_STATUS
