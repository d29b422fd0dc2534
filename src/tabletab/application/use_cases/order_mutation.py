from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from tabletab.application.errors import ConcurrentUpdateError, OrderNotFoundError
from tabletab.application.metrics.order_lifecycle import record_save_conflict
from tabletab.application.ports.repositories import OptimisticConcurrencyError, OrderRepository
from tabletab.domain.common.ids import OrderId
from tabletab.domain.order.entities import Order

logger = logging.getLogger(__name__)

MAX_SAVE_ATTEMPTS = 3


@dataclass(frozen=True)
class MutationResult:
    previous: Order
    order: Order
    changed: bool


def load_order(repository: OrderRepository, order_id: OrderId) -> Order:
    order = repository.get(order_id)
    if order is None:
        raise OrderNotFoundError(f"order {order_id} not found", {"orderId": str(order_id)})
    return order


def persist_mutation(
    repository: OrderRepository,
    order: Order,
    mutate: Callable[[Order], Order | None],
    operation: str,
) -> MutationResult:
    """Applies ``mutate`` and saves it against the version it was read at.

    On a version conflict the order is re-read and ``mutate`` runs again, so its
    preconditions are re-validated against the fresh state. ``mutate`` returns
    None when the fresh state already holds the intended result.
    """
    current = order
    for attempt in range(1, MAX_SAVE_ATTEMPTS + 1):
        updated = mutate(current)
        if updated is None:
            return MutationResult(previous=current, order=current, changed=False)
        try:
            persisted = repository.save(updated, expected_version=current.version)
        except OptimisticConcurrencyError:
            record_save_conflict(operation)
            logger.info(
                "order_save_conflict",
                extra={"order_id": str(current.order_id), "operation": operation, "attempt": attempt},
            )
            current = load_order(repository, current.order_id)
            continue
        return MutationResult(previous=current, order=persisted, changed=True)

    raise ConcurrentUpdateError(
        f"order {order.order_id} was modified concurrently, retry the request",
        {"orderId": str(order.order_id), "attempts": MAX_SAVE_ATTEMPTS},
    )
