from __future__ import annotations

import logging
from datetime import datetime, timezone

from tabletab.application.dto.responses import OrderResponse
from tabletab.application.errors import (
    BatchNotFoundError,
    InvalidStatusTransitionError,
    OrderCompletedError,
    OrderValidationError,
)
from tabletab.application.mappers.order_mapper import to_order_response
from tabletab.application.metrics.order_lifecycle import record_served, record_transition
from tabletab.application.notifications.order_notifier import OrderNotifier
from tabletab.application.ports.publisher import EventPublisher
from tabletab.application.ports.repositories import OrderRepository
from tabletab.application.use_cases.context import TraceContext
from tabletab.application.use_cases.order_mutation import load_order, persist_mutation
from tabletab.domain.common.ids import BatchId, OrderId
from tabletab.domain.order.entities import Order
from tabletab.domain.order.status import (
    OrderStatus,
    is_valid_transition,
    parse_status,
    step_after,
)

logger = logging.getLogger(__name__)

SETTABLE_STATUSES = tuple(status for status in OrderStatus if status != OrderStatus.COMPLETED)


def transition_error(
    subject: str,
    current: OrderStatus,
    attempted: OrderStatus,
) -> InvalidStatusTransitionError:
    next_status = step_after(current)
    if current == attempted:
        hint = "no change"
    elif next_status is None:
        hint = "already at final status"
    else:
        hint = f"next valid forward step: {next_status.value}"
    return InvalidStatusTransitionError(
        f"invalid {subject} status transition from {current.value} to {attempted.value} ({hint})",
        {
            "currentStatus": current.value,
            "attemptedStatus": attempted.value,
            "nextValidStatus": next_status.value if next_status else None,
        },
    )


class UpdateOrderStatus:
    def __init__(self, order_repository: OrderRepository, publisher: EventPublisher) -> None:
        self._order_repository = order_repository
        self._notifier = OrderNotifier(publisher)

    def execute(
        self,
        order_id: OrderId,
        status: OrderStatus | str,
        batch_id: str | None,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        target = parse_status(status)
        if target is None or target not in SETTABLE_STATUSES:
            allowed = ", ".join(item.value for item in SETTABLE_STATUSES)
            attempted = status.value if isinstance(status, OrderStatus) else str(status)
            raise OrderValidationError(
                f"status must be one of: {allowed}; use the complete action to complete an order",
                {"field": "status", "attemptedStatus": attempted},
            )
        target_batch = BatchId(batch_id) if batch_id else None

        def apply(current: Order) -> Order:
            if current.is_completed:
                raise OrderCompletedError(
                    f"order {current.order_id} is completed and can no longer change status",
                    {"orderId": str(current.order_id)},
                )
            now = datetime.now(timezone.utc)
            if target_batch is None:
                if not is_valid_transition(current.status, target):
                    raise transition_error("order", current.status, target)
                return current.with_status(target, now)

            batch = current.find_batch(target_batch)
            if batch is None:
                raise BatchNotFoundError(
                    f"batch {target_batch} not found in order {current.order_id}",
                    {"orderId": str(current.order_id), "batchId": str(target_batch)},
                )
            if not is_valid_transition(batch.status, target):
                raise transition_error("batch", batch.status, target)
            return current.with_batch_status(target_batch, target, now)

        order = load_order(self._order_repository, order_id)
        result = persist_mutation(self._order_repository, order, apply, operation="set_status")

        previous = result.previous
        if target_batch is not None:
            previous_batch = previous.find_batch(target_batch)
            if previous_batch is not None:
                record_transition("batch", previous_batch.status, target)
        if previous.status != result.order.status:
            record_transition("order", previous.status, result.order.status)
        record_served(previous, result.order)

        logger.info(
            "order_status_updated",
            extra={
                "order_id": str(order_id),
                "table_id": str(result.order.table_id),
                "batch_id": str(target_batch) if target_batch else None,
                "from_status": previous.status.value,
                "to_status": result.order.status.value,
            },
        )
        self._notifier.order_changed(result.order, trace_ctx, batch_id=target_batch)
        return to_order_response(result.order)
