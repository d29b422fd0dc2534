from __future__ import annotations

import logging
from datetime import datetime, timezone

from tabletab.application.dto.responses import AdvanceOrderResponse
from tabletab.application.errors import ConcurrentUpdateError, OrderAlreadyFinalError
from tabletab.application.mappers.order_mapper import to_order_response
from tabletab.application.metrics.order_lifecycle import record_served, record_transition
from tabletab.application.notifications.order_notifier import OrderNotifier
from tabletab.application.ports.publisher import EventPublisher
from tabletab.application.ports.repositories import OrderRepository
from tabletab.application.use_cases.context import TraceContext
from tabletab.application.use_cases.order_mutation import load_order, persist_mutation
from tabletab.domain.common.ids import OrderId
from tabletab.domain.order.entities import Order
from tabletab.domain.order.events import OrderEventType
from tabletab.domain.order.status import SERVED_STATUS, OrderStatus, next_working_step

logger = logging.getLogger(__name__)


def _next_step(order: Order) -> OrderStatus:
    next_status = None if order.is_completed else next_working_step(order.status)
    if next_status is None:
        raise OrderAlreadyFinalError(
            f"order {order.order_id} cannot be advanced further, current status: "
            f"{order.status.value}",
            {
                "orderId": str(order.order_id),
                "currentStatus": order.status.value,
                "isCompleted": order.is_completed,
            },
        )
    return next_status


class AdvanceOrder:
    def __init__(self, order_repository: OrderRepository, publisher: EventPublisher) -> None:
        self._order_repository = order_repository
        self._notifier = OrderNotifier(publisher)

    def execute(self, order_id: OrderId, trace_ctx: TraceContext) -> AdvanceOrderResponse:
        order = load_order(self._order_repository, order_id)
        previous_status = order.status
        next_status = _next_step(order)

        def advance(current: Order) -> Order | None:
            if current.status == next_status and current.version != order.version:
                # A concurrent advance from the same prior state already landed.
                return None
            if current.status != previous_status:
                raise ConcurrentUpdateError(
                    f"order {current.order_id} changed status while advancing",
                    {
                        "orderId": str(current.order_id),
                        "expectedStatus": previous_status.value,
                        "currentStatus": current.status.value,
                    },
                )
            return current.advance_to(_next_step(current), datetime.now(timezone.utc))

        result = persist_mutation(self._order_repository, order, advance, operation="advance")

        if result.changed:
            record_transition("order", previous_status, next_status)
            record_served(result.previous, result.order)
            logger.info(
                "order_status_advanced",
                extra={
                    "order_id": str(order_id),
                    "table_id": str(result.order.table_id),
                    "from_status": previous_status.value,
                    "to_status": next_status.value,
                },
            )
            admin_event = (
                OrderEventType.COMPLETED if next_status == SERVED_STATUS else OrderEventType.UPDATE
            )
            self._notifier.order_changed(result.order, trace_ctx, admin_event=admin_event)

        response = to_order_response(result.order)
        return AdvanceOrderResponse(
            **response.model_dump(),
            previousStatus=previous_status.value,
            newStatus=next_status.value,
        )
