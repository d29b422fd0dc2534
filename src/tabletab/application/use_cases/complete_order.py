from __future__ import annotations

import logging
from datetime import datetime, timezone

from tabletab.application.dto.responses import OrderResponse
from tabletab.application.errors import OrderAlreadyCompletedError
from tabletab.application.mappers.order_mapper import to_order_response
from tabletab.application.metrics.order_lifecycle import record_completed
from tabletab.application.notifications.order_notifier import OrderNotifier
from tabletab.application.ports.publisher import EventPublisher
from tabletab.application.ports.repositories import OrderRepository
from tabletab.application.use_cases.context import TraceContext
from tabletab.application.use_cases.order_mutation import load_order, persist_mutation
from tabletab.domain.common.ids import OrderId
from tabletab.domain.order.entities import Order
from tabletab.domain.order.events import OrderEventType

logger = logging.getLogger(__name__)


class CompleteOrder:
    def __init__(self, order_repository: OrderRepository, publisher: EventPublisher) -> None:
        self._order_repository = order_repository
        self._notifier = OrderNotifier(publisher)

    def execute(self, order_id: OrderId, trace_ctx: TraceContext) -> OrderResponse:
        def complete(current: Order) -> Order:
            if current.is_completed:
                raise OrderAlreadyCompletedError(
                    f"order {current.order_id} is already completed",
                    {
                        "orderId": str(current.order_id),
                        "completedAt": current.completed_at.isoformat()
                        if current.completed_at
                        else None,
                    },
                )
            return current.complete(datetime.now(timezone.utc))

        order = load_order(self._order_repository, order_id)
        result = persist_mutation(self._order_repository, order, complete, operation="complete")

        record_completed()
        logger.info(
            "order_completed",
            extra={
                "order_id": str(order_id),
                "table_id": str(result.order.table_id),
                "to_status": result.order.status.value,
            },
        )
        self._notifier.order_changed(
            result.order, trace_ctx, admin_event=OrderEventType.COMPLETED
        )
        return to_order_response(result.order)
