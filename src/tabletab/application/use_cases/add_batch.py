from __future__ import annotations

import logging
from datetime import datetime, timezone

from tabletab.application.dto.requests import AddBatchRequest
from tabletab.application.dto.responses import OrderResponse
from tabletab.application.errors import OrderCompletedError
from tabletab.application.mappers.order_mapper import to_order_response
from tabletab.application.metrics.order_lifecycle import record_batch_added
from tabletab.application.notifications.order_notifier import OrderNotifier
from tabletab.application.ports.publisher import EventPublisher
from tabletab.application.ports.repositories import OrderRepository
from tabletab.application.use_cases.context import TraceContext
from tabletab.application.use_cases.order_lines import build_order_lines, check_declared_total
from tabletab.application.use_cases.order_mutation import load_order, persist_mutation
from tabletab.application.use_cases.place_order import new_batch_id
from tabletab.domain.common.ids import OrderId
from tabletab.domain.order.entities import Order, create_batch

logger = logging.getLogger(__name__)


class AddBatch:
    def __init__(self, order_repository: OrderRepository, publisher: EventPublisher) -> None:
        self._order_repository = order_repository
        self._notifier = OrderNotifier(publisher)

    def execute(
        self,
        order_id: OrderId,
        request_dto: AddBatchRequest,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        order = load_order(self._order_repository, order_id)
        _ensure_open(order)

        lines = build_order_lines(request_dto.items, order.currency)
        batch = create_batch(new_batch_id(), lines, order.currency, datetime.now(timezone.utc))
        check_declared_total(request_dto.batch_total, batch.total, "batchTotal")

        def append(current: Order) -> Order:
            _ensure_open(current)
            return current.append_batch(batch, now=datetime.now(timezone.utc))

        result = persist_mutation(self._order_repository, order, append, operation="add_batch")

        record_batch_added()
        logger.info(
            "order_batch_added",
            extra={
                "order_id": str(order_id),
                "table_id": str(result.order.table_id),
                "batch_id": str(batch.batch_id),
            },
        )
        self._notifier.order_changed(result.order, trace_ctx, batch_id=batch.batch_id)
        return to_order_response(result.order)


def _ensure_open(order: Order) -> None:
    if order.is_completed:
        raise OrderCompletedError(
            f"cannot add to completed order {order.order_id}",
            {"orderId": str(order.order_id)},
        )
