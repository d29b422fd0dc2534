from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from uuid import uuid4

from tabletab.application.dto.requests import PlaceOrderRequest
from tabletab.application.dto.responses import OrderResponse
from tabletab.application.errors import ActiveOrderExistsError
from tabletab.application.mappers.order_mapper import to_order_response
from tabletab.application.metrics.order_lifecycle import record_order_placed
from tabletab.application.notifications.order_notifier import OrderNotifier
from tabletab.application.ports.publisher import EventPublisher
from tabletab.application.ports.repositories import DuplicateActiveOrderError, OrderRepository
from tabletab.application.use_cases.context import TraceContext
from tabletab.application.use_cases.order_lines import (
    build_order_lines,
    check_declared_total,
    normalize_bill_number,
    normalize_table_id,
)
from tabletab.application.use_cases.restaurant_settings import order_currency
from tabletab.domain.common.ids import BatchId, OrderId, TableId
from tabletab.domain.order.entities import create_batch, create_placed_order

logger = logging.getLogger(__name__)


def new_order_id() -> OrderId:
    return OrderId(f"ord_{uuid4().hex[:12]}")


def new_batch_id() -> BatchId:
    return BatchId(f"batch-{time.time_ns() // 1_000_000}-{uuid4().hex[:9]}")


class PlaceOrder:
    def __init__(
        self,
        order_repository: OrderRepository,
        publisher: EventPublisher,
        currency: str | None = None,
    ) -> None:
        self._order_repository = order_repository
        self._notifier = OrderNotifier(publisher)
        self._currency = currency or order_currency()

    def execute(self, request_dto: PlaceOrderRequest, trace_ctx: TraceContext) -> OrderResponse:
        table_id = normalize_table_id(request_dto.table_id)
        bill_number = normalize_bill_number(request_dto.bill_number)

        lines = build_order_lines(request_dto.items, self._currency)
        now = datetime.now(timezone.utc)
        batch = create_batch(new_batch_id(), lines, self._currency, now)
        check_declared_total(request_dto.total, batch.total, "total")

        existing = self._order_repository.get_active_for_table(table_id)
        if existing is not None:
            raise _active_order_exists(table_id, str(existing.order_id))

        order = create_placed_order(
            order_id=new_order_id(),
            table_id=table_id,
            first_batch=batch,
            bill_number=bill_number,
            now=now,
        )
        try:
            self._order_repository.add(order)
        except DuplicateActiveOrderError as exc:
            raise _active_order_exists(table_id, None) from exc

        record_order_placed()
        logger.info(
            "order_placed",
            extra={
                "order_id": str(order.order_id),
                "table_id": str(table_id),
                "batch_id": str(batch.batch_id),
            },
        )
        self._notifier.order_placed(order, trace_ctx)
        return to_order_response(order)


def _active_order_exists(table_id: TableId, order_id: str | None) -> ActiveOrderExistsError:
    return ActiveOrderExistsError(
        f"active order exists for table {table_id}; add a batch to it instead",
        {"tableId": str(table_id), "orderId": order_id},
    )
