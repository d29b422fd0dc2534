from __future__ import annotations

import json
import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from tabletab.application.dto.requests import (
    AddBatchRequest,
    OrderItemRequest,
    PlaceOrderRequest,
)
from tabletab.application.errors import ActiveOrderExistsError, InvalidStatusTransitionError
from tabletab.application.use_cases.add_batch import AddBatch
from tabletab.application.use_cases.complete_order import CompleteOrder
from tabletab.application.use_cases.list_orders import ListLiveOrders, ListTableOrders
from tabletab.application.use_cases.place_order import PlaceOrder
from tabletab.application.use_cases.serve_order import ServeOrder
from tabletab.application.use_cases.update_order_status import UpdateOrderStatus
from tabletab.domain.common.ids import OrderId, TableId


def _tea() -> OrderItemRequest:
    return OrderItemRequest(menu_item_id="tea-1", name="Tea", price=Decimal("30"), quantity=2)


def _samosa() -> OrderItemRequest:
    return OrderItemRequest(menu_item_id="sam-1", name="Samosa", price=Decimal("20"), quantity=3)


def _place(order_repository, publisher, trace_ctx, table_id: str = "4"):
    return PlaceOrder(order_repository=order_repository, publisher=publisher).execute(
        request_dto=PlaceOrderRequest(table_id=table_id, items=[_tea()], total=Decimal("60")),
        trace_ctx=trace_ctx,
    )


def test_place_order_for_table(order_repository, publisher, trace_ctx) -> None:
    placed = _place(order_repository, publisher, trace_ctx)

    assert len(placed.batches) == 1
    assert placed.status == "PLACED"
    assert placed.total.amountCents == 6000
    assert placed.total.currency == "INR"
    assert placed.isCompleted is False
    assert placed.orderId.startswith("ord_")
    assert placed.batches[0].batchId.startswith("batch-")
    assert publisher.events() == [
        ("events:admin", "order:new"),
        (f"events:order:{placed.orderId}", "order:update"),
    ]


def test_second_order_for_same_table_conflicts(order_repository, publisher, trace_ctx) -> None:
    _place(order_repository, publisher, trace_ctx)
    publisher.clear()

    with pytest.raises(ActiveOrderExistsError) as exc_info:
        _place(order_repository, publisher, trace_ctx)

    assert "active order exists" in str(exc_info.value)
    assert publisher.messages == []
    assert len(order_repository.orders) == 1


def test_add_batch_appends_and_recomputes_total(order_repository, publisher, trace_ctx) -> None:
    placed = _place(order_repository, publisher, trace_ctx)
    publisher.clear()

    updated = AddBatch(order_repository=order_repository, publisher=publisher).execute(
        order_id=OrderId(placed.orderId),
        request_dto=AddBatchRequest(items=[_samosa()], batch_total=Decimal("60")),
        trace_ctx=trace_ctx,
    )

    assert len(updated.batches) == 2
    assert updated.total.amountCents == 12000
    assert sum(batch.total.amountCents for batch in updated.batches) == 12000
    assert updated.batches[1].status == "PLACED"
    assert publisher.events() == [
        ("events:admin", "order:update"),
        (f"events:order:{placed.orderId}", "order:update"),
        ("events:table:4", "order:update"),
    ]
    payload = json.loads(publisher.messages[0][1])["payload"]
    assert payload["batchId"] == updated.batches[1].batchId
    assert payload["order"]["total"]["amountCents"] == 12000


def test_set_status_one_step_forward(order_repository, publisher, trace_ctx) -> None:
    placed = _place(order_repository, publisher, trace_ctx)

    updated = UpdateOrderStatus(order_repository=order_repository, publisher=publisher).execute(
        order_id=OrderId(placed.orderId),
        status="IN_PREPARATION",
        batch_id=None,
        trace_ctx=trace_ctx,
    )

    assert updated.status == "IN_PREPARATION"
    assert updated.batches[0].status == "PLACED"


def test_set_status_skipping_steps_names_next_valid_step(
    order_repository, publisher, trace_ctx
) -> None:
    placed = _place(order_repository, publisher, trace_ctx)
    publisher.clear()

    with pytest.raises(InvalidStatusTransitionError) as exc_info:
        UpdateOrderStatus(order_repository=order_repository, publisher=publisher).execute(
            order_id=OrderId(placed.orderId),
            status="SERVED",
            batch_id=None,
            trace_ctx=trace_ctx,
        )

    assert "IN_PREPARATION" in str(exc_info.value)
    assert exc_info.value.details == {
        "currentStatus": "PLACED",
        "attemptedStatus": "SERVED",
        "nextValidStatus": "IN_PREPARATION",
    }
    assert publisher.messages == []
    assert order_repository.get(placed.orderId).status.value == "PLACED"


def test_serve_then_complete_archives_the_order(order_repository, publisher, trace_ctx) -> None:
    placed = _place(order_repository, publisher, trace_ctx)
    publisher.clear()

    served = ServeOrder(order_repository=order_repository, publisher=publisher).execute(
        order_id=OrderId(placed.orderId), trace_ctx=trace_ctx
    )
    completed = CompleteOrder(order_repository=order_repository, publisher=publisher).execute(
        order_id=OrderId(placed.orderId), trace_ctx=trace_ctx
    )

    assert served.status == "SERVED"
    assert completed.isCompleted is True
    assert completed.servedAt == served.servedAt
    assert completed.completedAt is not None
    assert all(batch.status == "COMPLETED" for batch in completed.batches)
    assert publisher.events()[-3:] == [
        ("events:admin", "order:completed"),
        (f"events:order:{placed.orderId}", "order:update"),
        ("events:table:4", "order:update"),
    ]

    live = ListLiveOrders(order_repository=order_repository).execute()
    assert live.orders == []
    assert ListTableOrders(order_repository=order_repository).execute(TableId("4")) == []

    replacement = _place(order_repository, publisher, trace_ctx)
    assert replacement.orderId != placed.orderId
