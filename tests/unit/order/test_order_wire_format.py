from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from tabletab.application.dto.requests import PlaceOrderRequest
from tabletab.application.dto.responses import OrderResponse
from tabletab.application.mappers.event_envelope import serialize_order_event
from tabletab.application.mappers.order_mapper import to_order_response
from tabletab.domain.common.ids import BatchId, MenuItemId, OrderId, TableId
from tabletab.domain.common.money import Money
from tabletab.domain.order.entities import OrderLine, create_batch, create_placed_order
from tabletab.domain.order.events import OrderEventType

T0 = datetime(2026, 10, 18, 12, 30, tzinfo=timezone.utc)


def _order():
    line = OrderLine(
        menu_item_id=MenuItemId("chai-2"),
        name="Masala Chai",
        unit_price=Money(amount_cents=2500, currency="INR"),
        quantity=2,
    )
    return create_placed_order(
        order_id=OrderId("ord_abc"),
        table_id=TableId("12"),
        first_batch=create_batch(BatchId("batch-1"), [line], "INR", T0),
        bill_number="B-7",
        now=T0,
    )


def test_place_order_request_accepts_camel_case_body() -> None:
    request = PlaceOrderRequest.model_validate(
        {
            "tableId": "12",
            "items": [{"menuItemId": "chai-2", "name": "Masala Chai", "price": "25.00", "quantity": 2}],
            "total": 50,
            "billNumber": "B-7",
        }
    )

    assert request.table_id == "12"
    assert request.items[0].menu_item_id == "chai-2"
    assert str(request.items[0].price) == "25.00"
    assert request.bill_number == "B-7"


def test_order_response_json_shape() -> None:
    body = json.loads(to_order_response(_order()).model_dump_json())

    assert body["orderId"] == "ord_abc"
    assert body["tableId"] == "12"
    assert body["status"] == "PLACED"
    assert body["total"] == {"amountCents": 5000, "currency": "INR"}
    assert body["isCompleted"] is False
    assert body["servedAt"] is None
    assert body["batches"][0]["items"][0] == {
        "menuItemId": "chai-2",
        "name": "Masala Chai",
        "quantity": 2,
        "unitPrice": {"amountCents": 2500, "currency": "INR"},
        "lineTotal": {"amountCents": 5000, "currency": "INR"},
    }
    assert OrderResponse.model_validate(body) == to_order_response(_order())


def test_order_event_envelope() -> None:
    message = serialize_order_event(
        event_type=OrderEventType.NEW,
        occurred_at=T0,
        channel="admin",
        order=_order(),
        batch_id=BatchId("batch-1"),
        trace_id="trace-9",
        request_id="req-9",
    )

    envelope = json.loads(message)

    assert envelope["event_type"] == "order:new"
    assert envelope["channel"] == "admin"
    assert envelope["occurred_at"] == T0.isoformat()
    assert envelope["trace_id"] == "trace-9"
    assert envelope["request_id"] == "req-9"
    assert envelope["event_id"]
    assert envelope["payload"]["batchId"] == "batch-1"
    assert envelope["payload"]["order"]["orderId"] == "ord_abc"
    assert envelope["payload"]["order"]["total"]["amountCents"] == 5000
