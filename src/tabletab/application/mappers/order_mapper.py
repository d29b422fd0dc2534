from __future__ import annotations

from tabletab.application.dto.responses import (
    BatchResponse,
    MoneyResponse,
    OrderLineResponse,
    OrderResponse,
)
from tabletab.domain.common.money import Money
from tabletab.domain.order.entities import Batch, Order


def to_money_response(money: Money) -> MoneyResponse:
    return MoneyResponse(amountCents=money.amount_cents, currency=money.currency)


def _to_batch_response(batch: Batch) -> BatchResponse:
    return BatchResponse(
        batchId=str(batch.batch_id),
        status=batch.status.value,
        items=[
            OrderLineResponse(
                menuItemId=str(line.menu_item_id),
                name=line.name,
                quantity=line.quantity,
                unitPrice=to_money_response(line.unit_price),
                lineTotal=to_money_response(line.line_total),
            )
            for line in batch.items
        ],
        total=to_money_response(batch.total),
        createdAt=batch.created_at,
    )


def to_order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        orderId=str(order.order_id),
        tableId=str(order.table_id),
        status=order.status.value,
        batches=[_to_batch_response(batch) for batch in order.batches],
        total=to_money_response(order.total),
        billNumber=order.bill_number,
        isCompleted=order.is_completed,
        servedAt=order.served_at,
        completedAt=order.completed_at,
        createdAt=order.created_at,
        updatedAt=order.updated_at,
    )
