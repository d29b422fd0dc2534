from __future__ import annotations

from datetime import datetime

from tabletab.application.dto.responses import (
    DailySummaryResponse,
    DailySummaryRowResponse,
    TableRevenueResponse,
)
from tabletab.application.mappers.order_mapper import to_money_response
from tabletab.application.ports.repositories import OrderRepository
from tabletab.application.use_cases.restaurant_settings import (
    local_day_bounds,
    local_today,
    order_currency,
)
from tabletab.domain.common.money import Money, sum_money
from tabletab.domain.order.status import SERVED_STATUS


class GetDailySummary:
    def __init__(self, order_repository: OrderRepository, currency: str | None = None) -> None:
        self._order_repository = order_repository
        self._currency = currency or order_currency()

    def execute(self, now: datetime | None = None) -> DailySummaryResponse:
        today = local_today(now)
        start, end = local_day_bounds(today)
        orders = self._order_repository.list_created_between(start, end, status=SERVED_STATUS)
        orders.sort(key=lambda order: order.created_at)

        by_table: dict[str, list[Money]] = {}
        for order in orders:
            by_table.setdefault(str(order.table_id), []).append(order.total)

        return DailySummaryResponse(
            businessDate=today,
            totalOrders=len(orders),
            totalRevenue=to_money_response(
                sum_money([order.total for order in orders], self._currency)
            ),
            ordersByTable={
                table_id: TableRevenueResponse(
                    count=len(totals),
                    revenue=to_money_response(sum_money(totals, self._currency)),
                )
                for table_id, totals in by_table.items()
            },
            orders=[
                DailySummaryRowResponse(
                    orderId=str(order.order_id),
                    billNumber=order.bill_number,
                    tableId=str(order.table_id),
                    total=to_money_response(order.total),
                    status=order.status.value,
                    createdAt=order.created_at,
                )
                for order in orders
            ],
        )
