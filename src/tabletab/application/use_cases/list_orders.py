from __future__ import annotations

from datetime import date

from tabletab.application.dto.responses import (
    LiveOrdersResponse,
    LiveOrdersSummaryResponse,
    OrderResponse,
)
from tabletab.application.errors import OrderValidationError
from tabletab.application.mappers.order_mapper import to_money_response, to_order_response
from tabletab.application.metrics.order_lifecycle import record_live_orders
from tabletab.application.ports.repositories import OrderRepository
from tabletab.application.use_cases.order_lines import normalize_table_id
from tabletab.application.use_cases.restaurant_settings import local_day_bounds, order_currency
from tabletab.domain.common.ids import TableId
from tabletab.domain.common.money import sum_money
from tabletab.domain.order.status import OrderStatus

TABLE_ORDERS_LIMIT = 100
LIVE_ORDERS_LIMIT = 1000
COMPLETED_ORDERS_LIMIT = 1000

_NOT_ACTIVE_STATUSES = {OrderStatus.READY, OrderStatus.SERVED}


class ListTableOrders:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, table_id: TableId | str, limit: int | None = None) -> list[OrderResponse]:
        table_id = normalize_table_id(table_id)
        if limit is not None and limit < 1:
            raise OrderValidationError("limit must be >= 1", {"field": "limit"})
        effective_limit = min(limit or TABLE_ORDERS_LIMIT, TABLE_ORDERS_LIMIT)
        orders = self._order_repository.list_active(limit=effective_limit, table_id=table_id)
        return [to_order_response(order) for order in orders]


class ListLiveOrders:
    def __init__(self, order_repository: OrderRepository, currency: str | None = None) -> None:
        self._order_repository = order_repository
        self._currency = currency or order_currency()

    def execute(self) -> LiveOrdersResponse:
        orders = self._order_repository.list_active(limit=LIVE_ORDERS_LIMIT)
        record_live_orders(len(orders))

        served = [order.total for order in orders if order.status == OrderStatus.SERVED]
        summary = LiveOrdersSummaryResponse(
            total=len(orders),
            active=sum(1 for order in orders if order.status not in _NOT_ACTIVE_STATUSES),
            servedRevenue=to_money_response(sum_money(served, self._currency)),
        )
        return LiveOrdersResponse(
            orders=[to_order_response(order) for order in orders],
            summary=summary,
        )


class ListCompletedOrders:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, day: date | None = None) -> list[OrderResponse]:
        if day is None:
            orders = self._order_repository.list_completed(limit=COMPLETED_ORDERS_LIMIT)
        else:
            start, end = local_day_bounds(day)
            orders = self._order_repository.list_completed(
                limit=COMPLETED_ORDERS_LIMIT,
                completed_from=start,
                completed_to=end,
            )
        return [to_order_response(order) for order in orders]


def parse_business_date(value: str | None) -> date:
    if not value:
        raise OrderValidationError("date query parameter is required", {"field": "date"})
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise OrderValidationError(
            "date must use the YYYY-MM-DD format", {"field": "date", "value": value}
        ) from exc
