from __future__ import annotations

from tabletab.application.dto.responses import OrderResponse
from tabletab.application.mappers.order_mapper import to_order_response
from tabletab.application.ports.repositories import OrderRepository
from tabletab.application.use_cases.order_lines import normalize_table_id
from tabletab.application.use_cases.order_mutation import load_order
from tabletab.domain.common.ids import OrderId, TableId


class GetOrder:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId) -> OrderResponse:
        return to_order_response(load_order(self._order_repository, order_id))


class GetActiveOrderForTable:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, table_id: TableId | str) -> OrderResponse | None:
        order = self._order_repository.get_active_for_table(normalize_table_id(table_id))
        if order is None:
            return None
        return to_order_response(order)
