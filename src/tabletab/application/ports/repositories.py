from __future__ import annotations

from datetime import datetime
from typing import Protocol

from tabletab.domain.common.ids import OrderId, TableId
from tabletab.domain.order.entities import Order
from tabletab.domain.order.status import OrderStatus


class OrderRepository(Protocol):
    def add(self, order: Order) -> None: ...

    def get(self, order_id: OrderId) -> Order | None: ...

    def save(self, order: Order, expected_version: int) -> Order: ...

    def get_active_for_table(self, table_id: TableId) -> Order | None: ...

    def list_active(self, limit: int, table_id: TableId | None = None) -> list[Order]: ...

    def list_completed(
        self,
        limit: int,
        completed_from: datetime | None = None,
        completed_to: datetime | None = None,
    ) -> list[Order]: ...

    def list_created_between(
        self,
        created_from: datetime,
        created_to: datetime,
        status: OrderStatus | None = None,
    ) -> list[Order]: ...


class OptimisticConcurrencyError(Exception):
    pass


class DuplicateActiveOrderError(Exception):
    pass


class StoreError(Exception):
    pass
