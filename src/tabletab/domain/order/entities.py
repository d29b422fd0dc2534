from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from tabletab.domain.common.ids import BatchId, MenuItemId, OrderId, TableId
from tabletab.domain.common.money import Money, sum_money
from tabletab.domain.order.status import (
    INITIAL_STATUS,
    SERVED_STATUS,
    OrderStatus,
    derive_order_status,
    step_after,
)


@dataclass(frozen=True)
class OrderLine:
    menu_item_id: MenuItemId
    name: str
    unit_price: Money
    quantity: int

    def __post_init__(self) -> None:
        if not str(self.menu_item_id).strip():
            raise ValueError("menu_item_id is required")
        if not self.name.strip():
            raise ValueError("name is required")
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")

    @property
    def line_total(self) -> Money:
        return self.unit_price.times(self.quantity)


@dataclass(frozen=True)
class Batch:
    batch_id: BatchId
    items: tuple[OrderLine, ...]
    status: OrderStatus
    total: Money
    created_at: datetime

    def __post_init__(self) -> None:
        if not self.items:
            raise ValueError("batch must contain at least one item")
        expected = sum_money([line.line_total for line in self.items], self.total.currency)
        if self.total != expected:
            raise ValueError("batch total must equal sum of item price * quantity")

    def with_status(self, status: OrderStatus) -> Batch:
        return replace(self, status=status)


def create_batch(
    batch_id: BatchId,
    items: list[OrderLine],
    currency: str,
    now: datetime,
) -> Batch:
    if not items:
        raise ValueError("batch must contain at least one item")
    return Batch(
        batch_id=batch_id,
        items=tuple(items),
        status=INITIAL_STATUS,
        total=sum_money([line.line_total for line in items], currency),
        created_at=now,
    )


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    table_id: TableId
    batches: tuple[Batch, ...]
    status: OrderStatus
    total: Money
    bill_number: str | None
    is_completed: bool
    served_at: datetime | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime
    version: int = 1

    def __post_init__(self) -> None:
        if not str(self.table_id).strip():
            raise ValueError("table_id is required")
        if not self.batches:
            raise ValueError("order must contain at least one batch")
        expected = sum_money([batch.total for batch in self.batches], self.total.currency)
        if self.total != expected:
            raise ValueError("order total must equal sum of batch totals")
        batch_ids = [batch.batch_id for batch in self.batches]
        if len(set(batch_ids)) != len(batch_ids):
            raise ValueError("batch ids must be unique within an order")
        if self.is_completed and self.completed_at is None:
            raise ValueError("completed order must have completed_at")

    @property
    def currency(self) -> str:
        return self.total.currency

    def find_batch(self, batch_id: BatchId | str) -> Batch | None:
        for batch in self.batches:
            if batch.batch_id == batch_id:
                return batch
        return None

    def _stamp_served(self, now: datetime) -> datetime:
        return self.served_at or now

    def append_batch(self, batch: Batch, now: datetime) -> Order:
        batches = self.batches + (batch,)
        return replace(
            self,
            batches=batches,
            total=sum_money([item.total for item in batches], self.currency),
            updated_at=now,
        )

    def with_status(self, status: OrderStatus, now: datetime) -> Order:
        served_at = self._stamp_served(now) if status == SERVED_STATUS else self.served_at
        return replace(self, status=status, served_at=served_at, updated_at=now)

    def with_batch_status(self, batch_id: BatchId, status: OrderStatus, now: datetime) -> Order:
        if self.find_batch(batch_id) is None:
            raise ValueError(f"batch {batch_id} not found in order {self.order_id}")
        batches = tuple(
            batch.with_status(status) if batch.batch_id == batch_id else batch
            for batch in self.batches
        )
        order_status = derive_order_status(batch.status for batch in batches)
        served_at = self.served_at
        if order_status == SERVED_STATUS:
            served_at = self._stamp_served(now)
        return replace(
            self,
            batches=batches,
            status=order_status,
            served_at=served_at,
            updated_at=now,
        )

    def advance_to(self, next_status: OrderStatus, now: datetime) -> Order:
        if next_status == SERVED_STATUS:
            return self.serve(now)
        batches = tuple(
            batch.with_status(next_status) if step_after(batch.status) == next_status else batch
            for batch in self.batches
        )
        return replace(self, batches=batches, status=next_status, updated_at=now)

    def serve(self, now: datetime) -> Order:
        return replace(
            self,
            batches=tuple(batch.with_status(SERVED_STATUS) for batch in self.batches),
            status=SERVED_STATUS,
            served_at=self._stamp_served(now),
            updated_at=now,
        )

    def complete(self, now: datetime) -> Order:
        return replace(
            self,
            batches=tuple(batch.with_status(OrderStatus.COMPLETED) for batch in self.batches),
            is_completed=True,
            completed_at=self.completed_at or now,
            updated_at=now,
        )


def create_placed_order(
    order_id: OrderId,
    table_id: TableId,
    first_batch: Batch,
    bill_number: str | None,
    now: datetime,
) -> Order:
    return Order(
        order_id=order_id,
        table_id=table_id,
        batches=(first_batch,),
        status=INITIAL_STATUS,
        total=first_batch.total,
        bill_number=bill_number,
        is_completed=False,
        served_at=None,
        completed_at=None,
        created_at=now,
        updated_at=now,
    )
