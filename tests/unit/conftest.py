from __future__ import annotations

import json
import sys
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

import tabletab.application.notifications.order_notifier as order_notifier
from tabletab.application.ports.repositories import (
    DuplicateActiveOrderError,
    OptimisticConcurrencyError,
    StoreError,
)
from tabletab.application.use_cases.context import TraceContext
from tabletab.domain.order.entities import Order
from tabletab.domain.order.status import OrderStatus


class FakeOrderRepository:
    def __init__(self) -> None:
        self.orders: dict[str, Order] = {}
        self.save_calls = 0
        self.fail_writes = False
        self.before_save: Callable[[], None] | None = None

    def seed(self, order: Order) -> Order:
        self.orders[str(order.order_id)] = order
        return order

    def add(self, order: Order) -> None:
        if self.fail_writes:
            raise StoreError("order store is unavailable")
        if self.get_active_for_table(order.table_id) is not None:
            raise DuplicateActiveOrderError(f"active order exists for table {order.table_id}")
        self.orders[str(order.order_id)] = order

    def get(self, order_id) -> Order | None:
        return self.orders.get(str(order_id))

    def save(self, order: Order, expected_version: int) -> Order:
        self.save_calls += 1
        hook, self.before_save = self.before_save, None
        if hook is not None:
            hook()
        if self.fail_writes:
            raise StoreError("order store is unavailable")
        stored = self.orders.get(str(order.order_id))
        if stored is None or stored.version != expected_version:
            raise OptimisticConcurrencyError(f"order {order.order_id} version conflict")
        persisted = replace(order, version=expected_version + 1)
        self.orders[str(order.order_id)] = persisted
        return persisted

    def get_active_for_table(self, table_id) -> Order | None:
        orders = self.list_active(limit=1, table_id=table_id)
        return orders[0] if orders else None

    def list_active(self, limit: int, table_id=None) -> list[Order]:
        orders = [
            order
            for order in self.orders.values()
            if not order.is_completed and (table_id is None or order.table_id == table_id)
        ]
        orders.sort(key=lambda order: (order.created_at, order.order_id), reverse=True)
        return orders[:limit]

    def list_completed(
        self,
        limit: int,
        completed_from: datetime | None = None,
        completed_to: datetime | None = None,
    ) -> list[Order]:
        orders = [
            order
            for order in self.orders.values()
            if order.is_completed
            and order.completed_at is not None
            and (completed_from is None or order.completed_at >= completed_from)
            and (completed_to is None or order.completed_at < completed_to)
        ]
        orders.sort(key=lambda order: (order.completed_at, order.order_id), reverse=True)
        return orders[:limit]

    def list_created_between(
        self,
        created_from: datetime,
        created_to: datetime,
        status: OrderStatus | None = None,
    ) -> list[Order]:
        orders = [
            order
            for order in self.orders.values()
            if created_from <= order.created_at < created_to
            and (status is None or order.status == status)
        ]
        orders.sort(key=lambda order: (order.created_at, order.order_id))
        return orders


class FakePublisher:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []
        self.fail = False

    def publish(self, channel: str, message: str) -> None:
        if self.fail:
            raise ConnectionError("redis unavailable")
        self.messages.append((channel, message))

    def events(self) -> list[tuple[str, str]]:
        return [(channel, json.loads(message)["event_type"]) for channel, message in self.messages]

    def clear(self) -> None:
        self.messages.clear()


@pytest.fixture
def order_repository() -> FakeOrderRepository:
    return FakeOrderRepository()


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def trace_ctx() -> TraceContext:
    return TraceContext(trace_id="trace-1", request_id="req-1")


@pytest.fixture(autouse=True)
def deliver_events_inline(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(order_notifier, "dispatch_in_background", lambda deliver: deliver())
