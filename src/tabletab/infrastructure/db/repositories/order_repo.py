from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone

from sqlalchemy import Engine, Select, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from tabletab.application.ports.repositories import (
    DuplicateActiveOrderError,
    OptimisticConcurrencyError,
    OrderRepository,
    StoreError,
)
from tabletab.domain.common.ids import BatchId, MenuItemId, OrderId, TableId
from tabletab.domain.common.money import Money
from tabletab.domain.order.entities import Batch, Order, OrderLine
from tabletab.domain.order.status import OrderStatus
from tabletab.infrastructure.db.models.order import (
    OrderBatchLineModel,
    OrderBatchModel,
    OrderModel,
)
from tabletab.infrastructure.db.session import get_engine

logger = logging.getLogger(__name__)

ACTIVE_TABLE_CONSTRAINT = "uq_orders_active_table"


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _aware_or_none(value: datetime | None) -> datetime | None:
    return _aware(value) if value is not None else None


def _with_batches(statement: Select) -> Select:
    return statement.options(joinedload(OrderModel.batches).joinedload(OrderBatchModel.lines))


class SqlAlchemyOrderRepository(OrderRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with Session(self._engine) as session:
                yield session
        except SQLAlchemyError as exc:
            logger.exception("order_store_error")
            raise StoreError("order store is unavailable") from exc

    def add(self, order: Order) -> None:
        with self._session() as session:
            session.add(self._to_model(order))
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if ACTIVE_TABLE_CONSTRAINT in str(exc.orig):
                    raise DuplicateActiveOrderError(
                        f"active order exists for table {order.table_id}"
                    ) from exc
                raise

    def get(self, order_id: OrderId) -> Order | None:
        statement = _with_batches(select(OrderModel)).where(OrderModel.id == str(order_id))
        with self._session() as session:
            model = session.execute(statement).unique().scalar_one_or_none()
            if model is None:
                return None
            return self._to_domain(model)

    def save(self, order: Order, expected_version: int) -> Order:
        order_statement = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order.order_id),
                OrderModel.version == expected_version,
            )
            .values(
                status=order.status.value,
                total_cents=order.total.amount_cents,
                currency=order.total.currency,
                is_completed=order.is_completed,
                served_at=order.served_at,
                completed_at=order.completed_at,
                updated_at=order.updated_at,
                version=OrderModel.version + 1,
            )
        )
        with self._session() as session:
            result = session.execute(order_statement)
            if result.rowcount != 1:
                session.rollback()
                raise OptimisticConcurrencyError(f"order {order.order_id} version conflict")

            stored_batch_ids = set(
                session.scalars(
                    select(OrderBatchModel.batch_id).where(
                        OrderBatchModel.order_id == str(order.order_id)
                    )
                ).all()
            )
            for position, batch in enumerate(order.batches):
                if batch.batch_id in stored_batch_ids:
                    session.execute(
                        update(OrderBatchModel)
                        .where(
                            OrderBatchModel.order_id == str(order.order_id),
                            OrderBatchModel.batch_id == str(batch.batch_id),
                        )
                        .values(status=batch.status.value)
                    )
                else:
                    session.add(self._batch_to_model(order.order_id, position, batch))
            session.commit()

        return replace(order, version=expected_version + 1)

    def get_active_for_table(self, table_id: TableId) -> Order | None:
        orders = self.list_active(limit=1, table_id=table_id)
        return orders[0] if orders else None

    def list_active(self, limit: int, table_id: TableId | None = None) -> list[Order]:
        statement = _with_batches(select(OrderModel)).where(OrderModel.is_completed.is_(False))
        if table_id is not None:
            statement = statement.where(OrderModel.table_id == str(table_id))
        statement = statement.order_by(OrderModel.created_at.desc(), OrderModel.id.desc()).limit(
            limit
        )
        return self._fetch(statement)

    def list_completed(
        self,
        limit: int,
        completed_from: datetime | None = None,
        completed_to: datetime | None = None,
    ) -> list[Order]:
        statement = _with_batches(select(OrderModel)).where(OrderModel.is_completed.is_(True))
        if completed_from is not None:
            statement = statement.where(OrderModel.completed_at >= completed_from)
        if completed_to is not None:
            statement = statement.where(OrderModel.completed_at < completed_to)
        statement = statement.order_by(
            OrderModel.completed_at.desc(), OrderModel.id.desc()
        ).limit(limit)
        return self._fetch(statement)

    def list_created_between(
        self,
        created_from: datetime,
        created_to: datetime,
        status: OrderStatus | None = None,
    ) -> list[Order]:
        statement = _with_batches(select(OrderModel)).where(
            OrderModel.created_at >= created_from,
            OrderModel.created_at < created_to,
        )
        if status is not None:
            statement = statement.where(OrderModel.status == status.value)
        statement = statement.order_by(OrderModel.created_at.asc(), OrderModel.id.asc())
        return self._fetch(statement)

    def _fetch(self, statement: Select) -> list[Order]:
        with self._session() as session:
            models = session.execute(statement).unique().scalars().all()
            return [self._to_domain(model) for model in models]

    def _batch_to_model(self, order_id: OrderId, position: int, batch: Batch) -> OrderBatchModel:
        batch_model = OrderBatchModel(
            order_id=str(order_id),
            batch_id=str(batch.batch_id),
            position=position,
            status=batch.status.value,
            total_cents=batch.total.amount_cents,
            created_at=batch.created_at,
        )
        batch_model.lines = [
            OrderBatchLineModel(
                order_id=str(order_id),
                batch_id=str(batch.batch_id),
                position=line_position,
                menu_item_id=str(line.menu_item_id),
                name=line.name,
                unit_price_cents=line.unit_price.amount_cents,
                quantity=line.quantity,
            )
            for line_position, line in enumerate(batch.items)
        ]
        return batch_model

    def _to_model(self, order: Order) -> OrderModel:
        order_model = OrderModel(
            id=str(order.order_id),
            table_id=str(order.table_id),
            status=order.status.value,
            total_cents=order.total.amount_cents,
            currency=order.total.currency,
            bill_number=order.bill_number,
            is_completed=order.is_completed,
            served_at=order.served_at,
            completed_at=order.completed_at,
            created_at=order.created_at,
            updated_at=order.updated_at,
            version=order.version,
        )
        order_model.batches = [
            self._batch_to_model(order.order_id, position, batch)
            for position, batch in enumerate(order.batches)
        ]
        return order_model

    def _to_domain(self, model: OrderModel) -> Order:
        currency = model.currency
        batches = tuple(
            Batch(
                batch_id=BatchId(batch.batch_id),
                items=tuple(
                    OrderLine(
                        menu_item_id=MenuItemId(line.menu_item_id),
                        name=line.name,
                        unit_price=Money(amount_cents=line.unit_price_cents, currency=currency),
                        quantity=line.quantity,
                    )
                    for line in batch.lines
                ),
                status=OrderStatus(batch.status),
                total=Money(amount_cents=batch.total_cents, currency=currency),
                created_at=_aware(batch.created_at),
            )
            for batch in model.batches
        )
        return Order(
            order_id=OrderId(model.id),
            table_id=TableId(model.table_id),
            batches=batches,
            status=OrderStatus(model.status),
            total=Money(amount_cents=model.total_cents, currency=currency),
            bill_number=model.bill_number,
            is_completed=model.is_completed,
            served_at=_aware_or_none(model.served_at),
            completed_at=_aware_or_none(model.completed_at),
            created_at=_aware(model.created_at),
            updated_at=_aware(model.updated_at),
            version=model.version,
        )
