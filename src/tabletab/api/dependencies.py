from __future__ import annotations

from tabletab.api.middleware.request_id import get_request_id
from tabletab.application.ports.publisher import EventPublisher
from tabletab.application.ports.repositories import OrderRepository
from tabletab.application.use_cases.context import TraceContext
from tabletab.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from tabletab.infrastructure.messaging.redis_publisher import RedisEventPublisher
from tabletab.infrastructure.observability.otel import current_trace_id


def get_order_repository() -> OrderRepository:
    return SqlAlchemyOrderRepository()


def get_event_publisher() -> EventPublisher:
    return RedisEventPublisher()


def get_trace_context() -> TraceContext:
    return TraceContext(trace_id=current_trace_id(), request_id=get_request_id())
