from __future__ import annotations

from fastapi import APIRouter, Depends

from tabletab.api.dependencies import get_event_publisher, get_order_repository, get_trace_context
from tabletab.api.security import require_staff
from tabletab.application.dto.requests import UpdateStatusRequest
from tabletab.application.dto.responses import AdvanceOrderResponse, OrderResponse
from tabletab.application.ports.publisher import EventPublisher
from tabletab.application.ports.repositories import OrderRepository
from tabletab.application.use_cases.advance_order import AdvanceOrder
from tabletab.application.use_cases.complete_order import CompleteOrder
from tabletab.application.use_cases.context import TraceContext
from tabletab.application.use_cases.serve_order import ServeOrder
from tabletab.application.use_cases.update_order_status import UpdateOrderStatus
from tabletab.domain.common.ids import OrderId
from tabletab.domain.order.status import OrderStatus

router = APIRouter(dependencies=[Depends(require_staff)])

# Storage labels used by older dashboard builds.
LEGACY_STATUS_LABELS: dict[str, OrderStatus] = {
    "pending": OrderStatus.PLACED,
    "preparing": OrderStatus.IN_PREPARATION,
    "served": OrderStatus.READY,
    "paid": OrderStatus.SERVED,
    "completed": OrderStatus.COMPLETED,
}


def to_internal_status(value: str) -> OrderStatus | str:
    label = value.strip()
    return LEGACY_STATUS_LABELS.get(label, label)


@router.api_route(
    "/v1/orders/{order_id}/status",
    methods=["PATCH", "PUT"],
    response_model=OrderResponse,
)
def update_status(
    order_id: str,
    request_dto: UpdateStatusRequest,
    order_repository: OrderRepository = Depends(get_order_repository),
    publisher: EventPublisher = Depends(get_event_publisher),
    trace_ctx: TraceContext = Depends(get_trace_context),
) -> OrderResponse:
    use_case = UpdateOrderStatus(order_repository=order_repository, publisher=publisher)
    return use_case.execute(
        order_id=OrderId(order_id),
        status=to_internal_status(request_dto.status),
        batch_id=request_dto.batch_id,
        trace_ctx=trace_ctx,
    )


@router.post("/v1/orders/{order_id}/advance-status", response_model=AdvanceOrderResponse)
def advance_status(
    order_id: str,
    order_repository: OrderRepository = Depends(get_order_repository),
    publisher: EventPublisher = Depends(get_event_publisher),
    trace_ctx: TraceContext = Depends(get_trace_context),
) -> AdvanceOrderResponse:
    use_case = AdvanceOrder(order_repository=order_repository, publisher=publisher)
    return use_case.execute(order_id=OrderId(order_id), trace_ctx=trace_ctx)


@router.patch("/v1/orders/{order_id}/serve", response_model=OrderResponse)
def serve_order(
    order_id: str,
    order_repository: OrderRepository = Depends(get_order_repository),
    publisher: EventPublisher = Depends(get_event_publisher),
    trace_ctx: TraceContext = Depends(get_trace_context),
) -> OrderResponse:
    use_case = ServeOrder(order_repository=order_repository, publisher=publisher)
    return use_case.execute(order_id=OrderId(order_id), trace_ctx=trace_ctx)


@router.post("/v1/orders/complete/{order_id}", response_model=OrderResponse)
def complete_order(
    order_id: str,
    order_repository: OrderRepository = Depends(get_order_repository),
    publisher: EventPublisher = Depends(get_event_publisher),
    trace_ctx: TraceContext = Depends(get_trace_context),
) -> OrderResponse:
    use_case = CompleteOrder(order_repository=order_repository, publisher=publisher)
    return use_case.execute(order_id=OrderId(order_id), trace_ctx=trace_ctx)
