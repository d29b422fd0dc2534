from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from tabletab.api.dependencies import get_event_publisher, get_order_repository, get_trace_context
from tabletab.application.dto.requests import AddBatchRequest, PlaceOrderRequest
from tabletab.application.dto.responses import OrderResponse
from tabletab.application.ports.publisher import EventPublisher
from tabletab.application.ports.repositories import OrderRepository
from tabletab.application.use_cases.add_batch import AddBatch
from tabletab.application.use_cases.context import TraceContext
from tabletab.application.use_cases.get_order import GetActiveOrderForTable, GetOrder
from tabletab.application.use_cases.list_orders import ListTableOrders
from tabletab.application.use_cases.place_order import PlaceOrder
from tabletab.domain.common.ids import OrderId, TableId

router = APIRouter()


@router.post("/v1/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def place_order(
    request_dto: PlaceOrderRequest,
    order_repository: OrderRepository = Depends(get_order_repository),
    publisher: EventPublisher = Depends(get_event_publisher),
    trace_ctx: TraceContext = Depends(get_trace_context),
) -> OrderResponse:
    use_case = PlaceOrder(order_repository=order_repository, publisher=publisher)
    return use_case.execute(request_dto=request_dto, trace_ctx=trace_ctx)


@router.get("/v1/orders/active", response_model=OrderResponse | None)
def get_active_order(
    table_id: str = Query(alias="tableId", min_length=1),
    order_repository: OrderRepository = Depends(get_order_repository),
) -> OrderResponse | None:
    return GetActiveOrderForTable(order_repository=order_repository).execute(TableId(table_id))


@router.get("/v1/orders/table/{table_id}", response_model=list[OrderResponse])
def list_table_orders(
    table_id: str,
    limit: int | None = Query(default=None, ge=1),
    order_repository: OrderRepository = Depends(get_order_repository),
) -> list[OrderResponse]:
    use_case = ListTableOrders(order_repository=order_repository)
    return use_case.execute(table_id=TableId(table_id), limit=limit)


@router.get("/v1/orders/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    order_repository: OrderRepository = Depends(get_order_repository),
) -> OrderResponse:
    return GetOrder(order_repository=order_repository).execute(order_id=OrderId(order_id))


@router.patch("/v1/orders/{order_id}/add-batch", response_model=OrderResponse)
def add_batch(
    order_id: str,
    request_dto: AddBatchRequest,
    order_repository: OrderRepository = Depends(get_order_repository),
    publisher: EventPublisher = Depends(get_event_publisher),
    trace_ctx: TraceContext = Depends(get_trace_context),
) -> OrderResponse:
    use_case = AddBatch(order_repository=order_repository, publisher=publisher)
    return use_case.execute(
        order_id=OrderId(order_id),
        request_dto=request_dto,
        trace_ctx=trace_ctx,
    )
