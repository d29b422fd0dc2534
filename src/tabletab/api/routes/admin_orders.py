from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from tabletab.api.dependencies import get_order_repository
from tabletab.api.security import require_staff
from tabletab.application.dto.responses import (
    DailySummaryResponse,
    LiveOrdersResponse,
    OrderResponse,
)
from tabletab.application.errors import OrderValidationError
from tabletab.application.ports.repositories import OrderRepository
from tabletab.application.use_cases.daily_summary import GetDailySummary
from tabletab.application.use_cases.list_orders import (
    ListCompletedOrders,
    ListLiveOrders,
    parse_business_date,
)

router = APIRouter(dependencies=[Depends(require_staff)])


@router.get("/v1/orders", response_model=LiveOrdersResponse)
def list_live_orders(
    live: bool = Query(default=True),
    order_repository: OrderRepository = Depends(get_order_repository),
) -> LiveOrdersResponse:
    if not live:
        raise OrderValidationError(
            "only the live view is listed here; use /v1/orders/completed for archived orders",
            {"field": "live"},
        )
    return ListLiveOrders(order_repository=order_repository).execute()


@router.get("/v1/orders/completed", response_model=list[OrderResponse])
def list_completed_orders(
    order_repository: OrderRepository = Depends(get_order_repository),
) -> list[OrderResponse]:
    return ListCompletedOrders(order_repository=order_repository).execute()


@router.get("/v1/orders/completed/by-date", response_model=list[OrderResponse])
def list_completed_orders_by_date(
    date: str | None = Query(default=None),
    order_repository: OrderRepository = Depends(get_order_repository),
) -> list[OrderResponse]:
    day = parse_business_date(date)
    return ListCompletedOrders(order_repository=order_repository).execute(day=day)


@router.get("/v1/summary", response_model=DailySummaryResponse)
def daily_summary(
    order_repository: OrderRepository = Depends(get_order_repository),
) -> DailySummaryResponse:
    return GetDailySummary(order_repository=order_repository).execute()
