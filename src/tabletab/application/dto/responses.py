from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


class MoneyResponse(BaseModel):
    amountCents: int
    currency: str


class OrderLineResponse(BaseModel):
    menuItemId: str
    name: str
    quantity: int
    unitPrice: MoneyResponse
    lineTotal: MoneyResponse


class BatchResponse(BaseModel):
    batchId: str
    status: str
    items: list[OrderLineResponse] = Field(default_factory=list)
    total: MoneyResponse
    createdAt: datetime


class OrderResponse(BaseModel):
    orderId: str
    tableId: str
    status: str
    batches: list[BatchResponse] = Field(default_factory=list)
    total: MoneyResponse
    billNumber: str | None = None
    isCompleted: bool
    servedAt: datetime | None = None
    completedAt: datetime | None = None
    createdAt: datetime
    updatedAt: datetime


class AdvanceOrderResponse(OrderResponse):
    previousStatus: str
    newStatus: str


class LiveOrdersSummaryResponse(BaseModel):
    total: int
    active: int
    servedRevenue: MoneyResponse


class LiveOrdersResponse(BaseModel):
    orders: list[OrderResponse] = Field(default_factory=list)
    summary: LiveOrdersSummaryResponse


class TableRevenueResponse(BaseModel):
    count: int
    revenue: MoneyResponse


class DailySummaryRowResponse(BaseModel):
    orderId: str
    billNumber: str | None = None
    tableId: str
    total: MoneyResponse
    status: str
    createdAt: datetime


class DailySummaryResponse(BaseModel):
    businessDate: date
    totalOrders: int
    totalRevenue: MoneyResponse
    ordersByTable: dict[str, TableRevenueResponse] = Field(default_factory=dict)
    orders: list[DailySummaryRowResponse] = Field(default_factory=list)
