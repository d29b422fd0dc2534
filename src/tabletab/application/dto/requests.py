from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class OrderItemRequest(CamelBaseModel):
    menu_item_id: str
    name: str
    price: Decimal
    quantity: int


class PlaceOrderRequest(CamelBaseModel):
    table_id: str
    items: list[OrderItemRequest]
    total: Decimal
    bill_number: str | None = None


class AddBatchRequest(CamelBaseModel):
    items: list[OrderItemRequest]
    batch_total: Decimal | None = None


class UpdateStatusRequest(CamelBaseModel):
    status: str
    batch_id: str | None = None
