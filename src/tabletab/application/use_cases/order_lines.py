from __future__ import annotations

from decimal import Decimal

from tabletab.application.dto.requests import OrderItemRequest
from tabletab.application.errors import OrderValidationError
from tabletab.domain.common.ids import MenuItemId, TableId
from tabletab.domain.common.money import Money
from tabletab.domain.order.entities import OrderLine

# Upper bounds match the storage column widths.
MAX_TABLE_ID_LENGTH = 50
MAX_BILL_NUMBER_LENGTH = 50
MAX_MENU_ITEM_ID_LENGTH = 100
MAX_ITEM_NAME_LENGTH = 255
MAX_UNIT_PRICE = Decimal("1000000")
MAX_QUANTITY = 1000


def normalize_table_id(value: str) -> TableId:
    table_id = value.strip()
    if not table_id:
        raise OrderValidationError("tableId is required", {"field": "tableId"})
    if len(table_id) > MAX_TABLE_ID_LENGTH:
        raise OrderValidationError(
            f"tableId must be at most {MAX_TABLE_ID_LENGTH} characters",
            {"field": "tableId", "maxLength": MAX_TABLE_ID_LENGTH},
        )
    return TableId(table_id)


def normalize_bill_number(value: str | None) -> str | None:
    bill_number = (value or "").strip() or None
    if bill_number is not None and len(bill_number) > MAX_BILL_NUMBER_LENGTH:
        raise OrderValidationError(
            f"billNumber must be at most {MAX_BILL_NUMBER_LENGTH} characters",
            {"field": "billNumber", "maxLength": MAX_BILL_NUMBER_LENGTH},
        )
    return bill_number


def _check_length(value: str, field: str, max_length: int) -> str:
    text = value.strip()
    if not text:
        raise OrderValidationError(f"{field} is required", {"field": field})
    if len(text) > max_length:
        raise OrderValidationError(
            f"{field} must be at most {max_length} characters",
            {"field": field, "maxLength": max_length},
        )
    return text


def build_order_lines(items: list[OrderItemRequest], currency: str) -> list[OrderLine]:
    if not items:
        raise OrderValidationError("items must contain at least one item", {"field": "items"})

    lines: list[OrderLine] = []
    for index, item in enumerate(items):
        field = f"items[{index}]"
        menu_item_id = _check_length(
            item.menu_item_id, f"{field}.menuItemId", MAX_MENU_ITEM_ID_LENGTH
        )
        name = _check_length(item.name, f"{field}.name", MAX_ITEM_NAME_LENGTH)
        if item.price <= 0:
            raise OrderValidationError(
                f"{field}.price must be greater than 0", {"field": f"{field}.price"}
            )
        if item.price > MAX_UNIT_PRICE:
            raise OrderValidationError(
                f"{field}.price must be at most {MAX_UNIT_PRICE}",
                {"field": f"{field}.price", "max": str(MAX_UNIT_PRICE)},
            )
        if item.quantity < 1:
            raise OrderValidationError(
                f"{field}.quantity must be >= 1", {"field": f"{field}.quantity"}
            )
        if item.quantity > MAX_QUANTITY:
            raise OrderValidationError(
                f"{field}.quantity must be at most {MAX_QUANTITY}",
                {"field": f"{field}.quantity", "max": MAX_QUANTITY},
            )
        try:
            unit_price = Money.from_major(item.price, currency)
        except ValueError as exc:
            raise OrderValidationError(
                f"{field}.price is invalid: {exc}", {"field": f"{field}.price"}
            ) from exc

        lines.append(
            OrderLine(
                menu_item_id=MenuItemId(menu_item_id),
                name=name,
                unit_price=unit_price,
                quantity=item.quantity,
            )
        )
    return lines


def check_declared_total(declared: Decimal | None, computed: Money, field: str) -> None:
    if declared is None:
        return
    if declared < 0:
        raise OrderValidationError(f"{field} must be >= 0", {"field": field})
    try:
        declared_money = Money.from_major(declared, computed.currency)
    except ValueError as exc:
        raise OrderValidationError(f"{field} is invalid: {exc}", {"field": field}) from exc
    if declared_money != computed:
        # Stored totals are always the computed sum, so a differing client total is rejected.
        raise OrderValidationError(
            f"{field} does not match the sum of item prices; totals are computed from items",
            {
                "field": field,
                "declaredCents": declared_money.amount_cents,
                "computedCents": computed.amount_cents,
            },
        )
