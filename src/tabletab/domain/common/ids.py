from __future__ import annotations

from typing import NewType

OrderId = NewType("OrderId", str)
TableId = NewType("TableId", str)
BatchId = NewType("BatchId", str)
MenuItemId = NewType("MenuItemId", str)
