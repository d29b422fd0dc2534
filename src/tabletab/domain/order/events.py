from __future__ import annotations

from enum import Enum


class OrderEventType(str, Enum):
    NEW = "order:new"
    UPDATE = "order:update"
    COMPLETED = "order:completed"
