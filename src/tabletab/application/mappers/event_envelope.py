from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import uuid4

from tabletab.application.mappers.order_mapper import to_order_response
from tabletab.domain.common.ids import BatchId
from tabletab.domain.order.entities import Order
from tabletab.domain.order.events import OrderEventType


def _serialize_event(
    *,
    event_type: str,
    occurred_at: datetime,
    channel: str,
    payload: dict[str, Any],
    trace_id: str | None,
    request_id: str | None,
) -> str:
    envelope = {
        "event_id": str(uuid4()),
        "event_type": event_type,
        "occurred_at": occurred_at.isoformat(),
        "request_id": request_id,
        "trace_id": trace_id,
        "channel": channel,
        "payload": payload,
    }
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)


def serialize_order_event(
    *,
    event_type: OrderEventType,
    occurred_at: datetime,
    channel: str,
    order: Order,
    batch_id: BatchId | None,
    trace_id: str | None,
    request_id: str | None,
) -> str:
    return _serialize_event(
        event_type=event_type.value,
        occurred_at=occurred_at,
        channel=channel,
        trace_id=trace_id,
        request_id=request_id,
        payload={
            "order": to_order_response(order).model_dump(mode="json"),
            "batchId": str(batch_id) if batch_id else None,
        },
    )
