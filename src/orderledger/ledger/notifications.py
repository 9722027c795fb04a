"""Builders that turn ledger changes into published events."""

from __future__ import annotations

import itertools
import time
from typing import Any, Optional

from ..domain.model import adjustable_kind
from ..domain.sources import source_kind
from ..events.bus import publish as publish_event
from ..events.schema import (
    AdjustableTotalsUpdated,
    AdjustmentCreated,
    AdjustmentDestroyed,
    AdjustmentStateChanged,
    BaseEvent,
    EventEnvelope,
)

_sequence = itertools.count(1)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _common(adjustable: Any, order: Any) -> dict:
    return {
        "ts": _now_ms(),
        "order_id": getattr(order, "id", ""),
        "adjustable_type": adjustable_kind(adjustable),
        "adjustable_id": getattr(adjustable, "id", ""),
    }


def _send(order: Any, evt: BaseEvent) -> None:
    correlation_id = f"order:{getattr(order, 'number', None) or getattr(order, 'id', '')}"
    publish_event(EventEnvelope(correlation_id=correlation_id, sequence=next(_sequence), event=evt))


def adjustment_created(adj: Any) -> None:
    evt = AdjustmentCreated(
        **_common(adj.adjustable, adj.order),
        adjustment_id=adj.id,
        label=adj.label,
        source_type=source_kind(adj.source),
        amount=adj.amount,
        mandatory=adj.mandatory,
        included=adj.included,
    )
    _send(adj.order, evt)


def adjustment_destroyed(adj: Any) -> None:
    evt = AdjustmentDestroyed(
        **_common(adj.adjustable, adj.order),
        adjustment_id=adj.id,
        source_type=source_kind(adj.source),
        amount=adj.amount,
    )
    _send(adj.order, evt)


def state_changed(adj: Any) -> None:
    evt = AdjustmentStateChanged(
        **_common(adj.adjustable, adj.order),
        adjustment_id=adj.id,
        state=adj.state,
    )
    _send(adj.order, evt)


def totals_updated(item: Any, best_promotion_id: Optional[str] = None) -> None:
    order = getattr(item, "order", item)
    evt = AdjustableTotalsUpdated(
        **_common(item, order),
        adjustment_total=item.adjustment_total,
        promo_total=item.promo_total,
        included_tax_total=item.included_tax_total,
        additional_tax_total=item.additional_tax_total,
        best_promotion_id=best_promotion_id,
    )
    _send(order, evt)
