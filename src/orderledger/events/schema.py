from __future__ import annotations

from decimal import Decimal
from typing import Literal, Optional, Union
from pydantic import BaseModel


# ---- Base + envelope ----

class BaseEvent(BaseModel):
    event_type: str
    ts: int
    order_id: str
    adjustable_type: str
    adjustable_id: str


class EventEnvelope(BaseModel):
    schema_version: str = "v1"
    correlation_id: str
    sequence: int = 0
    event: BaseEvent


# ---- Event types ----

class AdjustmentCreated(BaseEvent):
    event_type: Literal["adjustment_created"] = "adjustment_created"
    adjustment_id: str
    label: str
    source_type: str
    amount: Decimal
    mandatory: bool = False
    included: bool = False


class AdjustmentDestroyed(BaseEvent):
    event_type: Literal["adjustment_destroyed"] = "adjustment_destroyed"
    adjustment_id: str
    source_type: str
    amount: Decimal


class AdjustmentStateChanged(BaseEvent):
    event_type: Literal["adjustment_state_changed"] = "adjustment_state_changed"
    adjustment_id: str
    state: Literal["open", "closed"]


class AdjustableTotalsUpdated(BaseEvent):
    event_type: Literal["adjustable_totals_updated"] = "adjustable_totals_updated"
    adjustment_total: Decimal
    promo_total: Decimal
    included_tax_total: Decimal
    additional_tax_total: Decimal
    best_promotion_id: Optional[str] = None


AnyEvent = Union[
    AdjustmentCreated,
    AdjustmentDestroyed,
    AdjustmentStateChanged,
    AdjustableTotalsUpdated,
]
