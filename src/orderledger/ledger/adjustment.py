"""
Adjustments represent a change to the total of an order, shipment or line item.
Each adjustment has an `amount` that can be either positive or negative.

Adjustments are either open or closed. Once an adjustment is closed
(finalized) it is no longer updated by `recompute`.

Boolean attributes:

- `mandatory`: the charge is required and is kept even when its amount is
  zero, so shipping and tax can show explicitly that nothing was charged.
- `eligible`: whether the adjustment currently counts toward its adjustable's
  adjustment total. An ineligible adjustment is kept so it can be reinstated.
- `included`: the amount is already part of the adjustable's displayed price
  rather than added on top of it.
"""

from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
import logging
from typing import Any, Dict, Optional, Union

from ..config import preferences
from ..domain.model import Adjustable, Order, new_id, utcnow
from ..domain.money import Money, to_decimal
from ..domain.sources import Source, is_promotion_action
from ..metrics.ledger import inc_recompute, inc_state_change
from . import notifications
from .errors import AdjustmentValidationError, InvalidAdjustmentState

logger = logging.getLogger("orderledger.ledger")


class AdjustmentState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass(eq=False)
class Adjustment:
    adjustable: Optional[Adjustable] = None
    order: Optional[Order] = None
    label: str = ""
    amount: Any = Decimal("0")
    source: Source = None
    mandatory: bool = False
    eligible: bool = True
    included: bool = False
    finalized: bool = False
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    # set by AdjustmentStore.create; unbound adjustments write attributes directly
    store: Any = field(default=None, repr=False)

    # ---- state ----

    @property
    def state(self) -> str:
        return (AdjustmentState.CLOSED if self.finalized else AdjustmentState.OPEN).value

    @state.setter
    def state(self, new_state: Union[str, AdjustmentState]) -> None:
        try:
            resolved = AdjustmentState(new_state)
        except ValueError:
            raise InvalidAdjustmentState(new_state) from None
        self.finalized = resolved is AdjustmentState.CLOSED

    @property
    def is_open(self) -> bool:
        return not self.finalized

    @property
    def is_closed(self) -> bool:
        return self.finalized

    def finalize(self) -> "Adjustment":
        return self._transition(True)

    def unfinalize(self) -> "Adjustment":
        return self._transition(False)

    def _transition(self, finalized: bool) -> "Adjustment":
        if self.finalized == finalized:
            return self
        previous = self.finalized
        self.finalized = finalized
        if self.store is not None:
            try:
                self.store.save(self)
            except Exception:
                self.finalized = previous
                raise
        inc_state_change(self.state)
        notifications.state_changed(self)
        return self

    # ---- derived ----

    @property
    def is_promotion(self) -> bool:
        return is_promotion_action(self.source)

    @property
    def currency(self) -> str:
        code = getattr(self.adjustable, "currency", None) if self.adjustable is not None else None
        return code or preferences.get_currency()

    @property
    def display_amount(self) -> Money:
        return Money(amount=self.amount, currency=self.currency)

    # ---- recompute ----

    def recompute(self, target: Optional[Adjustable] = None) -> Decimal:
        """Recalculate the amount against a target (Order, Shipment, LineItem).

        Passing a target is recommended: it computes against exactly the object
        the caller holds instead of going back through `adjustable`.

        No-op if the adjustment is closed. Also a no-op when there is no source,
        which means the adjustment was created manually.

        Writes are raw column updates: no validation and no aggregation of the
        adjustable's totals.
        """
        amount = self.amount
        if self.finalized:
            inc_recompute("closed")
            return amount
        if self.source is None:
            inc_recompute("no_source")
            return amount
        amount = self.source.compute_amount(target if target is not None else self.adjustable)
        with self._transaction():
            self._write_columns(amount=amount, updated_at=utcnow())
            if self.is_promotion:
                self._write_columns(eligible=bool(self.source.promotion.eligible(self.adjustable)))
        inc_recompute("recomputed")
        logger.debug("recomputed adjustment %s amount=%s eligible=%s", self.id, amount, self.eligible)
        return amount

    def _transaction(self):
        if self.store is None:
            return nullcontext()
        return self.store.transaction()

    def _write_columns(self, **columns: Any) -> None:
        if self.store is not None:
            self.store.update_columns(self, **columns)
            return
        for name, value in columns.items():
            setattr(self, name, value)

    # ---- validation ----

    def validation_errors(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        if self.adjustable is None:
            errors["adjustable"] = "can't be blank"
        if self.order is None:
            errors["order"] = "can't be blank"
        if not isinstance(self.label, str) or not self.label.strip():
            errors["label"] = "can't be blank"
        if _finite_decimal(self.amount) is None:
            errors["amount"] = "is not a number"
        return errors

    def validate(self) -> None:
        """Raise AdjustmentValidationError unless valid; normalize amount to Decimal."""
        errors = self.validation_errors()
        if errors:
            raise AdjustmentValidationError(errors)
        self.amount = _finite_decimal(self.amount)


def _finite_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        dec = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not dec.is_finite():
        return None
    return dec
