from __future__ import annotations

from decimal import Decimal
from typing import Callable, Iterable, Iterator, Optional, Tuple

from ..domain.model import LineItem, Shipment
from ..domain.money import to_decimal
from ..domain.sources import ReturnAuthorization, TaxRate, is_promotion_action
from .adjustment import Adjustment

Predicate = Callable[[Adjustment], bool]


class AdjustmentScope:
    """Read-only, chainable filter over a fixed collection of adjustments.

    Every named filter returns a new scope, so chaining composes with AND:
    ``scope.charge().eligible().non_tax()``.
    """

    def __init__(self, adjustments: Iterable[Adjustment] = ()):
        self._items: Tuple[Adjustment, ...] = tuple(adjustments)

    def where(self, predicate: Predicate) -> "AdjustmentScope":
        return AdjustmentScope(a for a in self._items if predicate(a))

    # ---- named projections ----

    def open(self) -> "AdjustmentScope":
        return self.where(lambda a: not a.finalized)

    def closed(self) -> "AdjustmentScope":
        return self.where(lambda a: a.finalized)

    def tax(self) -> "AdjustmentScope":
        return self.where(lambda a: isinstance(a.source, TaxRate))

    def non_tax(self) -> "AdjustmentScope":
        return self.where(lambda a: not isinstance(a.source, TaxRate))

    def price(self) -> "AdjustmentScope":
        return self.where(lambda a: isinstance(a.adjustable, LineItem))

    def shipping(self) -> "AdjustmentScope":
        return self.where(lambda a: isinstance(a.adjustable, Shipment))

    def optional(self) -> "AdjustmentScope":
        return self.where(lambda a: not a.mandatory)

    def mandatory(self) -> "AdjustmentScope":
        return self.where(lambda a: a.mandatory)

    def eligible(self) -> "AdjustmentScope":
        return self.where(lambda a: a.eligible)

    def charge(self) -> "AdjustmentScope":
        return self.where(lambda a: a.amount > 0)

    def credit(self) -> "AdjustmentScope":
        return self.where(lambda a: a.amount < 0)

    def nonzero(self) -> "AdjustmentScope":
        return self.where(lambda a: a.amount != 0)

    def promotion(self) -> "AdjustmentScope":
        return self.where(lambda a: is_promotion_action(a.source))

    def return_authorization(self) -> "AdjustmentScope":
        return self.where(lambda a: isinstance(a.source, ReturnAuthorization))

    def is_included(self) -> "AdjustmentScope":
        return self.where(lambda a: a.included)

    def additional(self) -> "AdjustmentScope":
        return self.where(lambda a: not a.included)

    # ---- reading ----

    def sum(self) -> Decimal:
        return sum((to_decimal(a.amount) for a in self._items), Decimal("0"))

    def first(self) -> Optional[Adjustment]:
        return self._items[0] if self._items else None

    def to_list(self):
        return list(self._items)

    def __iter__(self) -> Iterator[Adjustment]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, adjustment: object) -> bool:
        return any(a is adjustment for a in self._items)

    def __repr__(self) -> str:
        return f"AdjustmentScope({len(self._items)} adjustments)"
