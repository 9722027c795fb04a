from __future__ import annotations

"""
ItemAdjustments recalculates the cached adjustment totals of one adjustable
(an Order, Shipment or LineItem) from the adjustments attached to it.

This is what the adjustment store runs after each create and destroy.
"""

import logging
from typing import Any, Optional

from ..domain.model import Adjustable, ZERO, utcnow
from ..domain.money import to_decimal
from . import notifications
from .adjustment import Adjustment
from .scopes import AdjustmentScope

logger = logging.getLogger("orderledger.ledger")


class ItemAdjustments:
    def __init__(self, item: Adjustable, store: Any):
        self.item = item
        self.store = store

    @property
    def adjustments(self) -> AdjustmentScope:
        return self.store.for_adjustable(self.item)

    def counted(self) -> AdjustmentScope:
        """Adjustments that make up `adjustment_total`: eligible and not included."""
        return self.adjustments.eligible().additional()

    def update(self) -> Adjustable:
        self.update_adjustments()
        return self.item

    def update_adjustments(self) -> None:
        """Recompute promotion and tax adjustments, then write the totals.

        Only the best promotion stays eligible.
        """
        promotion_total = sum(
            (to_decimal(a.recompute(self.item)) for a in self.adjustments.promotion()), ZERO
        )
        best = None
        if promotion_total != 0:
            best = self.choose_best_promotion_adjustment()
        for adjustment in self.adjustments.tax():
            adjustment.recompute(self.item)
        self.update_totals(best)

    def best_promotion_adjustment(self) -> Optional[Adjustment]:
        candidates = list(reversed(self.adjustments.promotion().eligible().to_list()))
        if not candidates:
            return None
        # lowest amount wins; newest first on ties
        candidates.sort(key=lambda a: (to_decimal(a.amount), -a.created_at.timestamp()))
        return candidates[0]

    def choose_best_promotion_adjustment(self) -> Optional[Adjustment]:
        best = self.best_promotion_adjustment()
        if best is not None:
            for other in self.adjustments.promotion():
                if other is not best and other.eligible:
                    self.store.update_columns(other, eligible=False)
        return best

    def update_totals(self, best: Optional[Adjustment] = None) -> Adjustable:
        if best is None:
            best = self.best_promotion_adjustment()
        eligible_tax = self.adjustments.eligible().tax()
        item = self.item
        item.promo_total = to_decimal(best.amount) if best is not None else ZERO
        item.included_tax_total = eligible_tax.is_included().sum()
        item.additional_tax_total = eligible_tax.additional().sum()
        item.adjustment_total = self.counted().sum()
        item.updated_at = utcnow()
        logger.debug(
            "updated totals for %s %s adjustment_total=%s",
            type(item).__name__, getattr(item, "id", ""), item.adjustment_total,
        )
        notifications.totals_updated(item, best.id if best is not None else None)
        return item
