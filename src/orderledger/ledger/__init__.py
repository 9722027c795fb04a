"""Adjustment ledger package.

Public API:
- Adjustment / AdjustmentState: one monetary adjustment and its open/closed state.
- AdjustmentScope: chainable read-only filters over adjustments.
- AdjustmentStore: storage boundary; signals aggregation on create/destroy.
- ItemAdjustments: recalculates an adjustable's cached totals.
"""

from .adjustment import Adjustment, AdjustmentState  # re-export
from .errors import AdjustmentNotFound, AdjustmentValidationError, InvalidAdjustmentState, LedgerError
from .item_adjustments import ItemAdjustments
from .scopes import AdjustmentScope
from .store import AdjustmentStore

__all__ = [
    "Adjustment",
    "AdjustmentNotFound",
    "AdjustmentScope",
    "AdjustmentState",
    "AdjustmentStore",
    "AdjustmentValidationError",
    "InvalidAdjustmentState",
    "ItemAdjustments",
    "LedgerError",
]
