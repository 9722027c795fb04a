from __future__ import annotations

from typing import Dict


class LedgerError(Exception):
    """Base class for adjustment ledger errors."""


class InvalidAdjustmentState(LedgerError, ValueError):
    """Raised when an adjustment is given a state other than open/closed."""

    def __init__(self, state: object):
        self.state = state
        super().__init__(f"invalid adjustment state {state!r}")


class AdjustmentValidationError(LedgerError, ValueError):
    """Raised by the store when an adjustment fails validation.

    `errors` maps the offending field to a human-readable message.
    """

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        detail = "; ".join(f"{k} {v}" for k, v in self.errors.items())
        super().__init__(f"adjustment is invalid: {detail}")


class AdjustmentNotFound(LedgerError, KeyError):
    def __init__(self, adjustment_id: str):
        self.adjustment_id = adjustment_id
        super().__init__(adjustment_id)
