"""
In-process adjustment store: the storage boundary of the ledger.

- `create` / `save` validate; `update_columns` is a raw write that skips
  validation.
- `create` and `destroy` each signal the aggregator exactly once for the
  adjustment's adjustable. Nothing else signals it.
- `transaction()` journals raw column writes and restores them on error.
- The store remembers the last committed values of each row. A rejected
  `save` puts them back, and a failed aggregation undoes the create or destroy
  that triggered it.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

from ..domain.model import Adjustable, adjustable_kind, utcnow
from ..domain.sources import Source, source_kind
from ..metrics.ledger import inc_aggregation, inc_created, inc_destroyed, inc_validation_error
from . import notifications
from .adjustment import Adjustment
from .errors import AdjustmentNotFound, AdjustmentValidationError, LedgerError
from .item_adjustments import ItemAdjustments
from .scopes import AdjustmentScope

logger = logging.getLogger("orderledger.ledger")

Aggregator = Callable[[Adjustable], Any]

COLUMNS = frozenset({
    "amount", "label", "eligible", "included", "mandatory", "finalized", "updated_at",
})

# columns plus the references `validate` checks
SNAPSHOT_FIELDS = tuple(sorted(COLUMNS)) + ("adjustable", "order", "source")


def default_aggregator(store: "AdjustmentStore") -> Aggregator:
    def _aggregate(adjustable: Adjustable) -> Any:
        return ItemAdjustments(adjustable, store).update()
    return _aggregate


def touch(adjustable: Optional[Adjustable]) -> None:
    if adjustable is not None and hasattr(adjustable, "updated_at"):
        adjustable.updated_at = utcnow()


class AdjustmentStore:
    def __init__(self, aggregator: Optional[Aggregator] = None):
        self._rows: Dict[str, Adjustment] = {}
        self._committed: Dict[str, Dict[str, Any]] = {}
        self._aggregator: Aggregator = aggregator if aggregator is not None else default_aggregator(self)
        self._journal: Optional[List[Tuple[Adjustment, str, Any]]] = None

    # ---- writes ----

    def create(self, adjustment: Optional[Adjustment] = None, **attrs: Any) -> Adjustment:
        """Validate and insert an adjustment, then recalculate its adjustable.

        If the aggregator raises, the insert and the aggregator's column writes
        are undone and the error propagates.
        Metrics and the created event follow a successful aggregation.
        """
        if adjustment is None:
            adjustment = Adjustment(**attrs)
        if adjustment.id in self._rows:
            raise LedgerError(f"adjustment {adjustment.id} already exists")
        self._validate(adjustment)
        now = utcnow()
        adjustment.created_at = now
        adjustment.updated_at = now
        adjustment.store = self
        self._rows[adjustment.id] = adjustment
        self._commit(adjustment)
        try:
            with self.transaction():
                self._signal(adjustment.adjustable)
        except Exception:
            del self._rows[adjustment.id]
            del self._committed[adjustment.id]
            adjustment.store = None
            logger.warning("create of adjustment %s undone: aggregation failed", adjustment.id)
            raise
        touch(adjustment.adjustable)
        inc_created(source_kind(adjustment.source))
        logger.info("created adjustment %s %r amount=%s", adjustment.id, adjustment.label, adjustment.amount)
        notifications.adjustment_created(adjustment)
        return adjustment

    def save(self, adjustment: Adjustment) -> Adjustment:
        """Validated update of an existing adjustment. Does not signal aggregation.

        A rejected update restores the last committed values before raising.
        """
        self._require(adjustment.id)
        try:
            self._validate(adjustment)
        except AdjustmentValidationError:
            self._restore(adjustment)
            raise
        adjustment.updated_at = utcnow()
        self._commit(adjustment)
        touch(adjustment.adjustable)
        return adjustment

    def update_columns(self, adjustment: Adjustment, **columns: Any) -> None:
        """Raw column write: no validation, no timestamps, no aggregation."""
        unknown = set(columns) - COLUMNS
        if unknown:
            raise ValueError(f"unknown adjustment columns: {sorted(unknown)}")
        for name, value in columns.items():
            if self._journal is not None:
                self._journal.append((adjustment, name, getattr(adjustment, name)))
            self._write(adjustment, name, value)

    def destroy(self, adjustment: Union[Adjustment, str]) -> Adjustment:
        """Remove an adjustment, then recalculate its adjustable.

        If the aggregator raises, the row is put back in its place.
        """
        adjustment_id = adjustment if isinstance(adjustment, str) else adjustment.id
        row = self._require(adjustment_id)
        rows_before = list(self._rows.items())
        committed = self._committed.pop(adjustment_id, None)
        del self._rows[adjustment_id]
        row.store = None
        try:
            with self.transaction():
                self._signal(row.adjustable)
        except Exception:
            self._rows = dict(rows_before)
            if committed is not None:
                self._committed[adjustment_id] = committed
            row.store = self
            logger.warning("destroy of adjustment %s undone: aggregation failed", adjustment_id)
            raise
        touch(row.adjustable)
        inc_destroyed(source_kind(row.source))
        logger.info("destroyed adjustment %s %r", row.id, row.label)
        notifications.adjustment_destroyed(row)
        return row

    def destroy_for_adjustable(self, adjustable: Adjustable) -> List[Adjustment]:
        return [self.destroy(a) for a in self.for_adjustable(adjustable)]

    def destroy_for_source(self, source: Source) -> List[Adjustment]:
        return [self.destroy(a) for a in self.all().where(lambda a: a.source is source)]

    @contextmanager
    def transaction(self) -> Iterator["AdjustmentStore"]:
        """Group raw column writes; on error they are undone in reverse order.

        Nested calls join the outermost transaction.
        """
        if self._journal is not None:
            yield self
            return
        self._journal = []
        try:
            yield self
        except BaseException:
            for adjustment, name, previous in reversed(self._journal):
                self._write(adjustment, name, previous)
            logger.warning("rolled back %d adjustment column writes", len(self._journal))
            raise
        finally:
            self._journal = None

    # ---- reads ----

    def get(self, adjustment_id: str) -> Adjustment:
        return self._require(adjustment_id)

    def all(self) -> AdjustmentScope:
        return AdjustmentScope(self._rows.values())

    def for_adjustable(self, adjustable: Adjustable) -> AdjustmentScope:
        return self.all().where(lambda a: a.adjustable is adjustable)

    def for_order(self, order: Any) -> AdjustmentScope:
        return self.all().where(lambda a: a.order is order)

    def __len__(self) -> int:
        return len(self._rows)

    # ---- internals ----

    def _require(self, adjustment_id: str) -> Adjustment:
        try:
            return self._rows[adjustment_id]
        except KeyError:
            raise AdjustmentNotFound(adjustment_id) from None

    def _validate(self, adjustment: Adjustment) -> None:
        try:
            adjustment.validate()
        except AdjustmentValidationError as e:
            for field_name in e.errors:
                inc_validation_error(field_name)
            raise

    def _signal(self, adjustable: Adjustable) -> None:
        inc_aggregation(adjustable_kind(adjustable))
        self._aggregator(adjustable)

    def _commit(self, adjustment: Adjustment) -> None:
        self._committed[adjustment.id] = {name: getattr(adjustment, name) for name in SNAPSHOT_FIELDS}

    def _restore(self, adjustment: Adjustment) -> None:
        committed = self._committed.get(adjustment.id)
        if committed is None:
            return
        for name, value in committed.items():
            setattr(adjustment, name, value)
        logger.info("rejected update of adjustment %s; committed values restored", adjustment.id)

    def _write(self, adjustment: Adjustment, name: str, value: Any) -> None:
        setattr(adjustment, name, value)
        committed = self._committed.get(adjustment.id)
        if committed is not None:
            committed[name] = value
