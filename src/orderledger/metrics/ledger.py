from __future__ import annotations

from typing import Optional
import os
from prometheus_client import Counter, REGISTRY

_adjustments_created: Optional[Counter] = None
_adjustments_destroyed: Optional[Counter] = None
_recompute_total: Optional[Counter] = None
_aggregations_total: Optional[Counter] = None
_state_changes_total: Optional[Counter] = None
_validation_errors_total: Optional[Counter] = None
_events_total: Optional[Counter] = None


class _NoOp:
    def labels(self, *args, **kwargs):
        return self
    def inc(self, *args, **kwargs):
        return None


def _safe_counter(name: str, doc: str, labelnames):
    if os.getenv("DISABLE_PROMETHEUS", "0") == "1":
        return _NoOp()
    try:
        return Counter(name, doc, labelnames)
    except ValueError:
        # Already registered (module reloaded); reuse the existing collector
        coll = getattr(REGISTRY, "_names_to_collectors", {}).get(name)
        if coll is not None:
            return coll
        for coll in list(getattr(REGISTRY, "_collector_to_names", {}).keys()):  # type: ignore[attr-defined]
            if getattr(coll, "_name", None) == name:
                return coll
        return _NoOp()


def get_adjustments_created_total():
    global _adjustments_created
    if _adjustments_created is None:
        _adjustments_created = _safe_counter("adjustments_created_total", "Adjustments created", ["source"])
    return _adjustments_created


def get_adjustments_destroyed_total():
    global _adjustments_destroyed
    if _adjustments_destroyed is None:
        _adjustments_destroyed = _safe_counter("adjustments_destroyed_total", "Adjustments destroyed", ["source"])
    return _adjustments_destroyed


def get_recompute_total():
    """Counter: adjustment_recompute_total{outcome}

    outcome is one of closed, no_source, recomputed.
    """
    global _recompute_total
    if _recompute_total is None:
        _recompute_total = _safe_counter("adjustment_recompute_total", "Adjustment recompute calls", ["outcome"])
    return _recompute_total


def get_aggregations_total():
    global _aggregations_total
    if _aggregations_total is None:
        _aggregations_total = _safe_counter(
            "adjustment_aggregations_total", "Adjustable total recalculations", ["adjustable"]
        )
    return _aggregations_total


def get_state_changes_total():
    global _state_changes_total
    if _state_changes_total is None:
        _state_changes_total = _safe_counter(
            "adjustment_state_changes_total", "Adjustment finalize/unfinalize transitions", ["state"]
        )
    return _state_changes_total


def get_validation_errors_total():
    global _validation_errors_total
    if _validation_errors_total is None:
        _validation_errors_total = _safe_counter(
            "adjustment_validation_errors_total", "Adjustments rejected at the store boundary", ["field"]
        )
    return _validation_errors_total


def get_events_total():
    global _events_total
    if _events_total is None:
        _events_total = _safe_counter("ledger_events_total", "Ledger events published", ["type"])
    return _events_total


def inc_created(source: str) -> None:
    try:
        get_adjustments_created_total().labels(source).inc()
    except Exception:
        pass


def inc_destroyed(source: str) -> None:
    try:
        get_adjustments_destroyed_total().labels(source).inc()
    except Exception:
        pass


def inc_recompute(outcome: str) -> None:
    try:
        get_recompute_total().labels(outcome).inc()
    except Exception:
        pass


def inc_aggregation(adjustable: str) -> None:
    try:
        get_aggregations_total().labels(adjustable).inc()
    except Exception:
        pass


def inc_state_change(state: str) -> None:
    try:
        get_state_changes_total().labels(state).inc()
    except Exception:
        pass


def inc_validation_error(field: str) -> None:
    try:
        get_validation_errors_total().labels(field).inc()
    except Exception:
        pass
