from __future__ import annotations

import json
import logging
from typing import Callable, List

from .schema import EventEnvelope
from ..metrics.ledger import get_events_total


log = logging.getLogger("orderledger.events")

Subscriber = Callable[[EventEnvelope], None]

_subscribers: List[Subscriber] = []


def subscribe(fn: Subscriber) -> None:
    if fn not in _subscribers:
        _subscribers.append(fn)


def unsubscribe(fn: Subscriber) -> None:
    try:
        _subscribers.remove(fn)
    except ValueError:
        pass


def clear_subscribers() -> None:
    """Drop all subscribers (primarily for tests)."""
    _subscribers.clear()


def publish(env: EventEnvelope) -> None:
    """Count the event, log a single-line JSON record and notify subscribers.

    Safe: a failing subscriber is logged and never propagates into the ledger
    operation that published the event.
    """
    try:
        get_events_total().labels(env.event.event_type).inc()
    except Exception:
        pass

    line = json.dumps({
        "schema_version": env.schema_version,
        "correlation_id": env.correlation_id,
        "sequence": env.sequence,
        "event": env.event.model_dump(mode="json"),
    }, separators=(",", ":"))
    log.info(line)

    for fn in list(_subscribers):
        try:
            fn(env)
        except Exception:
            log.exception("event subscriber failed for %s", env.event.event_type)
