import json
import logging
from decimal import Decimal

from orderledger.domain.model import Order
from orderledger.events import bus
from orderledger.events.schema import (
    AdjustableTotalsUpdated,
    AdjustmentCreated,
    AdjustmentDestroyed,
    AdjustmentStateChanged,
    EventEnvelope,
)
from orderledger.ledger import AdjustmentStore


def test_publish_logs_single_line_json(caplog):
    caplog.set_level(logging.INFO, logger="orderledger.events")
    evt = AdjustmentCreated(
        ts=1, order_id="o1", adjustable_type="order", adjustable_id="o1",
        adjustment_id="a1", label="Promo", source_type="manual", amount=Decimal("-12.50"),
    )
    bus.publish(EventEnvelope(correlation_id="order:R1", sequence=3, event=evt))
    lines = [r.message for r in caplog.records if r.name == "orderledger.events"]
    assert lines
    payload = json.loads(lines[-1])
    assert payload["correlation_id"] == "order:R1"
    assert payload["sequence"] == 3
    assert payload["event"]["event_type"] == "adjustment_created"
    assert payload["event"]["amount"] == "-12.50"


def test_store_lifecycle_publishes_events():
    published = []
    bus.subscribe(published.append)
    try:
        store = AdjustmentStore()
        order = Order(number="R9", currency="USD")
        adj = store.create(adjustable=order, order=order, label="Manual", amount=Decimal("2"))
        adj.finalize()
        store.destroy(adj)
    finally:
        bus.unsubscribe(published.append)

    types = [type(env.event) for env in published]
    # totals are written by the aggregation that commits each create and destroy
    assert types == [
        AdjustableTotalsUpdated,
        AdjustmentCreated,
        AdjustmentStateChanged,
        AdjustableTotalsUpdated,
        AdjustmentDestroyed,
    ]
    assert all(env.correlation_id == "order:R9" for env in published)
    sequences = [env.sequence for env in published]
    assert sequences == sorted(sequences)
    assert published[2].event.state == "closed"


def test_failing_subscriber_does_not_break_ledger(caplog):
    def broken(env):
        raise RuntimeError("subscriber down")

    bus.subscribe(broken)
    try:
        store = AdjustmentStore(aggregator=lambda adjustable: None)
        order = Order(number="R10")
        adj = store.create(adjustable=order, order=order, label="Manual", amount=Decimal("1"))
    finally:
        bus.unsubscribe(broken)
    assert store.get(adj.id) is adj
    assert any("event subscriber failed" in r.message for r in caplog.records)
