from decimal import Decimal

import pytest

from orderledger.domain.model import Order
from orderledger.ledger import Adjustment, AdjustmentStore, AdjustmentValidationError


def _noop(adjustable):
    return None


def _order():
    order = Order(number="R1")
    return order, order.add_line_item("Tote", Decimal("10"))


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-3.25"), 7, 1.5, "12.40"])
def test_numeric_amounts_are_accepted_and_normalized(amount):
    order, item = _order()
    store = AdjustmentStore(aggregator=_noop)
    adj = store.create(adjustable=item, order=order, label="Manual", amount=amount)
    assert isinstance(adj.amount, Decimal)
    assert adj.amount == Decimal(str(amount))


@pytest.mark.parametrize("amount", ["abc", None, float("nan"), Decimal("Infinity"), True])
def test_non_numeric_amounts_are_rejected(amount):
    order, item = _order()
    store = AdjustmentStore(aggregator=_noop)
    with pytest.raises(AdjustmentValidationError) as exc:
        store.create(adjustable=item, order=order, label="Manual", amount=amount)
    assert "amount" in exc.value.errors
    assert len(store) == 0


def test_missing_references_and_label_are_reported_together():
    adj = Adjustment(adjustable=None, order=None, label="   ")
    errors = adj.validation_errors()
    assert set(errors) == {"adjustable", "order", "label"}
    with pytest.raises(AdjustmentValidationError):
        adj.validate()


def test_rejected_create_does_not_signal_aggregation():
    calls = []
    store = AdjustmentStore(aggregator=calls.append)
    order, item = _order()
    with pytest.raises(AdjustmentValidationError):
        store.create(adjustable=item, order=order, label="")
    assert calls == []


def test_finalize_on_stored_adjustment_is_validated():
    order, item = _order()
    store = AdjustmentStore(aggregator=_noop)
    adj = store.create(adjustable=item, order=order, label="Manual", amount=Decimal("1"))
    adj.label = ""
    with pytest.raises(AdjustmentValidationError):
        adj.finalize()
    assert adj.is_open
    assert adj.label == "Manual"


def test_missing_label_is_reported_by_validation():
    order, item = _order()
    store = AdjustmentStore(aggregator=_noop)
    with pytest.raises(AdjustmentValidationError) as exc:
        store.create(adjustable=item, order=order, amount=Decimal("1"))
    assert set(exc.value.errors) == {"label"}
    assert len(store) == 0


def test_rejected_save_keeps_committed_values():
    order, item = _order()
    store = AdjustmentStore()
    adj = store.create(adjustable=item, order=order, label="Manual", amount=Decimal("1"))

    adj.label = ""
    adj.amount = "abc"
    with pytest.raises(AdjustmentValidationError):
        store.save(adj)
    stored = store.get(adj.id)
    assert stored.label == "Manual"
    assert stored.amount == Decimal("1")

    # the adjustable can still be aggregated
    store.create(adjustable=item, order=order, label="Other", amount=Decimal("2"))
    assert item.adjustment_total == Decimal("3")


def test_valid_save_becomes_the_committed_state():
    order, item = _order()
    store = AdjustmentStore(aggregator=_noop)
    adj = store.create(adjustable=item, order=order, label="Manual", amount=Decimal("1"))
    adj.amount = "4.50"
    store.save(adj)

    adj.amount = float("nan")
    with pytest.raises(AdjustmentValidationError):
        store.save(adj)
    assert adj.amount == Decimal("4.50")
