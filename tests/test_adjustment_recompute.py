from decimal import Decimal

import pytest

from orderledger.domain.model import Order
from orderledger.domain.sources import (
    CreateItemAdjustments,
    FlatRate,
    ItemTotalRule,
    Promotion,
    TaxRate,
)
from orderledger.ledger.adjustment import Adjustment
from orderledger.ledger.store import AdjustmentStore


class ExplodingSource:
    def compute_amount(self, target):
        raise RuntimeError("calculator unavailable")


class CountingSource:
    def __init__(self, amount):
        self.amount = Decimal(amount)
        self.targets = []

    def compute_amount(self, target):
        self.targets.append(target)
        return self.amount


def make_order():
    order = Order(number="R1", currency="USD")
    item = order.add_line_item("Tote", Decimal("20.00"), quantity=2)
    return order, item


def test_closed_adjustment_is_not_recomputed():
    order, item = make_order()
    src = CountingSource("9.99")
    adj = Adjustment(adjustable=item, order=order, label="Tax", amount=Decimal("1.00"), source=src)
    adj.finalize()
    before = adj.updated_at
    assert adj.recompute() == Decimal("1.00")
    assert adj.amount == Decimal("1.00")
    assert adj.updated_at == before
    assert src.targets == []


def test_manual_adjustment_recompute_returns_existing_amount():
    order, item = make_order()
    for finalized in (False, True):
        adj = Adjustment(adjustable=item, order=order, label="Manual", amount=Decimal("-4.50"), finalized=finalized)
        assert adj.recompute() == Decimal("-4.50")
        assert adj.amount == Decimal("-4.50")


def test_recompute_uses_adjustable_by_default_and_target_when_given():
    order, item = make_order()
    src = CountingSource("3.00")
    adj = Adjustment(adjustable=item, order=order, label="Fee", source=src)
    assert adj.recompute() == Decimal("3.00")
    assert adj.recompute(order) == Decimal("3.00")
    assert src.targets == [item, order]


def test_recompute_tax_writes_amount_and_timestamp():
    order, item = make_order()
    rate = TaxRate(name="VAT", amount=Decimal("0.10"))
    adj = Adjustment(adjustable=item, order=order, label=rate.label(), source=rate)
    before = adj.updated_at
    assert adj.recompute() == Decimal("4.00")
    assert adj.amount == Decimal("4.00")
    assert adj.updated_at >= before


def test_promotion_recompute_sets_eligibility_from_promotion():
    order, item = make_order()
    promo = Promotion(name="Big spender", rules=[ItemTotalRule(Decimal("100"))])
    action = CreateItemAdjustments(promotion=promo, calculator=FlatRate(Decimal("5")))
    adj = Adjustment(adjustable=item, order=order, label=action.label(), source=action)

    assert adj.recompute(item) == Decimal("-5.00")
    assert adj.eligible is promo.eligible(item) is False

    order.add_line_item("Mug", Decimal("70.00"))
    adj.recompute(item)
    assert adj.eligible is promo.eligible(item) is True


def test_source_failure_propagates():
    order, item = make_order()
    adj = Adjustment(adjustable=item, order=order, label="Broken", amount=Decimal("2"), source=ExplodingSource())
    with pytest.raises(RuntimeError):
        adj.recompute()
    assert adj.amount == Decimal("2")


def test_eligibility_failure_rolls_back_amount_write():
    order, item = make_order()
    store = AdjustmentStore(aggregator=lambda adjustable: None)
    promo = Promotion(name="Flaky")
    action = CreateItemAdjustments(promotion=promo, calculator=FlatRate(Decimal("5")))
    adj = store.create(adjustable=item, order=order, label="Promo", amount=Decimal("-1.00"), source=action)

    def boom(adjustable):
        raise RuntimeError("rules unavailable")

    promo.eligible = boom
    with pytest.raises(RuntimeError):
        adj.recompute()
    assert adj.amount == Decimal("-1.00")
    assert adj.eligible is True
