from __future__ import annotations

"""
Adjustment sources: the rules that know how to compute an adjustment amount.

Every source implements ``compute_amount(target) -> Decimal`` where target is
an Order, Shipment or LineItem. Promotion actions additionally carry the
Promotion whose eligibility decides whether their adjustments count.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Literal, Optional, Union

from .model import Adjustable, ZERO, new_id, utcnow

CENTS = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


# ---- Calculators ----

class Calculator:
    """Base calculator; subclasses return an unsigned amount for a target."""

    def compute(self, target: Adjustable) -> Decimal:
        raise NotImplementedError


@dataclass
class FlatRate(Calculator):
    amount: Decimal

    def compute(self, target: Adjustable) -> Decimal:
        return round_money(Decimal(self.amount))


@dataclass
class FlatPercentItemTotal(Calculator):
    percent: Decimal

    def compute(self, target: Adjustable) -> Decimal:
        item_total = getattr(target, "item_total", target.amount)
        return round_money(item_total * Decimal(self.percent) / 100)


@dataclass
class PercentOnLineItem(Calculator):
    percent: Decimal

    def compute(self, target: Adjustable) -> Decimal:
        return round_money(target.amount * Decimal(self.percent) / 100)


# ---- Tax ----

@dataclass(eq=False)
class TaxRate:
    name: str
    amount: Decimal
    included_in_price: bool = False
    id: str = field(default_factory=new_id)

    def compute_amount(self, target: Adjustable) -> Decimal:
        base = target.amount
        rate = Decimal(self.amount)
        if self.included_in_price:
            # portion of a tax-inclusive price that is tax
            return round_money(base - base / (1 + rate))
        return round_money(base * rate)

    def label(self) -> str:
        pct = (Decimal(self.amount) * 100).normalize()
        suffix = " (Included in Price)" if self.included_in_price else ""
        return f"{self.name} {pct:f}%{suffix}"


# ---- Promotions ----

class PromotionRule:
    """Base rule. Subclasses decide eligibility against the order."""

    def eligible(self, order: Any) -> bool:
        return True


@dataclass
class ItemTotalRule(PromotionRule):
    amount: Decimal
    operator: Literal["gt", "gte"] = "gte"

    def eligible(self, order: Any) -> bool:
        item_total = order.item_total
        threshold = Decimal(self.amount)
        if self.operator == "gt":
            return item_total > threshold
        return item_total >= threshold


@dataclass(eq=False)
class Promotion:
    name: str
    code: Optional[str] = None
    rules: List[PromotionRule] = field(default_factory=list)
    match_policy: Literal["all", "any"] = "all"
    active: bool = True
    starts_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    id: str = field(default_factory=new_id)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        if self.starts_at is not None and now < self.starts_at:
            return True
        if self.expires_at is not None and now > self.expires_at:
            return True
        return False

    def eligible(self, promotable: Adjustable) -> bool:
        """Return True if this promotion currently applies to the adjustable."""
        if not self.active or self.is_expired():
            return False
        order = getattr(promotable, "order", None)
        if order is None:
            return False
        if not self.rules:
            return True
        results = (rule.eligible(order) for rule in self.rules)
        if self.match_policy == "any":
            return any(results)
        return all(results)


@dataclass(eq=False)
class PromotionAction:
    promotion: Promotion
    calculator: Calculator
    id: str = field(default_factory=new_id)

    def compute_amount(self, target: Adjustable) -> Decimal:
        # A discount is negative and never larger than what it discounts
        promotion_amount = abs(self.calculator.compute(target))
        return -min(target.amount, promotion_amount)

    def label(self) -> str:
        return f"Promotion ({self.promotion.name})"


class CreateAdjustment(PromotionAction):
    """Order-level discount."""


class CreateItemAdjustments(PromotionAction):
    """Per line item discount."""


class FreeShipping(PromotionAction):
    def __init__(self, promotion: Promotion, id: Optional[str] = None):
        super().__init__(promotion=promotion, calculator=FlatRate(ZERO), id=id or new_id())

    def compute_amount(self, target: Adjustable) -> Decimal:
        return -target.amount


# ---- Returns ----

@dataclass(eq=False)
class ReturnAuthorization:
    number: str
    amount: Decimal
    id: str = field(default_factory=new_id)

    def compute_amount(self, target: Adjustable) -> Decimal:
        return -abs(Decimal(self.amount))


Source = Union[TaxRate, PromotionAction, ReturnAuthorization, None]


def is_promotion_action(source: Source) -> bool:
    """True for the concrete promotion actions, not the bare base class."""
    return isinstance(source, PromotionAction) and type(source) is not PromotionAction


def source_kind(source: Source) -> str:
    if source is None:
        return "manual"
    if isinstance(source, TaxRate):
        return "tax_rate"
    if isinstance(source, PromotionAction):
        return "promotion_action"
    if isinstance(source, ReturnAuthorization):
        return "return_authorization"
    return type(source).__name__.lower()
