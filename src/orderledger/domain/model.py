from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Union
import uuid

ZERO = Decimal("0")


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(eq=False)
class Order:
    number: str
    currency: Optional[str] = None
    line_items: List["LineItem"] = field(default_factory=list)
    shipments: List["Shipment"] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    # cached totals, written by ItemAdjustments
    adjustment_total: Decimal = ZERO
    promo_total: Decimal = ZERO
    included_tax_total: Decimal = ZERO
    additional_tax_total: Decimal = ZERO
    updated_at: Optional[datetime] = None

    @property
    def item_total(self) -> Decimal:
        return sum((li.amount for li in self.line_items), ZERO)

    @property
    def ship_total(self) -> Decimal:
        return sum((s.cost for s in self.shipments), ZERO)

    @property
    def amount(self) -> Decimal:
        return self.item_total

    @property
    def order(self) -> "Order":
        return self

    def add_line_item(self, variant: str, price: Decimal, quantity: int = 1) -> "LineItem":
        li = LineItem(order=self, variant=variant, price=Decimal(price), quantity=quantity)
        self.line_items.append(li)
        return li

    def add_shipment(self, number: str, cost: Decimal) -> "Shipment":
        s = Shipment(order=self, number=number, cost=Decimal(cost))
        self.shipments.append(s)
        return s


@dataclass(eq=False)
class LineItem:
    order: Order
    variant: str
    price: Decimal
    quantity: int = 1
    id: str = field(default_factory=new_id)
    adjustment_total: Decimal = ZERO
    promo_total: Decimal = ZERO
    included_tax_total: Decimal = ZERO
    additional_tax_total: Decimal = ZERO
    updated_at: Optional[datetime] = None

    @property
    def amount(self) -> Decimal:
        return self.price * self.quantity

    @property
    def currency(self) -> Optional[str]:
        return self.order.currency if self.order is not None else None


@dataclass(eq=False)
class Shipment:
    order: Order
    number: str
    cost: Decimal = ZERO
    id: str = field(default_factory=new_id)
    adjustment_total: Decimal = ZERO
    promo_total: Decimal = ZERO
    included_tax_total: Decimal = ZERO
    additional_tax_total: Decimal = ZERO
    updated_at: Optional[datetime] = None

    @property
    def amount(self) -> Decimal:
        return self.cost

    @property
    def currency(self) -> Optional[str]:
        return self.order.currency if self.order is not None else None


Adjustable = Union[Order, Shipment, LineItem]


def adjustable_kind(adjustable: Optional[Adjustable]) -> str:
    if isinstance(adjustable, LineItem):
        return "line_item"
    if isinstance(adjustable, Shipment):
        return "shipment"
    if isinstance(adjustable, Order):
        return "order"
    return "none"
