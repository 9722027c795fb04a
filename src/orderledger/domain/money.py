"""
Money value object used for display formatting of adjustment amounts.

Formatting follows the conventions of the currency: symbol, number of minor
units, symbol position, thousands separator and decimal mark. The sign always
goes before the symbol, so a credit of 12.5 USD renders as ``-$12.50``.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, NamedTuple

from pydantic import BaseModel, ConfigDict, field_validator


class CurrencyFormat(NamedTuple):
    symbol: str
    exponent: int
    symbol_first: bool
    thousands: str
    decimal_mark: str


CURRENCIES: Dict[str, CurrencyFormat] = {
    "USD": CurrencyFormat("$", 2, True, ",", "."),
    "CAD": CurrencyFormat("$", 2, True, ",", "."),
    "AUD": CurrencyFormat("$", 2, True, ",", "."),
    "EUR": CurrencyFormat("€", 2, True, ".", ","),
    "GBP": CurrencyFormat("£", 2, True, ",", "."),
    "JPY": CurrencyFormat("¥", 0, True, ",", "."),
}


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() keeps 0.1 as 0.1 instead of its binary expansion
        return Decimal(str(value))
    return Decimal(value)


class Money(BaseModel):
    """An amount paired with the ISO 4217 code it is expressed in."""

    model_config = ConfigDict(frozen=True)

    amount: Decimal
    currency: str

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return to_decimal(v)

    @field_validator("currency")
    @classmethod
    def upper_code(cls, v: str) -> str:
        if not v:
            raise ValueError("currency required")
        return v.upper()

    @property
    def rules(self) -> CurrencyFormat:
        return CURRENCIES.get(self.currency, CurrencyFormat(self.currency, 2, False, ",", "."))

    def rounded(self) -> Decimal:
        quantum = Decimal(1).scaleb(-self.rules.exponent)
        return self.amount.quantize(quantum, rounding=ROUND_HALF_UP)

    def format(self) -> str:
        rules = self.rules
        value = self.rounded()
        sign = "-" if value < 0 else ""
        whole, _, frac = f"{abs(value):f}".partition(".")
        groups = []
        while len(whole) > 3:
            groups.insert(0, whole[-3:])
            whole = whole[:-3]
        groups.insert(0, whole)
        number = rules.thousands.join(groups)
        if frac:
            number = f"{number}{rules.decimal_mark}{frac}"
        if rules.symbol_first:
            return f"{sign}{rules.symbol}{number}"
        return f"{sign}{number} {rules.symbol}"

    def __str__(self) -> str:
        return self.format()
