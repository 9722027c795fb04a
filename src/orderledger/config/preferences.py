"""Process-wide store preferences.

Held in a module-level dict because the ledger runs in a single process per
request worker. Initialize once at startup with `configure(settings)`; the
default currency is read at display time by adjustments whose adjustable does
not carry its own currency.
"""
from __future__ import annotations

from typing import Any, Dict

DEFAULT_CURRENCY = "USD"

_default_preferences: Dict[str, Any] = {
    "currency": DEFAULT_CURRENCY,
}

_preferences: Dict[str, Any] = dict(_default_preferences)


def configure(settings: Any) -> None:
    """Copy startup settings into the preference store."""
    _preferences["currency"] = settings.currency


def get_currency() -> str:
    return str(_preferences.get("currency") or DEFAULT_CURRENCY)


def set_preference(name: str, value: Any) -> None:
    _preferences[name] = value


def reset_preferences() -> None:
    """Restore defaults (primarily for tests)."""
    _preferences.clear()
    _preferences.update(_default_preferences)


def snapshot() -> Dict[str, Any]:
    return dict(_preferences)
