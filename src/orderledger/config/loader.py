"""
Configuration loader for orderledger.

What it does:
- Reads static settings from `config/config.yaml`.
- Applies environment overrides: `ORDERLEDGER_CURRENCY` for the default
  currency and `PROMETHEUS_PORT` for the metrics exporter port.
- Validates the resulting configuration using Pydantic models.

Where it is used:
- Called by `orderledger.main` to build a `Settings` object, which is then
  handed to `orderledger.config.preferences.configure` at startup.
"""

import os
import pathlib
from typing import Any, Dict

import yaml
from pydantic import BaseModel, field_validator


class MetricsConfig(BaseModel):
    """Prometheus exporter settings."""
    enabled: bool = True
    port: int = 8000


class Settings(BaseModel):
    """Runtime settings assembled from YAML + environment variables."""
    currency: str = "USD"
    metrics: MetricsConfig = MetricsConfig()

    @field_validator("currency")
    @classmethod
    def iso_code(cls, v: str) -> str:
        code = (v or "").strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError(f"currency must be a three-letter ISO 4217 code, got {v!r}")
        return code


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_settings(path: str = "config/config.yaml") -> Settings:
    """Load YAML config, apply env-var overrides, and return Settings.

    A missing file is not an error: defaults plus environment overrides apply.
    """
    config = _read_yaml(path) if pathlib.Path(path).exists() else {}
    currency = os.getenv("ORDERLEDGER_CURRENCY") or config.get("currency", "USD")
    metrics = dict(config.get("metrics") or {})
    port = os.getenv("PROMETHEUS_PORT")
    if port:
        metrics["port"] = int(port)
    return Settings(currency=currency, metrics=MetricsConfig(**metrics))
