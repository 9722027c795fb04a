import pytest

from orderledger.config import preferences
from orderledger.config.loader import Settings, load_settings


def test_load_settings_from_yaml(tmp_path, monkeypatch):
    monkeypatch.delenv("ORDERLEDGER_CURRENCY", raising=False)
    monkeypatch.delenv("PROMETHEUS_PORT", raising=False)
    cfg = tmp_path / "config.yaml"
    cfg.write_text("currency: eur\nmetrics:\n  enabled: false\n  port: 9100\n")
    s = load_settings(str(cfg))
    assert s.currency == "EUR"
    assert s.metrics.enabled is False
    assert s.metrics.port == 9100


def test_env_overrides_yaml(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("currency: USD\n")
    monkeypatch.setenv("ORDERLEDGER_CURRENCY", "JPY")
    monkeypatch.setenv("PROMETHEUS_PORT", "9200")
    s = load_settings(str(cfg))
    assert s.currency == "JPY"
    assert s.metrics.port == 9200


def test_missing_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("ORDERLEDGER_CURRENCY", raising=False)
    monkeypatch.delenv("PROMETHEUS_PORT", raising=False)
    s = load_settings(str(tmp_path / "nope.yaml"))
    assert s.currency == "USD"
    assert s.metrics.port == 8000


@pytest.mark.parametrize("bad", ["US", "dollars", "12$", ""])
def test_invalid_currency_rejected(bad):
    with pytest.raises(Exception):
        Settings(currency=bad)


def test_configure_sets_process_default_currency():
    try:
        preferences.configure(Settings(currency="CAD"))
        assert preferences.get_currency() == "CAD"
        assert preferences.snapshot()["currency"] == "CAD"
    finally:
        preferences.reset_preferences()
    assert preferences.get_currency() == "USD"
