"""
Main entrypoint for orderledger.

What it does:
- Loads runtime settings from `config/config.yaml` and environment overrides
  (`ORDERLEDGER_CURRENCY`, `PROMETHEUS_PORT`).
- Initializes process-wide preferences (default currency) once at startup.
- Starts the Prometheus exporter unless disabled in settings.
- Builds a demo order (one line item, one shipment), attaches tax, promotion,
  shipping and manual adjustments through the AdjustmentStore, finalizes the
  shipping charge, and logs the resulting totals and per-source summary.

Where it is used:
- Invoked by `python -m orderledger.main` or the `orderledger-demo` script.
"""
import logging
import os
import time
from decimal import Decimal
from typing import Optional

from orderledger.config.loader import load_settings
from orderledger.config import preferences
from orderledger.domain.model import Order
from orderledger.domain.sources import (
    CreateItemAdjustments,
    ItemTotalRule,
    PercentOnLineItem,
    Promotion,
    TaxRate,
)
from orderledger.ledger import AdjustmentStore
from orderledger.metrics.core import start_server_safe
from orderledger.reports.summary import summarize


def run_demo(store: Optional[AdjustmentStore] = None) -> Order:
    if store is None:
        store = AdjustmentStore()
    order = Order(number="R100000001")
    item = order.add_line_item("Canvas Tote", Decimal("15.99"), quantity=2)
    shipment = order.add_shipment("H100000001", Decimal("5.00"))

    promo = Promotion(name="10% off over $30", rules=[ItemTotalRule(Decimal("30"))])
    action = CreateItemAdjustments(promotion=promo, calculator=PercentOnLineItem(Decimal("10")))
    store.create(adjustable=item, order=order, source=action, label=action.label())

    tax = TaxRate(name="Sales Tax", amount=Decimal("0.05"))
    store.create(adjustable=item, order=order, source=tax, label=tax.label())

    shipping = store.create(
        adjustable=shipment, order=order, label="Shipping", amount=shipment.cost, mandatory=True,
    )
    shipping.finalize()
    store.create(adjustable=order, order=order, label="Gift wrap", amount=Decimal("0"), mandatory=True)

    for adj in store.for_order(order):
        logging.info(f"adjustment: {adj.label} {adj.display_amount} ({adj.state}, eligible={adj.eligible})")
    logging.info(
        f"line item totals: adjustment_total={item.adjustment_total} promo_total={item.promo_total} "
        f"additional_tax_total={item.additional_tax_total}"
    )
    logging.info(f"summary by source:\n{summarize(store.for_order(order))}")
    return order


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    settings = load_settings(os.getenv("ORDERLEDGER_CONFIG", "config/config.yaml"))
    preferences.configure(settings)
    logging.info(f"Default currency: {settings.currency}")

    if settings.metrics.enabled:
        start_server_safe(settings.metrics.port)

    run_demo()
    logging.info("adjustment demo complete")

    hold = int(os.getenv("HOLD_METRICS_SECONDS", "0"))
    if hold > 0:
        logging.info(f"holding metrics server for {hold}s before exit")
        time.sleep(hold)


if __name__ == "__main__":
    main()
