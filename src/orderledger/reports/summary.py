"""
Tabular views of a set of adjustments.

Usage (venv):
  PYTHONPATH=src python -m orderledger.main   # prints the summary for a demo order
"""

from __future__ import annotations

from typing import Iterable

import pandas as pd

from ..domain.model import adjustable_kind
from ..domain.sources import source_kind
from ..ledger.adjustment import Adjustment

FRAME_COLUMNS = [
    "id", "label", "amount", "currency", "adjustable_type", "source_type",
    "state", "eligible", "included", "mandatory",
]


def adjustments_frame(adjustments: Iterable[Adjustment]) -> pd.DataFrame:
    rows = [
        {
            "id": a.id,
            "label": a.label,
            "amount": float(a.amount),
            "currency": a.currency,
            "adjustable_type": adjustable_kind(a.adjustable),
            "source_type": source_kind(a.source),
            "state": a.state,
            "eligible": bool(a.eligible),
            "included": bool(a.included),
            "mandatory": bool(a.mandatory),
        }
        for a in adjustments
    ]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def summarize(adjustments: Iterable[Adjustment]) -> pd.DataFrame:
    """Count and total eligible adjustments per source type.

    Columns: count, amount, included_amount, additional_amount; indexed by source_type.
    """
    df = adjustments_frame(adjustments)
    if not df.empty:
        df = df[df["eligible"].astype(bool)]
    if df.empty:
        return pd.DataFrame(
            columns=["count", "amount", "included_amount", "additional_amount"],
            index=pd.Index([], name="source_type"),
        )
    df = df.assign(
        included_amount=df["amount"].where(df["included"], 0.0),
        additional_amount=df["amount"].where(~df["included"], 0.0),
    )
    out = df.groupby("source_type").agg(
        count=("id", "count"),
        amount=("amount", "sum"),
        included_amount=("included_amount", "sum"),
        additional_amount=("additional_amount", "sum"),
    )
    return out.sort_index()
