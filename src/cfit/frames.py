"""
pandas adapters: loan snapshots in, schedules and monthly totals out.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Mapping, Sequence

import pandas as pd

from .aggregation import PortfolioMonthlyTotal
from .cashflows import NUMERIC_FIELDS, CashFlowResult, LoanCashflow, LoanRecord
from .errors import InvalidInput

__version__ = "0.1.0"

REQUIRED_COLUMNS = ["loan_id", "balance", "rate", "term", "snapshot_date"]
OPTIONAL_COLUMNS = ["tier", "monthly_payment", "original_balance"]


def _optional(value):
    return None if pd.isna(value) else value


def loans_from_frame(df: pd.DataFrame, column_map: Mapping[str, str] | None = None) -> list[LoanRecord]:
    """
    Build LoanRecords from a loan snapshot table.

    Parameters:
    -----------
    df : pd.DataFrame
        One row per loan
    column_map : mapping, optional
        Source column -> LoanRecord field renames (e.g. {"int_rate": "rate"})

    Returns:
    --------
    list of LoanRecord; columns other than the known fields are carried in
    ``attributes`` for grouping.
    """
    if column_map:
        df = df.rename(columns=dict(column_map))
    missing_cols = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing_cols:
        raise InvalidInput(f"Missing required columns: {missing_cols}")

    extra_cols = [c for c in df.columns if c not in REQUIRED_COLUMNS and c not in OPTIONAL_COLUMNS]
    loans = []
    for row in df.to_dict(orient="records"):
        term = row["term"]
        loans.append(LoanRecord(
            loan_id=row["loan_id"],
            balance=float(row["balance"]),
            rate=float(row["rate"]),
            term=int(term) if float(term).is_integer() else term,
            snapshot_date=row["snapshot_date"],
            tier=_optional(row.get("tier")),
            monthly_payment=_optional(row.get("monthly_payment")),
            original_balance=_optional(row.get("original_balance")),
            attributes={c: row[c] for c in extra_cols},
        ))
    return loans


def cash_flows_to_frame(cash_flows: CashFlowResult | Sequence[LoanCashflow]) -> pd.DataFrame:
    """One row per (loan, month), loans in input order."""
    loan_cash_flows = cash_flows.loan_cash_flows if isinstance(cash_flows, CashFlowResult) else cash_flows
    frames = []
    for cf in loan_cash_flows:
        frame = pd.DataFrame({name: getattr(cf, name) for name in NUMERIC_FIELDS})
        frame.insert(0, "rate", cf.loan.rate)
        frame.insert(0, "tier", [cf.loan.tier] * len(cf))
        frame.insert(0, "date", pd.to_datetime(cf.dates))
        frame.insert(0, "month", cf.month)
        frame.insert(0, "loan_id", cf.loan.loan_id)
        frames.append(frame)
    if not frames:
        return pd.DataFrame(columns=["loan_id", "month", "date", "tier", "rate", *NUMERIC_FIELDS])
    return pd.concat(frames, ignore_index=True)


def totals_to_frame(monthly_totals: Sequence[PortfolioMonthlyTotal]) -> pd.DataFrame:
    """Monthly totals as a table; ``group`` stays a tuple column."""
    df = pd.DataFrame([asdict(t) for t in monthly_totals])
    if not df.empty:
        df["date"] = pd.to_datetime(df["date"])
    return df
