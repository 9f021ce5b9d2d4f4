# Requires Python 3.10+
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any, Sequence

import numpy as np

from .errors import InvalidInput

if TYPE_CHECKING:
    from .cashflows import LoanCashflow

__version__ = "0.1.0"


@dataclass(frozen=True)
class PortfolioMonthlyTotal:
    """Sum of every numeric cash-flow field across loans for one (month, group)."""
    date: dt.date
    group: tuple
    loan_count: int
    starting_balance: float = 0.0
    adjusted_balance: float = 0.0
    accrual_balance: float = 0.0
    gross_interest: float = 0.0
    capitalized_interest: float = 0.0
    scheduled_principal: float = 0.0
    prepayment: float = 0.0
    credit_loss: float = 0.0
    total_principal: float = 0.0
    remaining_balance: float = 0.0
    total_payment: float = 0.0
    servicing_fee: float = 0.0
    reporting_fee: float = 0.0
    origination_fee: float = 0.0
    net_interest: float = 0.0
    investor_principal: float = 0.0
    investor_interest: float = 0.0
    investor_total: float = 0.0


SUMMED_FIELDS: tuple[str, ...] = tuple(
    f.name for f in fields(PortfolioMonthlyTotal) if f.name not in ("date", "group", "loan_count")
)


def group_key(cf: LoanCashflow, group_by: Sequence[str]) -> tuple:
    """Resolve grouping keys against LoanRecord fields, then its attributes."""
    loan = cf.loan
    key = []
    for name in group_by:
        if name in ("loan_id", "tier", "rate", "term", "snapshot_date"):
            key.append(getattr(loan, name))
        elif name in loan.attributes:
            key.append(loan.attributes[name])
        else:
            raise InvalidInput(f"Unknown grouping key {name!r} for loan {loan.loan_id!r}")
    return tuple(key)


def _sort_key(item: tuple[dt.date, tuple]) -> tuple:
    date, group = item
    # None first, then native ordering
    return date, tuple((value is not None, value) for value in group)


def _string_sort_key(item: tuple[dt.date, tuple]) -> tuple:
    date, group = item
    # fallback for groups mixing incomparable types
    return date, tuple((value is not None, str(value)) for value in group)


def aggregate_monthly(
    loan_cash_flows: Sequence[LoanCashflow],
    group_by: Sequence[str] = (),
) -> list[PortfolioMonthlyTotal]:
    """
    Roll per-loan schedules up to calendar-month totals.

    Every numeric field is summed across loans sharing a payment date (and
    group, when ``group_by`` is given). Output is ordered by date, then group.

    Args:
        loan_cash_flows: LoanCashflow schedules
        group_by: key names, e.g. ("tier",)

    Returns:
        list of PortfolioMonthlyTotal
    """
    if isinstance(group_by, str):
        group_by = (group_by,)
    sums: dict[tuple[dt.date, tuple], np.ndarray] = {}
    counts: dict[tuple[dt.date, tuple], int] = {}

    for cf in loan_cash_flows:
        group = group_key(cf, group_by)
        # (n_fields, n_months) block for this loan
        block = np.vstack([getattr(cf, name) for name in SUMMED_FIELDS])
        for i, date in enumerate(cf.dates):
            key = (date, group)
            if key in sums:
                sums[key] += block[:, i]
                counts[key] += 1
            else:
                sums[key] = block[:, i].copy()
                counts[key] = 1

    try:
        ordered = sorted(sums, key=_sort_key)
    except TypeError:
        ordered = sorted(sums, key=_string_sort_key)

    totals = []
    for key in ordered:
        date, group = key
        values: dict[str, Any] = dict(zip(SUMMED_FIELDS, (float(v) for v in sums[key])))
        totals.append(PortfolioMonthlyTotal(date=date, group=group, loan_count=counts[key], **values))
    return totals
