# Requires Python 3.10+
# Uses native type hints: list[x], tuple[x, y], X | None (PEP 585, PEP 604)
from __future__ import annotations

import datetime as dt
import warnings
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Sequence

import numpy as np

from .aggregation import PortfolioMonthlyTotal, aggregate_monthly
from .assumptions import AssumptionSet, NegativeAmortization, tier_label
from .dates import monthly_schedule, to_date, year_fractions
from .errors import InvalidInput
from .scheduled_payments import scheduled_principal

__version__ = "0.1.0"

# Numeric per-month fields, in output order. Shared by the aggregator and
# the DataFrame adapters.
NUMERIC_FIELDS: tuple[str, ...] = (
    "starting_balance",
    "adjusted_balance",
    "accrual_balance",
    "gross_interest",
    "capitalized_interest",
    "scheduled_principal",
    "prepayment",
    "credit_loss",
    "total_principal",
    "remaining_balance",
    "total_payment",
    "servicing_fee",
    "reporting_fee",
    "origination_fee",
    "net_interest",
    "investor_principal",
    "investor_interest",
    "investor_total",
)


# =============================================================================
# Loan Record
# =============================================================================

@dataclass(frozen=True)
class LoanRecord:
    """
    One loan in a portfolio snapshot.

    Rate convention: ``rate`` is an annual decimal (0.0599 for 5.99%).

    Required fields:
        loan_id, balance, rate, term (remaining months), snapshot_date.

    Optional:
        tier: assumption tier label (falls back to "default")
        monthly_payment: contractual payment; level payment is re-amortized
            each month when omitted
        original_balance: base for the straight-line origination fee
        attributes: extra keys available for grouping monthly totals
    """
    loan_id: Any
    balance: float
    rate: float
    term: int
    snapshot_date: dt.date
    tier: str | None = None
    monthly_payment: float | None = None
    original_balance: float | None = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate and normalise fields."""
        if self.loan_id is None:
            raise InvalidInput("loan_id is required")
        if not np.isfinite(self.balance) or self.balance <= 0:
            raise InvalidInput(f"balance must be positive, got {self.balance} (loan {self.loan_id})")
        if not np.isfinite(self.rate) or self.rate < 0:
            raise InvalidInput(f"rate must be non-negative, got {self.rate} (loan {self.loan_id})")
        try:
            whole_term = int(self.term)
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidInput(f"term must be a positive integer, got {self.term} (loan {self.loan_id})") from e
        if whole_term != self.term or whole_term < 1:
            raise InvalidInput(f"term must be a positive integer, got {self.term} (loan {self.loan_id})")
        if self.monthly_payment is not None and self.monthly_payment <= 0:
            raise InvalidInput(
                f"monthly_payment must be positive, got {self.monthly_payment} (loan {self.loan_id})"
            )
        if self.original_balance is not None and self.original_balance <= 0:
            raise InvalidInput(
                f"original_balance must be positive, got {self.original_balance} (loan {self.loan_id})"
            )
        object.__setattr__(self, "term", int(self.term))
        object.__setattr__(self, "balance", float(self.balance))
        object.__setattr__(self, "rate", float(self.rate))
        object.__setattr__(self, "snapshot_date", to_date(self.snapshot_date))
        object.__setattr__(self, "tier", tier_label(self.tier))


# =============================================================================
# Monthly Cash Flows
# =============================================================================

@dataclass(frozen=True)
class MonthlyCashFlowRow:
    """
    One (loan, month) row of a projected schedule.

    Balance flow within the month:
        starting_balance - credit_loss - prepayment = adjusted_balance
        adjusted_balance - scheduled_principal (+ capitalized_interest) = remaining_balance

    capitalized_interest is always zero under the FLOOR policy.
    """
    loan_id: Any
    month: int
    date: dt.date
    tier: str | None
    rate: float
    starting_balance: float
    adjusted_balance: float
    accrual_balance: float
    gross_interest: float
    capitalized_interest: float
    scheduled_principal: float
    prepayment: float
    credit_loss: float
    total_principal: float
    remaining_balance: float
    total_payment: float
    servicing_fee: float
    reporting_fee: float
    origination_fee: float
    net_interest: float
    investor_principal: float
    investor_interest: float
    investor_total: float


@dataclass
class LoanCashflow:
    """
    Columnar container for one loan's projected schedule.

    Every numeric field of MonthlyCashFlowRow is held as an ndarray of length
    ``loan.term`` (index 0 = month 1). ``dates`` holds the payment dates.
    """
    loan: LoanRecord
    dates: list[dt.date]
    month: np.ndarray
    starting_balance: np.ndarray
    adjusted_balance: np.ndarray
    accrual_balance: np.ndarray
    gross_interest: np.ndarray
    capitalized_interest: np.ndarray
    scheduled_principal: np.ndarray
    prepayment: np.ndarray
    credit_loss: np.ndarray
    total_principal: np.ndarray
    remaining_balance: np.ndarray
    total_payment: np.ndarray
    servicing_fee: np.ndarray
    reporting_fee: np.ndarray
    origination_fee: np.ndarray
    net_interest: np.ndarray
    investor_principal: np.ndarray
    investor_interest: np.ndarray
    investor_total: np.ndarray

    def __len__(self) -> int:
        return len(self.dates)

    def rows(self) -> Iterator[MonthlyCashFlowRow]:
        """Yield the schedule as MonthlyCashFlowRow records, in month order."""
        loan = self.loan
        for i, date in enumerate(self.dates):
            values = {name: float(getattr(self, name)[i]) for name in NUMERIC_FIELDS}
            yield MonthlyCashFlowRow(
                loan_id=loan.loan_id,
                month=int(self.month[i]),
                date=date,
                tier=loan.tier,
                rate=loan.rate,
                **values,
            )

    def year_fractions(self) -> np.ndarray:
        """Actual/actual years from the snapshot date to each payment date."""
        return year_fractions(self.loan.snapshot_date, self.dates)


@dataclass
class CashFlowResult:
    """Output of compute_cash_flows."""
    loan_cash_flows: list[LoanCashflow]
    monthly_totals: list[PortfolioMonthlyTotal] | None = None

    def rows(self) -> Iterator[MonthlyCashFlowRow]:
        """All (loan, month) rows, loans in input order."""
        for cf in self.loan_cash_flows:
            yield from cf.rows()


# =============================================================================
# Amortization Engine
# =============================================================================

def project_loan(loan: LoanRecord, assumptions: AssumptionSet) -> LoanCashflow:
    """
    Project one loan month by month.

    Per month, in this order:
        1. SMM = 1 - (1 - CPR)^(1/12); monthly credit cost likewise
        2. credit loss on the starting balance
        3. prepayment (SMM) on the balance after credit loss -> adjusted balance
        4. accrual balance = adjusted (or starting, if interest_on_starting_balance)
        5. gross interest = accrual balance x rate / 12
        6. scheduled principal: level payment re-amortized on adjusted balance,
           remaining term and rate; or supplied payment less interest, floored
           at zero and capped at the adjusted balance
        7. remaining = adjusted - scheduled principal; final month pays off
        8. fees on the accrual balance; origination fee straight-line over term
        9. net interest = gross - fees (- credit loss if enabled), floored at zero
       10. investor principal/interest = share x total principal / net interest

    Each month depends only on the previous month's remaining balance.

    Args:
        loan: LoanRecord to project
        assumptions: AssumptionSet; the loan's tier is resolved with fallback

    Returns:
        LoanCashflow with ``loan.term`` months
    """
    if not isinstance(loan, LoanRecord):
        raise InvalidInput(f"loan must be a LoanRecord, got {type(loan).__name__}")
    try:
        tier = assumptions.resolve(loan.tier)
    except KeyError as e:
        raise InvalidInput(f"No assumption for tier {loan.tier!r} and no default (loan {loan.loan_id})") from e

    smm = tier.smm
    mdr = tier.monthly_credit_cost
    monthly_rate = loan.rate / 12.0
    capitalize = assumptions.negative_amortization is NegativeAmortization.CAPITALIZE

    periods = loan.term
    month = np.arange(1, periods + 1)
    starting_balance = np.zeros(periods)
    adjusted_balance = np.zeros(periods)
    accrual_balance = np.zeros(periods)
    gross_interest = np.zeros(periods)
    capitalized_interest = np.zeros(periods)
    sched_principal = np.zeros(periods)
    prepayment = np.zeros(periods)
    credit_loss = np.zeros(periods)
    remaining_balance = np.zeros(periods)

    shortfall_months = []
    balance = loan.balance
    for i in range(periods):
        remaining_term = periods - i
        starting_balance[i] = balance
        credit_loss[i] = balance * mdr
        after_loss = balance - credit_loss[i]
        prepayment[i] = after_loss * smm
        adjusted_balance[i] = after_loss - prepayment[i]
        accrual_balance[i] = starting_balance[i] if assumptions.interest_on_starting_balance else adjusted_balance[i]
        gross_interest[i] = accrual_balance[i] * monthly_rate

        if remaining_term == 1:
            sched_principal[i] = adjusted_balance[i]
        else:
            sched_principal[i] = scheduled_principal(
                adjusted_balance[i],
                loan.rate,
                remaining_term,
                monthly_payment=loan.monthly_payment,
                interest=gross_interest[i],
                warn=False,
            )
            if loan.monthly_payment is not None and loan.monthly_payment < gross_interest[i]:
                shortfall_months.append(i + 1)
                if capitalize:
                    capitalized_interest[i] = gross_interest[i] - loan.monthly_payment

        balance = max(adjusted_balance[i] - sched_principal[i] + capitalized_interest[i], 0.0)
        remaining_balance[i] = balance

    if shortfall_months:
        action = "shortfall capitalized into balance" if capitalize else "scheduled principal floored at zero"
        warnings.warn(
            f"loan {loan.loan_id}: monthly_payment {loan.monthly_payment:.2f} does not cover interest "
            f"in {len(shortfall_months)} month(s) starting month {shortfall_months[0]}; {action}"
        )

    total_principal = sched_principal + prepayment
    cash_interest = gross_interest - capitalized_interest
    total_payment = cash_interest + total_principal

    servicing_fee = accrual_balance * assumptions.servicing_fee / 12.0
    reporting_fee = accrual_balance * assumptions.reporting_fee / 12.0
    if loan.original_balance is not None:
        origination_fee = np.full(periods, loan.original_balance * assumptions.origination_fee / periods)
    else:
        origination_fee = np.zeros(periods)

    net_interest = cash_interest - servicing_fee - reporting_fee - origination_fee
    if assumptions.credit_loss_reduces_interest:
        net_interest = net_interest - credit_loss
    # investor never pays the servicer
    net_interest = np.maximum(net_interest, 0.0)

    share = assumptions.investor_share
    investor_principal = total_principal * share
    investor_interest = net_interest * share
    investor_total = investor_principal + investor_interest

    return LoanCashflow(
        loan=loan,
        dates=monthly_schedule(loan.snapshot_date, periods),
        month=month,
        starting_balance=starting_balance,
        adjusted_balance=adjusted_balance,
        accrual_balance=accrual_balance,
        gross_interest=gross_interest,
        capitalized_interest=capitalized_interest,
        scheduled_principal=sched_principal,
        prepayment=prepayment,
        credit_loss=credit_loss,
        total_principal=total_principal,
        remaining_balance=remaining_balance,
        total_payment=total_payment,
        servicing_fee=servicing_fee,
        reporting_fee=reporting_fee,
        origination_fee=origination_fee,
        net_interest=net_interest,
        investor_principal=investor_principal,
        investor_interest=investor_interest,
        investor_total=investor_total,
    )


def compute_cash_flows(
    loans: Sequence[LoanRecord],
    assumptions: AssumptionSet,
    *,
    aggregate: bool = True,
    group_by: Sequence[str] = (),
) -> CashFlowResult:
    """
    Project every loan and optionally roll the schedules up by calendar month.

    Loans are projected independently (map), then summed per month and group
    (reduce). All loans are validated before any projection starts.

    Args:
        loans: LoanRecords; loan_id must be unique
        assumptions: AssumptionSet shared by the portfolio
        aggregate: also return portfolio monthly totals
        group_by: key names (LoanRecord fields or attributes) to group totals by

    Returns:
        CashFlowResult with one LoanCashflow per loan, in input order
    """
    loans = list(loans)
    if not loans:
        raise InvalidInput("loans must not be empty")
    if not isinstance(assumptions, AssumptionSet):
        raise InvalidInput(f"assumptions must be an AssumptionSet, got {type(assumptions).__name__}")
    seen = set()
    for loan in loans:
        if not isinstance(loan, LoanRecord):
            raise InvalidInput(f"loans must contain LoanRecord instances, got {type(loan).__name__}")
        if loan.loan_id in seen:
            raise InvalidInput(f"Duplicate loan_id: {loan.loan_id!r}")
        seen.add(loan.loan_id)

    loan_cash_flows = [project_loan(loan, assumptions) for loan in loans]
    monthly_totals = aggregate_monthly(loan_cash_flows, group_by=group_by) if aggregate else None
    return CashFlowResult(loan_cash_flows=loan_cash_flows, monthly_totals=monthly_totals)
