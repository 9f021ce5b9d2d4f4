# Requires Python 3.10+
"""
cfit: loan-portfolio cash-flow projection and fixed-income risk metrics.

Pipeline: LoanRecords + AssumptionSet -> compute_cash_flows (per-loan
monthly schedules, portfolio monthly totals) -> solve_yield /
compute_duration / compute_wal.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Errors
from cfit.errors import (
    CfitError,
    InvalidInput,
    DomainError,
    NoConvergence,
)

# Dates and day count
from cfit.dates import (
    to_date,
    add_months,
    monthly_schedule,
    year_fraction,
    year_fractions,
)

# Rate conversions and scheduled payments
from cfit.payment_models import (
    cpr_to_smm,
    smm_to_cpr,
    cpr_to_smm_vector,
    smm_to_cpr_vector,
    annual_to_monthly_rate,
    monthly_to_annual_rate,
    pd_lgd_to_credit_cost,
    implied_cpr,
)
from cfit.scheduled_payments import (
    annuity_factor,
    level_payment,
    scheduled_principal,
)

# Assumptions
from cfit.assumptions import (
    DEFAULT_TIER,
    TierAssumption,
    NegativeAmortization,
    AssumptionSet,
    load_assumptions,
)

# Cash flows and aggregation
from cfit.cashflows import (
    LoanRecord,
    MonthlyCashFlowRow,
    LoanCashflow,
    CashFlowResult,
    project_loan,
    compute_cash_flows,
)
from cfit.aggregation import (
    PortfolioMonthlyTotal,
    aggregate_monthly,
)

# Yield and risk
from cfit.yields import (
    Compounding,
    CashFlowSeries,
    discount_factors,
    npv,
    solve_yield,
    yield_from_cash_flows,
)
from cfit.risk import (
    DurationResult,
    present_value,
    compute_duration,
    estimate_price_change,
    compute_wal,
)

# pandas adapters
from cfit.frames import (
    loans_from_frame,
    cash_flows_to_frame,
    totals_to_frame,
)

__all__ = [
    "__version__",
    # Errors
    "CfitError",
    "InvalidInput",
    "DomainError",
    "NoConvergence",
    # Dates
    "to_date",
    "add_months",
    "monthly_schedule",
    "year_fraction",
    "year_fractions",
    # Rate conversions
    "cpr_to_smm",
    "smm_to_cpr",
    "cpr_to_smm_vector",
    "smm_to_cpr_vector",
    "annual_to_monthly_rate",
    "monthly_to_annual_rate",
    "pd_lgd_to_credit_cost",
    "implied_cpr",
    "annuity_factor",
    "level_payment",
    "scheduled_principal",
    # Assumptions
    "DEFAULT_TIER",
    "TierAssumption",
    "NegativeAmortization",
    "AssumptionSet",
    "load_assumptions",
    # Cash flows
    "LoanRecord",
    "MonthlyCashFlowRow",
    "LoanCashflow",
    "CashFlowResult",
    "project_loan",
    "compute_cash_flows",
    "PortfolioMonthlyTotal",
    "aggregate_monthly",
    # Yield and risk
    "Compounding",
    "CashFlowSeries",
    "discount_factors",
    "npv",
    "solve_yield",
    "yield_from_cash_flows",
    "DurationResult",
    "present_value",
    "compute_duration",
    "estimate_price_change",
    "compute_wal",
    # pandas adapters
    "loans_from_frame",
    "cash_flows_to_frame",
    "totals_to_frame",
]
