# Requires Python 3.10+
# Uses native type hints: list[x], tuple[x, y], X | None (PEP 585, PEP 604)
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .cashflows import NUMERIC_FIELDS, CashFlowResult, LoanCashflow
from .errors import DomainError, InvalidInput

__version__ = "0.1.0"

# WAL principal selector -> schedule field
PRINCIPAL_FIELDS: dict[str, str] = {
    "total": "total_principal",
    "investor": "investor_principal",
}


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class DurationResult:
    """
    Present-value-weighted rate sensitivity of a set of cash flows.

    Fields:
        present_value: sum of discounted cash flows
        macaulay_duration: PV-weighted average time to cash flow (years)
        modified_duration: Macaulay / (1 + y/12)
        convexity: analytical (fixed cash flow) convexity, if requested
        discount_rate: PV-weighted average discount rate used
    """
    present_value: float
    macaulay_duration: float
    modified_duration: float
    convexity: float | None = None
    discount_rate: float = 0.0


# =============================================================================
# Helpers
# =============================================================================

def _loan_cash_flows(cash_flows: CashFlowResult | Sequence[LoanCashflow]) -> list[LoanCashflow]:
    if isinstance(cash_flows, CashFlowResult):
        loan_cash_flows = cash_flows.loan_cash_flows
    elif isinstance(cash_flows, LoanCashflow):
        loan_cash_flows = [cash_flows]
    else:
        loan_cash_flows = list(cash_flows)
    if not loan_cash_flows:
        raise InvalidInput("cash flows must not be empty")
    return loan_cash_flows


def _check_field(cash_flow_field: str) -> None:
    if cash_flow_field not in NUMERIC_FIELDS:
        raise InvalidInput(f"Unknown cash-flow field: {cash_flow_field!r}")


def _discounted(cf: LoanCashflow, rate: float, cash_flow_field: str) -> tuple[np.ndarray, np.ndarray]:
    """(times, discounted flows) for one loan, monthly compounding."""
    base = 1.0 + rate / 12.0
    if base <= 0.0:
        raise DomainError(f"discount rate {rate} gives a non-positive discount base")
    t = cf.year_fractions()
    return t, getattr(cf, cash_flow_field) * np.power(base, -12.0 * t)


# =============================================================================
# Present Value and Duration
# =============================================================================

def present_value(
    cash_flows: CashFlowResult | Sequence[LoanCashflow],
    discount_rate: float | None = None,
    shift: float = 0.0,
    cash_flow_field: str = "investor_total",
) -> float:
    """
    Discounted value of projected cash flows.

    Each loan is discounted at its own rate (or ``discount_rate`` when given)
    plus ``shift``, monthly compounded, over actual/actual years from its
    snapshot date:

        PV = sum_t CF_t (1 + y/12)^(-12 t)
    """
    _check_field(cash_flow_field)
    total = 0.0
    for cf in _loan_cash_flows(cash_flows):
        y = (cf.loan.rate if discount_rate is None else discount_rate) + shift
        total += float(_discounted(cf, y, cash_flow_field)[1].sum())
    return total


def compute_duration(
    cash_flows: CashFlowResult | Sequence[LoanCashflow],
    discount_rate: float | None = None,
    include_convexity: bool = False,
    cash_flow_field: str = "investor_total",
) -> DurationResult:
    """
    Macaulay duration, modified duration and (optionally) convexity.

    Per loan, with y its discount rate and t in actual/actual years:

        Macaulay  = sum(PV_t t) / PV
        Modified  = Macaulay / (1 + y/12)
        Convexity = sum(PV_t t (t + 1/12)) / (PV (1 + y/12)^2)

    Portfolio figures are PV-weighted averages of the loan figures. When
    ``discount_rate`` is given, it replaces every loan's rate, which is the
    same as applying it uniformly to the pooled cash flows.

    Convexity ignores any sensitivity of prepayment speeds to rates.

    Args:
        cash_flows: CashFlowResult or LoanCashflow schedules
        discount_rate: Optional single annual discount rate
        include_convexity: Also compute analytical convexity
        cash_flow_field: Schedule field to discount

    Returns:
        DurationResult
    """
    _check_field(cash_flow_field)
    pv_total = 0.0
    mac_sum = 0.0
    mod_sum = 0.0
    conv_sum = 0.0
    rate_sum = 0.0

    for cf in _loan_cash_flows(cash_flows):
        y = cf.loan.rate if discount_rate is None else discount_rate
        t, pv_t = _discounted(cf, y, cash_flow_field)
        pv = float(pv_t.sum())
        if pv == 0.0:
            continue
        base = 1.0 + y / 12.0
        # PV x metric, so the portfolio average is a plain ratio of sums
        weighted_mac = float(np.dot(pv_t, t))
        mac_sum += weighted_mac
        mod_sum += weighted_mac / base
        if include_convexity:
            conv_sum += float(np.dot(pv_t, t * (t + 1.0 / 12.0))) / base ** 2
        rate_sum += pv * y
        pv_total += pv

    if pv_total <= 0.0:
        raise DomainError(f"present value must be positive, got {pv_total}")

    return DurationResult(
        present_value=pv_total,
        macaulay_duration=mac_sum / pv_total,
        modified_duration=mod_sum / pv_total,
        convexity=conv_sum / pv_total if include_convexity else None,
        discount_rate=rate_sum / pv_total,
    )


def estimate_price_change(result: DurationResult, shift: float, use_convexity: bool = True) -> float:
    """
    Taylor estimate of the PV change for a parallel rate shift.

        dP = P (-D_mod dy + 1/2 C dy^2)
    """
    change = -result.modified_duration * shift
    if use_convexity:
        if result.convexity is None:
            raise InvalidInput("convexity was not computed; use include_convexity=True")
        change += 0.5 * result.convexity * shift ** 2
    return result.present_value * change


# =============================================================================
# Weighted Average Life
# =============================================================================

def compute_wal(
    cash_flows: CashFlowResult | Sequence[LoanCashflow],
    principal_field: str = "total",
) -> float:
    """
    Weighted Average Life in years (undiscounted).

        WAL = sum(Principal_t t) / sum(Principal_t)

    Args:
        cash_flows: CashFlowResult or LoanCashflow schedules
        principal_field: "total" (total principal) or "investor" (investor principal)

    Returns:
        WAL in years from each loan's snapshot date
    """
    try:
        field_name = PRINCIPAL_FIELDS[principal_field]
    except KeyError as e:
        raise InvalidInput(
            f"principal_field must be one of {sorted(PRINCIPAL_FIELDS)}, got {principal_field!r}"
        ) from e

    weighted = 0.0
    principal = 0.0
    for cf in _loan_cash_flows(cash_flows):
        amounts = getattr(cf, field_name)
        weighted += float(np.dot(amounts, cf.year_fractions()))
        principal += float(amounts.sum())

    if principal == 0.0:
        raise InvalidInput("no principal in cash flows; WAL is undefined")
    return weighted / principal
