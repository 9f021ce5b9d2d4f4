"""Effective yield of dated cash flows (Newton phase with bisection fallback)."""

from __future__ import annotations

import datetime as dt
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np

from .cashflows import NUMERIC_FIELDS, CashFlowResult, LoanCashflow
from .dates import to_date, year_fractions
from .errors import DomainError, InvalidInput, NoConvergence

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

# bisection bracket on the annualised rate
LOWER_BOUND = -0.99
UPPER_BOUND = 10.0
MIN_DERIVATIVE = 1e-14
MAX_STALLED_STEPS = 3


class Compounding(Enum):
    """Compounding convention; value is periods per year (0 = continuous)."""
    MONTHLY = 12
    QUARTERLY = 4
    SEMIANNUAL = 2
    ANNUAL = 1
    CONTINUOUS = 0

    @classmethod
    def parse(cls, value: Compounding | str) -> Compounding:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper().replace("-", "").replace("_", "")
            if key in cls.__members__:
                return cls[key]
        raise InvalidInput(f"Unknown compounding convention: {value!r}")


@dataclass(frozen=True)
class CashFlowSeries:
    """Dated cash flows received after an acquisition at ``start_date``."""
    dates: tuple[dt.date, ...]
    amounts: np.ndarray
    start_date: dt.date | None = None

    def __post_init__(self) -> None:
        dates = tuple(to_date(d) for d in self.dates)
        amounts = np.asarray(self.amounts, dtype=float)
        if amounts.ndim != 1:
            raise InvalidInput("amounts must be one-dimensional")
        if len(dates) == 0:
            raise InvalidInput("cash-flow series must not be empty")
        if len(dates) != len(amounts):
            raise InvalidInput(f"dates and amounts differ in length: {len(dates)} != {len(amounts)}")
        if not np.isfinite(amounts).all():
            raise InvalidInput("amounts contain non-finite values")
        object.__setattr__(self, "dates", dates)
        object.__setattr__(self, "amounts", amounts)
        if self.start_date is not None:
            object.__setattr__(self, "start_date", to_date(self.start_date))

    @classmethod
    def from_pairs(cls, pairs: Sequence[tuple], start_date: dt.date | None = None) -> CashFlowSeries:
        """Build from (date, amount) pairs."""
        pairs = list(pairs)
        return cls(
            dates=tuple(d for d, _ in pairs),
            amounts=np.array([a for _, a in pairs], dtype=float),
            start_date=start_date,
        )


# =============================================================================
# Discounting
# =============================================================================

def discount_factors(rate: float, times: np.ndarray, compounding: Compounding | str) -> np.ndarray:
    """
    Discount factors at annualised ``rate`` for times in years.

    Discrete, m periods per year:  DF(t) = (1 + r/m)^(-m t)
    Continuous:                    DF(t) = exp(-r t)
    """
    compounding = Compounding.parse(compounding)
    times = np.asarray(times, dtype=float)
    if compounding is Compounding.CONTINUOUS:
        return np.exp(-rate * times)
    m = compounding.value
    base = 1.0 + rate / m
    if base <= 0.0:
        raise DomainError(f"rate {rate} gives a non-positive discount base under {compounding.name}")
    return np.power(base, -m * times)


def _npv_and_derivative(
    rate: float, times: np.ndarray, amounts: np.ndarray, pv: float, compounding: Compounding
) -> tuple[float, float]:
    df = discount_factors(rate, times, compounding)
    value = float(np.dot(amounts, df)) - pv
    if compounding is Compounding.CONTINUOUS:
        deriv = float(-np.dot(amounts * times, df))
    else:
        deriv = float(-np.dot(amounts * times, df)) / (1.0 + rate / compounding.value)
    return value, deriv


def npv(
    rate: float,
    series: CashFlowSeries,
    pv: float,
    start_date: dt.date | None = None,
    compounding: Compounding | str = Compounding.ANNUAL,
) -> float:
    """Net present value of ``series`` less ``pv`` paid at the start date."""
    compounding = Compounding.parse(compounding)
    start = _start_date(series, start_date)
    times = year_fractions(start, list(series.dates))
    return _npv_and_derivative(rate, times, series.amounts, pv, compounding)[0]


def _start_date(series: CashFlowSeries, start_date: dt.date | None) -> dt.date:
    if start_date is not None:
        return to_date(start_date)
    if series.start_date is not None:
        return series.start_date
    raise InvalidInput("start_date is required when the series carries none")


def _initial_guess(times: np.ndarray, amounts: np.ndarray, pv: float) -> float:
    """Rate implied by the series' simple average return, else 10%."""
    total = float(amounts.sum())
    if total > 0:
        horizon = float(np.dot(amounts, times)) / total
        if horizon > 0:
            guess = (total / pv - 1.0) / horizon
            return min(max(guess, -0.9), 1.0)
    return 0.10


# =============================================================================
# Solver
# =============================================================================

def solve_yield(
    series: CashFlowSeries,
    pv: float,
    start_date: dt.date | None = None,
    compounding: Compounding | str = Compounding.ANNUAL,
    max_iter: int = 100,
    tol: float = 1e-10,
    guess: float | None = None,
) -> float:
    """
    Annualised rate r such that the cash flows discounted at r equal ``pv``.

    Times are actual/actual years from ``start_date``. The solver runs in two
    phases sharing one budget of ``max_iter`` iterations:

    NEWTON
        Newton-Raphson from ``guess`` (default: the simple average return of
        the series). Switches to BISECTION when the iterate is not finite,
        leaves [LOWER_BOUND, UPPER_BOUND], the derivative is ~0, or |NPV|
        fails to shrink for MAX_STALLED_STEPS consecutive steps.
    BISECTION
        Halves [LOWER_BOUND, UPPER_BOUND]; requires a sign change.

    Converged when |NPV| < tol or the step (half-width in bisection) < tol.

    Args:
        series: CashFlowSeries of positive-time cash flows
        pv: Price paid at start_date (> 0)
        start_date: Acquisition date; defaults to series.start_date
        compounding: Compounding convention
        max_iter: Iteration budget across both phases
        tol: Convergence tolerance
        guess: Optional Newton starting point

    Returns:
        Annualised yield as decimal

    Raises:
        InvalidInput: empty/all-zero series, pv <= 0, bad max_iter/tol
        DomainError: a cash-flow date precedes start_date
        NoConvergence: budget exhausted or no sign change on the bracket
    """
    if not isinstance(series, CashFlowSeries):
        series = CashFlowSeries.from_pairs(series)
    compounding = Compounding.parse(compounding)
    if not pv > 0:
        raise InvalidInput(f"pv must be positive, got {pv}")
    if max_iter < 1:
        raise InvalidInput(f"max_iter must be at least 1, got {max_iter}")
    if not tol > 0:
        raise InvalidInput(f"tol must be positive, got {tol}")
    amounts = series.amounts
    if not np.any(amounts != 0.0):
        raise InvalidInput("cash-flow series has no nonzero amount")
    start = _start_date(series, start_date)
    if min(series.dates) < start:
        raise DomainError(f"cash-flow date {min(series.dates)} precedes start_date {start}")

    times = year_fractions(start, list(series.dates))

    def f(r: float) -> float:
        return _npv_and_derivative(r, times, amounts, pv, compounding)[0]

    rate = _initial_guess(times, amounts, pv) if guess is None else float(guess)
    rate = min(max(rate, LOWER_BOUND + 1e-6), UPPER_BOUND - 1e-6)
    phase = "newton"
    best_abs = math.inf
    stalled = 0
    lo, hi = LOWER_BOUND, UPPER_BOUND
    f_lo = f_hi = None
    iteration = 0

    while iteration < max_iter:
        iteration += 1

        if phase == "newton":
            value, deriv = _npv_and_derivative(rate, times, amounts, pv, compounding)
            logger.debug("Newton iter %s: rate=%s npv=%s deriv=%s", iteration, rate, value, deriv)
            if abs(value) < tol:
                return rate
            if not (math.isfinite(value) and math.isfinite(deriv)) or abs(deriv) < MIN_DERIVATIVE:
                phase = "bisection"
                continue
            step = value / deriv
            candidate = rate - step
            if not math.isfinite(candidate) or not lo < candidate < hi:
                logger.debug("Newton left the bracket at iter %s (rate=%s)", iteration, candidate)
                phase = "bisection"
                continue
            if abs(step) < tol:
                return candidate
            if abs(value) >= best_abs:
                stalled += 1
                if stalled >= MAX_STALLED_STEPS:
                    logger.debug("Newton stalled at iter %s; switching to bisection", iteration)
                    phase = "bisection"
                    continue
            else:
                stalled = 0
                best_abs = abs(value)
            rate = candidate
            continue

        if f_lo is None:
            f_lo, f_hi = f(lo), f(hi)
            if f_lo == 0.0:
                return lo
            if f_hi == 0.0:
                return hi
            if f_lo * f_hi > 0:
                raise NoConvergence(
                    f"No sign change of NPV on [{lo}, {hi}]; no yield in range",
                    iterations=iteration,
                    last_rate=rate,
                )
        mid = 0.5 * (lo + hi)
        f_mid = f(mid)
        rate = mid
        if abs(f_mid) < tol or 0.5 * (hi - lo) < tol:
            return mid
        if f_lo * f_mid < 0:
            hi, f_hi = mid, f_mid
        else:
            lo, f_lo = mid, f_mid

    raise NoConvergence(
        f"Yield did not converge within {max_iter} iterations (last rate {rate})",
        iterations=iteration,
        last_rate=rate,
    )


def yield_from_cash_flows(
    cash_flows: CashFlowResult | Sequence[LoanCashflow],
    price: float,
    cash_flow_field: str = "investor_total",
    compounding: Compounding | str = Compounding.MONTHLY,
    max_iter: int = 100,
    tol: float = 1e-10,
) -> float:
    """
    Effective yield of a projected portfolio bought for ``price``.

    Sums ``cash_flow_field`` across loans per payment date and solves from the
    earliest snapshot date.
    """
    loan_cash_flows = cash_flows.loan_cash_flows if isinstance(cash_flows, CashFlowResult) else list(cash_flows)
    if not loan_cash_flows:
        raise InvalidInput("cash_flows must not be empty")
    if cash_flow_field not in NUMERIC_FIELDS:
        raise InvalidInput(f"Unknown cash-flow field: {cash_flow_field!r}")
    by_date: dict[dt.date, float] = {}
    for cf in loan_cash_flows:
        values = getattr(cf, cash_flow_field)
        for date, amount in zip(cf.dates, values):
            by_date[date] = by_date.get(date, 0.0) + float(amount)
    start = min(cf.loan.snapshot_date for cf in loan_cash_flows)
    series = CashFlowSeries.from_pairs(sorted(by_date.items()), start_date=start)
    return solve_yield(series, price, compounding=compounding, max_iter=max_iter, tol=tol)
