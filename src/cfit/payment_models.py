# Requires Python 3.10+
# Uses native type hints: list[x], tuple[x, y], X | None (PEP 585, PEP 604)
from __future__ import annotations

import numpy as np
from scipy.optimize import brentq

from .errors import InvalidInput
from . import scheduled_payments as schpmt

__version__ = "0.1.0"

# =============================================================================
# Prepayment and Credit-Loss Rate Conversions
# =============================================================================
#
# All rates in this module are decimals (0.05 for 5%), unlike the percentage
# convention used by the published prepayment tables.
# =============================================================================

def cpr_to_smm(cpr: float) -> float:
    """
    Convert CPR (Conditional Prepayment Rate) to SMM (Single Monthly Mortality).

    The CPR expresses prepayments as an annually compounded rate; the SMM is
    the fraction of the balance outstanding at the start of a month that
    prepays during the month.

    Formula:
        (1 - SMM)^12 = 1 - CPR

    Rearranged:
        SMM = 1 - (1 - CPR)^(1/12)

    Args:
        cpr: Annual CPR as decimal (0-1)

    Returns:
        SMM as decimal (0-1)
    """
    if not 0.0 <= cpr <= 1.0:
        raise InvalidInput(f"cpr must be in [0, 1], got {cpr}")
    return 1.0 - (1.0 - cpr) ** (1.0 / 12.0)


def smm_to_cpr(smm: float) -> float:
    """
    Convert SMM to CPR.

    Formula:
        CPR = 1 - (1 - SMM)^12
    """
    if not 0.0 <= smm <= 1.0:
        raise InvalidInput(f"smm must be in [0, 1], got {smm}")
    return 1.0 - (1.0 - smm) ** 12.0


def cpr_to_smm_vector(cpr_vector: np.ndarray) -> np.ndarray:
    """
    Vectorized CPR to SMM conversion. See cpr_to_smm for details.

    NaN/inf inputs propagate as NaN/inf (natural numpy propagation).
    """
    if not isinstance(cpr_vector, np.ndarray):
        cpr_vector = np.array(cpr_vector, dtype=float)
    return 1.0 - np.power(1.0 - cpr_vector, 1.0 / 12.0)


def smm_to_cpr_vector(smm_vector: np.ndarray) -> np.ndarray:
    """Vectorized SMM to CPR conversion. See smm_to_cpr for details."""
    if not isinstance(smm_vector, np.ndarray):
        smm_vector = np.array(smm_vector, dtype=float)
    return 1.0 - np.power(1.0 - smm_vector, 12.0)


def annual_to_monthly_rate(annual_rate: float) -> float:
    """
    Convert an annual credit-cost (loss) rate to its monthly equivalent.

    Uses the same compound conversion as CPR -> SMM, so that twelve months
    of the monthly rate remove the same fraction as one year of the annual
    rate:

        m = 1 - (1 - annual)^(1/12)
    """
    if not 0.0 <= annual_rate < 1.0:
        raise InvalidInput(f"annual_rate must be in [0, 1), got {annual_rate}")
    return 1.0 - (1.0 - annual_rate) ** (1.0 / 12.0)


def monthly_to_annual_rate(monthly_rate: float) -> float:
    """Inverse of annual_to_monthly_rate."""
    if not 0.0 <= monthly_rate < 1.0:
        raise InvalidInput(f"monthly_rate must be in [0, 1), got {monthly_rate}")
    return 1.0 - (1.0 - monthly_rate) ** 12.0


def pd_lgd_to_credit_cost(pd: float, lgd: float) -> float:
    """Annual net credit cost from probability of default and loss given default."""
    if not 0.0 <= pd <= 1.0:
        raise InvalidInput(f"pd must be in [0, 1], got {pd}")
    if not 0.0 <= lgd <= 1.0:
        raise InvalidInput(f"lgd must be in [0, 1], got {lgd}")
    return pd * lgd


# -----------------------------------------------------------------------------
# Historical speed recovery
# -----------------------------------------------------------------------------

def implied_cpr(
        beginning_balance: float,
        ending_balance: float,
        rate: float,
        remaining_term: int,
        months: int = 1,
        tolerance: float = 1e-10,
        max_iterations: int = 100
) -> float:
    """
    Recover the constant CPR that explains an observed pay-down.

    Projects ``beginning_balance`` forward ``months`` months under level-payment
    amortization plus a constant SMM (prepayment applied before scheduled
    principal, matching the projection engine) and solves for the CPR whose
    projected ending balance equals ``ending_balance``.

    Uses Brent's method (scipy.optimize.brentq) on CPR in [0, 1).

    Args:
        beginning_balance: Balance at the start of the observation window
        ending_balance: Observed balance at the end of the window
        rate: Annual note rate as decimal
        remaining_term: Months remaining at the start of the window
        months: Length of the observation window in months
        tolerance: Convergence tolerance on CPR
        max_iterations: Maximum iterations for Brent's method

    Returns:
        CPR as decimal (0-1)
    """
    if beginning_balance <= 0:
        raise InvalidInput(f"beginning_balance must be positive, got {beginning_balance}")
    if not 1 <= months <= remaining_term:
        raise InvalidInput(f"months must be in [1, {remaining_term}], got {months}")

    def project(cpr: float) -> float:
        smm = cpr_to_smm(cpr)
        balance = beginning_balance
        for k in range(months):
            balance *= (1.0 - smm)
            balance -= schpmt.scheduled_principal(balance, rate, remaining_term - k)
        return balance

    def objective(cpr: float) -> float:
        return project(cpr) - ending_balance

    try:
        return brentq(objective, 0.0, 1.0 - 1e-12, xtol=tolerance, maxiter=max_iterations)
    except ValueError as e:
        # brentq raises ValueError if no root exists in the interval
        raise InvalidInput(
            f"Could not find CPR for observed balances. "
            f"beginning_balance: {beginning_balance:.2f}, ending_balance: {ending_balance:.2f}, "
            f"window: {months} months. Original error: {e}"
        ) from e
