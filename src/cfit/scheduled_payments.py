# Requires Python 3.10+
from __future__ import annotations

import warnings

from .errors import InvalidInput

__version__ = "0.1.0"


# =============================================================================
# Level-Payment Amortization
# =============================================================================

def annuity_factor(rate: float, remaining_term: int) -> float:
    """
    Level payment per unit of balance for a fully amortizing loan.

    Formula:
        AF = r / (1 - (1 + r)^-M)

    Where:
        r = Monthly rate (annual rate / 12)
        M = Remaining term (months)

    With r = 0 the loan amortizes straight-line: AF = 1 / M.

    Args:
        rate: Annual rate as decimal (e.g., 0.0599 for 5.99%)
        remaining_term: Remaining term in months

    Returns:
        Payment as a fraction of the current balance

    Raises:
        InvalidInput: If remaining_term is not positive
        InvalidInput: If rate is negative
    """
    if remaining_term <= 0:
        raise InvalidInput(f"remaining_term must be positive, got {remaining_term}")
    if rate < 0:
        raise InvalidInput(f"rate must be non-negative, got {rate}")
    r = rate / 12.0
    if r == 0.0:
        return 1.0 / remaining_term
    return r / (1.0 - (1.0 + r) ** (-remaining_term))


def level_payment(balance: float, rate: float, remaining_term: int) -> float:
    """Contractual level monthly payment on ``balance`` over ``remaining_term`` months."""
    return balance * annuity_factor(rate, remaining_term)


def scheduled_principal(
        balance: float,
        rate: float,
        remaining_term: int,
        monthly_payment: float | None = None,
        interest: float | None = None,
        warn: bool = True
) -> float:
    """
    Scheduled principal for one month.

    Without ``monthly_payment`` the level payment is re-amortized on the
    current balance, rate and remaining term. With ``monthly_payment`` the
    principal is the payment less interest, floored at zero and capped at the
    balance. When the payment does not cover the interest the shortfall is
    NOT added to principal; a warning is emitted unless ``warn`` is False.

    Args:
        balance: Balance on which principal is scheduled
        rate: Annual rate as decimal
        remaining_term: Remaining term in months (including this month)
        monthly_payment: Optional contractual payment
        interest: Interest due this month; defaults to balance * rate / 12
        warn: Emit a warning when the payment does not cover interest

    Returns:
        Scheduled principal, in [0, balance]
    """
    if balance <= 0.0:
        return 0.0
    if interest is None:
        interest = balance * rate / 12.0
    if monthly_payment is None:
        principal = level_payment(balance, rate, remaining_term) - balance * rate / 12.0
    else:
        principal = monthly_payment - interest
        if principal < 0.0 and warn:
            warnings.warn(
                f"monthly_payment {monthly_payment:.2f} does not cover interest {interest:.2f}; "
                f"scheduled principal floored at zero"
            )
    return min(max(principal, 0.0), balance)
