# Requires Python 3.10+
from __future__ import annotations

__version__ = "0.1.0"


# =============================================================================
# Error Taxonomy
# =============================================================================
#
# InvalidInput and DomainError subclass ValueError so callers that already
# catch ValueError keep working. NoConvergence subclasses RuntimeError.
# =============================================================================

class CfitError(Exception):
    """Base class for all cfit errors."""


class InvalidInput(CfitError, ValueError):
    """A record or configuration field is malformed or out of domain."""


class DomainError(CfitError, ValueError):
    """The request is mathematically invalid (e.g. dates before the start date)."""


class NoConvergence(CfitError, RuntimeError):
    """
    The yield solver exhausted its iteration budget.

    Attributes:
        iterations: Number of iterations performed
        last_rate: Last iterate (or bracket midpoint) when the solver stopped
    """

    def __init__(self, message: str, iterations: int = 0, last_rate: float | None = None):
        super().__init__(message)
        self.iterations = iterations
        self.last_rate = last_rate
