"""
Economic assumptions for cash-flow projection.

Structure:
  (1) TierAssumption - prepayment and credit-cost speeds for one tier
  (2) NegativeAmortization - policy when a supplied payment does not cover interest
  (3) AssumptionSet - tier map with a mandatory "default" entry, plus fee and
      accounting-treatment settings shared by every loan

AssumptionSet can be built directly, from a plain mapping (from_dict) or from
a YAML file (load_assumptions). Example YAML:

    servicing_fee: 0.0025
    investor_share: 1.0
    tiers:
      default: {cpr: 0.05, credit_cost: 0.01}
      A:       {cpr: 0.08, pd: 0.02, lgd: 0.45}
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import InvalidInput
from .payment_models import annual_to_monthly_rate, cpr_to_smm, pd_lgd_to_credit_cost

__version__ = "0.1.0"

DEFAULT_TIER = "default"


def tier_label(value: Any) -> str | None:
    """Canonical tier label: integral numbers lose their decimal point, then str()."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


# =============================================================================
# ENUMS
# =============================================================================

class NegativeAmortization(Enum):
    """Treatment of interest not covered by a supplied monthly payment."""
    FLOOR = "floor"              # shortfall is forgiven; principal floored at zero
    CAPITALIZE = "capitalize"    # shortfall is added to the remaining balance


# =============================================================================
# (1) TIER ASSUMPTION
# =============================================================================

@dataclass(frozen=True)
class TierAssumption:
    """
    Prepayment and credit-cost speeds for one tier.

    Credit cost is given either directly (``credit_cost``) or as
    ``pd`` x ``lgd``; supplying both is an error.
    """
    cpr: float = 0.0                     # annual CPR, decimal
    credit_cost: float | None = None     # annual net credit cost, decimal
    pd: float | None = None              # annual probability of default
    lgd: float | None = None             # loss given default

    def __post_init__(self) -> None:
        if not 0.0 <= self.cpr < 1.0:
            raise InvalidInput(f"cpr must be in [0, 1), got {self.cpr}")
        if self.credit_cost is not None and (self.pd is not None or self.lgd is not None):
            raise InvalidInput("credit_cost cannot be combined with pd/lgd")
        if (self.pd is None) != (self.lgd is None):
            raise InvalidInput("pd and lgd must be supplied together")
        if not 0.0 <= self.annual_credit_cost < 1.0:
            raise InvalidInput(f"credit cost must be in [0, 1), got {self.annual_credit_cost}")

    @property
    def annual_credit_cost(self) -> float:
        if self.pd is not None and self.lgd is not None:
            return pd_lgd_to_credit_cost(self.pd, self.lgd)
        return self.credit_cost or 0.0

    @property
    def smm(self) -> float:
        return cpr_to_smm(self.cpr)

    @property
    def monthly_credit_cost(self) -> float:
        return annual_to_monthly_rate(self.annual_credit_cost)


# =============================================================================
# (2) ASSUMPTION SET
# =============================================================================

@dataclass
class AssumptionSet:
    """
    Assumptions applied to a loan portfolio.

    Fields:
        tiers: tier label -> TierAssumption; must contain "default"
        servicing_fee: annual servicing fee on the accrual balance (0.0025 = 25bps)
        reporting_fee: annual reporting fee on the accrual balance
        origination_fee: origination fee as a fraction of original balance,
            amortized straight-line over the remaining term
        investor_share: fraction of each loan owned by the investor, in (0, 1]
        credit_loss_reduces_interest: deduct credit losses from net interest
        interest_on_starting_balance: accrue interest on the starting balance
            rather than the balance after credit loss and prepayment
        negative_amortization: policy when a supplied payment < interest
    """
    tiers: dict[str, TierAssumption] = field(default_factory=dict)
    servicing_fee: float = 0.0
    reporting_fee: float = 0.0
    origination_fee: float = 0.0
    investor_share: float = 1.0
    credit_loss_reduces_interest: bool = False
    interest_on_starting_balance: bool = False
    negative_amortization: NegativeAmortization = NegativeAmortization.FLOOR

    def __post_init__(self) -> None:
        self.tiers = {tier_label(label): tier for label, tier in self.tiers.items()}
        if DEFAULT_TIER not in self.tiers:
            raise InvalidInput(f"tiers must contain a {DEFAULT_TIER!r} entry")
        for label, tier in self.tiers.items():
            if not isinstance(tier, TierAssumption):
                raise InvalidInput(f"tier {label!r} must be a TierAssumption, got {type(tier).__name__}")
        for name in ("servicing_fee", "reporting_fee", "origination_fee"):
            value = getattr(self, name)
            if not 0.0 <= value < 1.0:
                raise InvalidInput(f"{name} must be in [0, 1), got {value}")
        if not 0.0 < self.investor_share <= 1.0:
            raise InvalidInput(f"investor_share must be in (0, 1], got {self.investor_share}")
        if isinstance(self.negative_amortization, str):
            self.negative_amortization = _parse_policy(self.negative_amortization)

    def resolve(self, tier: str | None) -> TierAssumption:
        """Exact tier match, else the default tier."""
        tier = tier_label(tier)
        if tier is not None and tier in self.tiers:
            return self.tiers[tier]
        return self.tiers[DEFAULT_TIER]

    @classmethod
    def uniform(
            cls,
            cpr: float = 0.0,
            credit_cost: float = 0.0,
            **kwargs: Any
    ) -> AssumptionSet:
        """Single default tier applied to every loan."""
        return cls(tiers={DEFAULT_TIER: TierAssumption(cpr=cpr, credit_cost=credit_cost)}, **kwargs)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AssumptionSet:
        """
        Build from a plain mapping (e.g. parsed YAML/JSON).

        Scalar settings sit at the top level; ``tiers`` maps labels to
        mappings of TierAssumption fields. Unknown keys are rejected.
        """
        if not isinstance(data, Mapping):
            raise InvalidInput(f"assumptions must be a mapping, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise InvalidInput(f"Unknown assumption keys: {sorted(unknown)}")

        raw_tiers = data.get("tiers") or {}
        if not isinstance(raw_tiers, Mapping):
            raise InvalidInput("tiers must be a mapping of tier label -> assumption")
        tier_keys = {f.name for f in fields(TierAssumption)}
        tiers = {}
        for label, spec in raw_tiers.items():
            spec = spec or {}
            bad = set(spec) - tier_keys
            if bad:
                raise InvalidInput(f"Unknown keys for tier {label!r}: {sorted(bad)}")
            tiers[tier_label(label)] = TierAssumption(**spec)

        kwargs = {k: v for k, v in data.items() if k != "tiers"}
        if "negative_amortization" in kwargs:
            kwargs["negative_amortization"] = _parse_policy(kwargs["negative_amortization"])
        return cls(tiers=tiers, **kwargs)


def _parse_policy(value: NegativeAmortization | str) -> NegativeAmortization:
    if isinstance(value, NegativeAmortization):
        return value
    try:
        return NegativeAmortization(str(value).lower())
    except ValueError as e:
        raise InvalidInput(f"Unknown negative_amortization policy: {value!r}") from e


def load_assumptions(path: str | Path) -> AssumptionSet:
    """Load an AssumptionSet from a YAML file."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return AssumptionSet.from_dict(data or {})
