"""
Unit tests for the assumption set: validation, tier resolution and loading.

Version: 0.1.0
Status: Active
"""

import tempfile
import unittest
from pathlib import Path

from cfit.assumptions import (
    DEFAULT_TIER,
    AssumptionSet,
    NegativeAmortization,
    TierAssumption,
    load_assumptions,
)
from cfit.errors import InvalidInput
from cfit.payment_models import annual_to_monthly_rate, cpr_to_smm

EXAMPLE_YAML = """
servicing_fee: 0.0025
reporting_fee: 0.0005
investor_share: 0.9
credit_loss_reduces_interest: true
negative_amortization: capitalize
tiers:
  default:
    cpr: 0.05
    credit_cost: 0.01
  A:
    cpr: 0.08
    pd: 0.02
    lgd: 0.45
"""


class TestTierAssumption(unittest.TestCase):

    def test_direct_credit_cost(self):
        tier = TierAssumption(cpr=0.05, credit_cost=0.01)
        self.assertEqual(tier.annual_credit_cost, 0.01)
        self.assertAlmostEqual(tier.smm, cpr_to_smm(0.05), 12)
        self.assertAlmostEqual(tier.monthly_credit_cost, annual_to_monthly_rate(0.01), 12)

    def test_pd_lgd_credit_cost(self):
        tier = TierAssumption(cpr=0.05, pd=0.04, lgd=0.5)
        self.assertAlmostEqual(tier.annual_credit_cost, 0.02, 12)

    def test_defaults_to_zero_speeds(self):
        tier = TierAssumption()
        self.assertEqual(tier.smm, 0.0)
        self.assertEqual(tier.monthly_credit_cost, 0.0)

    def test_invalid_combinations(self):
        with self.assertRaises(InvalidInput):
            TierAssumption(credit_cost=0.01, pd=0.02, lgd=0.4)
        with self.assertRaises(InvalidInput):
            TierAssumption(pd=0.02)
        with self.assertRaises(InvalidInput):
            TierAssumption(cpr=-0.01)
        with self.assertRaises(InvalidInput):
            TierAssumption(credit_cost=1.0)


class TestAssumptionSet(unittest.TestCase):

    def test_default_tier_required(self):
        with self.assertRaises(InvalidInput):
            AssumptionSet(tiers={"A": TierAssumption(cpr=0.05)})

    def test_resolve_exact_then_default(self):
        a = TierAssumption(cpr=0.08)
        d = TierAssumption(cpr=0.05)
        assumptions = AssumptionSet(tiers={DEFAULT_TIER: d, "A": a})
        self.assertIs(assumptions.resolve("A"), a)
        self.assertIs(assumptions.resolve("Z"), d)
        self.assertIs(assumptions.resolve(None), d)

    def test_investor_share_bounds(self):
        for share in (0.0, -0.5, 1.01):
            with self.subTest(share=share):
                with self.assertRaises(InvalidInput):
                    AssumptionSet.uniform(investor_share=share)
        self.assertEqual(AssumptionSet.uniform(investor_share=1.0).investor_share, 1.0)

    def test_fee_bounds(self):
        with self.assertRaises(InvalidInput):
            AssumptionSet.uniform(servicing_fee=-0.001)

    def test_policy_from_string(self):
        assumptions = AssumptionSet.uniform(negative_amortization="capitalize")
        self.assertIs(assumptions.negative_amortization, NegativeAmortization.CAPITALIZE)
        with self.assertRaises(InvalidInput):
            AssumptionSet.uniform(negative_amortization="sometimes")

    def test_uniform_defaults(self):
        assumptions = AssumptionSet.uniform()
        self.assertFalse(assumptions.credit_loss_reduces_interest)
        self.assertFalse(assumptions.interest_on_starting_balance)
        self.assertIs(assumptions.negative_amortization, NegativeAmortization.FLOOR)


class TestLoading(unittest.TestCase):

    def test_from_dict(self):
        assumptions = AssumptionSet.from_dict({
            "servicing_fee": 0.0025,
            "tiers": {"default": {"cpr": 0.05, "credit_cost": 0.01}},
        })
        self.assertEqual(assumptions.servicing_fee, 0.0025)
        self.assertEqual(assumptions.resolve("X").cpr, 0.05)

    def test_unknown_keys_rejected(self):
        with self.assertRaises(InvalidInput):
            AssumptionSet.from_dict({"servicing": 0.0025, "tiers": {"default": {}}})
        with self.assertRaises(InvalidInput):
            AssumptionSet.from_dict({"tiers": {"default": {"speed": 0.05}}})

    def test_missing_default_rejected(self):
        with self.assertRaises(InvalidInput):
            AssumptionSet.from_dict({"tiers": {"A": {"cpr": 0.05}}})

    def test_load_yaml(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "assumptions.yaml"
            path.write_text(EXAMPLE_YAML, encoding="utf-8")
            assumptions = load_assumptions(path)

        self.assertEqual(assumptions.servicing_fee, 0.0025)
        self.assertEqual(assumptions.reporting_fee, 0.0005)
        self.assertEqual(assumptions.investor_share, 0.9)
        self.assertTrue(assumptions.credit_loss_reduces_interest)
        self.assertIs(assumptions.negative_amortization, NegativeAmortization.CAPITALIZE)
        self.assertAlmostEqual(assumptions.resolve("A").annual_credit_cost, 0.009, 12)
        self.assertEqual(assumptions.resolve("B").cpr, 0.05)


if __name__ == "__main__":
    unittest.main()
