"""
Unit tests for date helpers and the actual/actual day count.

Version: 0.1.0
Status: Active

================================================================================
FUNCTIONS UNDER TEST:
================================================================================
- to_date: date-like normalisation
- add_months / monthly_schedule: calendar month arithmetic with month-end clamp
- year_fraction / year_fractions: actual/actual (ISDA) year fractions
================================================================================
"""

import datetime as dt
import unittest

import numpy as np
import pandas as pd

from cfit.dates import add_months, monthly_schedule, to_date, year_fraction, year_fractions
from cfit.errors import InvalidInput

DECIMAL_PLACES_FOR_ASSERTIONS: int = 12


class TestToDate(unittest.TestCase):

    def test_accepts_common_date_likes(self):
        expected = dt.date(2025, 1, 1)
        for value in (
            expected,
            dt.datetime(2025, 1, 1, 13, 30),
            pd.Timestamp("2025-01-01"),
            np.datetime64("2025-01-01"),
            "2025-01-01",
            "20250101",
        ):
            with self.subTest(value=value):
                self.assertEqual(to_date(value), expected)

    def test_rejects_unparseable(self):
        with self.assertRaises(InvalidInput):
            to_date("01/02/2025")
        with self.assertRaises(InvalidInput):
            to_date(12345)

    def test_rejects_missing(self):
        for value in (None, pd.NaT, np.nan, np.datetime64("NaT")):
            with self.subTest(value=value):
                with self.assertRaises(InvalidInput):
                    to_date(value)


class TestMonthArithmetic(unittest.TestCase):

    def test_month_end_clamp(self):
        self.assertEqual(add_months(dt.date(2025, 1, 31), 1), dt.date(2025, 2, 28))
        self.assertEqual(add_months(dt.date(2024, 1, 31), 1), dt.date(2024, 2, 29))
        self.assertEqual(add_months(dt.date(2025, 1, 31), 3), dt.date(2025, 4, 30))

    def test_monthly_schedule(self):
        schedule = monthly_schedule(dt.date(2025, 1, 1), 13)
        self.assertEqual(len(schedule), 13)
        self.assertEqual(schedule[0], dt.date(2025, 2, 1))
        self.assertEqual(schedule[-1], dt.date(2026, 2, 1))

    def test_schedule_from_month_end_does_not_drift(self):
        # each date is computed from the start, not the previous date
        schedule = monthly_schedule(dt.date(2025, 1, 31), 3)
        self.assertEqual(schedule, [dt.date(2025, 2, 28), dt.date(2025, 3, 31), dt.date(2025, 4, 30)])


class TestActualActual(unittest.TestCase):

    def test_whole_years(self):
        self.assertEqual(year_fraction(dt.date(2025, 1, 1), dt.date(2026, 1, 1)), 1.0)
        self.assertEqual(year_fraction(dt.date(2024, 1, 1), dt.date(2025, 1, 1)), 1.0)
        self.assertEqual(year_fraction(dt.date(2023, 1, 1), dt.date(2028, 1, 1)), 5.0)

    def test_within_leap_year(self):
        self.assertAlmostEqual(
            year_fraction(dt.date(2024, 1, 1), dt.date(2024, 3, 1)), 60 / 366, DECIMAL_PLACES_FOR_ASSERTIONS
        )

    def test_span_crossing_into_leap_year(self):
        # 2023-07-01 -> 2024-07-01: 184 days of 2023, 182 days of 2024
        expected = 184 / 365 + 182 / 366
        self.assertAlmostEqual(
            year_fraction(dt.date(2023, 7, 1), dt.date(2024, 7, 1)), expected, DECIMAL_PLACES_FOR_ASSERTIONS
        )

    def test_reversed_span_is_negative(self):
        a, b = dt.date(2024, 3, 15), dt.date(2025, 8, 2)
        self.assertAlmostEqual(year_fraction(b, a), -year_fraction(a, b), DECIMAL_PLACES_FOR_ASSERTIONS)

    def test_vectorised(self):
        start = dt.date(2025, 1, 1)
        dates = monthly_schedule(start, 24)
        fractions = year_fractions(start, dates)
        self.assertEqual(fractions.shape, (24,))
        self.assertTrue(np.all(np.diff(fractions) > 0))
        self.assertAlmostEqual(fractions[11], 1.0, DECIMAL_PLACES_FOR_ASSERTIONS)
        self.assertAlmostEqual(fractions[23], 2.0, DECIMAL_PLACES_FOR_ASSERTIONS)


if __name__ == "__main__":
    unittest.main()
