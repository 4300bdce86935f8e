"""
Tests for EMI calculation using Decimal precision.
"""

from datetime import date
from decimal import Decimal

from django.test import TestCase

from apps.core.exceptions import InvalidTermsError
from apps.core.utils import add_months, calculate_emi, monthly_rate, to_money


class CalculateEMITests(TestCase):
    """Test the reducing-balance EMI formula with Decimal."""

    def test_standard_emi(self):
        """Standard loan: 100k, 12%, 12 months."""
        emi = calculate_emi(Decimal('100000'), Decimal('12'), 12)
        self.assertIsInstance(emi, Decimal)
        self.assertEqual(emi, Decimal('8884.88'))

    def test_standard_emi_24_months(self):
        """500k, 12%, 24 months."""
        emi = calculate_emi(Decimal('500000'), Decimal('12'), 24)
        self.assertAlmostEqual(float(emi), 23536.74, places=1)

    def test_zero_interest(self):
        """0% interest → simple division."""
        emi = calculate_emi(Decimal('1200'), Decimal('0'), 12)
        self.assertEqual(emi, Decimal('100.00'))

    def test_zero_interest_rounds_to_paisa(self):
        emi = calculate_emi(Decimal('1000'), Decimal('0'), 3)
        self.assertEqual(emi, Decimal('333.33'))

    def test_one_month_tenure(self):
        """1 month tenure."""
        emi = calculate_emi(Decimal('100000'), Decimal('12'), 1)
        self.assertEqual(emi, Decimal('101000.00'))

    def test_high_rate(self):
        """Rate at the 100% upper bound."""
        emi = calculate_emi(Decimal('100000'), Decimal('100'), 12)
        self.assertGreater(emi, Decimal('100000') / 12)

    def test_large_loan(self):
        """Largest allowed loan over 360 months."""
        emi = calculate_emi(Decimal('10000000'), Decimal('10'), 360)
        self.assertIsInstance(emi, Decimal)
        self.assertGreater(emi, Decimal('80000'))

    def test_invalid_principal(self):
        """Negative principal raises InvalidTermsError."""
        with self.assertRaises(InvalidTermsError):
            calculate_emi(Decimal('-1'), Decimal('10'), 12)

    def test_zero_principal(self):
        with self.assertRaises(InvalidTermsError):
            calculate_emi(Decimal('0'), Decimal('10'), 12)

    def test_negative_rate(self):
        with self.assertRaises(InvalidTermsError):
            calculate_emi(Decimal('100000'), Decimal('-1'), 12)

    def test_zero_tenure(self):
        with self.assertRaises(InvalidTermsError):
            calculate_emi(Decimal('100000'), Decimal('10'), 0)

    def test_fractional_tenure(self):
        with self.assertRaises(InvalidTermsError):
            calculate_emi(Decimal('100000'), Decimal('10'), 1.5)

    def test_non_numeric_principal(self):
        with self.assertRaises(InvalidTermsError):
            calculate_emi('abc', Decimal('10'), 12)

    def test_emi_rounding_to_zero_rejected(self):
        """A principal too small for the tenure would give a 0.00 EMI."""
        with self.assertRaises(InvalidTermsError):
            calculate_emi(Decimal('0.01'), Decimal('0'), 12)
        with self.assertRaises(InvalidTermsError):
            calculate_emi(Decimal('0.05'), Decimal('12'), 12)

    def test_smallest_positive_emi(self):
        emi = calculate_emi(Decimal('0.12'), Decimal('0'), 12)
        self.assertEqual(emi, Decimal('0.01'))

    def test_invalid_terms_is_value_error(self):
        """Callers catching ValueError still see invalid terms."""
        with self.assertRaises(ValueError):
            calculate_emi(Decimal('0'), Decimal('10'), 12)

    def test_returns_two_decimal_places(self):
        """EMI should always be quantized to 2 decimal places."""
        emi = calculate_emi(Decimal('333333'), Decimal('7.77'), 17)
        self.assertEqual(emi, emi.quantize(Decimal('0.01')))

    def test_manual_verification_15_percent(self):
        """Manually verified: P=500000, r=15%/12=0.0125, n=24."""
        emi = calculate_emi(Decimal('500000'), Decimal('15'), 24)
        self.assertEqual(emi, Decimal('24243.32'))

    def test_accepts_int_and_float_inputs(self):
        """calculate_emi should coerce int/float to Decimal."""
        emi1 = calculate_emi(100000, 12, 12)
        emi2 = calculate_emi(100000.0, 12.0, 12)
        emi3 = calculate_emi(Decimal('100000'), Decimal('12'), 12)
        self.assertEqual(emi1, emi3)
        self.assertEqual(emi2, emi3)


class MoneyHelperTests(TestCase):

    def test_to_money_rounds_half_up(self):
        self.assertEqual(to_money(Decimal('10.005')), Decimal('10.01'))
        self.assertEqual(to_money(Decimal('10.004')), Decimal('10.00'))

    def test_monthly_rate(self):
        self.assertEqual(monthly_rate(Decimal('12')), Decimal('0.01'))

    def test_add_months_clamps_month_end(self):
        self.assertEqual(add_months(date(2024, 1, 31), 1), date(2024, 2, 29))
        self.assertEqual(add_months(date(2023, 1, 31), 1), date(2023, 2, 28))

    def test_add_months_crosses_year(self):
        self.assertEqual(add_months(date(2024, 11, 15), 3), date(2025, 2, 15))
