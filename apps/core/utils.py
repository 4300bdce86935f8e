"""
Core utility functions for the Microloan Manager.

Contains financial calculation helpers used across the application.
All financial calculations use Python's Decimal for precision.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, getcontext

from dateutil.relativedelta import relativedelta

from apps.core.exceptions import InvalidTermsError

# Set high precision for intermediate financial calculations
getcontext().prec = 28

# Smallest currency unit (paisa)
TWO_PLACES = Decimal('0.01')


def to_money(amount) -> Decimal:
    """Quantize an amount to the smallest currency unit (ROUND_HALF_UP)."""
    return Decimal(str(amount)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def monthly_rate(annual_rate) -> Decimal:
    """Convert an annual percentage rate to a monthly fraction."""
    return Decimal(str(annual_rate)) / Decimal('1200')


def validate_terms(principal, annual_rate, tenure_months) -> tuple:
    """
    Coerce and validate raw loan terms.

    Returns:
        (principal, annual_rate) as Decimals.

    Raises:
        InvalidTermsError: If principal <= 0, rate < 0 or tenure < 1.
    """
    try:
        principal = Decimal(str(principal))
        annual_rate = Decimal(str(annual_rate))
    except ArithmeticError:
        raise InvalidTermsError(detail="Principal and interest rate must be numbers.")

    if not principal.is_finite() or principal <= 0:
        raise InvalidTermsError(detail="Principal must be greater than 0.")
    if not annual_rate.is_finite() or annual_rate < 0:
        raise InvalidTermsError(detail="Interest rate cannot be negative.")
    if isinstance(tenure_months, bool) or not isinstance(tenure_months, int):
        raise InvalidTermsError(detail="Tenure must be a whole number of months.")
    if tenure_months < 1:
        raise InvalidTermsError(detail="Tenure must be at least 1 month.")

    return principal, annual_rate


def calculate_emi(
    principal: Decimal,
    annual_rate: Decimal,
    tenure_months: int,
) -> Decimal:
    """
    Calculate EMI using the reducing-balance annuity formula.

    EMI = P × r × (1+r)^n / ((1+r)^n - 1)

    Where:
        P = principal (loan amount)
        r = monthly interest rate (annual_rate / 12 / 100)
        n = tenure in months

    Args:
        principal: Loan amount (must be > 0). Accepts Decimal, float, or int.
        annual_rate: Annual interest rate as percentage (e.g., 12 for 12%).
        tenure_months: Number of months for repayment (must be >= 1).

    Returns:
        Monthly EMI amount as Decimal, quantized to 2 decimal places (ROUND_HALF_UP).

    Raises:
        InvalidTermsError: If inputs are invalid or the EMI rounds to zero.
    """
    principal, annual_rate = validate_terms(principal, annual_rate, tenure_months)

    # Handle 0% interest rate edge case
    if annual_rate == 0:
        emi = to_money(principal / Decimal(tenure_months))
    else:
        rate = monthly_rate(annual_rate)

        one_plus_r = Decimal('1') + rate
        power_term = one_plus_r ** tenure_months
        emi = to_money(principal * rate * power_term / (power_term - Decimal('1')))

    if emi <= 0:
        raise InvalidTermsError(
            detail=f"Principal {principal} is too small to spread over {tenure_months} months."
        )

    return emi


def add_months(start: date, months: int) -> date:
    """
    Return the calendar date `months` after `start`.

    Month ends are clamped, so 31 Jan + 1 month is 28/29 Feb.
    """
    return start + relativedelta(months=months)
