"""
EMI schedule generation.

Builds the full amortization table for a set of loan terms. Pure
computation: no database access, safe to call from any request.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from apps.core.exceptions import InvalidTermsError
from apps.core.utils import (
    add_months,
    calculate_emi,
    monthly_rate,
    to_money,
    validate_terms,
)

ZERO = Decimal('0.00')


@dataclass(frozen=True)
class LoanTerms:
    """Terms a schedule is generated from."""

    principal: Decimal
    annual_rate: Decimal
    tenure_months: int
    start_date: date

    @classmethod
    def create(cls, principal, annual_rate, tenure_months, start_date) -> "LoanTerms":
        """Validate and coerce raw values into LoanTerms."""
        principal, annual_rate = validate_terms(principal, annual_rate, tenure_months)
        return cls(
            principal=to_money(principal),
            annual_rate=annual_rate,
            tenure_months=tenure_months,
            start_date=start_date,
        )


@dataclass(frozen=True)
class EMIScheduleItem:
    """One installment of an amortization schedule."""

    emi_number: int
    due_date: date
    amount: Decimal
    principal_component: Decimal
    interest_component: Decimal
    remaining_balance: Decimal


@dataclass(frozen=True)
class EMISchedule:
    """Ordered installments plus their aggregates."""

    terms: LoanTerms
    emi_amount: Decimal
    items: tuple

    @property
    def total_amount(self) -> Decimal:
        return sum((item.amount for item in self.items), ZERO)

    @property
    def total_interest(self) -> Decimal:
        return sum((item.interest_component for item in self.items), ZERO)

    @property
    def maturity_date(self) -> date:
        return self.items[-1].due_date

    def __len__(self):
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


def build_schedule(terms: LoanTerms) -> EMISchedule:
    """
    Generate the reducing-balance schedule for `terms`.

    Interest is rounded per period before it is taken out of the fixed
    EMI. The last installment takes whatever principal is left, so the
    principal components always add up to the original principal and the
    final remaining balance is exactly zero.

    Raises:
        InvalidTermsError: If the terms are invalid or would leave an
            installment of 0.00.
    """
    principal, _ = validate_terms(
        terms.principal, terms.annual_rate, terms.tenure_months,
    )
    principal = to_money(principal)
    emi = calculate_emi(principal, terms.annual_rate, terms.tenure_months)
    rate = monthly_rate(terms.annual_rate)

    items = []
    balance = principal
    for number in range(1, terms.tenure_months + 1):
        interest = to_money(balance * rate)
        if number == terms.tenure_months:
            principal_part = balance
        else:
            principal_part = min(max(emi - interest, ZERO), balance)

        balance = max(ZERO, balance - principal_part)
        amount = principal_part + interest
        # A zero installment could never be paid
        if amount <= 0:
            raise InvalidTermsError(
                detail=(
                    f"Principal {principal} is too small to spread over "
                    f"{terms.tenure_months} months."
                )
            )

        items.append(EMIScheduleItem(
            emi_number=number,
            due_date=add_months(terms.start_date, number),
            amount=amount,
            principal_component=principal_part,
            interest_component=interest,
            remaining_balance=balance,
        ))

    return EMISchedule(terms=terms, emi_amount=emi, items=tuple(items))
