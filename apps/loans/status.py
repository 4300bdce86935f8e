"""
Loan status classification.

Derives the presentation status of a loan from its stored status flag,
its EMI schedule and the payments recorded against it.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from django.utils import timezone

from apps.core.exceptions import InconsistentLoanStateError
from apps.loans.models import LoanStatus

logger = logging.getLogger(__name__)

UNKNOWN_STATUS = 'unknown'


class DerivedStatus(str, Enum):
    PENDING = 'pending'
    DISBURSED = 'disbursed'
    ACTIVE = 'active'
    OVERDUE = 'overdue'
    COMPLETED = 'completed'
    DEFAULTED = 'defaulted'


@dataclass(frozen=True)
class EMISnapshot:
    """Read-only view of one EMI and what has been paid against it."""

    emi_number: int
    due_date: date
    amount: Decimal
    paid_amount: Decimal = Decimal('0.00')

    @property
    def is_paid(self) -> bool:
        return self.paid_amount >= self.amount


@dataclass(frozen=True)
class LoanSnapshot:
    """Everything the classifier needs to know about a loan."""

    status: str
    total_emis: int
    paid_emis: int
    disbursement_date: Optional[date] = None
    emis: tuple = ()
    has_payments: bool = False

    @classmethod
    def from_emis(cls, status, emis, disbursement_date=None) -> "LoanSnapshot":
        """Build a snapshot, counting paid EMIs from the schedule itself."""
        emis = tuple(sorted(emis, key=lambda e: e.emi_number))
        return cls(
            status=status,
            total_emis=len(emis),
            paid_emis=sum(1 for emi in emis if emi.is_paid),
            disbursement_date=disbursement_date,
            emis=emis,
            has_payments=any(emi.paid_amount > 0 for emi in emis),
        )

    @classmethod
    def from_loan(cls, loan) -> "LoanSnapshot":
        """Build a snapshot from a persisted Loan and its EMI rows."""
        emis = [
            EMISnapshot(
                emi_number=emi.emi_number,
                due_date=emi.due_date,
                amount=emi.amount,
                paid_amount=emi.paid_amount,
            )
            for emi in loan.emis.all()
        ]
        return cls.from_emis(loan.status, emis, loan.disbursement_date)


def classify_loan_status(snapshot: LoanSnapshot, today: Optional[date] = None) -> DerivedStatus:
    """
    Derive the presentation status of a loan.

    Decision order (first match wins):
        1. Stored status defaulted → defaulted
        2. Every EMI paid → completed
        3. Any unpaid EMI past its due date → overdue
        4. Disbursed but nothing paid yet → disbursed
        5. pending_approval → pending, otherwise active

    Raises:
        InconsistentLoanStateError: If paid EMIs exceed total EMIs, or the
            stored status is not a known loan status.
    """
    if today is None:
        today = timezone.localdate()

    if snapshot.total_emis < 0 or snapshot.paid_emis < 0:
        raise InconsistentLoanStateError(
            detail="EMI counts cannot be negative."
        )
    if snapshot.paid_emis > snapshot.total_emis:
        raise InconsistentLoanStateError(
            detail=(
                f"Loan reports {snapshot.paid_emis} paid EMIs "
                f"out of {snapshot.total_emis}."
            )
        )

    if snapshot.status == LoanStatus.DEFAULTED:
        return DerivedStatus.DEFAULTED

    if snapshot.total_emis > 0 and snapshot.paid_emis == snapshot.total_emis:
        return DerivedStatus.COMPLETED

    if any(emi.due_date < today and not emi.is_paid for emi in snapshot.emis):
        return DerivedStatus.OVERDUE

    if snapshot.disbursement_date is not None and not snapshot.has_payments:
        return DerivedStatus.DISBURSED

    if snapshot.status == LoanStatus.PENDING_APPROVAL:
        return DerivedStatus.PENDING
    elif snapshot.status in (LoanStatus.ACTIVE, LoanStatus.COMPLETED):
        return DerivedStatus.ACTIVE

    raise InconsistentLoanStateError(
        detail=f"Unknown stored loan status {snapshot.status!r}."
    )


def classify_or_unknown(snapshot: LoanSnapshot, today: Optional[date] = None) -> str:
    """Classify for display, falling back to 'unknown' on corrupt data."""
    try:
        return classify_loan_status(snapshot, today).value
    except InconsistentLoanStateError as exc:
        logger.warning("Could not classify loan status: %s", exc.detail)
        return UNKNOWN_STATUS
