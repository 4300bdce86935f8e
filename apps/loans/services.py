"""
Loan service layer.

Contains loan creation, lifecycle transitions, payment recording and
the read-side summaries used by the list, detail and dashboard views.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.utils import timezone

from apps.accounts.models import Member, Role
from apps.accounts.permissions import Permission, require_permission
from apps.core.exceptions import (
    InvalidLoanTransitionError,
    InvalidPaymentError,
    LoanNotFoundError,
    MemberNotFoundError,
    UnauthorizedActionError,
)
from apps.loans.models import EMI, EMIStatus, Loan, LoanStatus, Payment
from apps.loans.schedule import LoanTerms, build_schedule
from apps.loans.status import DerivedStatus, LoanSnapshot, classify_or_unknown
from apps.loans.trash import TrashService

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


@dataclass(frozen=True)
class LoanSummary:
    """Aggregated, read-only view of a loan. Never stored."""

    loan_id: int
    loan_number: str
    lender_id: int
    borrower_id: int
    borrower_name: str
    principal_amount: Decimal
    total_amount: Decimal
    interest_rate: Decimal
    tenure_months: int
    emi_amount: Decimal
    stored_status: str
    status: str
    total_emis: int
    paid_emis: int
    pending_emis: int
    outstanding_balance: Decimal
    next_due_date: Optional[date]
    next_due_amount: Decimal
    disbursement_date: Optional[date]
    maturity_date: date
    purpose: str
    deleted_at: Optional[datetime] = None


def summarize(loan: Loan, today: Optional[date] = None) -> LoanSummary:
    """
    Build a LoanSummary from a loan and its EMI rows.

    The loan's `emis` and `borrower` should be prefetched by the caller
    when summarizing many loans.
    """
    emis = sorted(loan.emis.all(), key=lambda e: e.emi_number)
    snapshot = LoanSnapshot.from_loan(loan)

    total_paid = sum((min(emi.paid_amount, emi.amount) for emi in emis), ZERO)
    unpaid = [emi for emi in emis if emi.paid_amount < emi.amount]
    next_emi = unpaid[0] if unpaid else None

    return LoanSummary(
        loan_id=loan.pk,
        loan_number=loan.loan_number,
        lender_id=loan.lender_id,
        borrower_id=loan.borrower_id,
        borrower_name=loan.borrower.full_name,
        principal_amount=loan.principal_amount,
        total_amount=loan.total_amount,
        interest_rate=loan.interest_rate,
        tenure_months=loan.tenure_months,
        emi_amount=loan.emi_amount,
        stored_status=loan.status,
        status=classify_or_unknown(snapshot, today),
        total_emis=snapshot.total_emis,
        paid_emis=snapshot.paid_emis,
        pending_emis=len(unpaid),
        outstanding_balance=max(ZERO, loan.total_amount - total_paid),
        next_due_date=next_emi.due_date if next_emi else None,
        next_due_amount=next_emi.amount_due if next_emi else ZERO,
        disbursement_date=loan.disbursement_date,
        maturity_date=loan.maturity_date,
        purpose=loan.purpose,
        deleted_at=loan.deleted_at,
    )


class LoanService:
    """Service for loan creation, retrieval and lifecycle transitions."""

    @staticmethod
    def _require_lender(actor) -> None:
        if actor.role != Role.LENDER:
            raise UnauthorizedActionError(
                detail="Only lenders can own loans."
            )

    @staticmethod
    def _require_owner(actor, loan: Loan) -> None:
        """Lenders act on their own loans; super admins on any loan."""
        role = Role(actor.role)
        if role == Role.SUPER_ADMIN:
            return
        elif role == Role.LENDER:
            if loan.lender_id == actor.member_id:
                return
        elif role == Role.BORROWER:
            pass
        else:
            raise ValueError(f"Unhandled role {role!r}")

        raise UnauthorizedActionError(
            detail="You do not manage this loan."
        )

    @classmethod
    def create_loan(
        cls,
        actor,
        borrower_id: int,
        principal_amount: Decimal,
        interest_rate: Decimal,
        tenure_months: int,
        start_date: Optional[date] = None,
        purpose: str = '',
        notes: str = '',
    ) -> Loan:
        """
        Create a loan and persist its EMI schedule in one transaction.

        Args:
            actor: ActorContext of the lender creating the loan.
            borrower_id: Member id of the borrower.
            principal_amount: Loan principal.
            interest_rate: Annual interest rate (%).
            tenure_months: Number of monthly installments.
            start_date: Schedule start; EMIs fall due monthly after it.

        Returns:
            The created Loan, in pending_approval status.
        """
        require_permission(actor, Permission.MANAGE_LOANS)
        cls._require_lender(actor)

        try:
            borrower = Member.objects.get(pk=borrower_id, role=Role.BORROWER)
        except Member.DoesNotExist:
            raise MemberNotFoundError(
                detail=f"Borrower with ID {borrower_id} not found."
            )

        if borrower.lender_id is not None and borrower.lender_id != actor.member_id:
            raise UnauthorizedActionError(
                detail="This borrower belongs to another lender."
            )

        terms = LoanTerms.create(
            principal=principal_amount,
            annual_rate=interest_rate,
            tenure_months=tenure_months,
            start_date=start_date or timezone.localdate(),
        )
        schedule = build_schedule(terms)

        with transaction.atomic():
            loan = Loan.objects.create(
                lender_id=actor.member_id,
                borrower=borrower,
                principal_amount=terms.principal,
                interest_rate=terms.annual_rate,
                tenure_months=terms.tenure_months,
                emi_amount=schedule.emi_amount,
                total_amount=schedule.total_amount,
                start_date=terms.start_date,
                maturity_date=schedule.maturity_date,
                status=LoanStatus.PENDING_APPROVAL,
                purpose=purpose,
                notes=notes,
            )
            loan.loan_number = f"LN-{loan.pk:06d}"
            loan.save(update_fields=['loan_number'])

            EMI.objects.bulk_create([
                EMI(
                    loan=loan,
                    emi_number=item.emi_number,
                    due_date=item.due_date,
                    amount=item.amount,
                    principal_amount=item.principal_component,
                    interest_amount=item.interest_component,
                    outstanding_balance=item.remaining_balance,
                )
                for item in schedule
            ])

        logger.info(
            "Loan %s created by lender %d for borrower %d: principal=%s, "
            "rate=%s%%, tenure=%d, emi=%s",
            loan.loan_number,
            actor.member_id,
            borrower.pk,
            terms.principal,
            terms.annual_rate,
            terms.tenure_months,
            schedule.emi_amount,
        )

        return loan

    @staticmethod
    def visible_loans(actor):
        """Loans outside the trash that the actor may see."""
        require_permission(actor, Permission.VIEW_OWN_LOANS)

        loans = (
            Loan.objects.visible()
            .select_related('borrower')
            .prefetch_related('emis')
        )
        role = Role(actor.role)
        if role == Role.SUPER_ADMIN:
            pass
        elif role == Role.LENDER:
            loans = loans.filter(lender_id=actor.member_id)
        elif role == Role.BORROWER:
            loans = loans.filter(borrower_id=actor.member_id)
        else:
            raise ValueError(f"Unhandled role {role!r}")

        return loans.order_by('-created_at')

    @classmethod
    def get_loan(cls, loan_id: int, actor) -> Loan:
        """
        Retrieve a loan the actor may see. Trashed loans are not found here.

        Raises:
            LoanNotFoundError: If the loan does not exist, is trashed or is
                not visible to the actor.
        """
        try:
            return cls.visible_loans(actor).get(pk=loan_id)
        except Loan.DoesNotExist:
            raise LoanNotFoundError(
                detail=f"Loan with ID {loan_id} not found."
            )

    @classmethod
    def approve(cls, loan_id: int, actor, disbursement_date: Optional[date] = None) -> Loan:
        """Approve a pending loan and record its disbursement."""
        require_permission(actor, Permission.MANAGE_LOANS)
        loan = cls.get_loan(loan_id, actor)
        cls._require_owner(actor, loan)

        disbursement_date = disbursement_date or timezone.localdate()
        updated = Loan.objects.filter(
            pk=loan.pk,
            is_deleted=False,
            status=LoanStatus.PENDING_APPROVAL,
        ).update(
            status=LoanStatus.ACTIVE,
            disbursement_date=disbursement_date,
            updated_at=timezone.now(),
        )
        if not updated:
            raise InvalidLoanTransitionError(
                detail=f"Loan {loan.loan_number} is {loan.status}, not pending approval."
            )

        logger.info(
            "Loan %s approved by member %d, disbursed on %s",
            loan.loan_number,
            actor.member_id,
            disbursement_date,
        )
        loan.refresh_from_db()
        return loan

    @classmethod
    def mark_defaulted(cls, loan_id: int, actor) -> Loan:
        """Mark an active loan as defaulted."""
        require_permission(actor, Permission.MANAGE_LOANS)
        loan = cls.get_loan(loan_id, actor)
        cls._require_owner(actor, loan)

        updated = Loan.objects.filter(
            pk=loan.pk,
            is_deleted=False,
            status=LoanStatus.ACTIVE,
        ).update(status=LoanStatus.DEFAULTED, updated_at=timezone.now())
        if not updated:
            raise InvalidLoanTransitionError(
                detail=f"Only active loans can be marked defaulted; {loan.loan_number} is {loan.status}."
            )

        logger.warning("Loan %s marked defaulted by member %d", loan.loan_number, actor.member_id)
        loan.refresh_from_db()
        return loan


class PaymentService:
    """Service for recording payments against EMIs."""

    @staticmethod
    def _emi_status(paid_amount: Decimal, amount: Decimal) -> str:
        if paid_amount >= amount:
            return EMIStatus.PAID
        if paid_amount > 0:
            return EMIStatus.PARTIAL
        return EMIStatus.PENDING

    @classmethod
    def record_payment(
        cls,
        loan_id: int,
        actor,
        amount: Decimal,
        emi_number: Optional[int] = None,
        method: str = 'cash',
        reference: str = '',
        paid_on: Optional[date] = None,
    ) -> Payment:
        """
        Apply a payment to the earliest unpaid EMI of an active loan.

        EMIs are settled in order: a payment for a later EMI is refused
        while an earlier one is still open. Partial payments are allowed;
        paying more than the EMI's remaining due is not.

        Returns:
            The created Payment.
        """
        require_permission(actor, Permission.RECORD_PAYMENTS)
        loan = LoanService.get_loan(loan_id, actor)
        LoanService._require_owner(actor, loan)

        amount = Decimal(str(amount))
        if amount <= 0:
            raise InvalidPaymentError(detail="Payment amount must be greater than 0.")

        paid_on = paid_on or timezone.localdate()

        with transaction.atomic():
            loan = Loan.objects.select_for_update().get(pk=loan.pk)
            if loan.is_deleted or loan.status != LoanStatus.ACTIVE:
                raise InvalidLoanTransitionError(
                    detail=f"Payments can only be recorded on active loans; {loan.loan_number} is {loan.status}."
                )

            open_emis = list(
                EMI.objects.select_for_update()
                .filter(loan=loan)
                .exclude(status=EMIStatus.PAID)
                .order_by('emi_number')
            )
            if not open_emis:
                raise InvalidPaymentError(detail="All EMIs of this loan are already paid.")

            emi = open_emis[0]
            if emi_number is not None and emi_number != emi.emi_number:
                raise InvalidPaymentError(
                    detail=f"EMI {emi.emi_number} must be settled before EMI {emi_number}."
                )

            if amount > emi.amount_due:
                raise InvalidPaymentError(
                    detail=f"Payment of {amount} exceeds the {emi.amount_due} due on EMI {emi.emi_number}."
                )

            emi.paid_amount += amount
            emi.status = cls._emi_status(emi.paid_amount, emi.amount)
            if emi.status == EMIStatus.PAID:
                emi.paid_at = paid_on
            emi.save(update_fields=['paid_amount', 'status', 'paid_at'])

            payment = Payment.objects.create(
                loan=loan,
                emi=emi,
                amount=amount,
                method=method,
                reference=reference,
                paid_on=paid_on,
                recorded_by_id=actor.member_id,
            )

            if len(open_emis) == 1 and emi.status == EMIStatus.PAID:
                loan.status = LoanStatus.COMPLETED
                loan.save(update_fields=['status', 'updated_at'])
                logger.info("Loan %s fully repaid", loan.loan_number)

        logger.info(
            "Payment of %s recorded on loan %s EMI %d by member %d (emi status=%s)",
            amount,
            loan.loan_number,
            emi.emi_number,
            actor.member_id,
            emi.status,
        )
        return payment


class DashboardService:
    """Role specific dashboard figures."""

    @classmethod
    def for_actor(cls, actor, today: Optional[date] = None) -> dict:
        role = Role(actor.role)
        if role == Role.SUPER_ADMIN:
            return cls._admin(actor, today)
        elif role == Role.LENDER:
            return cls._lender(actor, today)
        elif role == Role.BORROWER:
            return cls._borrower(actor, today)
        raise ValueError(f"Unhandled role {role!r}")

    @staticmethod
    def _portfolio(summaries) -> dict:
        by_status = {status.value: 0 for status in DerivedStatus}
        for summary in summaries:
            by_status[summary.status] = by_status.get(summary.status, 0) + 1

        return {
            'total_loans': len(summaries),
            'loans_by_status': by_status,
            'total_principal': sum((s.principal_amount for s in summaries), ZERO),
            'outstanding_balance': sum((s.outstanding_balance for s in summaries), ZERO),
        }

    @classmethod
    def _lender(cls, actor, today) -> dict:
        summaries = [summarize(loan, today) for loan in LoanService.visible_loans(actor)]
        stats = cls._portfolio(summaries)
        stats.update({
            'role': Role.LENDER.value,
            'borrowers': Member.objects.filter(
                role=Role.BORROWER, lender_id=actor.member_id,
            ).count(),
            'trashed_loans': TrashService.trashed_count(actor.member_id),
        })
        return stats

    @classmethod
    def _borrower(cls, actor, today) -> dict:
        loans = list(LoanService.visible_loans(actor))
        summaries = [summarize(loan, today) for loan in loans]
        stats = cls._portfolio(summaries)

        upcoming = sorted(
            (
                emi
                for loan in loans
                if loan.status == LoanStatus.ACTIVE
                for emi in loan.emis.all()
                if emi.status != EMIStatus.PAID
            ),
            key=lambda emi: emi.due_date,
        )[:5]
        stats.update({
            'role': Role.BORROWER.value,
            'upcoming_emis': [
                {
                    'loan_id': emi.loan_id,
                    'emi_number': emi.emi_number,
                    'due_date': emi.due_date,
                    'amount_due': emi.amount_due,
                }
                for emi in upcoming
            ],
        })
        return stats

    @classmethod
    def _admin(cls, actor, today) -> dict:
        require_permission(actor, Permission.VIEW_ANALYTICS)
        summaries = [summarize(loan, today) for loan in LoanService.visible_loans(actor)]
        stats = cls._portfolio(summaries)
        stats.update({
            'role': Role.SUPER_ADMIN.value,
            'members_by_role': {
                role.value: Member.objects.filter(role=role).count()
                for role in Role
            },
        })
        return stats
