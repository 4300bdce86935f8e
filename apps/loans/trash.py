"""
Trash retention for loans.

A deleted loan stays in the trash for the retention window. Inside the
window it can be restored; afterwards only permanent deletion remains,
either explicitly or through the periodic cleanup sweep.

Every transition is a single guarded UPDATE/DELETE on the current
is_deleted/deleted_at value, so concurrent callers act at most once.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.accounts.models import Role
from apps.core.exceptions import (
    LoanAlreadyTrashedError,
    LoanNotFoundError,
    LoanNotTrashedError,
    PurgeFailure,
    RestoreWindowExpiredError,
    UnauthorizedActionError,
)
from apps.loans.models import Loan

logger = logging.getLogger(__name__)


def retention_window() -> timedelta:
    return timedelta(days=getattr(settings, 'TRASH_RETENTION_DAYS', 30))


def restore_deadline(deleted_at: datetime) -> datetime:
    """Moment after which a trashed loan can no longer be restored."""
    return deleted_at + retention_window()


def can_restore(deleted_at: datetime, now: Optional[datetime] = None) -> bool:
    """True while now - deleted_at is inside the retention window."""
    if now is None:
        now = timezone.now()
    return now - deleted_at < retention_window()


def time_left(deleted_at: datetime, now: Optional[datetime] = None) -> timedelta:
    """Time remaining before the restore window closes, never negative."""
    if now is None:
        now = timezone.now()
    return max(timedelta(0), restore_deadline(deleted_at) - now)


def time_left_label(deleted_at: datetime, now: Optional[datetime] = None) -> str:
    """Human readable remaining time, e.g. '23 days left' or 'Expired'."""
    if not can_restore(deleted_at, now):
        return 'Expired'
    days = time_left(deleted_at, now).days
    if days == 0:
        return 'Less than a day left'
    if days == 1:
        return '1 day left'
    return f'{days} days left'


def authorize_owner(actor, loan: Loan) -> None:
    """
    Only the lender who owns a loan may move it in or out of the trash.

    Raises:
        UnauthorizedActionError: For any other member.
    """
    role = Role(actor.role)
    if role == Role.LENDER:
        if loan.lender_id == actor.member_id:
            return
        reason = "Only the lender who owns this loan can do this."
    elif role == Role.SUPER_ADMIN:
        reason = "Trash actions are reserved for the owning lender."
    elif role == Role.BORROWER:
        reason = "Borrowers cannot manage loans."
    else:
        raise ValueError(f"Unhandled role {role!r}")

    logger.warning(
        "Member %d (%s) denied trash action on loan %d",
        actor.member_id,
        role.value,
        loan.pk,
    )
    raise UnauthorizedActionError(detail=reason)


@dataclass
class CleanupResult:
    """Outcome of a cleanup sweep."""

    purged: int = 0
    failures: list = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    def merge(self, other: "CleanupResult") -> None:
        self.purged += other.purged
        self.failures.extend(other.failures)


class TrashService:
    """Soft delete, restore and purge of loans."""

    @staticmethod
    def _get_loan(loan_id: int) -> Loan:
        try:
            return Loan.objects.get(pk=loan_id)
        except Loan.DoesNotExist:
            raise LoanNotFoundError(
                detail=f"Loan with ID {loan_id} not found."
            )

    @classmethod
    def move_to_trash(cls, loan_id: int, actor, now: Optional[datetime] = None) -> Loan:
        """
        Soft delete a loan.

        Raises:
            LoanNotFoundError, UnauthorizedActionError, LoanAlreadyTrashedError
        """
        if now is None:
            now = timezone.now()

        loan = cls._get_loan(loan_id)
        authorize_owner(actor, loan)

        updated = Loan.objects.filter(
            pk=loan.pk,
            is_deleted=False,
        ).update(is_deleted=True, deleted_at=now, updated_at=now)

        if not updated:
            raise LoanAlreadyTrashedError(
                detail=f"Loan {loan.loan_number} is already in the trash."
            )

        logger.info("Loan %d moved to trash by member %d", loan.pk, actor.member_id)
        loan.refresh_from_db()
        return loan

    @classmethod
    def restore(cls, loan_id: int, actor, now: Optional[datetime] = None) -> Loan:
        """
        Restore a trashed loan while the retention window is open.

        Raises:
            LoanNotFoundError, UnauthorizedActionError, LoanNotTrashedError,
            RestoreWindowExpiredError
        """
        if now is None:
            now = timezone.now()

        loan = cls._get_loan(loan_id)
        authorize_owner(actor, loan)

        if not loan.is_deleted or loan.deleted_at is None:
            raise LoanNotTrashedError(
                detail=f"Loan {loan.loan_number} is not in the trash."
            )

        if not can_restore(loan.deleted_at, now):
            logger.info(
                "Restore of loan %d refused: deleted at %s, window closed",
                loan.pk,
                loan.deleted_at.isoformat(),
            )
            raise RestoreWindowExpiredError(
                detail=(
                    f"Loan {loan.loan_number} was deleted more than "
                    f"{retention_window().days} days ago and can no longer be restored."
                )
            )

        # Guarded on the deleted_at we checked, so a concurrent restore
        # or purge wins exactly once.
        updated = Loan.objects.filter(
            pk=loan.pk,
            is_deleted=True,
            deleted_at=loan.deleted_at,
        ).update(is_deleted=False, deleted_at=None, updated_at=now)

        if not updated:
            raise LoanNotTrashedError(
                detail=f"Loan {loan.loan_number} is not in the trash."
            )

        logger.info("Loan %d restored by member %d", loan.pk, actor.member_id)
        loan.refresh_from_db()
        return loan

    @classmethod
    def purge(cls, loan_id: int, actor) -> None:
        """
        Permanently delete a trashed loan with its EMIs and payments.

        Raises:
            LoanNotFoundError, UnauthorizedActionError, LoanNotTrashedError
        """
        loan = cls._get_loan(loan_id)
        authorize_owner(actor, loan)

        if not loan.is_deleted:
            raise LoanNotTrashedError(
                detail=f"Loan {loan.loan_number} must be moved to the trash first."
            )

        if not cls._purge(loan.pk):
            raise LoanNotTrashedError(
                detail=f"Loan {loan.loan_number} is not in the trash."
            )

        logger.info("Loan %d permanently deleted by member %d", loan_id, actor.member_id)

    @staticmethod
    def _purge(loan_id: int, cutoff: Optional[datetime] = None) -> bool:
        """
        Delete one trashed loan. Returns False when another caller got there
        first or the loan was restored meanwhile.
        """
        queryset = Loan.objects.filter(pk=loan_id, is_deleted=True)
        if cutoff is not None:
            queryset = queryset.filter(deleted_at__lte=cutoff)

        with transaction.atomic():
            _, deleted = queryset.delete()
        return deleted.get(Loan._meta.label, 0) > 0

    @classmethod
    def cleanup(cls, owner_id: int, now: Optional[datetime] = None) -> CleanupResult:
        """
        Purge every trashed loan of `owner_id` whose window has closed.

        Each loan is purged on its own; a failure is recorded and the sweep
        carries on with the next loan.
        """
        if now is None:
            now = timezone.now()
        return cls._sweep(
            Loan.objects.trashed().filter(lender_id=owner_id),
            now,
        )

    @classmethod
    def cleanup_all(cls, now: Optional[datetime] = None) -> CleanupResult:
        """Sweep expired trash across all lenders."""
        if now is None:
            now = timezone.now()
        return cls._sweep(Loan.objects.trashed(), now)

    @classmethod
    def _sweep(cls, queryset, now: datetime) -> CleanupResult:
        cutoff = now - retention_window()
        expired_ids = list(
            queryset.filter(deleted_at__lte=cutoff)
            .order_by('deleted_at')
            .values_list('pk', flat=True)
        )

        result = CleanupResult()
        if not expired_ids:
            logger.info("No expired trashed loans to clean up")
            return result

        for loan_id in expired_ids:
            try:
                if cls._purge(loan_id, cutoff=cutoff):
                    result.purged += 1
            except Exception as exc:
                logger.exception("Failed to purge loan %d", loan_id)
                result.failures.append(PurgeFailure(loan_id, exc))

        logger.info(
            "Trash cleanup purged %d of %d expired loans (%d failed)",
            result.purged,
            len(expired_ids),
            result.failed,
        )
        return result

    @staticmethod
    def trashed_loans(owner_id: int):
        """Trashed loans of a lender, most recently deleted first."""
        return (
            Loan.objects.trashed()
            .filter(lender_id=owner_id)
            .select_related('borrower')
            .prefetch_related('emis')
            .order_by('-deleted_at')
        )

    @staticmethod
    def trashed_count(owner_id: int) -> int:
        return Loan.objects.trashed().filter(lender_id=owner_id).count()
