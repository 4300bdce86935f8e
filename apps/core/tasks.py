"""
Celery tasks for trash maintenance.

The cleanup sweep runs daily from Celery beat and can also be triggered
for a single lender.
"""

import logging

from celery import shared_task
from django.db import DatabaseError

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    name='core.cleanup_trashed_loans',
    max_retries=3,
    default_retry_delay=60,
)
def cleanup_trashed_loans(self, owner_id=None):
    """
    Purge trashed loans whose restore window has closed.

    Args:
        owner_id: Restrict the sweep to one lender; all lenders when None.

    Per-loan failures are reported in the result and do not fail the
    task. The sweep is safe to run concurrently: each purge is guarded,
    so a loan is only ever counted once.
    """
    from apps.loans.trash import TrashService

    try:
        if owner_id is None:
            result = TrashService.cleanup_all()
        else:
            result = TrashService.cleanup(owner_id)
    except DatabaseError as exc:
        logger.exception("Trash cleanup could not list expired loans")
        raise self.retry(exc=exc)

    summary = {
        'status': 'success' if not result.failures else 'partial',
        'owner_id': owner_id,
        'purged': result.purged,
        'failed': result.failed,
        'failed_loan_ids': [failure.loan_id for failure in result.failures],
    }
    logger.info("Trash cleanup complete: %s", summary)
    return summary
