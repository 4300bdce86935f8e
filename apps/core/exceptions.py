"""
Custom exceptions and DRF exception handler for the Microloan Manager.

Every domain error is an APIException so that the service layer can raise
it directly and views return a distinguishable status code and error code.
"""

import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class InvalidTermsError(APIException, ValueError):
    """Raised when loan terms cannot produce an EMI schedule."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid loan terms.'
    default_code = 'invalid_terms'


class InconsistentLoanStateError(APIException):
    """Raised when a loan's paid/total EMI counts contradict each other."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Loan state is inconsistent.'
    default_code = 'inconsistent_loan_state'


class RestoreWindowExpiredError(APIException):
    """Raised when a trashed loan is restored after the retention window."""

    status_code = status.HTTP_410_GONE
    default_detail = 'The restore window for this loan has expired.'
    default_code = 'restore_window_expired'


class UnauthorizedActionError(APIException):
    """Raised when the acting member may not perform the action."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You are not allowed to perform this action.'
    default_code = 'unauthorized_action'


class ActorRequiredError(APIException):
    """Raised when a request does not identify an acting member."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Provide the X-ACTOR-ID header of an active member.'
    default_code = 'actor_required'


class MemberNotFoundError(APIException):
    """Raised when a member does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Member not found.'
    default_code = 'member_not_found'


class LoanNotFoundError(APIException):
    """Raised when a loan does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Loan not found.'
    default_code = 'loan_not_found'


class LoanAlreadyTrashedError(APIException):
    """Raised when deleting a loan that is already in the trash."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Loan is already in the trash.'
    default_code = 'loan_already_trashed'


class LoanNotTrashedError(APIException):
    """Raised when restoring or purging a loan that is not in the trash."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Loan is not in the trash.'
    default_code = 'loan_not_trashed'


class InvalidLoanTransitionError(APIException):
    """Raised when a lifecycle action does not apply to the loan's status."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This action is not allowed for the loan in its current status.'
    default_code = 'invalid_loan_transition'


class InvalidPaymentError(APIException):
    """Raised when a payment cannot be applied to an EMI."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Payment could not be applied.'
    default_code = 'invalid_payment'


class PurgeFailure(APIException):
    """
    A single loan that could not be purged during a cleanup sweep.

    Collected by the sweep rather than raised, so that one bad row does
    not stop the remaining purges.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Loan could not be purged.'
    default_code = 'purge_failed'

    def __init__(self, loan_id, cause=None):
        super().__init__(detail=f"Loan {loan_id} could not be purged: {cause}")
        self.loan_id = loan_id
        self.cause = cause


def custom_exception_handler(exc, context):
    """
    Custom DRF exception handler that returns consistent error responses.

    Handles all DRF exceptions and adds logging for server errors.
    """
    response = exception_handler(exc, context)

    if response is not None:
        error_data = {
            'error': True,
            'status_code': response.status_code,
            'detail': response.data.get('detail', response.data)
            if isinstance(response.data, dict) else response.data,
        }
        if isinstance(exc, APIException):
            error_data['code'] = exc.default_code
        response.data = error_data
    else:
        # Unhandled exceptions — log and return 500
        logger.exception(
            "Unhandled exception in %s",
            context.get('view', 'unknown'),
            exc_info=exc,
        )
        response = Response(
            {
                'error': True,
                'status_code': 500,
                'detail': 'An unexpected error occurred. Please try again later.',
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return response
