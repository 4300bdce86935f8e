"""
Loan views for the Microloan Manager.

Views are thin — all business logic is in the service layer.
"""

import logging
from dataclasses import asdict

from django.utils import timezone
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts.context import get_actor
from apps.accounts.permissions import Permission, require_permission
from apps.loans.schedule import LoanTerms, build_schedule
from apps.loans.serializers import (
    ApproveLoanSerializer,
    CleanupResponseSerializer,
    CreateLoanSerializer,
    DashboardSerializer,
    EMISerializer,
    LoanSummarySerializer,
    LoanTermsSerializer,
    PaymentResponseSerializer,
    RecordPaymentSerializer,
    SchedulePreviewSerializer,
    TrashedLoanSerializer,
)
from apps.loans.services import (
    DashboardService,
    LoanService,
    PaymentService,
    summarize,
)
from apps.loans.trash import (
    TrashService,
    can_restore,
    restore_deadline,
    time_left_label,
)

logger = logging.getLogger(__name__)


class LoanPagination(PageNumberPagination):
    """Pagination for loan lists."""
    page_size = 10
    page_size_query_param = 'page_size'
    max_page_size = 100


class EMICalculatorView(APIView):
    """
    POST /api/emi-calculator

    Preview the EMI and full schedule for a set of terms without saving.
    """

    def post(self, request):
        serializer = LoanTermsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        terms = LoanTerms.create(
            principal=data['principal_amount'],
            annual_rate=data['interest_rate'],
            tenure_months=data['tenure_months'],
            start_date=data.get('start_date') or timezone.localdate(),
        )
        schedule = build_schedule(terms)

        return Response(
            SchedulePreviewSerializer(schedule).data,
            status=status.HTTP_200_OK,
        )


class LoanListCreateView(APIView):
    """
    GET  /api/loans: loans visible to the actor, paginated
    POST /api/loans: create a loan for one of the lender's borrowers
    """

    def get(self, request):
        actor = get_actor(request)
        loans = LoanService.visible_loans(actor)

        status_filter = request.query_params.get('status')

        paginator = LoanPagination()
        if status_filter:
            # Derived status is computed, so filter after summarizing.
            summaries = [summarize(loan) for loan in loans]
            summaries = [s for s in summaries if s.status == status_filter]
            page = paginator.paginate_queryset(summaries, request)
        else:
            page = [summarize(loan) for loan in paginator.paginate_queryset(loans, request)]

        serializer = LoanSummarySerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def post(self, request):
        actor = get_actor(request)
        serializer = CreateLoanSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        loan = LoanService.create_loan(
            actor,
            borrower_id=data['borrower_id'],
            principal_amount=data['principal_amount'],
            interest_rate=data['interest_rate'],
            tenure_months=data['tenure_months'],
            start_date=data.get('start_date'),
            purpose=data['purpose'],
            notes=data['notes'],
        )

        return Response(
            LoanSummarySerializer(summarize(loan)).data,
            status=status.HTTP_201_CREATED,
        )


class LoanDetailView(APIView):
    """
    GET    /api/loans/<loan_id>: loan summary
    DELETE /api/loans/<loan_id>: move the loan to the trash
    """

    def get(self, request, loan_id):
        actor = get_actor(request)
        loan = LoanService.get_loan(loan_id, actor)
        return Response(
            LoanSummarySerializer(summarize(loan)).data,
            status=status.HTTP_200_OK,
        )

    def delete(self, request, loan_id):
        actor = get_actor(request)
        loan = TrashService.move_to_trash(loan_id, actor)
        return Response(
            {
                'loan_id': loan.pk,
                'deleted_at': loan.deleted_at,
                'restore_deadline': restore_deadline(loan.deleted_at),
                'message': f'Loan {loan.loan_number} moved to trash.',
            },
            status=status.HTTP_200_OK,
        )


class LoanScheduleView(APIView):
    """
    GET /api/loans/<loan_id>/schedule

    Persisted EMI schedule of a loan with payment progress.
    """

    def get(self, request, loan_id):
        actor = get_actor(request)
        loan = LoanService.get_loan(loan_id, actor)
        emis = loan.emis.order_by('emi_number')
        return Response(
            {
                'loan_id': loan.pk,
                'loan_number': loan.loan_number,
                'emi_amount': str(loan.emi_amount),
                'schedule': EMISerializer(emis, many=True).data,
            },
            status=status.HTTP_200_OK,
        )


class ApproveLoanView(APIView):
    """
    POST /api/loans/<loan_id>/approve
    """

    def post(self, request, loan_id):
        actor = get_actor(request)
        serializer = ApproveLoanSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        loan = LoanService.approve(
            loan_id,
            actor,
            disbursement_date=serializer.validated_data.get('disbursement_date'),
        )
        return Response(
            LoanSummarySerializer(summarize(loan)).data,
            status=status.HTTP_200_OK,
        )


class DefaultLoanView(APIView):
    """
    POST /api/loans/<loan_id>/default
    """

    def post(self, request, loan_id):
        actor = get_actor(request)
        loan = LoanService.mark_defaulted(loan_id, actor)
        return Response(
            LoanSummarySerializer(summarize(loan)).data,
            status=status.HTTP_200_OK,
        )


class RecordPaymentView(APIView):
    """
    POST /api/loans/<loan_id>/payments
    """

    def post(self, request, loan_id):
        actor = get_actor(request)
        serializer = RecordPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        payment = PaymentService.record_payment(
            loan_id,
            actor,
            amount=data['amount'],
            emi_number=data.get('emi_number'),
            method=data['method'],
            reference=data['reference'],
            paid_on=data.get('paid_on'),
        )
        return Response(
            PaymentResponseSerializer(payment).data,
            status=status.HTTP_201_CREATED,
        )


class DashboardView(APIView):
    """
    GET /api/dashboard

    Role specific dashboard figures for the actor.
    """

    def get(self, request):
        actor = get_actor(request)
        stats = DashboardService.for_actor(actor)
        return Response(
            DashboardSerializer(stats).data,
            status=status.HTTP_200_OK,
        )


class TrashListView(APIView):
    """
    GET /api/trash

    The lender's trashed loans with their restore eligibility.
    """

    def get(self, request):
        actor = get_actor(request)
        require_permission(actor, Permission.MANAGE_LOANS)

        items = []
        for loan in TrashService.trashed_loans(actor.member_id):
            summary = summarize(loan)
            items.append({
                **asdict(summary),
                'can_restore': can_restore(loan.deleted_at),
                'restore_deadline': restore_deadline(loan.deleted_at),
                'time_left': time_left_label(loan.deleted_at),
            })

        return Response(
            {
                'count': len(items),
                'results': TrashedLoanSerializer(items, many=True).data,
            },
            status=status.HTTP_200_OK,
        )


class TrashRestoreView(APIView):
    """
    POST /api/trash/<loan_id>/restore
    """

    def post(self, request, loan_id):
        actor = get_actor(request)
        loan = TrashService.restore(loan_id, actor)
        return Response(
            {
                'loan_id': loan.pk,
                'message': f'Loan {loan.loan_number} restored.',
            },
            status=status.HTTP_200_OK,
        )


class TrashPurgeView(APIView):
    """
    DELETE /api/trash/<loan_id>

    Permanently delete a trashed loan.
    """

    def delete(self, request, loan_id):
        actor = get_actor(request)
        TrashService.purge(loan_id, actor)
        return Response(status=status.HTTP_204_NO_CONTENT)


class TrashCleanupView(APIView):
    """
    POST /api/trash/cleanup

    Purge the lender's trashed loans whose restore window has closed.
    """

    def post(self, request):
        actor = get_actor(request)
        require_permission(actor, Permission.MANAGE_LOANS)

        result = TrashService.cleanup(actor.member_id)
        return Response(
            CleanupResponseSerializer(result).data,
            status=status.HTTP_200_OK,
        )

