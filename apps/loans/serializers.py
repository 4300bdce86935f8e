"""
Loan serializers for the Microloan Manager.
"""

from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from apps.loans.models import PaymentMethod

LIMITS = settings.LOAN_LIMITS


class LoanTermsSerializer(serializers.Serializer):
    """Serializer for the terms an EMI schedule is built from."""

    principal_amount = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=LIMITS['MIN_PRINCIPAL'],
        max_value=LIMITS['MAX_PRINCIPAL'],
        required=True,
        help_text="Loan principal.",
    )
    interest_rate = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=Decimal('0'),
        max_value=LIMITS['MAX_INTEREST_RATE'],
        required=True,
        help_text="Annual interest rate (%).",
    )
    tenure_months = serializers.IntegerField(
        min_value=1,
        max_value=LIMITS['MAX_TENURE_MONTHS'],
        required=True,
        help_text="Loan tenure in months.",
    )
    start_date = serializers.DateField(
        required=False,
        help_text="Schedule start date; defaults to today.",
    )


class CreateLoanSerializer(LoanTermsSerializer):
    """Serializer for loan creation request."""

    borrower_id = serializers.IntegerField(
        min_value=1,
        required=True,
        help_text="Borrower's member ID.",
    )
    purpose = serializers.CharField(
        max_length=255,
        required=False,
        allow_blank=True,
        default='',
    )
    notes = serializers.CharField(
        required=False,
        allow_blank=True,
        default='',
    )


class ScheduleItemSerializer(serializers.Serializer):
    """Serializer for one computed installment."""

    emi_number = serializers.IntegerField()
    due_date = serializers.DateField()
    amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    principal_component = serializers.DecimalField(max_digits=15, decimal_places=2)
    interest_component = serializers.DecimalField(max_digits=15, decimal_places=2)
    remaining_balance = serializers.DecimalField(max_digits=15, decimal_places=2)


class SchedulePreviewSerializer(serializers.Serializer):
    """Serializer for the EMI calculator response."""

    emi_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    total_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    total_interest = serializers.DecimalField(max_digits=15, decimal_places=2)
    schedule = ScheduleItemSerializer(source='items', many=True)


class EMISerializer(serializers.Serializer):
    """Serializer for a persisted EMI row."""

    emi_number = serializers.IntegerField()
    due_date = serializers.DateField()
    amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    principal_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    interest_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    outstanding_balance = serializers.DecimalField(max_digits=15, decimal_places=2)
    paid_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    amount_due = serializers.DecimalField(max_digits=15, decimal_places=2)
    status = serializers.CharField()
    paid_at = serializers.DateField(allow_null=True)


class LoanSummarySerializer(serializers.Serializer):
    """Serializer for the derived loan summary."""

    loan_id = serializers.IntegerField()
    loan_number = serializers.CharField()
    lender_id = serializers.IntegerField()
    borrower_id = serializers.IntegerField()
    borrower_name = serializers.CharField()
    principal_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    total_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    interest_rate = serializers.DecimalField(max_digits=5, decimal_places=2)
    tenure_months = serializers.IntegerField()
    emi_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    stored_status = serializers.CharField()
    status = serializers.CharField()
    total_emis = serializers.IntegerField()
    paid_emis = serializers.IntegerField()
    pending_emis = serializers.IntegerField()
    outstanding_balance = serializers.DecimalField(max_digits=15, decimal_places=2)
    next_due_date = serializers.DateField(allow_null=True)
    next_due_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    disbursement_date = serializers.DateField(allow_null=True)
    maturity_date = serializers.DateField()
    purpose = serializers.CharField(allow_blank=True)
    deleted_at = serializers.DateTimeField(allow_null=True)


class TrashedLoanSerializer(LoanSummarySerializer):
    """Loan summary plus restore eligibility."""

    can_restore = serializers.BooleanField()
    restore_deadline = serializers.DateTimeField()
    time_left = serializers.CharField()


class ApproveLoanSerializer(serializers.Serializer):
    """Serializer for loan approval request."""

    disbursement_date = serializers.DateField(
        required=False,
        help_text="Date the money was handed over; defaults to today.",
    )


class RecordPaymentSerializer(serializers.Serializer):
    """Serializer for payment recording request."""

    amount = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('0.01'),
        required=True,
    )
    emi_number = serializers.IntegerField(min_value=1, required=False)
    method = serializers.ChoiceField(
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH,
    )
    reference = serializers.CharField(
        max_length=100,
        required=False,
        allow_blank=True,
        default='',
    )
    paid_on = serializers.DateField(required=False)


class PaymentResponseSerializer(serializers.Serializer):
    """Serializer for a recorded payment."""

    payment_id = serializers.IntegerField(source='pk')
    loan_id = serializers.IntegerField()
    emi_number = serializers.IntegerField(source='emi.emi_number')
    amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    method = serializers.CharField()
    reference = serializers.CharField(allow_blank=True)
    paid_on = serializers.DateField()
    emi_status = serializers.CharField(source='emi.status')


class CleanupResponseSerializer(serializers.Serializer):
    """Serializer for a CleanupResult."""

    purged = serializers.IntegerField()
    failed = serializers.IntegerField()
    failed_loan_ids = serializers.SerializerMethodField()

    def get_failed_loan_ids(self, result):
        return [failure.loan_id for failure in result.failures]


class UpcomingEMISerializer(serializers.Serializer):
    """An unpaid EMI shown on the borrower dashboard."""

    loan_id = serializers.IntegerField()
    emi_number = serializers.IntegerField()
    due_date = serializers.DateField()
    amount_due = serializers.DecimalField(max_digits=15, decimal_places=2)


class DashboardSerializer(serializers.Serializer):
    """
    Serializer for the role specific dashboard figures.

    The portfolio figures are shared; the remaining fields are only
    present for the role that produces them.
    """

    role = serializers.CharField()
    total_loans = serializers.IntegerField()
    loans_by_status = serializers.DictField(child=serializers.IntegerField())
    total_principal = serializers.DecimalField(max_digits=15, decimal_places=2)
    outstanding_balance = serializers.DecimalField(max_digits=15, decimal_places=2)

    # Lender
    borrowers = serializers.IntegerField(required=False)
    trashed_loans = serializers.IntegerField(required=False)

    # Borrower
    upcoming_emis = UpcomingEMISerializer(many=True, required=False)

    # Super admin
    members_by_role = serializers.DictField(
        child=serializers.IntegerField(), required=False,
    )
