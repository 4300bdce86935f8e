"""
Loan, EMI and payment models for the Microloan Manager.
"""

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class LoanStatus(models.TextChoices):
    """Stored loan lifecycle status."""

    PENDING_APPROVAL = 'pending_approval', 'Pending approval'
    ACTIVE = 'active', 'Active'
    COMPLETED = 'completed', 'Completed'
    DEFAULTED = 'defaulted', 'Defaulted'


class EMIStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PARTIAL = 'partial', 'Partially paid'
    PAID = 'paid', 'Paid'


class PaymentMethod(models.TextChoices):
    CASH = 'cash', 'Cash'
    BANK_TRANSFER = 'bank_transfer', 'Bank transfer'
    UPI = 'upi', 'UPI'
    CHEQUE = 'cheque', 'Cheque'


class LoanQuerySet(models.QuerySet):

    def visible(self):
        """Loans that are not in the trash."""
        return self.filter(is_deleted=False)

    def trashed(self):
        return self.filter(is_deleted=True)


class Loan(models.Model):
    """
    A loan given by a lender to one of their borrowers.

    The EMI schedule is generated once at creation and stored as EMI
    rows. Soft deletion is tracked by is_deleted / deleted_at.
    """

    loan_number = models.CharField(
        max_length=20,
        unique=True,
        null=True,
        blank=True,
        help_text="Human readable loan number, assigned after creation."
    )
    lender = models.ForeignKey(
        'accounts.Member',
        on_delete=models.PROTECT,
        related_name='loans_given',
        db_index=True,
        help_text="The lender who owns this loan."
    )
    borrower = models.ForeignKey(
        'accounts.Member',
        on_delete=models.PROTECT,
        related_name='loans_taken',
        db_index=True,
        help_text="The borrower this loan was given to."
    )
    principal_amount = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        help_text="Loan principal.",
    )
    interest_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Annual interest rate (percentage).",
    )
    tenure_months = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Loan tenure in months."
    )
    emi_amount = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        help_text="Fixed monthly installment.",
    )
    total_amount = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        help_text="Principal plus all scheduled interest.",
    )
    start_date = models.DateField(
        help_text="Date the schedule is counted from."
    )
    disbursement_date = models.DateField(
        null=True,
        blank=True,
        help_text="Date the money was handed over."
    )
    maturity_date = models.DateField(
        help_text="Due date of the last EMI."
    )
    status = models.CharField(
        max_length=20,
        choices=LoanStatus.choices,
        default=LoanStatus.PENDING_APPROVAL,
        db_index=True,
    )
    purpose = models.CharField(max_length=255, blank=True, default='')
    notes = models.TextField(blank=True, default='')
    is_deleted = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the loan is in the trash."
    )
    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the loan was moved to the trash."
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LoanQuerySet.as_manager()

    class Meta:
        db_table = 'loans'
        ordering = ['-created_at']
        indexes = [
            models.Index(
                fields=['lender', 'is_deleted'],
                name='idx_loan_lender_deleted'
            ),
            models.Index(
                fields=['is_deleted', 'deleted_at'],
                name='idx_loan_trash_expiry'
            ),
        ]

    def __str__(self):
        return (
            f"Loan {self.loan_number or self.pk} - Borrower: {self.borrower_id} "
            f"- Amount: {self.principal_amount}"
        )


class EMI(models.Model):
    """One scheduled installment of a loan."""

    loan = models.ForeignKey(
        Loan,
        on_delete=models.CASCADE,
        related_name='emis',
    )
    emi_number = models.PositiveIntegerField()
    due_date = models.DateField(db_index=True)
    amount = models.DecimalField(max_digits=15, decimal_places=2)
    principal_amount = models.DecimalField(max_digits=15, decimal_places=2)
    interest_amount = models.DecimalField(max_digits=15, decimal_places=2)
    outstanding_balance = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        help_text="Principal still owed after this installment.",
    )
    paid_amount = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        default=Decimal('0.00'),
    )
    status = models.CharField(
        max_length=10,
        choices=EMIStatus.choices,
        default=EMIStatus.PENDING,
    )
    paid_at = models.DateField(null=True, blank=True)

    class Meta:
        db_table = 'emis'
        ordering = ['loan', 'emi_number']
        constraints = [
            models.UniqueConstraint(
                fields=['loan', 'emi_number'],
                name='uniq_emi_loan_number',
            ),
        ]

    def __str__(self):
        return f"EMI {self.emi_number} of loan {self.loan_id}"

    @property
    def amount_due(self):
        return max(Decimal('0.00'), self.amount - self.paid_amount)


class Payment(models.Model):
    """Money received against an EMI."""

    loan = models.ForeignKey(
        Loan,
        on_delete=models.CASCADE,
        related_name='payments',
    )
    emi = models.ForeignKey(
        EMI,
        on_delete=models.CASCADE,
        related_name='payments',
    )
    amount = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
    )
    method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH,
    )
    reference = models.CharField(max_length=100, blank=True, default='')
    paid_on = models.DateField()
    recorded_by = models.ForeignKey(
        'accounts.Member',
        on_delete=models.PROTECT,
        related_name='payments_recorded',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'payments'
        ordering = ['-created_at']

    def __str__(self):
        return f"Payment of {self.amount} for EMI {self.emi_id}"
