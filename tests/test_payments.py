"""
Tests for payment recording against EMIs.
"""

from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from apps.accounts.models import Role
from apps.core.exceptions import (
    InvalidLoanTransitionError,
    InvalidTermsError,
    InvalidPaymentError,
    UnauthorizedActionError,
)
from apps.loans.models import EMI, EMIStatus, Loan, LoanStatus, Payment
from apps.loans.services import LoanService, PaymentService, summarize
from tests.factories import actor_for, make_loan, make_member


class PaymentServiceTests(TestCase):
    """Sequential EMI settlement with partial payments."""

    def setUp(self):
        self.lender = make_member(Role.LENDER)
        self.borrower = make_member(Role.BORROWER, lender=self.lender)
        self.actor = actor_for(self.lender)
        today = timezone.localdate()
        # 3000 at 0% over 3 months: three EMIs of 1000.00
        self.loan = make_loan(
            self.lender, self.borrower,
            principal='3000', rate='0', tenure=3,
            start_date=today, approve_on=today,
        )

    def emi(self, number):
        return EMI.objects.get(loan=self.loan, emi_number=number)

    def test_full_payment_marks_emi_paid(self):
        payment = PaymentService.record_payment(self.loan.pk, self.actor, Decimal('1000'))
        self.assertEqual(payment.emi.emi_number, 1)
        emi = self.emi(1)
        self.assertEqual(emi.status, EMIStatus.PAID)
        self.assertEqual(emi.paid_amount, Decimal('1000.00'))
        self.assertIsNotNone(emi.paid_at)

    def test_partial_payments_accumulate(self):
        PaymentService.record_payment(self.loan.pk, self.actor, Decimal('400'))
        self.assertEqual(self.emi(1).status, EMIStatus.PARTIAL)
        PaymentService.record_payment(self.loan.pk, self.actor, Decimal('600'))
        self.assertEqual(self.emi(1).status, EMIStatus.PAID)
        self.assertEqual(Payment.objects.filter(loan=self.loan).count(), 2)

    def test_next_payment_goes_to_next_emi(self):
        PaymentService.record_payment(self.loan.pk, self.actor, Decimal('1000'))
        payment = PaymentService.record_payment(self.loan.pk, self.actor, Decimal('250'))
        self.assertEqual(payment.emi.emi_number, 2)

    def test_out_of_order_emi_rejected(self):
        with self.assertRaises(InvalidPaymentError):
            PaymentService.record_payment(
                self.loan.pk, self.actor, Decimal('1000'), emi_number=2,
            )
        self.assertFalse(Payment.objects.exists())

    def test_overpayment_rejected(self):
        PaymentService.record_payment(self.loan.pk, self.actor, Decimal('900'))
        with self.assertRaises(InvalidPaymentError):
            PaymentService.record_payment(self.loan.pk, self.actor, Decimal('100.01'))
        self.assertEqual(self.emi(1).paid_amount, Decimal('900.00'))

    def test_non_positive_amount_rejected(self):
        with self.assertRaises(InvalidPaymentError):
            PaymentService.record_payment(self.loan.pk, self.actor, Decimal('0'))

    def test_last_payment_completes_loan(self):
        for _ in range(3):
            PaymentService.record_payment(self.loan.pk, self.actor, Decimal('1000'))
        self.loan.refresh_from_db()
        self.assertEqual(self.loan.status, LoanStatus.COMPLETED)
        summary = summarize(self.loan)
        self.assertEqual(summary.status, 'completed')
        self.assertEqual(summary.outstanding_balance, Decimal('0.00'))
        self.assertIsNone(summary.next_due_date)

    def test_completed_loan_rejects_payments(self):
        for _ in range(3):
            PaymentService.record_payment(self.loan.pk, self.actor, Decimal('1000'))
        with self.assertRaises(InvalidLoanTransitionError):
            PaymentService.record_payment(self.loan.pk, self.actor, Decimal('1'))

    def test_pending_loan_rejects_payments(self):
        pending = make_loan(self.lender, self.borrower, start_date=timezone.localdate())
        with self.assertRaises(InvalidLoanTransitionError):
            PaymentService.record_payment(pending.pk, self.actor, Decimal('100'))

    def test_borrower_cannot_record(self):
        with self.assertRaises(UnauthorizedActionError):
            PaymentService.record_payment(
                self.loan.pk, actor_for(self.borrower), Decimal('100'),
            )

    def test_summary_after_partial_payment(self):
        PaymentService.record_payment(self.loan.pk, self.actor, Decimal('400'))
        summary = summarize(LoanService.get_loan(self.loan.pk, self.actor))
        self.assertEqual(summary.status, 'active')
        self.assertEqual(summary.outstanding_balance, Decimal('2600.00'))
        self.assertEqual(summary.next_due_amount, Decimal('600.00'))
        self.assertEqual(summary.paid_emis, 0)



class TinyLoanPaymentTests(TestCase):
    """Loans at the smallest amounts must still be repayable."""

    def setUp(self):
        self.lender = make_member(Role.LENDER)
        self.borrower = make_member(Role.BORROWER, lender=self.lender)
        self.actor = actor_for(self.lender)

    def test_loan_with_zero_emi_is_refused(self):
        with self.assertRaises(InvalidTermsError):
            make_loan(self.lender, self.borrower, principal='0.05', rate='12', tenure=12)
        self.assertFalse(Loan.objects.exists())

    def test_smallest_loan_can_be_repaid(self):
        today = timezone.localdate()
        loan = make_loan(
            self.lender, self.borrower,
            principal='0.12', rate='0', tenure=12,
            start_date=today, approve_on=today,
        )
        for _ in range(12):
            PaymentService.record_payment(loan.pk, self.actor, Decimal('0.01'))
        loan.refresh_from_db()
        self.assertEqual(loan.status, LoanStatus.COMPLETED)
        self.assertFalse(
            EMI.objects.filter(loan=loan).exclude(status=EMIStatus.PAID).exists()
        )

@override_settings(API_KEYS=['test-key'])
class RecordPaymentAPITests(TestCase):
    """Test POST /api/loans/<loan_id>/payments."""

    def setUp(self):
        self.client = APIClient()
        self.lender = make_member(Role.LENDER)
        self.borrower = make_member(Role.BORROWER, lender=self.lender)
        today = timezone.localdate()
        self.loan = make_loan(
            self.lender, self.borrower,
            principal='3000', rate='0', tenure=3,
            start_date=today, approve_on=today,
        )
        self.url = f'/api/loans/{self.loan.pk}/payments'
        self.header = {
            'HTTP_X_API_KEY': 'test-key',
            'HTTP_X_ACTOR_ID': str(self.lender.pk),
        }

    def test_record_payment(self):
        response = self.client.post(self.url, {
            'amount': '1000.00',
            'method': 'upi',
            'reference': 'UPI-123',
        }, format='json', **self.header)
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data['emi_number'], 1)
        self.assertEqual(data['emi_status'], 'paid')
        self.assertEqual(data['method'], 'upi')
        self.assertEqual(data['amount'], '1000.00')

    def test_overpayment(self):
        response = self.client.post(
            self.url, {'amount': '1500.00'}, format='json', **self.header,
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'invalid_payment')

    def test_invalid_method(self):
        response = self.client.post(
            self.url, {'amount': '100', 'method': 'crypto'}, format='json', **self.header,
        )
        self.assertEqual(response.status_code, 400)

    def test_trashed_loan_not_found(self):
        self.client.delete(f'/api/loans/{self.loan.pk}', **self.header)
        response = self.client.post(
            self.url, {'amount': '100'}, format='json', **self.header,
        )
        self.assertEqual(response.status_code, 404)
