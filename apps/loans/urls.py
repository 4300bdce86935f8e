"""
Loan URL configuration.
"""

from django.urls import path

from apps.loans.views import (
    ApproveLoanView,
    DashboardView,
    DefaultLoanView,
    EMICalculatorView,
    LoanDetailView,
    LoanListCreateView,
    LoanScheduleView,
    RecordPaymentView,
    TrashCleanupView,
    TrashListView,
    TrashPurgeView,
    TrashRestoreView,
)

urlpatterns = [
    path('emi-calculator', EMICalculatorView.as_view(), name='emi-calculator'),
    path('loans', LoanListCreateView.as_view(), name='loan-list'),
    path('loans/<int:loan_id>', LoanDetailView.as_view(), name='loan-detail'),
    path('loans/<int:loan_id>/schedule', LoanScheduleView.as_view(), name='loan-schedule'),
    path('loans/<int:loan_id>/approve', ApproveLoanView.as_view(), name='loan-approve'),
    path('loans/<int:loan_id>/default', DefaultLoanView.as_view(), name='loan-default'),
    path('loans/<int:loan_id>/payments', RecordPaymentView.as_view(), name='loan-payments'),
    path('dashboard', DashboardView.as_view(), name='dashboard'),
    path('trash', TrashListView.as_view(), name='trash-list'),
    path('trash/cleanup', TrashCleanupView.as_view(), name='trash-cleanup'),
    path('trash/<int:loan_id>', TrashPurgeView.as_view(), name='trash-purge'),
    path('trash/<int:loan_id>/restore', TrashRestoreView.as_view(), name='trash-restore'),
]
