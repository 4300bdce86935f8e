from django.contrib import admin

from apps.loans.models import EMI, Loan, Payment


class EMIInline(admin.TabularInline):
    model = EMI
    extra = 0
    fields = (
        'emi_number', 'due_date', 'amount', 'principal_amount',
        'interest_amount', 'outstanding_balance', 'paid_amount', 'status',
    )
    readonly_fields = fields
    can_delete = False


@admin.register(Loan)
class LoanAdmin(admin.ModelAdmin):
    list_display = (
        'loan_number', 'lender', 'borrower', 'principal_amount',
        'interest_rate', 'tenure_months', 'emi_amount', 'status',
        'disbursement_date', 'is_deleted', 'deleted_at',
    )
    list_filter = ('status', 'is_deleted', 'disbursement_date')
    search_fields = ('loan_number', 'borrower__full_name', 'lender__full_name')
    readonly_fields = ('created_at', 'updated_at', 'deleted_at')
    raw_id_fields = ('lender', 'borrower')
    inlines = [EMIInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('id', 'loan', 'emi', 'amount', 'method', 'paid_on', 'recorded_by')
    list_filter = ('method', 'paid_on')
    search_fields = ('loan__loan_number', 'reference')
    raw_id_fields = ('loan', 'emi', 'recorded_by')
