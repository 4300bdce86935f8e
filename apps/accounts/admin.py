from django.contrib import admin

from apps.accounts.models import Member


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'full_name', 'email', 'phone', 'role',
        'active', 'lender', 'created_at',
    )
    list_filter = ('role', 'active', 'created_at')
    search_fields = ('full_name', 'email', 'phone')
    readonly_fields = ('created_at', 'updated_at')
    raw_id_fields = ('lender',)
