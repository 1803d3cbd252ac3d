from django.contrib import admin

from healthhub_backend.payouts.models import DoctorPayoutLedger


@admin.register(DoctorPayoutLedger)
class DoctorPayoutLedgerAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'doctor_type', 'referral_doctor', 'clinic_doctor', 'branch',
        'period_start_date', 'period_end_date', 'derived_amount_in_paise', 'paid_at',
    )
    list_filter = ('doctor_type', 'branch', 'payment_method')
    search_fields = ('referral_doctor__name', 'clinic_doctor__name', 'payment_reference_id')
    readonly_fields = ('derived_amount_in_paise', 'derived_at', 'paid_at', 'reviewed_at')

    def has_change_permission(self, request, obj=None):
        if obj is not None and obj.is_paid:
            return False
        return super().has_change_permission(request, obj)
