from django.contrib import admin

from healthhub_backend.visits.models import Bill, ClinicVisit, TestOrder, Visit


class BillInline(admin.StackedInline):
    model = Bill
    extra = 0
    readonly_fields = ('bill_number', 'total_amount_in_paise', 'created_at', 'updated_at')


class TestOrderInline(admin.TabularInline):
    model = TestOrder
    extra = 0
    fields = ('test', 'test_code_snapshot', 'test_name_snapshot', 'price_in_paise', 'referral_commission_percentage')
    readonly_fields = fields


@admin.register(Visit)
class VisitAdmin(admin.ModelAdmin):
    list_display = ('bill_number', 'domain', 'status', 'patient', 'branch', 'total_amount_in_paise', 'created_at')
    list_filter = ('domain', 'status', 'branch')
    search_fields = ('bill_number', 'patient__name', 'patient__patient_number')
    readonly_fields = ('bill_number', 'created_at', 'updated_at')
    inlines = [BillInline, TestOrderInline]


@admin.register(ClinicVisit)
class ClinicVisitAdmin(admin.ModelAdmin):
    list_display = ('visit', 'clinic_doctor', 'visit_type', 'status', 'consultation_fee_in_paise', 'created_at')
    list_filter = ('visit_type', 'status')
    search_fields = ('visit__bill_number', 'clinic_doctor__name')
