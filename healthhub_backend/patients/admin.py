"""
Patients App - admin for patients, identifiers and the change log
"""

from django.contrib import admin

from healthhub_backend.patients.models import Patient, PatientChangeLog, PatientIdentifier


class PatientIdentifierInline(admin.TabularInline):
    model = PatientIdentifier
    extra = 0
    readonly_fields = ("created_at",)


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("patient_number", "name", "gender", "age_display", "created_at")
    list_filter = ("gender", "created_at")
    search_fields = ("patient_number", "name", "identifiers__value")
    ordering = ("-created_at",)
    list_per_page = 50
    readonly_fields = ("patient_number", "created_at", "updated_at")
    inlines = [PatientIdentifierInline]

    def age_display(self, obj):
        return obj.age
    age_display.short_description = "Age"


@admin.register(PatientChangeLog)
class PatientChangeLogAdmin(admin.ModelAdmin):
    list_display = ("patient", "field_name", "change_type", "changed_by", "changed_by_role", "created_at")
    list_filter = ("change_type", "field_name")
    readonly_fields = [f.name for f in PatientChangeLog._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
