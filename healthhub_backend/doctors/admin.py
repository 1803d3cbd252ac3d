from django.contrib import admin

from healthhub_backend.doctors.models import ClinicDoctor, ReferralDoctor


@admin.register(ReferralDoctor)
class ReferralDoctorAdmin(admin.ModelAdmin):
    list_display = ("doctor_number", "name", "phone", "commission_percent", "clinic_doctor", "is_active")
    list_filter = ("is_active",)
    search_fields = ("doctor_number", "name", "phone", "email")
    readonly_fields = ("doctor_number", "created_at", "updated_at")


@admin.register(ClinicDoctor)
class ClinicDoctorAdmin(admin.ModelAdmin):
    list_display = ("doctor_number", "name", "specialty", "registration_number", "phone", "is_active")
    list_filter = ("is_active", "specialty")
    search_fields = ("doctor_number", "name", "registration_number", "phone")
    readonly_fields = ("doctor_number", "created_at", "updated_at")
