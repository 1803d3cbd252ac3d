from django.contrib import admin

from healthhub_backend.lab.models import (
    Department,
    InterpretationTemplate,
    LabTest,
    PanelDefinition,
    PanelTestItem,
    SigningDoctor,
    SigningRule,
)


@admin.register(LabTest)
class LabTestAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "price_in_paise", "reference_unit", "is_panel", "parent_test", "is_active")
    list_filter = ("is_active", "is_panel")
    search_fields = ("code", "name")


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ("name", "report_header_text", "display_order", "is_active")
    ordering = ("display_order",)


class PanelTestItemInline(admin.TabularInline):
    model = PanelTestItem
    extra = 0
    autocomplete_fields = ("test",)


@admin.register(PanelDefinition)
class PanelDefinitionAdmin(admin.ModelAdmin):
    list_display = ("name", "display_name", "department", "layout_type", "display_order", "is_active")
    list_filter = ("department", "layout_type", "is_active")
    inlines = [PanelTestItemInline]


@admin.register(SigningDoctor)
class SigningDoctorAdmin(admin.ModelAdmin):
    list_display = ("name", "degrees", "designation", "registration_number", "is_active")


@admin.register(SigningRule)
class SigningRuleAdmin(admin.ModelAdmin):
    list_display = ("department", "signing_doctor", "show_lab_incharge_note", "display_order", "is_active")
    list_filter = ("department", "is_active")


@admin.register(InterpretationTemplate)
class InterpretationTemplateAdmin(admin.ModelAdmin):
    list_display = ("test", "min_value", "max_value", "display_order", "is_active")
    list_filter = ("is_active",)
