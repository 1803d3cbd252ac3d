from django.contrib import admin

from healthhub_backend.reports.models import (
    DiagnosticReport,
    ReportAccessLog,
    ReportAccessToken,
    ReportVersion,
    TestResult,
)


class ReportVersionInline(admin.TabularInline):
    model = ReportVersion
    extra = 0
    fields = ('version_num', 'status', 'finalized_at', 'finalized_by')
    readonly_fields = fields
    can_delete = False
    show_change_link = True


@admin.register(DiagnosticReport)
class DiagnosticReportAdmin(admin.ModelAdmin):
    list_display = ('id', 'visit', 'branch', 'created_at')
    list_filter = ('branch',)
    search_fields = ('visit__bill_number', 'visit__patient__name')
    inlines = [ReportVersionInline]


class TestResultInline(admin.TabularInline):
    model = TestResult
    extra = 0
    fields = ('test_order', 'test', 'value', 'flag', 'notes')


@admin.register(ReportVersion)
class ReportVersionAdmin(admin.ModelAdmin):
    list_display = ('report', 'version_num', 'status', 'finalized_at', 'finalized_by')
    list_filter = ('status',)
    search_fields = ('report__visit__bill_number',)
    readonly_fields = (
        'status', 'finalized_at', 'finalized_by',
        'panels_snapshot', 'signatures_snapshot', 'patient_snapshot', 'visit_snapshot',
        'created_at', 'updated_at',
    )
    inlines = [TestResultInline]

    def has_change_permission(self, request, obj=None):
        if obj is not None and obj.is_finalized:
            return False
        return super().has_change_permission(request, obj)

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.is_finalized:
            return False
        return super().has_delete_permission(request, obj)


@admin.register(ReportAccessToken)
class ReportAccessTokenAdmin(admin.ModelAdmin):
    list_display = ('token', 'report_version', 'expires_at', 'access_count', 'last_accessed_at')
    search_fields = ('token',)
    readonly_fields = ('token', 'access_count', 'last_accessed_at', 'last_accessed_ip', 'created_at')


@admin.register(ReportAccessLog)
class ReportAccessLogAdmin(admin.ModelAdmin):
    list_display = ('report_version', 'access_type', 'accessed_via', 'ip_address', 'user', 'created_at')
    list_filter = ('access_type', 'accessed_via')
    readonly_fields = [f.name for f in ReportAccessLog._meta.fields]

    def has_add_permission(self, request):
        return False
