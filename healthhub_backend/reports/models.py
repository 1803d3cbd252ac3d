"""
Diagnostic reports.

Each diagnostic visit owns one DiagnosticReport with numbered
ReportVersions. A version is edited while DRAFT; finalization freezes it
together with a JSON snapshot that is the only input for rendering.
Corrections go into a new version (amendment), never into a finalized one.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from .exceptions import ReportImmutable


class DiagnosticReport(models.Model):
    visit = models.OneToOneField('visits.Visit', on_delete=models.CASCADE, related_name='report')
    branch = models.ForeignKey('core.Branch', on_delete=models.PROTECT, related_name='reports')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'reports_diagnosticreport'
        ordering = ['-created_at', '-id']
        verbose_name = 'Diagnostic Report'
        verbose_name_plural = 'Diagnostic Reports'

    def __str__(self) -> str:
        return f"Report for visit {self.visit_id}"


class ReportVersion(models.Model):
    STATUS_DRAFT = 'DRAFT'
    STATUS_FINALIZED = 'FINALIZED'

    STATUS_CHOICES = [
        (STATUS_DRAFT, 'Draft'),
        (STATUS_FINALIZED, 'Finalized'),
    ]

    report = models.ForeignKey(DiagnosticReport, on_delete=models.CASCADE, related_name='versions')
    version_num = models.PositiveIntegerField(default=1)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_DRAFT, db_index=True)
    finalized_at = models.DateTimeField(null=True, blank=True, db_index=True)
    finalized_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='finalized_report_versions',
    )

    # Frozen at finalization
    panels_snapshot = models.JSONField(null=True, blank=True)
    signatures_snapshot = models.JSONField(null=True, blank=True)
    patient_snapshot = models.JSONField(null=True, blank=True)
    visit_snapshot = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'reports_reportversion'
        ordering = ['report', '-version_num']
        verbose_name = 'Report Version'
        verbose_name_plural = 'Report Versions'
        constraints = [
            models.UniqueConstraint(fields=['report', 'version_num'], name='reports_version_unique'),
        ]

    def __str__(self) -> str:
        return f"Report {self.report_id} v{self.version_num} ({self.status})"

    @property
    def is_finalized(self) -> bool:
        return self.status == self.STATUS_FINALIZED

    def _stored_status(self, using=None):
        if self.pk is None:
            return None
        return (
            type(self).objects.using(using or self._state.db or 'default')
            .filter(pk=self.pk)
            .values_list('status', flat=True)
            .first()
        )

    def save(self, *args, **kwargs):
        if self._stored_status(kwargs.get('using')) == self.STATUS_FINALIZED:
            raise ReportImmutable(f'Report version {self.pk} is finalized')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self._stored_status(kwargs.get('using')) == self.STATUS_FINALIZED:
            raise ReportImmutable(f'Report version {self.pk} is finalized')
        return super().delete(*args, **kwargs)


class TestResult(models.Model):
    """A measured value. ``test`` may be a sub-test of the ordered panel."""

    FLAG_NORMAL = 'NORMAL'
    FLAG_HIGH = 'HIGH'
    FLAG_LOW = 'LOW'

    FLAG_CHOICES = [
        (FLAG_NORMAL, 'Normal'),
        (FLAG_HIGH, 'High'),
        (FLAG_LOW, 'Low'),
    ]

    report_version = models.ForeignKey(ReportVersion, on_delete=models.CASCADE, related_name='results')
    test_order = models.ForeignKey('visits.TestOrder', on_delete=models.CASCADE, related_name='results')
    test = models.ForeignKey('lab.LabTest', on_delete=models.PROTECT, related_name='results')
    value = models.FloatField(null=True, blank=True)
    flag = models.CharField(max_length=8, choices=FLAG_CHOICES, blank=True, default='')
    notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'reports_testresult'
        ordering = ['id']
        verbose_name = 'Test Result'
        verbose_name_plural = 'Test Results'
        constraints = [
            models.UniqueConstraint(
                fields=['report_version', 'test_order', 'test'],
                name='reports_result_unique',
            ),
        ]

    def __str__(self) -> str:
        return f"v{self.report_version_id} test {self.test_id} = {self.value}"


class ReportAccessToken(models.Model):
    """Unguessable public link token (/r/<token>/) for one finalized version."""

    token = models.CharField(max_length=12, unique=True)
    report_version = models.ForeignKey(ReportVersion, on_delete=models.CASCADE, related_name='access_tokens')
    # null = never expires
    expires_at = models.DateTimeField(null=True, blank=True)
    access_count = models.PositiveIntegerField(default=0)
    last_accessed_at = models.DateTimeField(null=True, blank=True)
    last_accessed_ip = models.CharField(max_length=64, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'reports_accesstoken'
        ordering = ['-created_at']
        verbose_name = 'Report Access Token'
        verbose_name_plural = 'Report Access Tokens'

    def __str__(self) -> str:
        return f"{self.token} -> v{self.report_version_id}"

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and self.expires_at < timezone.now()


class ReportAccessLog(models.Model):
    TYPE_VIEW = 'VIEW'
    TYPE_DOWNLOAD = 'DOWNLOAD'
    TYPE_PRINT = 'PRINT'

    ACCESS_TYPE_CHOICES = [
        (TYPE_VIEW, 'View'),
        (TYPE_DOWNLOAD, 'Download'),
        (TYPE_PRINT, 'Print'),
    ]

    VIA_TOKEN = 'TOKEN'
    VIA_STAFF_PORTAL = 'STAFF_PORTAL'

    ACCESSED_VIA_CHOICES = [
        (VIA_TOKEN, 'Token link'),
        (VIA_STAFF_PORTAL, 'Staff portal'),
    ]

    report_version = models.ForeignKey(ReportVersion, on_delete=models.CASCADE, related_name='access_logs')
    access_type = models.CharField(max_length=16, choices=ACCESS_TYPE_CHOICES)
    accessed_via = models.CharField(max_length=16, choices=ACCESSED_VIA_CHOICES)
    ip_address = models.CharField(max_length=64, blank=True, default='')
    user_agent = models.TextField(blank=True, default='')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='report_accesses',
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'reports_accesslog'
        ordering = ['-created_at', '-id']
        verbose_name = 'Report Access Log'
        verbose_name_plural = 'Report Access Logs'

    def __str__(self) -> str:
        return f"{self.access_type} v{self.report_version_id} via {self.accessed_via}"
