from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


class Role(models.Model):
    """User roles for RBAC (Role-Based Access Control).

    Standard roles: admin, owner, staff
    """

    name = models.CharField(max_length=64, unique=True, db_index=True)
    label = models.CharField(max_length=128)

    class Meta:
        db_table = 'core_role'
        ordering = ['name']
        verbose_name = 'Role'
        verbose_name_plural = 'Roles'

    def __str__(self) -> str:
        return self.label


class Branch(models.Model):
    """A physical lab/clinic location. Bills and visits are numbered per branch."""

    name = models.CharField(max_length=128)
    code = models.CharField(max_length=16, unique=True)
    address = models.TextField(blank=True, default='')
    phone = models.CharField(max_length=32, blank=True, default='')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'core_branch'
        ordering = ['name']
        verbose_name = 'Branch'
        verbose_name_plural = 'Branches'

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"


class User(AbstractUser):
    """Custom User model with role-based access control.

    Extends Django's AbstractUser with:
    - role: ForeignKey to Role for RBAC
    - active_branch: branch context for all branch-scoped endpoints
    - email: Made unique (required for JWT auth)
    """

    email = models.EmailField('email address', blank=True, unique=True)
    phone = models.CharField(max_length=32, blank=True, default='')
    role = models.ForeignKey(
        Role,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name='users',
    )
    active_branch = models.ForeignKey(
        Branch,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='active_users',
    )

    class Meta:
        db_table = 'core_user'
        ordering = ['username']
        verbose_name = 'User'
        verbose_name_plural = 'Users'


class AuditLog(models.Model):
    """Insert-only audit trail of state changes.

    entity_id is stored as a string so one table covers every entity type.
    """

    ACTION_CREATE = 'CREATE'
    ACTION_UPDATE = 'UPDATE'
    ACTION_DELETE = 'DELETE'
    ACTION_FINALIZE = 'FINALIZE'
    ACTION_PAYOUT_DERIVE = 'PAYOUT_DERIVE'
    ACTION_PAYOUT_PAID = 'PAYOUT_PAID'
    ACTION_REPORT_ACCESS = 'REPORT_ACCESS'

    ACTION_CHOICES = [
        (ACTION_CREATE, 'Create'),
        (ACTION_UPDATE, 'Update'),
        (ACTION_DELETE, 'Delete'),
        (ACTION_FINALIZE, 'Finalize'),
        (ACTION_PAYOUT_DERIVE, 'Payout derive'),
        (ACTION_PAYOUT_PAID, 'Payout paid'),
        (ACTION_REPORT_ACCESS, 'Report access'),
    ]

    branch = models.ForeignKey(
        Branch,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs',
    )
    role_name = models.CharField(max_length=50, blank=True, default='')
    action_type = models.CharField(max_length=32, choices=ACTION_CHOICES, db_index=True)
    entity_type = models.CharField(max_length=64, db_index=True)
    entity_id = models.CharField(max_length=64)
    old_values = models.JSONField(null=True, blank=True)
    new_values = models.JSONField(null=True, blank=True)
    ip_address = models.CharField(max_length=64, blank=True, default='')
    user_agent = models.TextField(blank=True, default='')
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'core_auditlog'
        ordering = ['-timestamp', '-id']
        verbose_name = 'Audit Log'
        verbose_name_plural = 'Audit Logs'
        indexes = [
            models.Index(fields=['entity_type', 'entity_id'], name='core_audit_entity_idx'),
            models.Index(fields=['branch', 'timestamp'], name='core_audit_branch_ts_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.timestamp} {self.action_type} {self.entity_type}#{self.entity_id}"


class NumberSequence(models.Model):
    """Counter row behind one gapless number series (patients, bills, doctors)."""

    id = models.CharField(max_length=64, primary_key=True)
    prefix = models.CharField(max_length=32)
    last_value = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'core_numbersequence'
        ordering = ['id']
        verbose_name = 'Number Sequence'
        verbose_name_plural = 'Number Sequences'

    def __str__(self) -> str:
        return f"{self.id} ({self.prefix}-{self.last_value:05d})"
