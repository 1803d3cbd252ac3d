"""
Visits and billing.

A Visit is one billable encounter of a patient at a branch, either a
diagnostic (lab) visit with TestOrders or a clinic consultation with a
ClinicVisit. Every visit has exactly one Bill carrying the same
branch-scoped bill number.
"""

from django.conf import settings
from django.db import models


class Visit(models.Model):
    DOMAIN_DIAGNOSTICS = 'DIAGNOSTICS'
    DOMAIN_CLINIC = 'CLINIC'

    DOMAIN_CHOICES = [
        (DOMAIN_DIAGNOSTICS, 'Diagnostics'),
        (DOMAIN_CLINIC, 'Clinic'),
    ]

    STATUS_DRAFT = 'DRAFT'
    STATUS_WAITING = 'WAITING'
    STATUS_IN_PROGRESS = 'IN_PROGRESS'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CANCELLED = 'CANCELLED'

    STATUS_CHOICES = [
        (STATUS_DRAFT, 'Draft'),
        (STATUS_WAITING, 'Waiting'),
        (STATUS_IN_PROGRESS, 'In progress'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    branch = models.ForeignKey('core.Branch', on_delete=models.PROTECT, related_name='visits')
    patient = models.ForeignKey('patients.Patient', on_delete=models.PROTECT, related_name='visits')
    domain = models.CharField(max_length=16, choices=DOMAIN_CHOICES, db_index=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_DRAFT, db_index=True)
    bill_number = models.CharField(max_length=48, unique=True)
    total_amount_in_paise = models.PositiveIntegerField(default=0)
    referral_doctor = models.ForeignKey(
        'doctors.ReferralDoctor',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='visits',
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_visits',
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'visits_visit'
        ordering = ['-created_at', '-id']
        verbose_name = 'Visit'
        verbose_name_plural = 'Visits'
        indexes = [
            models.Index(fields=['branch', 'domain', 'created_at'], name='visits_branch_domain_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.bill_number} ({self.domain}, {self.status})"


class Bill(models.Model):
    PAYMENT_CASH = 'CASH'
    PAYMENT_ONLINE = 'ONLINE'
    PAYMENT_CHEQUE = 'CHEQUE'

    PAYMENT_TYPE_CHOICES = [
        (PAYMENT_CASH, 'Cash'),
        (PAYMENT_ONLINE, 'Online'),
        (PAYMENT_CHEQUE, 'Cheque'),
    ]

    STATUS_PENDING = 'PENDING'
    STATUS_PAID = 'PAID'

    PAYMENT_STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PAID, 'Paid'),
    ]

    visit = models.OneToOneField(Visit, on_delete=models.CASCADE, related_name='bill')
    branch = models.ForeignKey('core.Branch', on_delete=models.PROTECT, related_name='bills')
    bill_number = models.CharField(max_length=48, unique=True)
    total_amount_in_paise = models.PositiveIntegerField(default=0)
    payment_type = models.CharField(max_length=8, choices=PAYMENT_TYPE_CHOICES, default=PAYMENT_CASH)
    payment_status = models.CharField(max_length=8, choices=PAYMENT_STATUS_CHOICES, default=STATUS_PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'visits_bill'
        ordering = ['-created_at', '-id']
        verbose_name = 'Bill'
        verbose_name_plural = 'Bills'

    def __str__(self) -> str:
        return f"{self.bill_number} {self.payment_status}"


class TestOrder(models.Model):
    """One ordered test; catalogue values are copied at order time."""

    visit = models.ForeignKey(Visit, on_delete=models.CASCADE, related_name='test_orders')
    branch = models.ForeignKey('core.Branch', on_delete=models.PROTECT, related_name='test_orders')
    test = models.ForeignKey('lab.LabTest', on_delete=models.PROTECT, related_name='orders')
    price_in_paise = models.PositiveIntegerField(default=0)
    referral_commission_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    test_name_snapshot = models.CharField(max_length=200, blank=True, default='')
    test_code_snapshot = models.CharField(max_length=32, blank=True, default='')
    reference_min_snapshot = models.FloatField(null=True, blank=True)
    reference_max_snapshot = models.FloatField(null=True, blank=True)
    reference_unit_snapshot = models.CharField(max_length=32, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'visits_testorder'
        ordering = ['id']
        verbose_name = 'Test Order'
        verbose_name_plural = 'Test Orders'

    def __str__(self) -> str:
        return f"{self.visit.bill_number}: {self.test_code_snapshot or self.test_id}"


class ClinicVisit(models.Model):
    VISIT_TYPE_OP = 'OP'
    VISIT_TYPE_IP = 'IP'

    VISIT_TYPE_CHOICES = [
        (VISIT_TYPE_OP, 'Out-patient'),
        (VISIT_TYPE_IP, 'In-patient'),
    ]

    visit = models.OneToOneField(Visit, on_delete=models.CASCADE, related_name='clinic_visit')
    clinic_doctor = models.ForeignKey('doctors.ClinicDoctor', on_delete=models.PROTECT, related_name='clinic_visits')
    visit_type = models.CharField(max_length=2, choices=VISIT_TYPE_CHOICES, default=VISIT_TYPE_OP)
    # IP only
    hospital_ward = models.CharField(max_length=100, blank=True, default='')
    consultation_fee_in_paise = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=16, choices=Visit.STATUS_CHOICES, default=Visit.STATUS_WAITING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'visits_clinicvisit'
        ordering = ['-created_at', '-id']
        verbose_name = 'Clinic Visit'
        verbose_name_plural = 'Clinic Visits'

    def __str__(self) -> str:
        return f"{self.visit.bill_number} {self.visit_type} with {self.clinic_doctor_id}"
