"""
Doctor payout ledger.

One row per (doctor, branch, period). The derived amount is frozen when the
row is created; line items are recomputed for display. Once paid, a row is
read-only.
"""

from django.db import models
from django.db.models import Q

from .exceptions import PayoutImmutable


class DoctorPayoutLedger(models.Model):
    DOCTOR_REFERRAL = 'REFERRAL'
    DOCTOR_CLINIC = 'CLINIC'

    DOCTOR_TYPE_CHOICES = [
        (DOCTOR_REFERRAL, 'Referral doctor'),
        (DOCTOR_CLINIC, 'Clinic doctor'),
    ]

    METHOD_CASH = 'CASH'
    METHOD_ONLINE = 'ONLINE'
    METHOD_CHEQUE = 'CHEQUE'

    PAYMENT_METHOD_CHOICES = [
        (METHOD_CASH, 'Cash'),
        (METHOD_ONLINE, 'Online'),
        (METHOD_CHEQUE, 'Cheque'),
    ]

    doctor_type = models.CharField(max_length=16, choices=DOCTOR_TYPE_CHOICES, db_index=True)
    referral_doctor = models.ForeignKey(
        'doctors.ReferralDoctor',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='payouts',
    )
    clinic_doctor = models.ForeignKey(
        'doctors.ClinicDoctor',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='payouts',
    )
    branch = models.ForeignKey('core.Branch', on_delete=models.PROTECT, related_name='payouts')
    period_start_date = models.DateField()
    period_end_date = models.DateField()
    derived_amount_in_paise = models.BigIntegerField(default=0)
    derived_at = models.DateTimeField(auto_now_add=True, db_index=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    payment_method = models.CharField(max_length=16, choices=PAYMENT_METHOD_CHOICES, null=True, blank=True)
    payment_reference_id = models.CharField(max_length=128, blank=True, default='')
    notes = models.TextField(blank=True, default='')
    reviewed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'payouts_doctorpayoutledger'
        ordering = ['-derived_at', '-id']
        verbose_name = 'Doctor Payout'
        verbose_name_plural = 'Doctor Payouts'
        # one unique constraint per doctor type: NULL FKs never collide
        constraints = [
            models.UniqueConstraint(
                fields=['referral_doctor', 'branch', 'period_start_date', 'period_end_date'],
                condition=Q(doctor_type='REFERRAL'),
                name='payouts_referral_period_unique',
            ),
            models.UniqueConstraint(
                fields=['clinic_doctor', 'branch', 'period_start_date', 'period_end_date'],
                condition=Q(doctor_type='CLINIC'),
                name='payouts_clinic_period_unique',
            ),
        ]
        indexes = [
            models.Index(fields=['branch', 'doctor_type'], name='payouts_branch_type_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.doctor_type} {self.doctor_id} {self.period_start_date}..{self.period_end_date}"

    @property
    def doctor(self):
        return self.referral_doctor if self.doctor_type == self.DOCTOR_REFERRAL else self.clinic_doctor

    @property
    def doctor_id(self):
        return self.referral_doctor_id if self.doctor_type == self.DOCTOR_REFERRAL else self.clinic_doctor_id

    @property
    def is_paid(self) -> bool:
        return self.paid_at is not None

    def save(self, *args, **kwargs):
        if self.pk is not None:
            stored_paid_at = (
                type(self).objects.using(kwargs.get('using') or self._state.db or 'default')
                .filter(pk=self.pk)
                .values_list('paid_at', flat=True)
                .first()
            )
            if stored_paid_at is not None:
                raise PayoutImmutable(f'Payout {self.pk} is already paid')
        super().save(*args, **kwargs)
