from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class ClinicDoctor(models.Model):
    """Doctor consulting at a clinic branch; paid the full consultation fee."""

    doctor_number = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200)
    qualification = models.CharField(max_length=200, blank=True, default='')
    specialty = models.CharField(max_length=200, blank=True, default='')
    registration_number = models.CharField(max_length=64, unique=True)
    phone = models.CharField(max_length=32, blank=True, default='', db_index=True)
    email = models.EmailField(blank=True, default='')
    letterhead_note = models.TextField(blank=True, default='')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'doctors_clinicdoctor'
        ordering = ['-created_at', '-id']
        verbose_name = 'Clinic Doctor'
        verbose_name_plural = 'Clinic Doctors'

    def __str__(self) -> str:
        return f"{self.doctor_number} {self.name}"


class ReferralDoctor(models.Model):
    """External doctor referring diagnostic patients for a commission."""

    doctor_number = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=32, blank=True, default='', db_index=True)
    email = models.EmailField(blank=True, default='')
    commission_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    # same person also consulting at a clinic
    clinic_doctor = models.ForeignKey(
        ClinicDoctor,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='referral_profiles',
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'doctors_referraldoctor'
        ordering = ['-created_at', '-id']
        verbose_name = 'Referral Doctor'
        verbose_name_plural = 'Referral Doctors'

    def __str__(self) -> str:
        return f"{self.doctor_number} {self.name}"
