from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone


def age_from(year_of_birth, date_of_birth=None, today=None):
    """Age in whole years; exact when a date of birth is known."""
    today = today or timezone.localdate()
    if date_of_birth:
        had_birthday = (today.month, today.day) >= (date_of_birth.month, date_of_birth.day)
        return today.year - date_of_birth.year - (0 if had_birthday else 1)
    if year_of_birth is None:
        return None
    return today.year - year_of_birth


class Patient(models.Model):
    """A person registered at any branch. Patients are global, visits are branch-scoped."""

    GENDER_MALE = 'M'
    GENDER_FEMALE = 'F'
    GENDER_OTHER = 'O'

    GENDER_CHOICES = [
        (GENDER_MALE, 'Male'),
        (GENDER_FEMALE, 'Female'),
        (GENDER_OTHER, 'Other'),
    ]

    patient_number = models.CharField(max_length=32, unique=True)
    # stored upper-case
    name = models.CharField(max_length=100, db_index=True)
    gender = models.CharField(max_length=1, choices=GENDER_CHOICES)
    year_of_birth = models.PositiveIntegerField()
    date_of_birth = models.DateField(null=True, blank=True)
    address = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patients_patient'
        ordering = ['-created_at', '-id']
        verbose_name = 'Patient'
        verbose_name_plural = 'Patients'

    def __str__(self) -> str:
        return f"{self.patient_number} {self.name}"

    @property
    def age(self):
        return age_from(self.year_of_birth, self.date_of_birth)

    def primary_identifier(self, identifier_type):
        for identifier in self.identifiers.all():
            if identifier.type == identifier_type and identifier.is_primary:
                return identifier
        return None

    @property
    def primary_phone(self):
        identifier = self.primary_identifier(PatientIdentifier.TYPE_PHONE)
        return identifier.value if identifier else None

    @property
    def primary_email(self):
        identifier = self.primary_identifier(PatientIdentifier.TYPE_EMAIL)
        return identifier.value if identifier else None


class PatientIdentifier(models.Model):
    """Phone/email contact of a patient. Several patients may share a phone (families)."""

    TYPE_PHONE = 'PHONE'
    TYPE_EMAIL = 'EMAIL'

    TYPE_CHOICES = [
        (TYPE_PHONE, 'Phone'),
        (TYPE_EMAIL, 'Email'),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='identifiers')
    type = models.CharField(max_length=8, choices=TYPE_CHOICES)
    value = models.CharField(max_length=254, db_index=True)
    is_primary = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'patients_identifier'
        ordering = ['-is_primary', 'id']
        verbose_name = 'Patient Identifier'
        verbose_name_plural = 'Patient Identifiers'
        constraints = [
            models.UniqueConstraint(
                fields=['patient', 'type'],
                condition=Q(is_primary=True),
                name='patients_one_primary_per_type',
            ),
        ]
        indexes = [
            models.Index(fields=['type', 'value'], name='patients_ident_type_val_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.type}: {self.value}{' (primary)' if self.is_primary else ''}"


class PatientChangeLog(models.Model):
    """One row per changed field of a patient update."""

    CHANGE_IDENTITY = 'IDENTITY'
    CHANGE_NON_IDENTITY = 'NON_IDENTITY'

    CHANGE_TYPE_CHOICES = [
        (CHANGE_IDENTITY, 'Identity'),
        (CHANGE_NON_IDENTITY, 'Non-identity'),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='change_logs')
    field_name = models.CharField(max_length=64)
    old_value = models.TextField(null=True, blank=True)
    new_value = models.TextField(null=True, blank=True)
    change_type = models.CharField(max_length=16, choices=CHANGE_TYPE_CHOICES)
    change_reason = models.TextField(blank=True, default='')
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='patient_changes',
    )
    changed_by_role = models.CharField(max_length=50, blank=True, default='')
    request_id = models.CharField(max_length=64, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'patients_changelog'
        ordering = ['-created_at', '-id']
        verbose_name = 'Patient Change Log'
        verbose_name_plural = 'Patient Change Logs'

    def __str__(self) -> str:
        return f"{self.patient_id} {self.field_name}: {self.old_value} -> {self.new_value}"
