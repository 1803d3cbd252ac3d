"""
Referral and clinic doctor directory.

Doctors are global (not branch-scoped); the acting user's active branch is
recorded on the audit entries only.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.db.models import Q
from django.forms.models import model_to_dict

from healthhub_backend.core.models import AuditLog
from healthhub_backend.core.services.numbering import (
    generate_clinic_doctor_number,
    generate_referral_doctor_number,
)
from healthhub_backend.core.utils import log_action
from healthhub_backend.doctors.exceptions import DoctorNotFound, DuplicateDoctor, InvalidDoctorData
from healthhub_backend.doctors.models import ClinicDoctor, ReferralDoctor

REFERRAL_FIELDS = ('name', 'phone', 'email', 'commission_percent', 'clinic_doctor', 'is_active')
CLINIC_FIELDS = (
    'name', 'qualification', 'specialty', 'registration_number',
    'phone', 'email', 'letterhead_note', 'is_active',
)


def _audit_values(doctor, fields):
    values = model_to_dict(doctor, fields=fields)
    for key, value in values.items():
        if isinstance(value, Decimal):
            values[key] = str(value)
    values['doctor_number'] = doctor.doctor_number
    return values


def _commission(value) -> Decimal:
    try:
        percent = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidDoctorData('Commission percent must be a number', field='commission_percent')
    if percent < 0 or percent > 100:
        raise InvalidDoctorData('Commission percent must be between 0 and 100', field='commission_percent')
    return percent


def _log(user, action_type, doctor, *, old_values=None, new_values=None, request=None):
    log_action(
        user=user,
        branch=getattr(user, 'active_branch', None),
        action_type=action_type,
        entity_type=type(doctor).__name__,
        entity_id=doctor.pk,
        old_values=old_values,
        new_values=new_values,
        request=request,
    )


def _check_active_phone(model, phone, *, exclude_pk=None):
    if not phone:
        return
    qs = model.objects.using('default').filter(phone=phone, is_active=True)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    existing = qs.first()
    if existing:
        raise DuplicateDoctor(
            f'{model._meta.verbose_name} with phone {phone} already exists: '
            f'{existing.name} ({existing.doctor_number})',
            code='DUPLICATE_PHONE',
            existing=existing,
        )


def get_referral_doctor(doctor_id) -> ReferralDoctor:
    try:
        return ReferralDoctor.objects.using('default').get(pk=doctor_id)
    except (ReferralDoctor.DoesNotExist, ValueError, TypeError):
        raise DoctorNotFound('Referral doctor not found')


def get_clinic_doctor(doctor_id) -> ClinicDoctor:
    try:
        return ClinicDoctor.objects.using('default').get(pk=doctor_id)
    except (ClinicDoctor.DoesNotExist, ValueError, TypeError):
        raise DoctorNotFound('Clinic doctor not found')


def list_referral_doctors(*, include_inactive=False):
    qs = ReferralDoctor.objects.using('default').select_related('clinic_doctor')
    return qs if include_inactive else qs.filter(is_active=True)


def list_clinic_doctors(*, include_inactive=False):
    qs = ClinicDoctor.objects.using('default').all()
    return qs if include_inactive else qs.filter(is_active=True)


# -----------------------------------------------------------------------------
# Referral doctors
# -----------------------------------------------------------------------------


def create_referral_doctor(*, data: dict, user, request=None) -> ReferralDoctor:
    name = (data.get('name') or '').strip()
    if not name:
        raise InvalidDoctorData('Name is required', field='name')
    commission = _commission(data.get('commission_percent', 0))
    phone = (data.get('phone') or '').strip()
    _check_active_phone(ReferralDoctor, phone)

    clinic_doctor = None
    if data.get('clinic_doctor_id'):
        clinic_doctor = get_clinic_doctor(data['clinic_doctor_id'])

    with transaction.atomic(using='default'):
        doctor = ReferralDoctor.objects.using('default').create(
            doctor_number=generate_referral_doctor_number(),
            name=name,
            phone=phone,
            email=(data.get('email') or '').strip(),
            commission_percent=commission,
            clinic_doctor=clinic_doctor,
        )

    _log(user, AuditLog.ACTION_CREATE, doctor,
         new_values=_audit_values(doctor, REFERRAL_FIELDS), request=request)
    return doctor


def update_referral_doctor(*, doctor: ReferralDoctor, data: dict, user, request=None) -> ReferralDoctor:
    old_values = _audit_values(doctor, REFERRAL_FIELDS)

    if 'commission_percent' in data:
        doctor.commission_percent = _commission(data['commission_percent'])
    if 'phone' in data:
        phone = (data['phone'] or '').strip()
        if phone != doctor.phone:
            _check_active_phone(ReferralDoctor, phone, exclude_pk=doctor.pk)
        doctor.phone = phone
    for field in ('name', 'email'):
        if field in data:
            setattr(doctor, field, (data[field] or '').strip())
    if 'is_active' in data:
        doctor.is_active = bool(data['is_active'])
    if 'clinic_doctor_id' in data:
        doctor.clinic_doctor = get_clinic_doctor(data['clinic_doctor_id']) if data['clinic_doctor_id'] else None

    doctor.save(using='default')
    _log(user, AuditLog.ACTION_UPDATE, doctor, old_values=old_values,
         new_values=_audit_values(doctor, REFERRAL_FIELDS), request=request)
    return doctor


def deactivate_referral_doctor(*, doctor: ReferralDoctor, user, request=None) -> ReferralDoctor:
    old_values = _audit_values(doctor, REFERRAL_FIELDS)
    doctor.is_active = False
    doctor.save(using='default', update_fields=['is_active', 'updated_at'])
    _log(user, AuditLog.ACTION_DELETE, doctor, old_values=old_values, request=request)
    return doctor


# -----------------------------------------------------------------------------
# Clinic doctors
# -----------------------------------------------------------------------------


def create_clinic_doctor(*, data: dict, user, request=None) -> ClinicDoctor:
    name = (data.get('name') or '').strip()
    registration_number = (data.get('registration_number') or '').strip()
    if not name:
        raise InvalidDoctorData('Name is required', field='name')
    if not registration_number:
        raise InvalidDoctorData('Registration number is required', field='registration_number')

    existing = ClinicDoctor.objects.using('default').filter(registration_number=registration_number).first()
    if existing:
        raise DuplicateDoctor(
            f'Clinic doctor with registration {registration_number} already exists: '
            f'{existing.name} ({existing.doctor_number})',
            code='DUPLICATE_REGISTRATION',
            existing=existing,
        )
    phone = (data.get('phone') or '').strip()
    _check_active_phone(ClinicDoctor, phone)

    referral_doctor = None
    if data.get('referral_doctor_id'):
        referral_doctor = get_referral_doctor(data['referral_doctor_id'])

    with transaction.atomic(using='default'):
        doctor = ClinicDoctor.objects.using('default').create(
            doctor_number=generate_clinic_doctor_number(),
            name=name,
            qualification=(data.get('qualification') or '').strip(),
            specialty=(data.get('specialty') or '').strip(),
            registration_number=registration_number,
            phone=phone,
            email=(data.get('email') or '').strip(),
            letterhead_note=data.get('letterhead_note') or '',
        )
        if referral_doctor is not None:
            referral_doctor.clinic_doctor = doctor
            referral_doctor.save(using='default', update_fields=['clinic_doctor', 'updated_at'])

    _log(user, AuditLog.ACTION_CREATE, doctor,
         new_values=_audit_values(doctor, CLINIC_FIELDS), request=request)
    return doctor


def update_clinic_doctor(*, doctor: ClinicDoctor, data: dict, user, request=None) -> ClinicDoctor:
    old_values = _audit_values(doctor, CLINIC_FIELDS)

    if 'registration_number' in data:
        registration_number = (data['registration_number'] or '').strip()
        if not registration_number:
            raise InvalidDoctorData('Registration number is required', field='registration_number')
        clash = (
            ClinicDoctor.objects.using('default')
            .filter(registration_number=registration_number)
            .exclude(pk=doctor.pk)
            .first()
        )
        if clash:
            raise DuplicateDoctor(
                f'Clinic doctor with registration {registration_number} already exists',
                code='DUPLICATE_REGISTRATION',
                existing=clash,
            )
        doctor.registration_number = registration_number
    if 'phone' in data:
        phone = (data['phone'] or '').strip()
        if phone != doctor.phone:
            _check_active_phone(ClinicDoctor, phone, exclude_pk=doctor.pk)
        doctor.phone = phone
    for field in ('name', 'qualification', 'specialty', 'email', 'letterhead_note'):
        if field in data:
            setattr(doctor, field, (data[field] or '').strip())
    if 'is_active' in data:
        doctor.is_active = bool(data['is_active'])

    doctor.save(using='default')
    _log(user, AuditLog.ACTION_UPDATE, doctor, old_values=old_values,
         new_values=_audit_values(doctor, CLINIC_FIELDS), request=request)
    return doctor


def deactivate_clinic_doctor(*, doctor: ClinicDoctor, user, request=None) -> ClinicDoctor:
    old_values = _audit_values(doctor, CLINIC_FIELDS)
    doctor.is_active = False
    doctor.save(using='default', update_fields=['is_active', 'updated_at'])
    _log(user, AuditLog.ACTION_DELETE, doctor, old_values=old_values, request=request)
    return doctor


def search_doctors_by_contact(*, phone=None, email=None) -> dict:
    """Active referral and clinic doctors matching a phone or email."""
    phone = (phone or '').strip()
    email = (email or '').strip()
    if not phone and not email:
        return {'referral_doctors': [], 'clinic_doctors': []}

    def matching(model):
        qs = model.objects.using('default').filter(is_active=True)
        if phone and email:
            return qs.filter(Q(phone=phone) | Q(email__iexact=email))
        if phone:
            return qs.filter(phone=phone)
        return qs.filter(email__iexact=email)

    return {
        'referral_doctors': list(matching(ReferralDoctor)),
        'clinic_doctors': list(matching(ClinicDoctor)),
    }
