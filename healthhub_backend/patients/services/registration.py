"""
Patient registration and updates.

create_patient serialises concurrent registrations of the same phone number
with a transaction-scoped PostgreSQL advisory lock, then runs the duplicate
check and allocates the patient number inside the same transaction.
update_patient records one PatientChangeLog row per changed field.
"""

from __future__ import annotations

import hashlib
import logging
import uuid

from django.db import connection, transaction

from healthhub_backend.core.models import AuditLog
from healthhub_backend.core.permissions import ROLE_STAFF
from healthhub_backend.core.services.numbering import generate_patient_number
from healthhub_backend.core.utils import log_action, role_name_of
from healthhub_backend.patients.exceptions import (
    ChangeReasonRequired,
    InvalidPatientData,
    PotentialDuplicate,
)
from healthhub_backend.patients.models import Patient, PatientChangeLog, PatientIdentifier, age_from
from healthhub_backend.patients.validation import (
    coerce_date,
    normalize_email,
    normalize_phone,
    validate_patient_demographics,
    year_of_birth_from,
)

logger = logging.getLogger(__name__)

IDENTITY_FIELDS = {'name', 'age', 'date_of_birth', 'gender', 'phone', 'email'}


def phone_lock_id(phone: str) -> int:
    """First 4 bytes of SHA-256(phone) as a signed big-endian int32."""
    digest = hashlib.sha256(phone.encode('utf-8')).digest()
    return int.from_bytes(digest[:4], 'big', signed=True)


def _acquire_phone_lock(phone: str) -> None:
    if connection.vendor != 'postgresql':
        return
    with connection.cursor() as cursor:
        cursor.execute('SELECT pg_advisory_xact_lock(%s)', [phone_lock_id(phone)])


def _normalize_identifiers(data: dict) -> list[dict]:
    """Identifiers from ``identifiers`` plus the ``phone``/``email`` shorthand."""
    raw = list(data.get('identifiers') or [])
    if data.get('phone'):
        raw.append({'type': PatientIdentifier.TYPE_PHONE, 'value': data['phone'], 'is_primary': True})
    if data.get('email'):
        raw.append({'type': PatientIdentifier.TYPE_EMAIL, 'value': data['email'], 'is_primary': True})

    identifiers = []
    primaries = set()
    for item in raw:
        identifier_type = item.get('type')
        if identifier_type == PatientIdentifier.TYPE_PHONE:
            value = normalize_phone(item.get('value'))
        elif identifier_type == PatientIdentifier.TYPE_EMAIL:
            value = normalize_email(item.get('value'))
        else:
            raise InvalidPatientData(f'Unknown identifier type: {identifier_type}', field='identifiers')
        if not value:
            raise InvalidPatientData(f'Invalid {identifier_type.lower()} identifier', field='identifiers')

        is_primary = bool(item.get('is_primary', False))
        if is_primary:
            if identifier_type in primaries:
                raise InvalidPatientData('Only one primary identifier allowed per type', field='identifiers')
            primaries.add(identifier_type)
        identifiers.append({'type': identifier_type, 'value': value, 'is_primary': is_primary})

    return identifiers


def patient_summary(patient: Patient) -> dict:
    return {
        'id': patient.pk,
        'patient_number': patient.patient_number,
        'name': patient.name,
        'age': patient.age,
        'gender': patient.gender,
        'phone': patient.primary_phone,
    }


def _find_duplicate(*, phone, name, gender, age):
    """A patient sharing the phone with same name, gender and age within a year."""
    candidates = (
        Patient.objects.using('default')
        .filter(
            identifiers__type=PatientIdentifier.TYPE_PHONE,
            identifiers__value=phone,
            identifiers__is_primary=True,
        )
        .prefetch_related('identifiers')
        .distinct()
    )
    wanted_name = name.upper().strip()
    for candidate in candidates:
        if candidate.name.upper().strip() != wanted_name:
            continue
        if candidate.gender != gender:
            continue
        if abs((candidate.age or 0) - age) <= 1:
            return candidate
    return None


def create_patient(*, data: dict, user, force_duplicate: bool = False, request=None) -> Patient:
    """Register a patient.

    Raises:
        InvalidPatientData: demographics or identifiers are invalid
        PotentialDuplicate: same phone, name, gender and age (unless forced)
    """
    errors = validate_patient_demographics(data)
    if errors:
        raise InvalidPatientData(errors=errors)

    identifiers = _normalize_identifiers(data)
    if not identifiers:
        raise InvalidPatientData('At least one identifier (phone/email) is required', field='identifiers')

    dob = coerce_date(data.get('date_of_birth'))
    year_of_birth = year_of_birth_from(age=data.get('age'), date_of_birth=dob)
    age = age_from(year_of_birth, dob)
    name = data['name'].strip().upper()

    primary_phone = next(
        (i['value'] for i in identifiers if i['type'] == PatientIdentifier.TYPE_PHONE and i['is_primary']),
        None,
    )

    with transaction.atomic(using='default'):
        if primary_phone:
            _acquire_phone_lock(primary_phone)

            if not force_duplicate:
                existing = _find_duplicate(phone=primary_phone, name=name, gender=data['gender'], age=age)
                if existing is not None:
                    raise PotentialDuplicate(patient_summary(existing))

        patient = Patient.objects.using('default').create(
            patient_number=generate_patient_number(),
            name=name,
            gender=data['gender'],
            year_of_birth=year_of_birth,
            date_of_birth=dob,
            address=(data.get('address') or '').strip(),
        )
        PatientIdentifier.objects.using('default').bulk_create(
            [PatientIdentifier(patient=patient, **identifier) for identifier in identifiers]
        )

    log_action(
        user=user,
        branch=getattr(user, 'active_branch', None),
        action_type=AuditLog.ACTION_CREATE,
        entity_type='Patient',
        entity_id=patient.pk,
        new_values={
            'patient_number': patient.patient_number,
            'name': patient.name,
            'gender': patient.gender,
            'year_of_birth': patient.year_of_birth,
            'identifiers': identifiers,
            'force_duplicate': force_duplicate,
        },
        request=request,
    )
    logger.info('patient created: %s', patient.patient_number)
    return patient


def _current_values(patient: Patient) -> dict:
    return {
        'name': patient.name,
        'age': patient.age,
        'date_of_birth': patient.date_of_birth.isoformat() if patient.date_of_birth else None,
        'gender': patient.gender,
        'address': patient.address,
        'phone': patient.primary_phone,
        'email': patient.primary_email,
    }


def _proposed_values(data: dict) -> dict:
    proposed = {}
    if 'name' in data:
        proposed['name'] = (data['name'] or '').strip().upper()
    if data.get('date_of_birth') not in (None, ''):
        proposed['date_of_birth'] = coerce_date(data['date_of_birth']).isoformat()
    elif data.get('age') not in (None, ''):
        proposed['age'] = int(data['age'])
    if 'gender' in data:
        proposed['gender'] = data['gender']
    if 'address' in data:
        proposed['address'] = (data['address'] or '').strip()
    if data.get('phone'):
        proposed['phone'] = normalize_phone(data['phone'])
    if data.get('email'):
        proposed['email'] = normalize_email(data['email'])
    return proposed


def _replace_primary(patient: Patient, identifier_type: str, value: str) -> None:
    """Demote the current primary and promote (or create) the new value."""
    identifiers = PatientIdentifier.objects.using('default').filter(patient=patient, type=identifier_type)
    identifiers.filter(is_primary=True).update(is_primary=False)
    existing = identifiers.filter(value=value).first()
    if existing:
        existing.is_primary = True
        existing.save(using='default', update_fields=['is_primary'])
    else:
        PatientIdentifier.objects.using('default').create(
            patient=patient, type=identifier_type, value=value, is_primary=True,
        )


def update_patient(*, patient: Patient, data: dict, user, change_reason=None, request_id=None, request=None) -> Patient:
    """Apply a partial update and log every changed field.

    Staff must give a change_reason when an identity field changes.
    """
    errors = validate_patient_demographics(data, partial=True)
    if errors:
        raise InvalidPatientData(errors=errors)

    current = _current_values(patient)
    changes = []
    for field, new_value in _proposed_values(data).items():
        old_value = current.get(field)
        if old_value == new_value:
            continue
        changes.append({
            'field': field,
            'old': None if old_value in (None, '') else str(old_value),
            'new': None if new_value is None else str(new_value),
            'change_type': (
                PatientChangeLog.CHANGE_IDENTITY if field in IDENTITY_FIELDS
                else PatientChangeLog.CHANGE_NON_IDENTITY
            ),
        })

    if not changes:
        return patient

    identity_changes = [c['field'] for c in changes if c['change_type'] == PatientChangeLog.CHANGE_IDENTITY]
    role_name = role_name_of(user)
    if identity_changes and role_name == ROLE_STAFF and not (change_reason or '').strip():
        raise ChangeReasonRequired(identity_changes)

    request_id = request_id or f'req_{uuid.uuid4().hex[:16]}'
    changed = {c['field'] for c in changes}

    with transaction.atomic(using='default'):
        PatientChangeLog.objects.using('default').bulk_create([
            PatientChangeLog(
                patient=patient,
                field_name=c['field'],
                old_value=c['old'],
                new_value=c['new'],
                change_type=c['change_type'],
                change_reason=(change_reason or '').strip(),
                changed_by=user if getattr(user, 'is_authenticated', False) else None,
                changed_by_role=role_name,
                request_id=request_id,
            )
            for c in changes
        ])

        if 'name' in changed:
            patient.name = data['name'].strip().upper()
        if 'gender' in changed:
            patient.gender = data['gender']
        if 'address' in changed:
            patient.address = (data['address'] or '').strip()
        if 'date_of_birth' in changed:
            patient.date_of_birth = coerce_date(data['date_of_birth'])
            patient.year_of_birth = patient.date_of_birth.year
        elif 'age' in changed:
            patient.date_of_birth = None
            patient.year_of_birth = year_of_birth_from(age=data['age'])
        patient.save(using='default')

        if 'phone' in changed:
            _replace_primary(patient, PatientIdentifier.TYPE_PHONE, normalize_phone(data['phone']))
        if 'email' in changed:
            _replace_primary(patient, PatientIdentifier.TYPE_EMAIL, normalize_email(data['email']))

    log_action(
        user=user,
        branch=getattr(user, 'active_branch', None),
        action_type=AuditLog.ACTION_UPDATE,
        entity_type='Patient',
        entity_id=patient.pk,
        old_values={c['field']: c['old'] for c in changes},
        new_values={
            **{c['field']: c['new'] for c in changes},
            'change_reason': change_reason or None,
            'request_id': request_id,
        },
        request=request,
    )
    return Patient.objects.using('default').prefetch_related('identifiers').get(pk=patient.pk)


def get_change_history(patient: Patient):
    return (
        PatientChangeLog.objects.using('default')
        .filter(patient=patient)
        .select_related('changed_by')
        .order_by('-created_at', '-id')
    )
