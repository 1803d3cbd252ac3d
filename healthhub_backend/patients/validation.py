"""Demographic validation for patient registration and updates.

All validators are pure: they return an error message (or a list of
``{'field': ..., 'message': ...}`` entries) and never touch the database.
"""

from __future__ import annotations

import re
from datetime import date

from django.utils import timezone
from django.utils.dateparse import parse_date

from healthhub_backend.patients.models import Patient, age_from

NAME_RE = re.compile(r"^[a-zA-Z\s.'-]+$")
EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_RE = re.compile(r'[6-9][0-9]{9}')
PHONE_DIGITS_RE = re.compile(r'[0-9]{10}')
PHONE_SEPARATORS_RE = re.compile(r'[\s-]')

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
MAX_AGE = 120
EMAIL_MAX_LENGTH = 254
ADDRESS_MAX_LENGTH = 500

GENDERS = {Patient.GENDER_MALE, Patient.GENDER_FEMALE, Patient.GENDER_OTHER}


def normalize_phone(value) -> str | None:
    """Strip spaces and dashes; None unless exactly 10 digits remain."""
    if value is None:
        return None
    digits = PHONE_SEPARATORS_RE.sub('', str(value))
    if not PHONE_DIGITS_RE.fullmatch(digits):
        return None
    return digits


def normalize_email(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip().lower()
    return value or None


def validate_name(name) -> str | None:
    name = (name or '').strip()
    if not name:
        return 'Name is required'
    if len(name) < NAME_MIN_LENGTH:
        return f'Name must be at least {NAME_MIN_LENGTH} characters'
    if len(name) > NAME_MAX_LENGTH:
        return f'Name cannot exceed {NAME_MAX_LENGTH} characters'
    if not NAME_RE.match(name):
        return 'Name can only contain letters, spaces, dots, hyphens, and apostrophes'
    return None


def validate_phone(phone) -> str | None:
    if not phone:
        return 'Phone number is required'
    digits = PHONE_SEPARATORS_RE.sub('', str(phone))
    if not PHONE_DIGITS_RE.fullmatch(digits):
        return 'Phone number must be exactly 10 digits'
    if not PHONE_RE.fullmatch(digits):
        return 'Phone number must start with 6, 7, 8, or 9'
    return None


def validate_email(email) -> str | None:
    # optional
    if not email or not str(email).strip():
        return None
    email = str(email).strip()
    if len(email) > EMAIL_MAX_LENGTH:
        return 'Email address is too long'
    if not EMAIL_RE.match(email):
        return 'Please enter a valid email address'
    return None


def validate_age(age) -> str | None:
    if isinstance(age, bool):
        return 'Age must be a whole number'
    if isinstance(age, float) and age.is_integer():
        age = int(age)
    if isinstance(age, str) and age.strip().isdigit():
        age = int(age.strip())
    if not isinstance(age, int):
        return 'Age must be a whole number'
    if age < 0:
        return 'Age cannot be negative'
    if age > MAX_AGE:
        return f'Age cannot exceed {MAX_AGE} years'
    return None


def coerce_date(value) -> date | None:
    if value is None or value == '':
        return None
    if isinstance(value, date):
        return value
    try:
        return parse_date(str(value))
    except ValueError:
        return None


def validate_date_of_birth(value, today: date | None = None) -> str | None:
    dob = coerce_date(value)
    if dob is None:
        return 'Invalid date of birth'
    today = today or timezone.localdate()
    if dob > today:
        return 'Date of birth cannot be in the future'
    if age_from(None, dob, today=today) > MAX_AGE:
        return f'Date of birth results in age exceeding {MAX_AGE} years'
    return None


def validate_address(address) -> str | None:
    if address and len(str(address)) > ADDRESS_MAX_LENGTH:
        return f'Address cannot exceed {ADDRESS_MAX_LENGTH} characters'
    return None


def validate_patient_demographics(data: dict, *, partial: bool = False) -> list[dict]:
    """Validate registration data; an empty list means valid.

    ``partial`` validates only the keys present (PATCH). Either ``age`` or
    ``date_of_birth`` is required on full validation; a date of birth wins
    when both are given.
    """
    errors = []

    def add(field, message):
        if message:
            errors.append({'field': field, 'message': message})

    if not partial or 'name' in data:
        add('name', validate_name(data.get('name')))

    has_age = data.get('age') not in (None, '')
    has_dob = data.get('date_of_birth') not in (None, '')
    if has_dob:
        add('date_of_birth', validate_date_of_birth(data.get('date_of_birth')))
    elif has_age:
        add('age', validate_age(data.get('age')))
    elif not partial:
        add('age', 'Age or Date of Birth is required')

    if not partial or 'gender' in data:
        gender = data.get('gender')
        if not gender:
            add('gender', 'Gender is required')
        elif gender not in GENDERS:
            add('gender', 'Gender must be M (Male), F (Female), or O (Other)')

    for identifier in data.get('identifiers') or []:
        identifier_type = identifier.get('type')
        if identifier_type == 'PHONE':
            add('phone', validate_phone(identifier.get('value')))
        elif identifier_type == 'EMAIL':
            add('email', validate_email(identifier.get('value')))
        else:
            add('identifiers', f'Unknown identifier type: {identifier_type}')

    if 'phone' in data and data.get('phone') not in (None, ''):
        add('phone', validate_phone(data.get('phone')))
    if 'email' in data:
        add('email', validate_email(data.get('email')))

    add('address', validate_address(data.get('address')))
    return errors


def year_of_birth_from(*, age=None, date_of_birth=None, today: date | None = None) -> int:
    today = today or timezone.localdate()
    dob = coerce_date(date_of_birth)
    if dob:
        return dob.year
    return today.year - int(age)
