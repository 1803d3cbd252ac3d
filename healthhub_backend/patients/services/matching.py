"""
Patient matching.

Finds existing patients by phone, email or name so that registration can
warn about duplicates. Phones are shared within families, so a phone match
is a hint, never a hard uniqueness rule.
"""

from __future__ import annotations

import logging

from healthhub_backend.patients.models import Patient, PatientIdentifier
from healthhub_backend.patients.validation import normalize_email, normalize_phone

logger = logging.getLogger(__name__)

CONFIDENCE_HIGH = 'high'
CONFIDENCE_MEDIUM = 'medium'
CONFIDENCE_LOW = 'low'

MATCH_PHONE = 'phone'
MATCH_EMAIL = 'email'
MATCH_NAME = 'name'

PHONE_SCORE = 100
EMAIL_SCORE = 95


def name_similarity(a, b) -> int:
    """Score 0-100: exact 100, containment 80, otherwise shared-word ratio."""
    left = (a or '').upper().strip()
    right = (b or '').upper().strip()
    if not left or not right:
        return 0
    if left == right:
        return 100
    if left in right or right in left:
        return 80

    left_words = left.split()
    right_words = right.split()
    common = sum(1 for word in left_words if word in right_words)
    return round(common / max(len(left_words), len(right_words)) * 60)


def _patients_with_identifier(identifier_type, value):
    if identifier_type == PatientIdentifier.TYPE_EMAIL:
        lookup = {'identifiers__type': identifier_type, 'identifiers__value__iexact': value}
    else:
        lookup = {'identifiers__type': identifier_type, 'identifiers__value': value}
    return (
        Patient.objects.using('default')
        .filter(**lookup)
        .prefetch_related('identifiers')
        .distinct()
    )


def _match(patient, score, confidence, match_type):
    return {
        'patient': patient,
        'score': score,
        'confidence': confidence,
        'match_type': match_type,
    }


def find_patients_by_identifier(*, phone=None, email=None, name=None, strict=False, limit=20):
    """Rank patients matching the given identifiers.

    Phone wins over email, email over name. Name search only runs when
    nothing else matched and ``strict`` is off.
    """
    matches = []

    normalized_phone = normalize_phone(phone) if phone else None
    if normalized_phone:
        for patient in _patients_with_identifier(PatientIdentifier.TYPE_PHONE, normalized_phone):
            matches.append(_match(patient, PHONE_SCORE, CONFIDENCE_HIGH, MATCH_PHONE))

    normalized_email = normalize_email(email)
    if normalized_email and not matches:
        for patient in _patients_with_identifier(PatientIdentifier.TYPE_EMAIL, normalized_email):
            matches.append(_match(patient, EMAIL_SCORE, CONFIDENCE_HIGH, MATCH_EMAIL))

    name = (name or '').strip()
    if name and not matches and not strict:
        candidates = (
            Patient.objects.using('default')
            .filter(name__icontains=name)
            .prefetch_related('identifiers')[: limit * 5]
        )
        for patient in candidates:
            score = name_similarity(name, patient.name)
            confidence = CONFIDENCE_MEDIUM if score > 80 else CONFIDENCE_LOW
            matches.append(_match(patient, score, confidence, MATCH_NAME))

    seen = set()
    unique = []
    for match in matches:
        if match['patient'].pk in seen:
            continue
        seen.add(match['patient'].pk)
        unique.append(match)

    unique.sort(key=lambda m: m['score'], reverse=True)
    logger.debug('patient match: %d candidates (phone=%s, email=%s, name=%s)',
                 len(unique), bool(normalized_phone), bool(normalized_email), bool(name))
    return unique[:limit]


def check_patient_exists(*, phone=None, email=None) -> bool:
    return bool(find_patients_by_identifier(phone=phone, email=email, strict=True, limit=1))


def validate_identifier_uniqueness(*, type, value, exclude_patient_id=None):
    """Return another patient already holding this identifier, or None.

    Advisory only: callers decide whether a shared phone is acceptable.
    """
    if type == PatientIdentifier.TYPE_PHONE:
        value = normalize_phone(value)
    else:
        value = normalize_email(value)
    if not value:
        return None

    qs = _patients_with_identifier(type, value)
    if exclude_patient_id is not None:
        qs = qs.exclude(pk=exclude_patient_id)
    return qs.first()
