"""
Patient-specific exceptions.

Raised by the patient services and translated to DRF responses in the views.
"""

from __future__ import annotations

from typing import Any

from healthhub_backend.core.exceptions import InvalidData, NotFound, ServiceError


class PatientError(ServiceError):
    """Base exception for all patient-related errors."""


class InvalidPatientData(InvalidData, PatientError):
    """Raised when demographics or identifiers fail validation."""


class PatientNotFound(NotFound, PatientError):
    default_message = 'Patient not found'


class PotentialDuplicate(PatientError):
    """
    Raised when a registration looks like an existing patient.

    Same primary phone, same name, same gender and age within one year.
    The client decides whether to retry with force_duplicate=true.
    """

    code = 'POTENTIAL_DUPLICATE'
    status_code = 409
    default_message = 'A patient with similar details already exists'

    def __init__(self, existing_patient: dict[str, Any], message: str | None = None):
        self.existing_patient = existing_patient
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result['existing_patient'] = self.existing_patient
        return result


class ChangeReasonRequired(PatientError):
    code = 'CHANGE_REASON_REQUIRED'
    default_message = 'A change reason is required for identity changes'

    def __init__(self, fields: list[str], message: str | None = None):
        self.fields = fields
        super().__init__(message, fields=fields)
