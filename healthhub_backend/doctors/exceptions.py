"""Doctor-specific exceptions."""

from healthhub_backend.core.exceptions import InvalidData, NotFound, ServiceError


class DoctorError(ServiceError):
    """Base exception for referral and clinic doctor errors."""


class InvalidDoctorData(InvalidData, DoctorError):
    pass


class DoctorNotFound(NotFound, DoctorError):
    default_message = 'Doctor not found'


class DuplicateDoctor(DoctorError):
    """An active doctor already has this phone or registration number."""

    code = 'DUPLICATE_DOCTOR'
    status_code = 409
    default_message = 'Doctor already exists'

    def __init__(self, message=None, *, code=None, existing=None):
        if code:
            self.code = code
        extra = {}
        if existing is not None:
            extra['existing'] = {
                'id': existing.pk,
                'doctor_number': existing.doctor_number,
                'name': existing.name,
            }
        super().__init__(message, **extra)
