"""Lab catalogue exceptions."""

from healthhub_backend.core.exceptions import InvalidData, NotFound, ServiceError


class LabError(ServiceError):
    """Base exception for catalogue errors."""


class InvalidLabTestData(InvalidData, LabError):
    pass


class LabTestNotFound(NotFound, LabError):
    default_message = 'Lab test not found'


class DuplicateTestCode(LabError):
    code = 'DUPLICATE_CODE'
    status_code = 409
    default_message = 'A test with this code already exists'
