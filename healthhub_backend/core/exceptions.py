"""
Base exceptions for the service layer.

Services raise these; views translate them into DRF responses with
``Response(e.to_dict(), status=e.status_code)``. Each app derives its own
errors from ServiceError in its exceptions module.
"""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    """Base exception for all domain/service errors."""

    code = 'SERVICE_ERROR'
    status_code = 400
    default_message = 'Request could not be processed'

    def __init__(self, message: str | None = None, *, field: str | None = None, **extra: Any):
        self.field = field
        self.extra = extra
        super().__init__(message or self.default_message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            'error': self.code,
            'detail': str(self),
        }
        if self.field:
            result['field'] = self.field
        result.update(self.extra)
        return result


class InvalidData(ServiceError):
    """Raised when request data fails domain validation.

    Attributes:
        errors: list of {'field': ..., 'message': ...} entries
    """

    code = 'VALIDATION_ERROR'
    default_message = 'Validation failed'

    def __init__(self, message: str | None = None, *, errors: list[dict] | None = None, field: str | None = None):
        self.errors = errors or []
        super().__init__(message, field=field)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.errors:
            result['errors'] = self.errors
        return result


class NotFound(ServiceError):
    code = 'NOT_FOUND'
    status_code = 404
    default_message = 'Not found'


class NoActiveBranch(ServiceError):
    code = 'NO_BRANCH'
    default_message = 'No active branch selected for this user'


class NumberSequenceExhausted(ServiceError):
    """Raised when a number could not be allocated within the retry budget."""

    code = 'SEQUENCE_BUSY'
    status_code = 503
    default_message = 'Could not allocate a sequence number, please retry'
