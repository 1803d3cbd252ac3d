"""
Visit and billing exceptions.

Raised by visits.services and translated to DRF responses in the views.
"""

from __future__ import annotations

from healthhub_backend.core.exceptions import InvalidData, NotFound, ServiceError


class VisitError(ServiceError):
    """Base exception for all visit-related errors."""


class InvalidVisitData(InvalidData, VisitError):
    pass


class VisitNotFound(NotFound, VisitError):
    default_message = 'Visit not found'


class InvalidTests(VisitError):
    code = 'INVALID_TESTS'
    default_message = 'One or more tests not found or inactive'

    def __init__(self, invalid_test_ids, message=None):
        self.invalid_test_ids = list(invalid_test_ids)
        super().__init__(message, invalid_test_ids=self.invalid_test_ids)


class ReportAlreadyFinalized(VisitError):
    """The visit's report has a finalized version; orders are frozen."""

    code = 'REPORT_FINALIZED'
    status_code = 409
    default_message = 'Cannot change tests after the report has been finalized'


class DuplicateTests(VisitError):
    code = 'DUPLICATE_TESTS'
    status_code = 409
    default_message = 'Some tests are already ordered for this visit'

    def __init__(self, duplicate_test_ids, message=None):
        self.duplicate_test_ids = list(duplicate_test_ids)
        super().__init__(message, duplicate_test_ids=self.duplicate_test_ids)


class LastTestOrder(VisitError):
    code = 'LAST_TEST'
    default_message = 'Cannot remove the last test from a visit'


class RelatedNotFound(NotFound, VisitError):
    """A patient or doctor referenced by the request does not exist."""
