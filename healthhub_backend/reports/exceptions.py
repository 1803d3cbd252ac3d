"""
Report exceptions.

Raised by reports.services and by the ReportVersion model guard; views
translate them with error_response().
"""

from __future__ import annotations

from healthhub_backend.core.exceptions import InvalidData, NotFound, ServiceError


class ReportError(ServiceError):
    """Base exception for all report-related errors."""


class InvalidReportData(InvalidData, ReportError):
    pass


class ReportNotFound(NotFound, ReportError):
    default_message = 'Report not found'


class ReportImmutable(ReportError):
    """A finalized ReportVersion was about to be modified or deleted."""

    code = 'REPORT_IMMUTABLE'
    status_code = 409
    default_message = 'Finalized report versions cannot be modified'


class ReportFinalized(ReportError):
    code = 'REPORT_FINALIZED'
    status_code = 409
    default_message = 'Report is finalized; create an amendment to make changes'


class AlreadyFinalized(ReportError):
    code = 'ALREADY_FINALIZED'
    status_code = 409
    default_message = 'Report is already finalized'


class NoDraftVersion(ReportError):
    code = 'NO_DRAFT'
    default_message = 'No draft report version found'


class DraftExists(ReportError):
    code = 'DRAFT_EXISTS'
    status_code = 409
    default_message = 'A draft version already exists for this report'


class NoResults(ReportError):
    code = 'NO_RESULTS'
    default_message = 'Cannot finalize a report without results'


class NotFinalized(ReportError):
    code = 'NOT_FINALIZED'
    default_message = 'Report must be finalized first'


class TokenGenerationFailed(ReportError):
    code = 'TOKEN_GENERATION_FAILED'
    status_code = 500
    default_message = 'Failed to generate a unique access token'


class InvalidViewToken(ReportError):
    code = 'UNAUTHORIZED'
    status_code = 401
    default_message = 'Invalid or expired token'
