"""
Report access.

Two kinds of credentials open a finalized report without staff login:

- ReportAccessToken: a short random token printed as a QR code / link
  (``/r/<token>/``). Stored, counted and optionally expiring.
- Report view JWT: a signed, short-lived token (PyJWT, HS256 with
  SECRET_KEY) for ``/api/reports/view/?token=``. Not stored.
"""

from __future__ import annotations

import logging
import secrets
import string
from datetime import timedelta

import jwt
from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Count, F, Q
from django.utils import timezone

from healthhub_backend.core.models import AuditLog
from healthhub_backend.core.utils import get_client_ip, get_user_agent, log_action
from healthhub_backend.reports.exceptions import InvalidViewToken, NotFinalized, TokenGenerationFailed
from healthhub_backend.reports.models import ReportAccessLog, ReportAccessToken, ReportVersion

logger = logging.getLogger(__name__)

TOKEN_LENGTH = 12
TOKEN_ALPHABET = string.ascii_letters + string.digits
TOKEN_MAX_ATTEMPTS = 10

VIEW_TOKEN_TYPE = 'report-access'
VIEW_TOKEN_ALGORITHM = 'HS256'


def _random_token() -> str:
    return ''.join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))


def current_access_token(report_version: ReportVersion):
    """Newest unexpired token of the version, or None."""
    now = timezone.now()
    return (
        ReportAccessToken.objects.using('default')
        .filter(report_version=report_version)
        .filter(Q(expires_at__isnull=True) | Q(expires_at__gt=now))
        .order_by('-created_at', '-id')
        .first()
    )


def create_access_token(*, report_version: ReportVersion, expires_in_days=None) -> ReportAccessToken:
    """Return an unexpired token for the version, creating one if needed."""
    if not report_version.is_finalized:
        raise NotFinalized('Access tokens can only be created for finalized reports')

    existing = current_access_token(report_version)
    if existing is not None:
        return existing

    now = timezone.now()
    expires_at = now + timedelta(days=expires_in_days) if expires_in_days else None
    for _ in range(TOKEN_MAX_ATTEMPTS):
        value = _random_token()
        if ReportAccessToken.objects.using('default').filter(token=value).exists():
            continue
        try:
            with transaction.atomic(using='default'):
                return ReportAccessToken.objects.using('default').create(
                    token=value,
                    report_version=report_version,
                    expires_at=expires_at,
                )
        except IntegrityError:
            continue

    logger.error('Could not generate a unique access token for version %s', report_version.pk)
    raise TokenGenerationFailed()


def get_token(token: str):
    if not token or len(token) > TOKEN_LENGTH:
        return None
    return (
        ReportAccessToken.objects.using('default')
        .select_related('report_version', 'report_version__report__branch')
        .filter(token=token)
        .first()
    )


def validate_token(token: str):
    """The ReportVersion behind ``token``, or None for unknown/expired tokens."""
    access_token = get_token(token)
    if access_token is None or access_token.is_expired:
        return None
    return access_token.report_version


def record_access(
    *,
    report_version: ReportVersion,
    access_type: str,
    accessed_via: str,
    request=None,
    token: str | None = None,
    user=None,
):
    """Count and log one access. Failures are logged, never raised."""
    ip_address = get_client_ip(request)
    try:
        with transaction.atomic(using='default'):
            if token:
                ReportAccessToken.objects.using('default').filter(token=token).update(
                    access_count=F('access_count') + 1,
                    last_accessed_at=timezone.now(),
                    last_accessed_ip=ip_address,
                )
            ReportAccessLog.objects.using('default').create(
                report_version=report_version,
                access_type=access_type,
                accessed_via=accessed_via,
                ip_address=ip_address,
                user_agent=get_user_agent(request),
                user=user if getattr(user, 'is_authenticated', False) else None,
            )
    except Exception:
        logger.exception('Failed to record %s access to report version %s', access_type, report_version.pk)
        return

    log_action(
        user=user,
        branch=report_version.report.branch,
        action_type=AuditLog.ACTION_REPORT_ACCESS,
        entity_type='ReportVersion',
        entity_id=report_version.pk,
        new_values={'access_type': access_type, 'accessed_via': accessed_via},
        request=request,
    )


def get_access_stats(report_version: ReportVersion) -> dict:
    logs = ReportAccessLog.objects.using('default').filter(report_version=report_version)
    by_type = {row['access_type']: row['count'] for row in logs.values('access_type').annotate(count=Count('id'))}
    last = logs.order_by('-created_at', '-id').first()
    return {
        'report_version_id': report_version.pk,
        'total_accesses': sum(by_type.values()),
        'by_type': {
            access_type: by_type.get(access_type, 0)
            for access_type, _ in ReportAccessLog.ACCESS_TYPE_CHOICES
        },
        'last_access': {
            'access_type': last.access_type,
            'accessed_via': last.accessed_via,
            'ip_address': last.ip_address,
            'created_at': last.created_at,
        } if last else None,
        'recent': [
            {
                'access_type': log.access_type,
                'accessed_via': log.accessed_via,
                'ip_address': log.ip_address,
                'created_at': log.created_at,
            }
            for log in logs.order_by('-created_at', '-id')[:50]
        ],
    }


def issue_report_view_token(*, report_version: ReportVersion) -> tuple[str, object]:
    """Signed view token for a finalized version. Returns ``(token, expires_at)``."""
    if not report_version.is_finalized:
        raise NotFinalized()
    expires_at = timezone.now() + settings.HEALTHHUB['REPORT_VIEW_TOKEN_LIFETIME']
    payload = {
        'report_version_id': report_version.pk,
        'patient_id': report_version.report.visit.patient_id,
        'type': VIEW_TOKEN_TYPE,
        'exp': expires_at,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=VIEW_TOKEN_ALGORITHM), expires_at


def decode_report_view_token(token: str) -> ReportVersion:
    """
    Resolve a view token to its finalized ReportVersion.

    Raises:
        InvalidViewToken: Bad signature, expired, wrong type or unknown version
    """
    try:
        payload = jwt.decode(token or '', settings.SECRET_KEY, algorithms=[VIEW_TOKEN_ALGORITHM])
    except jwt.PyJWTError:
        raise InvalidViewToken()
    if payload.get('type') != VIEW_TOKEN_TYPE:
        raise InvalidViewToken()

    version = (
        ReportVersion.objects.using('default')
        .select_related('report')
        .filter(pk=payload.get('report_version_id'), status=ReportVersion.STATUS_FINALIZED)
        .first()
    )
    if version is None:
        raise InvalidViewToken()
    return version
