"""Finalizing a draft report version."""

from __future__ import annotations

import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from healthhub_backend.core.models import AuditLog
from healthhub_backend.core.utils import log_action
from healthhub_backend.reports.exceptions import AlreadyFinalized, NoResults, ReportFinalized
from healthhub_backend.reports.models import ReportVersion, TestResult
from healthhub_backend.reports.services.access import create_access_token
from healthhub_backend.reports.services.results import get_draft_version
from healthhub_backend.reports.services.snapshot import build_report_snapshot, snapshot_columns
from healthhub_backend.visits.models import Visit

logger = logging.getLogger(__name__)


def finalize_report(*, visit: Visit, user, request=None):
    """
    Freeze the draft version of ``visit``'s report.

    The status change is a conditional UPDATE on status=DRAFT, so of two
    concurrent finalize calls exactly one wins; the loser gets
    AlreadyFinalized. Returns ``(version, access_token)``.

    Raises:
        NoDraftVersion: Nothing to finalize
        NoResults: The draft has no results
        AlreadyFinalized: The latest version is already finalized
    """
    with transaction.atomic(using='default'):
        try:
            draft = get_draft_version(visit, for_update=True)
        except ReportFinalized:
            raise AlreadyFinalized()

        if not TestResult.objects.using('default').filter(report_version=draft).exists():
            raise NoResults()

        finalized_at = timezone.now()
        snapshot = build_report_snapshot(draft, finalized_at=finalized_at)

        updated = (
            ReportVersion.objects.using('default')
            .filter(pk=draft.pk, status=ReportVersion.STATUS_DRAFT)
            .update(
                status=ReportVersion.STATUS_FINALIZED,
                finalized_at=finalized_at,
                finalized_by=user if getattr(user, 'is_authenticated', False) else None,
                updated_at=finalized_at,
                **snapshot_columns(snapshot),
            )
        )
        if updated == 0:
            raise AlreadyFinalized()

        visit.status = Visit.STATUS_COMPLETED
        visit.save(using='default', update_fields=['status', 'updated_at'])

        version = ReportVersion.objects.using('default').get(pk=draft.pk)
        token = create_access_token(
            report_version=version,
            expires_in_days=settings.HEALTHHUB.get('REPORT_TOKEN_EXPIRY_DAYS'),
        )

        log_action(
            user=user,
            branch=visit.branch,
            action_type=AuditLog.ACTION_FINALIZE,
            entity_type='ReportVersion',
            entity_id=version.pk,
            old_values={'status': ReportVersion.STATUS_DRAFT},
            new_values={
                'status': ReportVersion.STATUS_FINALIZED,
                'version_num': version.version_num,
                'visit_id': visit.pk,
            },
            request=request,
        )

    logger.info('Finalized %s v%s (%s)', visit.bill_number, version.version_num, user)
    return version, token
