from __future__ import annotations

import logging

from django.db import transaction

from healthhub_backend.core.models import AuditLog
from healthhub_backend.core.utils import log_action
from healthhub_backend.reports.exceptions import DraftExists, NotFinalized, ReportNotFound
from healthhub_backend.reports.models import DiagnosticReport, ReportVersion, TestResult
from healthhub_backend.visits.models import Visit

logger = logging.getLogger(__name__)


def create_amendment(*, visit: Visit, user, request=None) -> ReportVersion:
    """
    Open version N+1 as a DRAFT with a copy of the finalized results.

    The finalized version is not touched.

    Raises:
        ReportNotFound: The visit has no report
        DraftExists: The latest version is still a draft
        NotFinalized: Nothing has been finalized yet
    """
    with transaction.atomic(using='default'):
        try:
            report = DiagnosticReport.objects.using('default').select_for_update().get(visit=visit)
        except DiagnosticReport.DoesNotExist:
            raise ReportNotFound()

        latest = (
            ReportVersion.objects.using('default')
            .filter(report=report)
            .order_by('-version_num')
            .first()
        )
        if latest is None:
            raise NotFinalized()
        if not latest.is_finalized:
            raise DraftExists()

        amendment = ReportVersion.objects.using('default').create(
            report=report,
            version_num=latest.version_num + 1,
            status=ReportVersion.STATUS_DRAFT,
        )
        TestResult.objects.using('default').bulk_create([
            TestResult(
                report_version=amendment,
                test_order_id=result.test_order_id,
                test_id=result.test_id,
                value=result.value,
                flag=result.flag,
                notes=result.notes,
            )
            for result in TestResult.objects.using('default').filter(report_version=latest)
        ])

        log_action(
            user=user,
            branch=visit.branch,
            action_type=AuditLog.ACTION_CREATE,
            entity_type='ReportVersion',
            entity_id=amendment.pk,
            new_values={
                'status': ReportVersion.STATUS_DRAFT,
                'version_num': amendment.version_num,
                'amends_version_id': latest.pk,
                'visit_id': visit.pk,
            },
            request=request,
        )

    logger.info('%s opened amendment v%s for %s', user, amendment.version_num, visit.bill_number)
    return amendment
