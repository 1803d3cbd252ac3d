"""
Result entry on the draft report version.

Results are keyed by (version, test order, measured test). A measured test
is either the ordered test itself or a sub-test of an ordered panel, e.g.
HB under a CBP order.
"""

from __future__ import annotations

import logging
import math

from django.db import transaction
from django.db.models import Prefetch

from healthhub_backend.lab.models import LabTest
from healthhub_backend.reports.exceptions import InvalidReportData, NoDraftVersion, ReportFinalized, ReportNotFound
from healthhub_backend.reports.models import ReportVersion, TestResult
from healthhub_backend.visits.models import TestOrder, Visit

logger = logging.getLogger(__name__)


def get_versions(visit: Visit):
    """All versions of the visit's report, newest first, with results."""
    return (
        ReportVersion.objects.using('default')
        .filter(report__visit=visit)
        .select_related('finalized_by')
        .prefetch_related(
            Prefetch(
                'results',
                queryset=TestResult.objects.using('default').select_related('test', 'test_order'),
            )
        )
        .order_by('-version_num')
    )


def get_draft_version(visit: Visit, *, for_update=False) -> ReportVersion:
    """
    The latest DRAFT version of the visit's report.

    Raises:
        ReportFinalized: The latest version is finalized (amend first)
        NoDraftVersion: The visit has no report versions at all
    """
    versions = ReportVersion.objects.using('default').filter(report__visit=visit)
    latest = versions.order_by('-version_num').first()
    if latest is None:
        raise NoDraftVersion()
    if latest.is_finalized:
        raise ReportFinalized()
    if for_update:
        return versions.select_for_update().get(pk=latest.pk)
    return latest


def _parse_value(raw, test_id):
    if raw is None or raw == '':
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidReportData(f'Value for test {test_id} must be a number', field='value')
    if not math.isfinite(value):
        raise InvalidReportData(f'Value for test {test_id} must be a finite number', field='value')
    return value


def _order_for(test: LabTest, orders_by_test: dict):
    order = orders_by_test.get(test.pk)
    if order is None and test.parent_test_id:
        order = orders_by_test.get(test.parent_test_id)
    return order


def save_draft_results(*, visit: Visit, results: list[dict], user) -> int:
    """
    Upsert result entries into the draft version.

    Each entry is ``{'test_id', 'value', 'flag'?, 'notes'?}``. Entries whose
    test is not covered by an order are skipped; an entry with neither value
    nor notes clears that result. Returns the number of results written.
    """
    orders_by_test = {
        order.test_id: order
        for order in TestOrder.objects.using('default').filter(visit=visit)
    }
    test_ids = [entry.get('test_id') for entry in results if entry.get('test_id')]
    tests = LabTest.objects.using('default').in_bulk(test_ids)

    written = 0
    with transaction.atomic(using='default'):
        draft = get_draft_version(visit, for_update=True)

        for entry in results:
            test = tests.get(entry.get('test_id'))
            if test is None:
                continue
            order = _order_for(test, orders_by_test)
            if order is None:
                logger.debug('Skipping result for test %s: not ordered on visit %s', test.pk, visit.pk)
                continue

            value = _parse_value(entry.get('value'), test.pk)
            notes = (entry.get('notes') or '').strip()
            lookup = {'report_version': draft, 'test_order': order, 'test': test}

            if value is None and not notes:
                TestResult.objects.using('default').filter(**lookup).delete()
                continue

            TestResult.objects.using('default').update_or_create(
                **lookup,
                defaults={'value': value, 'flag': entry.get('flag') or '', 'notes': notes},
            )
            written += 1

        if visit.status == Visit.STATUS_DRAFT:
            visit.status = Visit.STATUS_WAITING
            visit.save(using='default', update_fields=['status', 'updated_at'])

    logger.info('%s saved %s result(s) on %s', user, written, visit.bill_number)
    return written


def get_report_version(*, branch, version_id) -> ReportVersion:
    """A report version of the branch, with its visit and patient loaded."""
    try:
        return (
            ReportVersion.objects.using('default')
            .select_related('report', 'report__branch', 'report__visit', 'report__visit__patient')
            .get(pk=version_id, report__branch=branch)
        )
    except (ReportVersion.DoesNotExist, ValueError, TypeError):
        raise ReportNotFound('Report version not found')
