"""
Diagnostic visits.

A diagnostic visit is created in one transaction together with its bill,
test orders, report and first draft report version. Test orders copy the
catalogue name, code, price and reference range at order time, so later
catalogue edits never change an existing bill or report.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Sum

from healthhub_backend.core.models import AuditLog
from healthhub_backend.core.services.numbering import generate_diagnostic_bill_number
from healthhub_backend.core.utils import log_action
from healthhub_backend.doctors.models import ReferralDoctor
from healthhub_backend.lab.models import LabTest
from healthhub_backend.patients.models import Patient
from healthhub_backend.reports.models import DiagnosticReport, ReportVersion, TestResult
from healthhub_backend.visits.exceptions import (
    DuplicateTests,
    InvalidTests,
    InvalidVisitData,
    LastTestOrder,
    RelatedNotFound,
    ReportAlreadyFinalized,
    VisitNotFound,
)
from healthhub_backend.visits.models import Bill, TestOrder, Visit

logger = logging.getLogger(__name__)


def diagnostic_visits(branch=None):
    qs = (
        Visit.objects.using('default')
        .filter(domain=Visit.DOMAIN_DIAGNOSTICS)
        .select_related('patient', 'branch', 'bill', 'referral_doctor', 'report')
        .prefetch_related('patient__identifiers', 'test_orders')
    )
    if branch is not None:
        qs = qs.filter(branch=branch)
    return qs


def list_diagnostic_visits(*, branch, status=None, patient_id=None):
    """Branch-scoped list; filtering by patient spans all branches."""
    if patient_id:
        qs = diagnostic_visits().filter(patient_id=patient_id)
    else:
        qs = diagnostic_visits(branch)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by('-created_at', '-id')


def get_diagnostic_visit(*, branch, visit_id) -> Visit:
    try:
        return diagnostic_visits(branch).get(pk=visit_id)
    except (Visit.DoesNotExist, ValueError, TypeError):
        raise VisitNotFound('Diagnostic visit not found')


def _load_tests(test_ids) -> list[LabTest]:
    """Active catalogue tests for ``test_ids`` in request order, else InvalidTests."""
    wanted = []
    for test_id in test_ids:
        try:
            test_id = int(test_id)
        except (TypeError, ValueError):
            raise InvalidTests([test_id])
        if test_id not in wanted:
            wanted.append(test_id)

    found = LabTest.objects.using('default').in_bulk(wanted)
    invalid = [test_id for test_id in wanted if test_id not in found or not found[test_id].is_active]
    if invalid:
        raise InvalidTests(invalid)
    return [found[test_id] for test_id in wanted]


def _build_order(visit: Visit, test: LabTest, commission_percent) -> TestOrder:
    return TestOrder(
        visit=visit,
        branch_id=visit.branch_id,
        test=test,
        price_in_paise=test.price_in_paise,
        referral_commission_percentage=commission_percent,
        test_name_snapshot=test.name,
        test_code_snapshot=test.code,
        reference_min_snapshot=test.reference_min,
        reference_max_snapshot=test.reference_max,
        reference_unit_snapshot=test.reference_unit,
    )


def _latest_version(visit: Visit, *, for_update=False):
    versions = ReportVersion.objects.using('default').filter(report__visit=visit)
    if for_update:
        versions = versions.select_for_update()
    return versions.order_by('-version_num').first()


def _ensure_orders_editable(visit: Visit) -> None:
    """Lock the latest report version; must run inside the order-changing transaction."""
    latest = _latest_version(visit, for_update=True)
    if latest is not None and latest.is_finalized:
        raise ReportAlreadyFinalized()


def _recompute_totals(visit: Visit) -> int:
    total = (
        TestOrder.objects.using('default')
        .filter(visit=visit)
        .aggregate(total=Sum('price_in_paise'))['total']
    ) or 0
    visit.total_amount_in_paise = total
    visit.save(using='default', update_fields=['total_amount_in_paise', 'updated_at'])
    Bill.objects.using('default').filter(visit=visit).update(total_amount_in_paise=total)
    return total


def validate_payment(payment_type, payment_status) -> None:
    if payment_type is not None and payment_type not in dict(Bill.PAYMENT_TYPE_CHOICES):
        raise InvalidVisitData('Invalid payment type', field='payment_type')
    if payment_status is not None and payment_status not in dict(Bill.PAYMENT_STATUS_CHOICES):
        raise InvalidVisitData('Invalid payment status', field='payment_status')


def create_diagnostic_visit(
    *,
    branch,
    user,
    patient_id,
    test_ids,
    referral_doctor_id=None,
    payment_type=Bill.PAYMENT_CASH,
    payment_status=Bill.STATUS_PENDING,
    request=None,
) -> Visit:
    """
    Register a diagnostic visit.

    Raises:
        InvalidVisitData: Missing patient or tests, bad payment values
        InvalidTests: A test is unknown or inactive
        RelatedNotFound: Unknown patient or referral doctor
    """
    if not patient_id or not test_ids:
        raise InvalidVisitData('Patient ID and at least one test are required')
    payment_type = payment_type or Bill.PAYMENT_CASH
    payment_status = payment_status or Bill.STATUS_PENDING
    validate_payment(payment_type, payment_status)

    try:
        patient = Patient.objects.using('default').get(pk=patient_id)
    except (Patient.DoesNotExist, ValueError, TypeError):
        raise RelatedNotFound('Patient not found', field='patient_id')

    tests = _load_tests(test_ids)

    referral_doctor = None
    commission_percent = 0
    if referral_doctor_id:
        try:
            referral_doctor = ReferralDoctor.objects.using('default').get(pk=referral_doctor_id)
        except (ReferralDoctor.DoesNotExist, ValueError, TypeError):
            raise RelatedNotFound('Referral doctor not found', field='referral_doctor_id')
        if referral_doctor.is_active:
            commission_percent = referral_doctor.commission_percent

    total = sum(test.price_in_paise for test in tests)

    with transaction.atomic(using='default'):
        bill_number = generate_diagnostic_bill_number(branch.code)
        visit = Visit.objects.using('default').create(
            branch=branch,
            patient=patient,
            domain=Visit.DOMAIN_DIAGNOSTICS,
            status=Visit.STATUS_DRAFT,
            bill_number=bill_number,
            total_amount_in_paise=total,
            referral_doctor=referral_doctor,
            created_by=user if getattr(user, 'is_authenticated', False) else None,
        )
        Bill.objects.using('default').create(
            visit=visit,
            branch=branch,
            bill_number=bill_number,
            total_amount_in_paise=total,
            payment_type=payment_type,
            payment_status=payment_status,
        )
        TestOrder.objects.using('default').bulk_create(
            [_build_order(visit, test, commission_percent) for test in tests]
        )
        report = DiagnosticReport.objects.using('default').create(visit=visit, branch=branch)
        ReportVersion.objects.using('default').create(
            report=report,
            version_num=1,
            status=ReportVersion.STATUS_DRAFT,
        )

        log_action(
            user=user,
            branch=branch,
            action_type=AuditLog.ACTION_CREATE,
            entity_type='Visit',
            entity_id=visit.pk,
            new_values={
                'domain': Visit.DOMAIN_DIAGNOSTICS,
                'bill_number': bill_number,
                'patient_id': patient.pk,
                'total_amount_in_paise': total,
                'test_ids': [test.pk for test in tests],
            },
            request=request,
        )

    logger.info('Diagnostic visit %s created at %s', bill_number, branch.code)
    return visit


def add_tests_to_visit(*, visit: Visit, test_ids, user, request=None) -> list[TestOrder]:
    """Order more tests on an open visit. Returns the new orders."""
    if not test_ids:
        raise InvalidVisitData('At least one test is required', field='test_ids')

    old_total = visit.total_amount_in_paise
    with transaction.atomic(using='default'):
        _ensure_orders_editable(visit)
        tests = _load_tests(test_ids)

        existing = set(
            TestOrder.objects.using('default').filter(visit=visit).values_list('test_id', flat=True)
        )
        duplicates = [test.pk for test in tests if test.pk in existing]
        if duplicates:
            raise DuplicateTests(duplicates)

        # later orders keep the commission the visit was booked with
        commission_percent = 0
        first_order = TestOrder.objects.using('default').filter(visit=visit).order_by('id').first()
        if first_order is not None:
            commission_percent = first_order.referral_commission_percentage
        elif visit.referral_doctor_id and visit.referral_doctor.is_active:
            commission_percent = visit.referral_doctor.commission_percent

        orders = TestOrder.objects.using('default').bulk_create(
            [_build_order(visit, test, commission_percent) for test in tests]
        )
        total = _recompute_totals(visit)

    log_action(
        user=user,
        branch=visit.branch,
        action_type=AuditLog.ACTION_UPDATE,
        entity_type='Visit',
        entity_id=visit.pk,
        old_values={'test_count': len(existing), 'total_amount_in_paise': old_total},
        new_values={
            'test_count': len(existing) + len(tests),
            'total_amount_in_paise': total,
            'added_test_ids': [test.pk for test in tests],
        },
        request=request,
    )
    return orders


def remove_test_from_visit(*, visit: Visit, test_order_id, user, request=None) -> int:
    """Drop one order and its draft results. Returns the new total in paise."""
    old_total = visit.total_amount_in_paise
    with transaction.atomic(using='default'):
        _ensure_orders_editable(visit)

        orders = list(TestOrder.objects.using('default').filter(visit=visit))
        order = next((o for o in orders if str(o.pk) == str(test_order_id)), None)
        if order is None:
            raise VisitNotFound('Test order not found')
        if len(orders) == 1:
            raise LastTestOrder()
        if TestResult.objects.using('default').filter(
            test_order=order, report_version__status=ReportVersion.STATUS_FINALIZED
        ).exists():
            raise ReportAlreadyFinalized('Test has results in a finalized report version')

        TestResult.objects.using('default').filter(
            test_order=order, report_version__status=ReportVersion.STATUS_DRAFT
        ).delete()
        order.delete(using='default')
        total = _recompute_totals(visit)

    log_action(
        user=user,
        branch=visit.branch,
        action_type=AuditLog.ACTION_UPDATE,
        entity_type='Visit',
        entity_id=visit.pk,
        old_values={'test_count': len(orders), 'total_amount_in_paise': old_total},
        new_values={
            'test_count': len(orders) - 1,
            'total_amount_in_paise': total,
            'removed_test_order_id': order.pk,
        },
        request=request,
    )
    return total


def update_diagnostic_visit(
    *, visit: Visit, status=None, payment_status=None, payment_type=None, user, request=None
) -> Visit:
    if status is not None and status not in dict(Visit.STATUS_CHOICES):
        raise InvalidVisitData('Invalid status', field='status')
    validate_payment(payment_type, payment_status)

    bill = getattr(visit, 'bill', None)
    old_values = {
        'status': visit.status,
        'payment_status': bill.payment_status if bill else None,
        'payment_type': bill.payment_type if bill else None,
    }

    with transaction.atomic(using='default'):
        if status:
            visit.status = status
            visit.save(using='default', update_fields=['status', 'updated_at'])
        if bill is not None and (payment_status or payment_type):
            if payment_status:
                bill.payment_status = payment_status
            if payment_type:
                bill.payment_type = payment_type
            bill.save(using='default', update_fields=['payment_status', 'payment_type', 'updated_at'])

    log_action(
        user=user,
        branch=visit.branch,
        action_type=AuditLog.ACTION_UPDATE,
        entity_type='Visit',
        entity_id=visit.pk,
        old_values=old_values,
        new_values={
            'status': visit.status,
            'payment_status': bill.payment_status if bill else None,
            'payment_type': bill.payment_type if bill else None,
        },
        request=request,
    )
    return visit
