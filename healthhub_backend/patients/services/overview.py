"""Patient 360 view: identity, visit timeline and financial summary across branches."""

from __future__ import annotations

from django.db.models import Prefetch

from healthhub_backend.patients.models import Patient
from healthhub_backend.reports.models import ReportVersion
from healthhub_backend.visits.models import Bill, Visit


def _timeline_item(visit: Visit) -> dict:
    bill = getattr(visit, 'bill', None)
    item = {
        'visit_id': visit.pk,
        'domain': visit.domain,
        'bill_number': visit.bill_number,
        'branch_id': visit.branch_id,
        'branch_name': visit.branch.name if visit.branch_id else 'Unknown',
        'status': visit.status,
        'total_amount_in_paise': visit.total_amount_in_paise,
        'payment_type': bill.payment_type if bill else Bill.PAYMENT_CASH,
        'payment_status': bill.payment_status if bill else Bill.STATUS_PENDING,
        'created_at': visit.created_at,
    }

    if visit.domain == Visit.DOMAIN_CLINIC:
        clinic_visit = getattr(visit, 'clinic_visit', None)
        if clinic_visit is not None:
            item['visit_type'] = clinic_visit.visit_type
            item['doctor_name'] = clinic_visit.clinic_doctor.name
    else:
        if visit.referral_doctor_id:
            item['referral_doctor_name'] = visit.referral_doctor.name
        report = getattr(visit, 'report', None)
        versions = list(report.versions.all()) if report is not None else []
        if versions:
            latest = versions[0]
            item['report_status'] = latest.status
            item['report_version_id'] = latest.pk
            item['finalized_at'] = latest.finalized_at

    return item


def get_patient_360(patient: Patient) -> dict:
    visits = list(
        Visit.objects.using('default')
        .filter(patient=patient)
        .select_related(
            'branch', 'bill', 'referral_doctor', 'report',
            'clinic_visit', 'clinic_visit__clinic_doctor',
        )
        .prefetch_related(
            Prefetch(
                'report__versions',
                queryset=ReportVersion.objects.using('default').order_by('-version_num'),
            )
        )
        .order_by('-created_at', '-id')
    )

    timeline = []
    branches = {}
    summary = {
        'total_billed_in_paise': 0,
        'diagnostics_billed_in_paise': 0,
        'clinic_billed_in_paise': 0,
        'paid_in_paise': 0,
        'pending_in_paise': 0,
        'total_visits': len(visits),
        'diagnostic_visits': 0,
        'clinic_visits': 0,
    }

    for visit in visits:
        timeline.append(_timeline_item(visit))
        branches.setdefault(visit.branch_id, {
            'id': visit.branch_id,
            'name': visit.branch.name,
            'code': visit.branch.code,
        })

        if visit.status == Visit.STATUS_CANCELLED:
            continue

        amount = visit.total_amount_in_paise
        summary['total_billed_in_paise'] += amount
        if visit.domain == Visit.DOMAIN_DIAGNOSTICS:
            summary['diagnostics_billed_in_paise'] += amount
            summary['diagnostic_visits'] += 1
        else:
            summary['clinic_billed_in_paise'] += amount
            summary['clinic_visits'] += 1

        bill = getattr(visit, 'bill', None)
        if bill is not None and bill.payment_status == Bill.STATUS_PAID:
            summary['paid_in_paise'] += amount
        else:
            summary['pending_in_paise'] += amount

    return {
        'patient': patient,
        'visit_timeline': timeline,
        'financial_summary': summary,
        'last_visit_at': visits[0].created_at if visits else None,
        'branches': list(branches.values()),
    }
