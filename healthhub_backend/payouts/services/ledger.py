"""
Payout derivation and the payout ledger.

Referral doctors earn ``round(price * commission% / 100)`` per test order on
visits whose report was finalized inside the period. Clinic doctors earn the
full consultation fee of each COMPLETED clinic visit created inside the
period. Period bounds are inclusive dates.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import IntegrityError, transaction
from django.db.models import Max, Prefetch, Q
from django.utils import timezone

from healthhub_backend.core.models import AuditLog
from healthhub_backend.core.utils import log_action
from healthhub_backend.doctors.models import ClinicDoctor, ReferralDoctor
from healthhub_backend.payouts.exceptions import (
    AlreadyPaid,
    InvalidPaymentMethod,
    InvalidPayoutData,
    PayoutDoctorNotFound,
    PayoutNotFound,
)
from healthhub_backend.payouts.models import DoctorPayoutLedger
from healthhub_backend.reports.models import ReportVersion
from healthhub_backend.visits.models import ClinicVisit, TestOrder, Visit

logger = logging.getLogger(__name__)

CONSULTATION_FEE_LABEL = 'Consultation Fee'


def commission_in_paise(price_in_paise, percentage) -> int:
    """Commission rounded half-up to whole paise."""
    amount = Decimal(price_in_paise) * Decimal(str(percentage)) / Decimal(100)
    return int(amount.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _finalized_in(period_start, period_end) -> Q:
    return Q(
        report__versions__status=ReportVersion.STATUS_FINALIZED,
        report__versions__finalized_at__date__gte=period_start,
        report__versions__finalized_at__date__lte=period_end,
    )


def referral_line_items(*, doctor_id, branch, period_start, period_end) -> list[dict]:
    visits = (
        Visit.objects.using('default')
        .filter(
            _finalized_in(period_start, period_end),
            branch=branch,
            domain=Visit.DOMAIN_DIAGNOSTICS,
            referral_doctor_id=doctor_id,
        )
        .annotate(
            last_finalized_at=Max(
                'report__versions__finalized_at',
                filter=Q(report__versions__status=ReportVersion.STATUS_FINALIZED),
            )
        )
        .select_related('patient')
        .prefetch_related(
            Prefetch('test_orders', queryset=TestOrder.objects.using('default').order_by('id'))
        )
        .distinct()
        .order_by('created_at', 'id')
    )

    items = []
    for visit in visits:
        for order in visit.test_orders.all():
            items.append({
                'visit_id': visit.pk,
                'bill_number': visit.bill_number,
                'patient_name': visit.patient.name,
                'date': visit.last_finalized_at or visit.created_at,
                'test_or_fee': order.test_name_snapshot,
                'amount_in_paise': order.price_in_paise,
                'commission_percentage': float(order.referral_commission_percentage),
                'derived_commission_in_paise': commission_in_paise(
                    order.price_in_paise, order.referral_commission_percentage,
                ),
            })
    return items


def clinic_line_items(*, doctor_id, branch, period_start, period_end) -> list[dict]:
    clinic_visits = (
        ClinicVisit.objects.using('default')
        .filter(
            clinic_doctor_id=doctor_id,
            status=Visit.STATUS_COMPLETED,
            visit__branch=branch,
            created_at__date__gte=period_start,
            created_at__date__lte=period_end,
        )
        .select_related('visit', 'visit__patient')
        .order_by('created_at', 'id')
    )
    return [
        {
            'visit_id': cv.visit_id,
            'bill_number': cv.visit.bill_number,
            'patient_name': cv.visit.patient.name,
            'date': cv.created_at,
            'test_or_fee': CONSULTATION_FEE_LABEL,
            'amount_in_paise': cv.consultation_fee_in_paise,
            'commission_percentage': None,
            'derived_commission_in_paise': cv.consultation_fee_in_paise,
        }
        for cv in clinic_visits
    ]


def _get_doctor(doctor_type, doctor_id):
    model = ReferralDoctor if doctor_type == DoctorPayoutLedger.DOCTOR_REFERRAL else ClinicDoctor
    try:
        return model.objects.using('default').get(pk=doctor_id)
    except (model.DoesNotExist, ValueError, TypeError):
        raise PayoutDoctorNotFound(field='doctor_id')


def _line_items(doctor_type, *, doctor_id, branch, period_start, period_end):
    derive = referral_line_items if doctor_type == DoctorPayoutLedger.DOCTOR_REFERRAL else clinic_line_items
    return derive(doctor_id=doctor_id, branch=branch, period_start=period_start, period_end=period_end)


def derive_referral_payout(*, doctor_id, branch, period_start, period_end) -> dict:
    doctor = _get_doctor(DoctorPayoutLedger.DOCTOR_REFERRAL, doctor_id)
    items = referral_line_items(doctor_id=doctor.pk, branch=branch, period_start=period_start, period_end=period_end)
    return {
        'doctor': doctor,
        'line_items': items,
        'derived_amount_in_paise': sum(item['derived_commission_in_paise'] for item in items),
    }


def derive_clinic_payout(*, doctor_id, branch, period_start, period_end) -> dict:
    doctor = _get_doctor(DoctorPayoutLedger.DOCTOR_CLINIC, doctor_id)
    items = clinic_line_items(doctor_id=doctor.pk, branch=branch, period_start=period_start, period_end=period_end)
    return {
        'doctor': doctor,
        'line_items': items,
        'derived_amount_in_paise': sum(item['derived_commission_in_paise'] for item in items),
    }


def _doctor_lookup(doctor_type, doctor_id) -> dict:
    if doctor_type == DoctorPayoutLedger.DOCTOR_REFERRAL:
        return {'referral_doctor_id': doctor_id}
    return {'clinic_doctor_id': doctor_id}


def payouts_queryset():
    return (
        DoctorPayoutLedger.objects.using('default')
        .select_related('referral_doctor', 'clinic_doctor', 'branch')
    )


def get_payout_detail(payout: DoctorPayoutLedger) -> dict:
    """The ledger row plus line items recomputed for display."""
    return {
        'payout': payout,
        'line_items': _line_items(
            payout.doctor_type,
            doctor_id=payout.doctor_id,
            branch=payout.branch,
            period_start=payout.period_start_date,
            period_end=payout.period_end_date,
        ),
    }


def derive_payout(*, doctor_type, doctor_id, branch, period_start, period_end, user, request=None):
    """
    Create the ledger row for a doctor and period, or return the existing one.

    Returns ``(detail, is_new)`` where detail is get_payout_detail()'s dict.

    Raises:
        InvalidPayoutData: Unknown doctor type or end before start
        PayoutDoctorNotFound: Unknown doctor
    """
    if doctor_type not in dict(DoctorPayoutLedger.DOCTOR_TYPE_CHOICES):
        raise InvalidPayoutData('Doctor type must be REFERRAL or CLINIC', field='doctor_type')
    if period_end < period_start:
        raise InvalidPayoutData('Period end date must not be before the start date', field='period_end_date')

    doctor = _get_doctor(doctor_type, doctor_id)
    lookup = {
        'doctor_type': doctor_type,
        'branch': branch,
        'period_start_date': period_start,
        'period_end_date': period_end,
        **_doctor_lookup(doctor_type, doctor.pk),
    }

    existing = payouts_queryset().filter(**lookup).first()
    if existing is not None:
        return get_payout_detail(existing), False

    if doctor_type == DoctorPayoutLedger.DOCTOR_REFERRAL:
        derivation = derive_referral_payout(
            doctor_id=doctor.pk, branch=branch, period_start=period_start, period_end=period_end,
        )
    else:
        derivation = derive_clinic_payout(
            doctor_id=doctor.pk, branch=branch, period_start=period_start, period_end=period_end,
        )

    try:
        with transaction.atomic(using='default'):
            payout = DoctorPayoutLedger.objects.using('default').create(
                derived_amount_in_paise=derivation['derived_amount_in_paise'],
                **lookup,
            )
    except IntegrityError:
        # concurrent derive for the same period won
        return get_payout_detail(payouts_queryset().get(**lookup)), False

    log_action(
        user=user,
        branch=branch,
        action_type=AuditLog.ACTION_PAYOUT_DERIVE,
        entity_type='DoctorPayoutLedger',
        entity_id=payout.pk,
        new_values={
            'doctor_type': doctor_type,
            'doctor_id': doctor.pk,
            'period_start_date': period_start.isoformat(),
            'period_end_date': period_end.isoformat(),
            'derived_amount_in_paise': payout.derived_amount_in_paise,
        },
        request=request,
    )
    logger.info(
        'Derived %s payout %s for doctor %s: %s paise',
        doctor_type, payout.pk, doctor.pk, payout.derived_amount_in_paise,
    )
    payout = payouts_queryset().get(pk=payout.pk)
    return {'payout': payout, 'line_items': derivation['line_items']}, True


def list_payouts(*, branch, doctor_type=None, is_paid=None, start_date=None, end_date=None):
    qs = payouts_queryset().filter(branch=branch)
    if doctor_type:
        qs = qs.filter(doctor_type=doctor_type)
    if is_paid is not None:
        qs = qs.filter(paid_at__isnull=not is_paid)
    if start_date:
        qs = qs.filter(period_start_date__gte=start_date)
    if end_date:
        qs = qs.filter(period_end_date__lte=end_date)
    return qs.order_by('-derived_at', '-id')


def get_payout(*, branch, payout_id) -> DoctorPayoutLedger:
    try:
        return payouts_queryset().get(pk=payout_id, branch=branch)
    except (DoctorPayoutLedger.DoesNotExist, ValueError, TypeError):
        raise PayoutNotFound()


def mark_payout_paid(
    *,
    payout: DoctorPayoutLedger,
    payment_method,
    payment_reference_id=None,
    notes=None,
    user,
    request=None,
) -> DoctorPayoutLedger:
    """
    Record the payment of a ledger row.

    Raises:
        InvalidPaymentMethod: Method is not CASH, ONLINE or CHEQUE
        AlreadyPaid: The row is already paid
    """
    if payment_method not in dict(DoctorPayoutLedger.PAYMENT_METHOD_CHOICES):
        raise InvalidPaymentMethod(field='payment_method')

    with transaction.atomic(using='default'):
        locked = DoctorPayoutLedger.objects.using('default').select_for_update().get(pk=payout.pk)
        if locked.is_paid:
            raise AlreadyPaid()

        now = timezone.now()
        locked.paid_at = now
        locked.reviewed_at = now
        locked.payment_method = payment_method
        locked.payment_reference_id = payment_reference_id or ''
        locked.notes = notes or ''
        locked.save(using='default')

        log_action(
            user=user,
            branch=locked.branch,
            action_type=AuditLog.ACTION_PAYOUT_PAID,
            entity_type='DoctorPayoutLedger',
            entity_id=locked.pk,
            old_values={'paid_at': None},
            new_values={
                'paid_at': now.isoformat(),
                'payment_method': payment_method,
                'payment_reference_id': locked.payment_reference_id,
                'derived_amount_in_paise': locked.derived_amount_in_paise,
            },
            request=request,
        )

    logger.info('Payout %s marked paid via %s by %s', locked.pk, payment_method, user)
    return payouts_queryset().get(pk=locked.pk)
