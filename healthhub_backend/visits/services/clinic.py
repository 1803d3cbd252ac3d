"""Clinic (consultation) visits: one Visit + Bill + ClinicVisit per consultation."""

from __future__ import annotations

import logging

from django.db import transaction

from healthhub_backend.core.models import AuditLog
from healthhub_backend.core.services.numbering import generate_clinic_bill_number
from healthhub_backend.core.utils import log_action
from healthhub_backend.doctors.models import ClinicDoctor
from healthhub_backend.lab.exceptions import LabError
from healthhub_backend.lab.services.catalogue import rupees_to_paise
from healthhub_backend.patients.models import Patient
from healthhub_backend.visits.exceptions import InvalidVisitData, RelatedNotFound, VisitNotFound
from healthhub_backend.visits.models import Bill, ClinicVisit, Visit
from healthhub_backend.visits.services.diagnostic import validate_payment

logger = logging.getLogger(__name__)

CLINIC_STATUSES = (
    Visit.STATUS_WAITING,
    Visit.STATUS_IN_PROGRESS,
    Visit.STATUS_COMPLETED,
    Visit.STATUS_CANCELLED,
)


def clinic_visits(branch):
    return (
        Visit.objects.using('default')
        .filter(domain=Visit.DOMAIN_CLINIC, branch=branch)
        .select_related('patient', 'branch', 'bill', 'clinic_visit', 'clinic_visit__clinic_doctor')
        .prefetch_related('patient__identifiers')
    )


def list_clinic_visits(*, branch, status=None, doctor_id=None):
    qs = clinic_visits(branch)
    if status:
        qs = qs.filter(clinic_visit__status=status)
    if doctor_id:
        qs = qs.filter(clinic_visit__clinic_doctor_id=doctor_id)
    return qs.order_by('-created_at', '-id')


def get_clinic_visit(*, branch, visit_id) -> Visit:
    try:
        return clinic_visits(branch).get(pk=visit_id)
    except (Visit.DoesNotExist, ValueError, TypeError):
        raise VisitNotFound('Clinic visit not found')


def _fee_in_paise(value) -> int:
    try:
        return rupees_to_paise(value)
    except LabError as e:
        raise InvalidVisitData(str(e).replace('Price', 'Consultation fee'), field='consultation_fee')


def create_clinic_visit(
    *,
    branch,
    user,
    patient_id,
    clinic_doctor_id,
    visit_type=ClinicVisit.VISIT_TYPE_OP,
    hospital_ward=None,
    consultation_fee=None,
    payment_type=Bill.PAYMENT_CASH,
    payment_status=Bill.STATUS_PENDING,
    request=None,
) -> Visit:
    """
    Register a consultation.

    ``consultation_fee`` is in rupees. ``hospital_ward`` is only accepted
    for in-patient (IP) visits.
    """
    if not patient_id or not clinic_doctor_id or not visit_type or consultation_fee is None:
        raise InvalidVisitData('Patient, doctor, visit type and consultation fee are required')
    if visit_type not in dict(ClinicVisit.VISIT_TYPE_CHOICES):
        raise InvalidVisitData('Visit type must be OP or IP', field='visit_type')
    if hospital_ward and visit_type != ClinicVisit.VISIT_TYPE_IP:
        raise InvalidVisitData('Hospital ward is only allowed for IP visits', field='hospital_ward')
    payment_type = payment_type or Bill.PAYMENT_CASH
    payment_status = payment_status or Bill.STATUS_PENDING
    validate_payment(payment_type, payment_status)
    fee = _fee_in_paise(consultation_fee)

    try:
        patient = Patient.objects.using('default').get(pk=patient_id)
    except (Patient.DoesNotExist, ValueError, TypeError):
        raise RelatedNotFound('Patient not found', field='patient_id')
    try:
        doctor = ClinicDoctor.objects.using('default').get(pk=clinic_doctor_id, is_active=True)
    except (ClinicDoctor.DoesNotExist, ValueError, TypeError):
        raise RelatedNotFound('Clinic doctor not found', field='clinic_doctor_id')

    with transaction.atomic(using='default'):
        bill_number = generate_clinic_bill_number(branch.code)
        visit = Visit.objects.using('default').create(
            branch=branch,
            patient=patient,
            domain=Visit.DOMAIN_CLINIC,
            status=Visit.STATUS_WAITING,
            bill_number=bill_number,
            total_amount_in_paise=fee,
            created_by=user if getattr(user, 'is_authenticated', False) else None,
        )
        Bill.objects.using('default').create(
            visit=visit,
            branch=branch,
            bill_number=bill_number,
            total_amount_in_paise=fee,
            payment_type=payment_type,
            payment_status=payment_status,
        )
        ClinicVisit.objects.using('default').create(
            visit=visit,
            clinic_doctor=doctor,
            visit_type=visit_type,
            hospital_ward=(hospital_ward or '') if visit_type == ClinicVisit.VISIT_TYPE_IP else '',
            consultation_fee_in_paise=fee,
            status=Visit.STATUS_WAITING,
        )

        log_action(
            user=user,
            branch=branch,
            action_type=AuditLog.ACTION_CREATE,
            entity_type='Visit',
            entity_id=visit.pk,
            new_values={
                'domain': Visit.DOMAIN_CLINIC,
                'bill_number': bill_number,
                'patient_id': patient.pk,
                'clinic_doctor_id': doctor.pk,
                'visit_type': visit_type,
                'consultation_fee_in_paise': fee,
            },
            request=request,
        )

    logger.info('Clinic visit %s created at %s', bill_number, branch.code)
    return visit


def _set_status(visit: Visit, status: str) -> None:
    """Visit and ClinicVisit always carry the same status."""
    visit.status = status
    visit.save(using='default', update_fields=['status', 'updated_at'])
    clinic_visit = getattr(visit, 'clinic_visit', None)
    if clinic_visit is not None:
        clinic_visit.status = status
        clinic_visit.save(using='default', update_fields=['status', 'updated_at'])


def update_clinic_visit(
    *, visit: Visit, status=None, payment_status=None, payment_type=None, user, request=None
) -> Visit:
    if status is not None and status not in CLINIC_STATUSES:
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
            _set_status(visit, status)
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


def cancel_clinic_visit(*, visit: Visit, user, request=None) -> Visit:
    old_status = visit.status
    with transaction.atomic(using='default'):
        _set_status(visit, Visit.STATUS_CANCELLED)

    log_action(
        user=user,
        branch=visit.branch,
        action_type=AuditLog.ACTION_UPDATE,
        entity_type='Visit',
        entity_id=visit.pk,
        old_values={'status': old_status},
        new_values={'status': Visit.STATUS_CANCELLED},
        request=request,
    )
    return visit
