"""Printable bill data for diagnostic and clinic visits."""

from __future__ import annotations

from healthhub_backend.visits.exceptions import InvalidVisitData, VisitNotFound
from healthhub_backend.visits.models import Bill, Visit

DOMAINS = {
    'diagnostic': Visit.DOMAIN_DIAGNOSTICS,
    'clinic': Visit.DOMAIN_CLINIC,
}


def _rupees(paise) -> float:
    return (paise or 0) / 100


def get_bill_visit(*, domain: str, visit_id) -> Visit:
    """Resolve a visit for printing. ``domain`` is 'diagnostic' or 'clinic'."""
    visit_domain = DOMAINS.get((domain or '').lower())
    if visit_domain is None:
        raise InvalidVisitData('Domain must be diagnostic or clinic', field='domain')
    try:
        return (
            Visit.objects.using('default')
            .select_related(
                'patient', 'branch', 'bill', 'referral_doctor',
                'clinic_visit', 'clinic_visit__clinic_doctor',
            )
            .prefetch_related('patient__identifiers', 'test_orders')
            .get(pk=visit_id, domain=visit_domain)
        )
    except (Visit.DoesNotExist, ValueError, TypeError):
        raise VisitNotFound()


def _items(visit: Visit) -> list[dict]:
    if visit.domain == Visit.DOMAIN_DIAGNOSTICS:
        return [
            {
                'id': order.pk,
                'name': order.test_name_snapshot,
                'code': order.test_code_snapshot,
                'price': _rupees(order.price_in_paise),
                'referral_commission_percent': float(order.referral_commission_percentage),
            }
            for order in visit.test_orders.all()
        ]

    clinic_visit = getattr(visit, 'clinic_visit', None)
    if clinic_visit is None:
        return []
    return [{
        'id': visit.pk,
        'name': f'{clinic_visit.visit_type} Consultation',
        'code': 'CONSULT',
        'price': _rupees(clinic_visit.consultation_fee_in_paise),
    }]


def get_bill_print_data(*, domain: str, visit: Visit) -> dict:
    if DOMAINS.get((domain or '').lower()) != visit.domain:
        raise VisitNotFound()

    bill = getattr(visit, 'bill', None)
    clinic_visit = getattr(visit, 'clinic_visit', None)
    doctor = clinic_visit.clinic_doctor if clinic_visit is not None else None

    return {
        'visit': {
            'id': visit.pk,
            'bill_number': visit.bill_number,
            'domain': visit.domain,
            'status': visit.status,
            'created_at': visit.created_at,
            'total_amount': _rupees(visit.total_amount_in_paise),
            'visit_type': clinic_visit.visit_type if clinic_visit is not None else None,
        },
        'patient': {
            'name': visit.patient.name,
            'age': visit.patient.age,
            'gender': visit.patient.gender,
            'phone': visit.patient.primary_phone or '',
        },
        'branch': {
            'name': visit.branch.name,
            'code': visit.branch.code,
        },
        'payment': {
            'type': bill.payment_type if bill else Bill.PAYMENT_CASH,
            'status': bill.payment_status if bill else Bill.STATUS_PENDING,
        },
        'doctor': {
            'name': doctor.name,
            'qualification': doctor.qualification,
        } if doctor is not None else None,
        'referral_doctor': {
            'name': visit.referral_doctor.name,
        } if visit.referral_doctor_id else None,
        'items': _items(visit),
    }
