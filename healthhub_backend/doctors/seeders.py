import random
from decimal import Decimal

from django.db import transaction

from healthhub_backend.core.services.numbering import (
    generate_clinic_doctor_number,
    generate_referral_doctor_number,
)
from healthhub_backend.doctors.models import ClinicDoctor, ReferralDoctor

RANDOM_SEED = 42

# name, qualification, specialty, registration number
CLINIC_DOCTORS = [
    ("Dr. Anitha Reddy", "MBBS, MD", "General Medicine", "TSMC-30112"),
    ("Dr. Mohammed Irfan", "MBBS, DCH", "Paediatrics", "TSMC-33870"),
    ("Dr. Sujatha Naidu", "MBBS, MS", "Obstetrics & Gynaecology", "TSMC-29455"),
]

REFERRAL_DOCTORS = [
    "Dr. Suresh Kumar",
    "Dr. Padma Rani",
    "Dr. Ravi Teja",
    "Dr. Farhana Begum",
    "Dr. Narasimha Chary",
]

COMMISSION_CHOICES = [Decimal("5.00"), Decimal("10.00"), Decimal("12.50"), Decimal("15.00"), Decimal("20.00")]


def seed_doctors(flush: bool = False) -> dict:
    """
    Seeds clinic doctors and referral doctors.

    Referral commissions are drawn with a fixed seed so repeated runs on an
    empty database produce the same directory. Doctors with payout history
    are never deleted, so flush only removes referral doctors without visits.
    """
    random.seed(RANDOM_SEED)

    stats: dict[str, int] = {}

    with transaction.atomic():
        if flush:
            ReferralDoctor.objects.filter(visits__isnull=True, payouts__isnull=True).delete()

        clinic_doctors = _seed_clinic_doctors()
        stats["doctors_clinic"] = len(clinic_doctors)

        referral_doctors = _seed_referral_doctors(clinic_doctors)
        stats["doctors_referral"] = len(referral_doctors)

    return stats


def _seed_clinic_doctors() -> list[ClinicDoctor]:
    doctors = []
    for name, qualification, specialty, registration in CLINIC_DOCTORS:
        doctor = ClinicDoctor.objects.filter(registration_number=registration).first()
        if doctor is None:
            doctor = ClinicDoctor.objects.create(
                doctor_number=generate_clinic_doctor_number(),
                name=name,
                qualification=qualification,
                specialty=specialty,
                registration_number=registration,
                phone=f"9{random.randint(100000000, 999999999)}",
            )
        doctors.append(doctor)
    return doctors


def _seed_referral_doctors(clinic_doctors: list[ClinicDoctor]) -> list[ReferralDoctor]:
    doctors = []
    for name in REFERRAL_DOCTORS:
        commission = random.choice(COMMISSION_CHOICES)
        doctor = ReferralDoctor.objects.filter(name=name).first()
        if doctor is None:
            doctor = ReferralDoctor.objects.create(
                doctor_number=generate_referral_doctor_number(),
                name=name,
                commission_percent=commission,
                phone=f"9{random.randint(100000000, 999999999)}",
            )
        doctors.append(doctor)

    # the first clinic doctor also refers outside work to the lab
    linked = ReferralDoctor.objects.filter(clinic_doctor=clinic_doctors[0]).first()
    if linked is None:
        linked = ReferralDoctor.objects.create(
            doctor_number=generate_referral_doctor_number(),
            name=clinic_doctors[0].name,
            commission_percent=Decimal("10.00"),
            clinic_doctor=clinic_doctors[0],
        )
    doctors.append(linked)
    return doctors
