"""Tests for referral and clinic doctor endpoints."""

from __future__ import annotations

from decimal import Decimal

from django.test import TestCase

from rest_framework import status
from rest_framework.test import APIClient

from healthhub_backend.core.models import AuditLog, Branch, Role, User
from healthhub_backend.doctors.models import ClinicDoctor, ReferralDoctor


class DoctorApiTest(TestCase):
    databases = {"default"}

    def setUp(self):
        self.branch = Branch.objects.using("default").create(name="Central", code="CNT")
        role_staff, _ = Role.objects.using("default").get_or_create(name="staff", defaults={"label": "Staff"})
        self.staff = User.objects.db_manager("default").create_user(
            username="staff_doctors",
            email="staff_doctors@example.com",
            password="DummyPass123!",
            role=role_staff,
            active_branch=self.branch,
        )
        self.client = APIClient()
        self.client.defaults["HTTP_HOST"] = "localhost"
        self.client.force_authenticate(user=self.staff)

    def _referral(self, **overrides):
        payload = {"name": "Dr Mehta", "phone": "9800000001", "commission_percent": "10"}
        payload.update(overrides)
        return self.client.post("/api/referral-doctors/", payload, format="json")

    def _clinic(self, **overrides):
        payload = {
            "name": "Dr Rao",
            "qualification": "MBBS, MD",
            "specialty": "General Medicine",
            "registration_number": "KMC-1001",
            "phone": "9800000002",
        }
        payload.update(overrides)
        return self.client.post("/api/clinic-doctors/", payload, format="json")

    def test_create_referral_doctor_numbers_and_audits(self):
        res = self._referral()
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(res.data["doctor_number"], "RD-00001")
        self.assertEqual(Decimal(res.data["commission_percent"]), Decimal("10"))
        self.assertTrue(
            AuditLog.objects.using("default").filter(
                entity_type="ReferralDoctor", action_type=AuditLog.ACTION_CREATE, branch=self.branch,
            ).exists()
        )

    def test_commission_must_be_between_0_and_100(self):
        res = self._referral(commission_percent="101")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["field"], "commission_percent")

        doctor_id = self._referral().data["id"]
        res = self.client.patch(f"/api/referral-doctors/{doctor_id}/", {"commission_percent": "-1"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_duplicate_active_phone_conflicts(self):
        self._referral()
        res = self._referral(name="Dr Other")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"], "DUPLICATE_PHONE")

    def test_deactivated_doctor_frees_phone_and_is_hidden(self):
        doctor_id = self._referral().data["id"]
        res = self.client.delete(f"/api/referral-doctors/{doctor_id}/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertFalse(ReferralDoctor.objects.using("default").get(pk=doctor_id).is_active)

        self.assertEqual(self.client.get("/api/referral-doctors/").data, [])
        self.assertEqual(len(self.client.get("/api/referral-doctors/", {"include_inactive": "true"}).data), 1)
        self.assertEqual(self._referral(name="Dr New").status_code, status.HTTP_201_CREATED)

    def test_clinic_doctor_registration_must_be_unique(self):
        res = self._clinic()
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(res.data["doctor_number"], "CD-00001")

        res = self._clinic(phone="9800000003")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"], "DUPLICATE_REGISTRATION")

        res = self._clinic(registration_number="KMC-1002")
        self.assertEqual(res.data["error"], "DUPLICATE_PHONE")

    def test_clinic_doctor_links_existing_referral_profile(self):
        referral_id = self._referral().data["id"]
        res = self._clinic(referral_doctor_id=referral_id)
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        referral = ReferralDoctor.objects.using("default").get(pk=referral_id)
        self.assertEqual(referral.clinic_doctor_id, res.data["id"])

    def test_update_clinic_doctor(self):
        doctor_id = self._clinic().data["id"]
        res = self.client.patch(f"/api/clinic-doctors/{doctor_id}/", {"specialty": "Cardiology"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(ClinicDoctor.objects.using("default").get(pk=doctor_id).specialty, "Cardiology")

    def test_unknown_doctor_is_404(self):
        res = self.client.get("/api/clinic-doctors/999/")
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data["error"], "NOT_FOUND")

    def test_search_by_contact(self):
        self._referral(email="mehta@example.com")
        self._clinic(phone="9800000001", registration_number="KMC-2000")

        res = self.client.get("/api/doctors/search-by-contact/", {"phone": "9800000001"})
        self.assertEqual(len(res.data["referral_doctors"]), 1)
        self.assertEqual(len(res.data["clinic_doctors"]), 1)

        res = self.client.get("/api/doctors/search-by-contact/", {"email": "MEHTA@example.com"})
        self.assertEqual(len(res.data["referral_doctors"]), 1)
        self.assertEqual(res.data["clinic_doctors"], [])

        res = self.client.get("/api/doctors/search-by-contact/")
        self.assertEqual(res.data, {"referral_doctors": [], "clinic_doctors": []})
