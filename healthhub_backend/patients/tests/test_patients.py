"""Tests for patient registration, matching, updates and history.

Tests cover:
- POST /api/patients/ (numbering, identifiers, duplicate detection)
- GET /api/patients/search/ and /api/patients/check/
- PATCH /api/patients/<id>/ change log and staff change_reason rule
- Audit entries for create/update
- GET /api/patients/<id>/360/ timeline and financial summary

Uses only the default/system test DB.
"""

from __future__ import annotations

from django.test import TestCase

from rest_framework import status
from rest_framework.test import APIClient

from healthhub_backend.core.models import AuditLog, Branch, Role, User
from healthhub_backend.doctors.models import ClinicDoctor
from healthhub_backend.lab.models import LabTest
from healthhub_backend.patients.exceptions import PotentialDuplicate
from healthhub_backend.patients.models import Patient, PatientChangeLog, PatientIdentifier
from healthhub_backend.patients.services.matching import (
    find_patients_by_identifier,
    name_similarity,
    validate_identifier_uniqueness,
)
from healthhub_backend.patients.services.registration import create_patient, phone_lock_id
from healthhub_backend.visits.services.clinic import cancel_clinic_visit, create_clinic_visit
from healthhub_backend.visits.services.diagnostic import create_diagnostic_visit


class PatientApiTest(TestCase):
    databases = {"default"}

    def _client_for(self, user: User) -> APIClient:
        client = APIClient()
        client.defaults["HTTP_HOST"] = "localhost"
        client.force_authenticate(user=user)
        return client

    def setUp(self):
        self.branch = Branch.objects.using("default").create(name="Central", code="CNT")
        role_owner, _ = Role.objects.using("default").get_or_create(name="owner", defaults={"label": "Owner"})
        role_staff, _ = Role.objects.using("default").get_or_create(name="staff", defaults={"label": "Staff"})

        self.owner = User.objects.db_manager("default").create_user(
            username="owner_patients",
            email="owner_patients@example.com",
            password="DummyPass123!",
            role=role_owner,
            active_branch=self.branch,
        )
        self.staff = User.objects.db_manager("default").create_user(
            username="staff_patients",
            email="staff_patients@example.com",
            password="DummyPass123!",
            role=role_staff,
            active_branch=self.branch,
        )
        self.no_role = User.objects.db_manager("default").create_user(
            username="norole_patients",
            email="norole_patients@example.com",
            password="DummyPass123!",
        )

    def _register(self, client, **overrides):
        payload = {
            "name": "Ravi Kumar",
            "age": 34,
            "gender": "M",
            "phone": "9876543210",
            "address": "MG Road",
        }
        payload.update(overrides)
        return client.post("/api/patients/", payload, format="json")

    def test_create_patient_assigns_number_and_primary_phone(self):
        res = self._register(self._client_for(self.staff))
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(res.data["patient_number"], "P-00001")
        self.assertEqual(res.data["name"], "RAVI KUMAR")
        self.assertEqual(res.data["age"], 34)
        phones = [i for i in res.data["identifiers"] if i["type"] == "PHONE"]
        self.assertEqual(len(phones), 1)
        self.assertTrue(phones[0]["is_primary"])

        self.assertTrue(
            AuditLog.objects.using("default").filter(
                action_type=AuditLog.ACTION_CREATE,
                entity_type="Patient",
                entity_id=str(res.data["id"]),
                branch=self.branch,
            ).exists()
        )

    def test_patient_numbers_are_sequential(self):
        client = self._client_for(self.staff)
        first = self._register(client)
        second = self._register(client, name="Sita Devi", gender="F", phone="9000000001")
        self.assertEqual(first.data["patient_number"], "P-00001")
        self.assertEqual(second.data["patient_number"], "P-00002")

    def test_identifier_required(self):
        res = self._register(self._client_for(self.staff), phone="")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"], "VALIDATION_ERROR")

    def test_invalid_demographics_return_field_errors(self):
        res = self._register(self._client_for(self.staff), name="R2", age=130)
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        fields = {e["field"] for e in res.data["errors"]}
        self.assertEqual(fields, {"name", "age"})

    def test_two_primary_phones_rejected(self):
        res = self._register(
            self._client_for(self.staff),
            phone="",
            identifiers=[
                {"type": "PHONE", "value": "9876543210", "is_primary": True},
                {"type": "PHONE", "value": "9876543211", "is_primary": True},
            ],
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_potential_duplicate_returns_409_with_existing_patient(self):
        client = self._client_for(self.staff)
        first = self._register(client)
        res = self._register(client, name="  ravi kumar ", age=35)
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"], "POTENTIAL_DUPLICATE")
        self.assertEqual(res.data["existing_patient"]["id"], first.data["id"])

        forced = self._register(client, age=35, force_duplicate=True)
        self.assertEqual(forced.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Patient.objects.using("default").count(), 2)

    def test_family_member_sharing_phone_is_allowed(self):
        client = self._client_for(self.staff)
        self._register(client)
        res = self._register(client, name="Meena Kumar", gender="F", age=31)
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)

    def test_search_by_phone_email_and_name(self):
        client = self._client_for(self.staff)
        self._register(client, email="Ravi@Example.com")
        self._register(client, name="Sita Devi", gender="F", phone="9000000001")

        res = client.get("/api/patients/search/", {"phone": "98765-43210"})
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(len(res.data), 1)
        self.assertEqual(res.data[0]["match_type"], "phone")
        self.assertEqual(res.data[0]["score"], 100)
        self.assertEqual(res.data[0]["confidence"], "high")

        res = client.get("/api/patients/search/", {"email": "ravi@example.com"})
        self.assertEqual(res.data[0]["match_type"], "email")
        self.assertEqual(res.data[0]["score"], 95)

        res = client.get("/api/patients/search/", {"name": "sita"})
        self.assertEqual(res.data[0]["match_type"], "name")
        self.assertEqual(res.data[0]["confidence"], "low")

        res = client.get("/api/patients/search/", {"name": "sita", "strict": "true"})
        self.assertEqual(res.data, [])

    def test_check_endpoint(self):
        client = self._client_for(self.staff)
        self._register(client)
        self.assertTrue(client.get("/api/patients/check/", {"phone": "9876543210"}).data["exists"])
        self.assertFalse(client.get("/api/patients/check/", {"phone": "9000000009"}).data["exists"])

    def test_staff_needs_reason_for_identity_change(self):
        client = self._client_for(self.staff)
        created = self._register(client)
        url = f"/api/patients/{created.data['id']}/"

        res = client.patch(url, {"name": "Ravi K"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"], "CHANGE_REASON_REQUIRED")
        self.assertEqual(res.data["fields"], ["name"])

        res = client.patch(url, {"address": "Park Street"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)

        res = client.patch(url, {"name": "Ravi K", "change_reason": "Spelling"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(res.data["name"], "RAVI K")

    def test_owner_can_change_identity_without_reason(self):
        created = self._register(self._client_for(self.staff))
        res = self._client_for(self.owner).patch(
            f"/api/patients/{created.data['id']}/", {"gender": "O"}, format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)

    def test_phone_change_demotes_old_identifier_and_logs(self):
        client = self._client_for(self.owner)
        created = self._register(client)
        patient_id = created.data["id"]

        res = client.patch(
            f"/api/patients/{patient_id}/",
            {"phone": "9123456789", "address": "Park Street"},
            format="json",
            HTTP_X_REQUEST_ID="req-1",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)

        phones = PatientIdentifier.objects.using("default").filter(patient_id=patient_id, type="PHONE")
        self.assertEqual(phones.count(), 2)
        self.assertEqual(phones.get(is_primary=True).value, "9123456789")

        logs = PatientChangeLog.objects.using("default").filter(patient_id=patient_id)
        self.assertEqual({log.field_name for log in logs}, {"phone", "address"})
        self.assertEqual({log.request_id for log in logs}, {"req-1"})
        self.assertEqual(
            logs.get(field_name="address").change_type, PatientChangeLog.CHANGE_NON_IDENTITY,
        )

        history = client.get(f"/api/patients/{patient_id}/history/")
        self.assertEqual(history.status_code, status.HTTP_200_OK)
        self.assertEqual(len(history.data), 2)

        self.assertTrue(
            AuditLog.objects.using("default").filter(
                action_type=AuditLog.ACTION_UPDATE, entity_id=str(patient_id),
            ).exists()
        )

    def test_unchanged_values_write_no_log(self):
        client = self._client_for(self.staff)
        created = self._register(client)
        res = client.patch(f"/api/patients/{created.data['id']}/", {"address": "MG Road"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertFalse(PatientChangeLog.objects.using("default").exists())

    def test_user_without_role_is_forbidden(self):
        res = self._register(self._client_for(self.no_role))
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_patient_360_spans_branches(self):
        client = self._client_for(self.staff)
        patient_id = self._register(client).data["id"]
        other_branch = Branch.objects.using("default").create(name="Balanagar", code="BLN")
        test = LabTest.objects.using("default").create(code="FBS", name="FBS", price_in_paise=10000)
        doctor = ClinicDoctor.objects.using("default").create(
            doctor_number="CD-00001", name="Dr. Anitha", registration_number="TSMC-1",
        )

        create_diagnostic_visit(
            branch=self.branch, user=self.staff, patient_id=patient_id, test_ids=[test.pk],
            payment_status="PAID",
        )
        create_clinic_visit(
            branch=other_branch, user=self.staff, patient_id=patient_id,
            clinic_doctor_id=doctor.pk, consultation_fee=300,
        )
        cancelled = create_clinic_visit(
            branch=self.branch, user=self.staff, patient_id=patient_id,
            clinic_doctor_id=doctor.pk, consultation_fee=200,
        )
        cancel_clinic_visit(visit=cancelled, user=self.staff)

        res = client.get(f"/api/patients/{patient_id}/360/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["patient"]["id"], patient_id)
        self.assertEqual(len(res.data["visit_timeline"]), 3)
        self.assertEqual({b["code"] for b in res.data["branches"]}, {"CNT", "BLN"})

        summary = res.data["financial_summary"]
        self.assertEqual(summary["total_visits"], 3)
        self.assertEqual(summary["total_billed_in_paise"], 40000)
        self.assertEqual(summary["paid_in_paise"], 10000)
        self.assertEqual(summary["pending_in_paise"], 30000)

        diagnostic = next(item for item in res.data["visit_timeline"] if item["domain"] == "DIAGNOSTICS")
        self.assertEqual(diagnostic["report_status"], "DRAFT")

        self.assertEqual(client.get("/api/patients/424242/360/").status_code, status.HTTP_404_NOT_FOUND)


class PatientMatchingServiceTest(TestCase):
    databases = {"default"}

    def setUp(self):
        self.user = User.objects.db_manager("default").create_user(
            username="matching", email="matching@example.com", password="DummyPass123!",
        )

    def _create(self, name, phone, gender="M", age=40, **kwargs):
        return create_patient(
            data={"name": name, "age": age, "gender": gender, "phone": phone},
            user=self.user,
            **kwargs,
        )

    def test_name_similarity(self):
        self.assertEqual(name_similarity("ravi kumar", " RAVI KUMAR "), 100)
        self.assertEqual(name_similarity("RAVI", "RAVI KUMAR"), 80)
        self.assertEqual(name_similarity("RAVI KUMAR SHARMA", "AMIT KUMAR SHARMA"), 40)
        self.assertEqual(name_similarity("", "RAVI"), 0)

    def test_results_are_limited_and_deduplicated(self):
        for index in range(3):
            self._create(f"Person {chr(65 + index)}", "9876543210", age=20 + index * 5)
        matches = find_patients_by_identifier(phone="9876543210", limit=2)
        self.assertEqual(len(matches), 2)
        self.assertEqual(len({m["patient"].pk for m in matches}), 2)

    def test_invalid_phone_is_ignored(self):
        self._create("Ravi", "9876543210")
        self.assertEqual(find_patients_by_identifier(phone="123"), [])

    def test_identifier_uniqueness_is_advisory(self):
        first = self._create("Ravi", "9876543210")
        self.assertEqual(
            validate_identifier_uniqueness(type="PHONE", value="9876543210").pk, first.pk,
        )
        self.assertIsNone(
            validate_identifier_uniqueness(type="PHONE", value="9876543210", exclude_patient_id=first.pk)
        )

    def test_duplicate_within_one_year_of_age(self):
        self._create("Ravi", "9876543210", age=40)
        with self.assertRaises(PotentialDuplicate):
            self._create("RAVI", "9876543210", age=41)
        # two years apart is a different person
        self._create("Ravi", "9876543210", age=42)

    def test_lock_id_is_signed_int32(self):
        lock_id = phone_lock_id("9876543210")
        self.assertEqual(lock_id, phone_lock_id("9876543210"))
        self.assertTrue(-(2 ** 31) <= lock_id < 2 ** 31)
