"""Tests for diagnostic and clinic visits (/api/visits/) and bill printing (/api/bills/)."""

from __future__ import annotations

from decimal import Decimal
from unittest import mock

from django.db import connections
from django.test import TestCase

from rest_framework import status
from rest_framework.test import APIClient

from healthhub_backend.core.models import AuditLog, Branch, Role, User
from healthhub_backend.doctors.models import ClinicDoctor, ReferralDoctor
from healthhub_backend.lab.models import LabTest
from healthhub_backend.patients.models import Patient, PatientIdentifier
from healthhub_backend.reports.models import ReportVersion
from healthhub_backend.reports.services.finalization import finalize_report
from healthhub_backend.reports.services.results import save_draft_results
from healthhub_backend.visits.models import Bill, ClinicVisit, TestOrder, Visit
from healthhub_backend.visits.services import diagnostic as diagnostic_service


class VisitFixtureMixin:
    databases = {"default"}

    def setUp(self):
        self.branch = Branch.objects.using("default").create(name="Central", code="CNT")
        self.other_branch = Branch.objects.using("default").create(name="Idpl", code="IDPL")
        role_staff, _ = Role.objects.using("default").get_or_create(name="staff", defaults={"label": "Staff"})
        self.staff = User.objects.db_manager("default").create_user(
            username="visit_staff",
            email="visit_staff@example.com",
            password="DummyPass123!",
            role=role_staff,
            active_branch=self.branch,
        )
        self.other_staff = User.objects.db_manager("default").create_user(
            username="visit_staff_idpl",
            email="visit_staff_idpl@example.com",
            password="DummyPass123!",
            role=role_staff,
            active_branch=self.other_branch,
        )
        self.client = APIClient()
        self.client.defaults["HTTP_HOST"] = "localhost"
        self.client.force_authenticate(user=self.staff)

        self.patient = Patient.objects.using("default").create(
            patient_number="P-00001", name="Ramesh", gender="M", year_of_birth=1980,
        )
        PatientIdentifier.objects.using("default").create(
            patient=self.patient, type=PatientIdentifier.TYPE_PHONE, value="9876543210", is_primary=True,
        )
        self.referral = ReferralDoctor.objects.using("default").create(
            doctor_number="RD-00001", name="Dr. Suresh", commission_percent=Decimal("10.00"),
        )
        self.clinic_doctor = ClinicDoctor.objects.using("default").create(
            doctor_number="CD-00001", name="Dr. Anitha", qualification="MBBS", registration_number="TSMC-1",
        )
        self.fbs = LabTest.objects.using("default").create(
            code="FBS", name="Fasting Blood Sugar", price_in_paise=10000,
            reference_min=70, reference_max=100, reference_unit="mg/dL",
        )
        self.tsh = LabTest.objects.using("default").create(code="TSH", name="TSH", price_in_paise=30000)
        self.retired = LabTest.objects.using("default").create(
            code="OLD", name="Retired test", price_in_paise=5000, is_active=False,
        )

    def create_diagnostic(self, test_ids, **extra):
        return self.client.post(
            "/api/visits/diagnostic/",
            {"patient_id": self.patient.pk, "test_ids": test_ids, **extra},
            format="json",
        )


class DiagnosticVisitTest(VisitFixtureMixin, TestCase):
    def test_create_books_bill_orders_and_draft_report(self):
        res = self.create_diagnostic(
            [self.fbs.pk, self.tsh.pk], referral_doctor_id=self.referral.pk, payment_status="PAID",
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(res.data["bill_number"], "D-CNT-00001")
        self.assertEqual(res.data["status"], Visit.STATUS_DRAFT)
        self.assertEqual(res.data["total_amount"], 400.0)
        self.assertEqual(res.data["payment_type"], Bill.PAYMENT_CASH)
        self.assertEqual(res.data["payment_status"], Bill.STATUS_PAID)
        self.assertEqual(res.data["report"]["current_version"]["version_num"], 1)
        self.assertEqual(res.data["report"]["current_version"]["status"], ReportVersion.STATUS_DRAFT)

        orders = {o["test_code"]: o for o in res.data["test_orders"]}
        self.assertEqual(orders["FBS"]["reference_range"], {"min": 70.0, "max": 100.0, "unit": "mg/dL"})
        self.assertEqual(Decimal(str(orders["TSH"]["referral_commission_percentage"])), Decimal("10.00"))

        self.assertEqual(self.create_diagnostic([self.fbs.pk]).data["bill_number"], "D-CNT-00002")

    def test_orders_snapshot_catalogue_values(self):
        visit_id = self.create_diagnostic([self.fbs.pk]).data["id"]
        self.fbs.name = "FBS (renamed)"
        self.fbs.price_in_paise = 99900
        self.fbs.save()

        order = TestOrder.objects.using("default").get(visit_id=visit_id)
        self.assertEqual(order.test_name_snapshot, "Fasting Blood Sugar")
        self.assertEqual(order.price_in_paise, 10000)

    def test_inactive_referral_doctor_earns_no_commission(self):
        self.referral.is_active = False
        self.referral.save()
        res = self.create_diagnostic([self.fbs.pk], referral_doctor_id=self.referral.pk)
        self.assertEqual(Decimal(str(res.data["test_orders"][0]["referral_commission_percentage"])), 0)

    def test_create_validation(self):
        res = self.create_diagnostic([self.fbs.pk, self.retired.pk, 424242])
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"], "INVALID_TESTS")
        self.assertEqual(sorted(res.data["invalid_test_ids"]), sorted([self.retired.pk, 424242]))

        res = self.client.post(
            "/api/visits/diagnostic/", {"patient_id": 424242, "test_ids": [self.fbs.pk]}, format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

        res = self.create_diagnostic([])
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Visit.objects.using("default").count(), 0)

    def test_branch_scoping(self):
        visit_id = self.create_diagnostic([self.fbs.pk]).data["id"]

        other = APIClient()
        other.defaults["HTTP_HOST"] = "localhost"
        other.force_authenticate(user=self.other_staff)
        self.assertEqual(other.get(f"/api/visits/diagnostic/{visit_id}/").status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(other.get("/api/visits/diagnostic/").data, [])
        # patient history spans branches
        res = other.get("/api/visits/diagnostic/", {"patient_id": self.patient.pk})
        self.assertEqual([v["id"] for v in res.data], [visit_id])

    def test_add_and_remove_tests(self):
        visit_id = self.create_diagnostic([self.fbs.pk], referral_doctor_id=self.referral.pk).data["id"]

        res = self.client.post(
            f"/api/visits/diagnostic/{visit_id}/tests/", {"test_ids": [self.tsh.pk]}, format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(res.data["added_count"], 1)
        self.assertEqual(res.data["new_total"], 400.0)
        self.assertEqual(Bill.objects.using("default").get(visit_id=visit_id).total_amount_in_paise, 40000)

        res = self.client.post(
            f"/api/visits/diagnostic/{visit_id}/tests/", {"test_ids": [self.tsh.pk]}, format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["duplicate_test_ids"], [self.tsh.pk])

        tsh_order = TestOrder.objects.using("default").get(visit_id=visit_id, test=self.tsh)
        res = self.client.delete(f"/api/visits/diagnostic/{visit_id}/tests/{tsh_order.pk}/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["new_total"], 100.0)

        fbs_order = TestOrder.objects.using("default").get(visit_id=visit_id)
        res = self.client.delete(f"/api/visits/diagnostic/{visit_id}/tests/{fbs_order.pk}/")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"], "LAST_TEST")

    def test_orders_frozen_after_finalization(self):
        visit_id = self.create_diagnostic([self.fbs.pk, self.tsh.pk]).data["id"]
        visit = Visit.objects.using("default").get(pk=visit_id)
        save_draft_results(visit=visit, results=[{"test_id": self.fbs.pk, "value": 92}], user=self.staff)
        finalize_report(visit=visit, user=self.staff)

        res = self.client.post(
            f"/api/visits/diagnostic/{visit_id}/tests/", {"test_ids": [self.retired.pk]}, format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"], "REPORT_FINALIZED")

        order = TestOrder.objects.using("default").filter(visit_id=visit_id).first()
        res = self.client.delete(f"/api/visits/diagnostic/{visit_id}/tests/{order.pk}/")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)

    def test_order_changes_check_report_inside_transaction(self):
        visit_id = self.create_diagnostic([self.fbs.pk]).data["id"]
        connection = connections["default"]
        outer_depth = len(connection.savepoint_ids)
        depths = []
        check = diagnostic_service._ensure_orders_editable

        def recording(visit):
            depths.append(len(connection.savepoint_ids))
            return check(visit)

        with mock.patch.object(diagnostic_service, "_ensure_orders_editable", side_effect=recording):
            res = self.client.post(
                f"/api/visits/diagnostic/{visit_id}/tests/", {"test_ids": [self.tsh.pk]}, format="json",
            )
            self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
            tsh_order = TestOrder.objects.using("default").get(visit_id=visit_id, test=self.tsh)
            res = self.client.delete(f"/api/visits/diagnostic/{visit_id}/tests/{tsh_order.pk}/")
            self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)

        self.assertEqual(len(depths), 2)
        self.assertTrue(all(depth > outer_depth for depth in depths))

    def test_patch_status_and_payment(self):
        visit_id = self.create_diagnostic([self.fbs.pk]).data["id"]
        res = self.client.patch(
            f"/api/visits/diagnostic/{visit_id}/",
            {"status": "IN_PROGRESS", "payment_status": "PAID", "payment_type": "ONLINE"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(res.data["status"], "IN_PROGRESS")
        self.assertEqual(res.data["payment_type"], "ONLINE")
        self.assertTrue(
            AuditLog.objects.using("default")
            .filter(entity_type="Visit", entity_id=str(visit_id), action_type=AuditLog.ACTION_UPDATE)
            .exists()
        )


class ClinicVisitTest(VisitFixtureMixin, TestCase):
    def create_clinic(self, **extra):
        payload = {"patient_id": self.patient.pk, "clinic_doctor_id": self.clinic_doctor.pk, "consultation_fee": "350.00"}
        payload.update(extra)
        return self.client.post("/api/visits/clinic/", payload, format="json")

    def test_create_waiting_consultation(self):
        res = self.create_clinic(visit_type="IP", hospital_ward="Ward 2")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(res.data["bill_number"], "C-CNT-00001")
        self.assertEqual(res.data["status"], Visit.STATUS_WAITING)
        self.assertEqual(res.data["visit_type"], "IP")
        self.assertEqual(res.data["consultation_fee"], 350.0)
        self.assertEqual(res.data["total_amount_in_paise"], 35000)
        self.assertEqual(res.data["doctor"]["name"], "Dr. Anitha")

    def test_status_stays_in_sync(self):
        visit_id = self.create_clinic().data["id"]
        res = self.client.patch(f"/api/visits/clinic/{visit_id}/", {"status": "COMPLETED"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(res.data["status"], "COMPLETED")
        self.assertEqual(ClinicVisit.objects.using("default").get(visit_id=visit_id).status, "COMPLETED")

        res = self.client.patch(f"/api/visits/clinic/{visit_id}/", {"status": "DRAFT"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

        res = self.client.delete(f"/api/visits/clinic/{visit_id}/")
        self.assertEqual(res.data["status"], Visit.STATUS_CANCELLED)
        self.assertEqual(Visit.objects.using("default").get(pk=visit_id).status, Visit.STATUS_CANCELLED)

    def test_list_filters(self):
        self.create_clinic()
        other_doctor = ClinicDoctor.objects.using("default").create(
            doctor_number="CD-00002", name="Dr. Irfan", registration_number="TSMC-2",
        )
        self.create_clinic(clinic_doctor_id=other_doctor.pk)

        res = self.client.get("/api/visits/clinic/", {"doctor_id": other_doctor.pk})
        self.assertEqual([v["doctor"]["name"] for v in res.data], ["Dr. Irfan"])
        res = self.client.get("/api/visits/clinic/", {"status": "COMPLETED"})
        self.assertEqual(res.data, [])

    def test_unknown_doctor(self):
        res = self.create_clinic(clinic_doctor_id=424242)
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)


class BillPrintTest(VisitFixtureMixin, TestCase):
    def test_diagnostic_bill(self):
        visit_id = self.create_diagnostic([self.fbs.pk, self.tsh.pk], referral_doctor_id=self.referral.pk).data["id"]
        res = self.client.get(f"/api/bills/diagnostic/{visit_id}/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["visit"]["bill_number"], "D-CNT-00001")
        self.assertEqual(res.data["visit"]["total_amount"], 400.0)
        self.assertEqual(res.data["patient"]["phone"], "9876543210")
        self.assertEqual(res.data["referral_doctor"]["name"], "Dr. Suresh")
        self.assertEqual([item["code"] for item in res.data["items"]], ["FBS", "TSH"])

    def test_clinic_bill_and_domain_checks(self):
        res = self.client.post(
            "/api/visits/clinic/",
            {"patient_id": self.patient.pk, "clinic_doctor_id": self.clinic_doctor.pk, "consultation_fee": 500},
            format="json",
        )
        visit_id = res.data["id"]
        res = self.client.get(f"/api/bills/clinic/{visit_id}/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["items"][0]["code"], "CONSULT")
        self.assertEqual(res.data["doctor"]["name"], "Dr. Anitha")

        self.assertEqual(self.client.get(f"/api/bills/diagnostic/{visit_id}/").status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.get(f"/api/bills/pharmacy/{visit_id}/").status_code, status.HTTP_400_BAD_REQUEST)
