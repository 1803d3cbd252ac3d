"""Tests for result entry, finalization, amendments and report access."""

from __future__ import annotations

from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from rest_framework import status
from rest_framework.test import APIClient

from healthhub_backend.core.models import AuditLog, Branch, Role, User
from healthhub_backend.lab.models import (
    Department,
    InterpretationTemplate,
    LabTest,
    PanelDefinition,
    PanelTestItem,
    SigningDoctor,
    SigningRule,
)
from healthhub_backend.patients.models import Patient
from healthhub_backend.reports.exceptions import ReportImmutable
from healthhub_backend.reports.models import ReportAccessLog, ReportAccessToken, ReportVersion, TestResult
from healthhub_backend.reports.services.snapshot import get_report_snapshot
from healthhub_backend.reports.tasks import purge_expired_access_tokens
from healthhub_backend.visits.models import Visit
from healthhub_backend.visits.services.diagnostic import create_diagnostic_visit


class ReportFixtureMixin:
    def setUp(self):
        self.branch = Branch.objects.using("default").create(name="Central", code="CNT")
        role_staff, _ = Role.objects.using("default").get_or_create(name="staff", defaults={"label": "Staff"})
        self.staff = User.objects.db_manager("default").create_user(
            username="staff_reports",
            email="staff_reports@example.com",
            password="DummyPass123!",
            role=role_staff,
            active_branch=self.branch,
        )
        self.client = APIClient()
        self.client.defaults["HTTP_HOST"] = "localhost"
        self.client.force_authenticate(user=self.staff)

        self.patient = Patient.objects.using("default").create(
            patient_number="P-CNT-00001", name="Ravi <Kumar>", gender="M", year_of_birth=1980,
        )

        self.cbp = LabTest.objects.using("default").create(
            code="CBP", name="Complete Blood Picture", price_in_paise=35000, is_panel=True,
        )
        self.hb = LabTest.objects.using("default").create(
            code="HB", name="Haemoglobin", parent_test=self.cbp,
            reference_min=12, reference_max=16, reference_unit="g/dL",
        )
        self.neutro = LabTest.objects.using("default").create(
            code="NEUTRO", name="Neutrophils", parent_test=self.cbp, reference_min=40, reference_max=70,
        )
        self.tsh = LabTest.objects.using("default").create(
            code="TSH", name="TSH", price_in_paise=40000, reference_min=0.5, reference_max=5,
        )
        InterpretationTemplate.objects.using("default").create(
            test=self.tsh, min_value=5, max_value=None, interpretation_text="Suggestive of hypothyroidism",
        )

        haematology = Department.objects.using("default").create(
            name="Haematology", report_header_text="DEPARTMENT OF HAEMATOLOGY", display_order=1,
        )
        biochemistry = Department.objects.using("default").create(
            name="Biochemistry", report_header_text="DEPARTMENT OF BIOCHEMISTRY", display_order=2,
        )
        cbp_panel = PanelDefinition.objects.using("default").create(
            name="CBP", display_name="COMPLETE BLOOD PICTURE", department=haematology,
            layout_type=PanelDefinition.LAYOUT_CBP,
        )
        PanelTestItem.objects.using("default").create(panel=cbp_panel, test=self.hb, display_order=1, sub_group="MAIN")
        PanelTestItem.objects.using("default").create(
            panel=cbp_panel, test=self.neutro, display_order=2, sub_group="DIFFERENTIAL",
        )
        tsh_panel = PanelDefinition.objects.using("default").create(
            name="TSH", display_name="THYROID STIMULATING HORMONE", department=biochemistry,
            layout_type=PanelDefinition.LAYOUT_INTERPRETATION_SINGLE,
        )
        PanelTestItem.objects.using("default").create(panel=tsh_panel, test=self.tsh, method_text="CLIA")

        pathologist = SigningDoctor.objects.using("default").create(
            name="Dr. Meena Rao", degrees="MD (Pathology)", designation="Consultant Pathologist",
        )
        SigningRule.objects.using("default").create(department=haematology, signing_doctor=pathologist)
        SigningRule.objects.using("default").create(department=biochemistry, signing_doctor=pathologist)

        self.visit = create_diagnostic_visit(
            branch=self.branch,
            user=self.staff,
            patient_id=self.patient.pk,
            test_ids=[self.cbp.pk, self.tsh.pk],
            payment_type="CASH",
            payment_status="PAID",
        )

    def save_results(self, entries):
        return self.client.post(
            f"/api/visits/diagnostic/{self.visit.pk}/results/", {"results": entries}, format="json",
        )

    def finalize(self):
        return self.client.post(f"/api/visits/diagnostic/{self.visit.pk}/finalize/")

    def enter_and_finalize(self):
        self.save_results([
            {"test_id": self.hb.pk, "value": "10.5"},
            {"test_id": self.neutro.pk, "value": "55"},
            {"test_id": self.tsh.pk, "value": "7.2", "flag": "HIGH"},
        ])
        res = self.finalize()
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        return res


class ResultEntryTest(ReportFixtureMixin, TestCase):
    databases = {"default"}

    def test_sub_test_results_attach_to_panel_order(self):
        res = self.save_results([
            {"test_id": self.hb.pk, "value": "13.2"},
            {"test_id": self.tsh.pk, "value": "2.1"},
        ])
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(res.data["saved_count"], 2)

        hb_result = TestResult.objects.using("default").get(test=self.hb)
        self.assertEqual(hb_result.test_order.test_id, self.cbp.pk)
        self.visit.refresh_from_db()
        self.assertEqual(self.visit.status, Visit.STATUS_WAITING)

    def test_unordered_tests_are_skipped_and_blank_entries_clear(self):
        other = LabTest.objects.using("default").create(code="FBS", name="Fasting Sugar")
        self.save_results([{"test_id": self.tsh.pk, "value": "3"}])
        res = self.save_results([
            {"test_id": other.pk, "value": "90"},
            {"test_id": self.tsh.pk, "value": "", "notes": ""},
        ])
        self.assertEqual(res.data["saved_count"], 0)
        self.assertFalse(TestResult.objects.using("default").exists())

    def test_non_numeric_value_rejected(self):
        res = self.save_results([{"test_id": self.tsh.pk, "value": "high"}])
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"], "VALIDATION_ERROR")

    def test_non_finite_values_rejected(self):
        for raw in ("inf", "-inf", "nan"):
            res = self.save_results([
                {"test_id": self.hb.pk, "value": "13.2"},
                {"test_id": self.tsh.pk, "value": raw},
            ])
            self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST, raw)
            self.assertEqual(res.data["error"], "VALIDATION_ERROR")
        self.assertFalse(TestResult.objects.using("default").exists())

        res = self.client.get(f"/api/visits/diagnostic/{self.visit.pk}/report/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)


class FinalizationTest(ReportFixtureMixin, TestCase):
    databases = {"default"}

    def test_finalize_freezes_snapshot_and_issues_token(self):
        res = self.enter_and_finalize()
        self.assertEqual(res.data["report_version"]["status"], "FINALIZED")
        token = res.data["access_token"]["token"]
        self.assertEqual(len(token), 12)
        self.assertTrue(token.isalnum())

        version = ReportVersion.objects.using("default").get(pk=res.data["report_version"]["id"])
        snapshot = get_report_snapshot(version)
        self.assertEqual(
            [d["department_name"] for d in snapshot["departments"]], ["Haematology", "Biochemistry"],
        )
        cbp_panel = snapshot["departments"][0]["panels"][0]
        self.assertEqual([t["test_code"] for t in cbp_panel["tests"]], ["HB", "NEUTRO"])
        tsh_panel = snapshot["departments"][1]["panels"][0]
        self.assertEqual(tsh_panel["interpretation_text"], "Suggestive of hypothyroidism")
        self.assertEqual(tsh_panel["tests"][0]["method_text"], "CLIA")
        self.assertEqual(len(snapshot["signatures"]), 1)
        self.assertEqual(snapshot["patient"]["patient_number"], "P-CNT-00001")
        self.assertEqual(snapshot["visit"]["bill_number"], self.visit.bill_number)

        self.visit.refresh_from_db()
        self.assertEqual(self.visit.status, Visit.STATUS_COMPLETED)
        self.assertTrue(
            AuditLog.objects.using("default")
            .filter(action_type=AuditLog.ACTION_FINALIZE, entity_id=str(version.pk))
            .exists()
        )

    def test_finalize_without_results(self):
        res = self.finalize()
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"], "NO_RESULTS")

    def test_second_finalize_and_late_results_conflict(self):
        self.enter_and_finalize()
        res = self.finalize()
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"], "ALREADY_FINALIZED")

        res = self.save_results([{"test_id": self.tsh.pk, "value": "1"}])
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"], "REPORT_FINALIZED")

    def test_single_interpretation_panel_joins_texts_in_display_order(self):
        ft4 = LabTest.objects.using("default").create(
            code="FT4", name="Free T4", price_in_paise=30000, reference_min=0.8, reference_max=1.8,
        )
        InterpretationTemplate.objects.using("default").create(
            test=ft4, min_value=None, max_value=0.8, interpretation_text="Low free T4",
        )
        tsh_panel = PanelDefinition.objects.using("default").get(name="TSH")
        PanelTestItem.objects.using("default").create(panel=tsh_panel, test=ft4, display_order=1)
        res = self.client.post(
            f"/api/visits/diagnostic/{self.visit.pk}/tests/", {"test_ids": [ft4.pk]}, format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)

        self.save_results([
            {"test_id": ft4.pk, "value": "0.6"},
            {"test_id": self.tsh.pk, "value": "7.2"},
        ])
        res = self.finalize()
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)

        version = ReportVersion.objects.using("default").get(pk=res.data["report_version"]["id"])
        panel = get_report_snapshot(version)["departments"][0]["panels"][0]
        self.assertEqual(panel["layout_type"], PanelDefinition.LAYOUT_INTERPRETATION_SINGLE)
        self.assertEqual([t["test_code"] for t in panel["tests"]], ["TSH", "FT4"])
        self.assertEqual(panel["interpretation_text"], "Suggestive of hypothyroidism\n\nLow free T4")

    def test_finalized_version_is_immutable(self):
        self.enter_and_finalize()
        version = ReportVersion.objects.using("default").get(report__visit=self.visit)
        version.panels_snapshot = []
        with self.assertRaises(ReportImmutable):
            version.save()
        with self.assertRaises(ReportImmutable):
            version.delete()

    def test_snapshot_ignores_later_catalogue_changes(self):
        res = self.enter_and_finalize()
        version_id = res.data["report_version"]["id"]
        first = self.client.get(f"/api/reports/versions/{version_id}/html/")
        self.assertEqual(first.status_code, status.HTTP_200_OK)

        LabTest.objects.using("default").filter(pk=self.hb.pk).update(name="Hemoglobin (renamed)")
        second = self.client.get(f"/api/reports/versions/{version_id}/html/")
        self.assertEqual(first.content, second.content)
        self.assertNotIn(b"renamed", second.content)
        self.assertIn(b"Ravi &lt;Kumar&gt;", second.content)

    def test_adding_tests_after_finalize_conflicts(self):
        self.enter_and_finalize()
        res = self.client.post(
            f"/api/visits/diagnostic/{self.visit.pk}/tests/", {"test_ids": [self.tsh.pk]}, format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)


class AmendmentTest(ReportFixtureMixin, TestCase):
    databases = {"default"}

    def test_amendment_copies_results_into_new_draft(self):
        self.enter_and_finalize()
        res = self.client.post(f"/api/visits/diagnostic/{self.visit.pk}/amend/")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(res.data["version_num"], 2)
        self.assertEqual(res.data["status"], "DRAFT")

        v1 = ReportVersion.objects.using("default").get(report__visit=self.visit, version_num=1)
        v2 = ReportVersion.objects.using("default").get(report__visit=self.visit, version_num=2)
        self.assertTrue(v1.is_finalized)
        self.assertEqual(v1.results.count(), v2.results.count())
        entry = AuditLog.objects.using("default").get(
            action_type=AuditLog.ACTION_CREATE, entity_type="ReportVersion", entity_id=str(v2.pk),
        )
        self.assertEqual(entry.new_values["version_num"], 2)
        self.assertEqual(entry.new_values["amends_version_id"], v1.pk)
        self.assertEqual(entry.user, self.staff)

        res = self.client.post(f"/api/visits/diagnostic/{self.visit.pk}/amend/")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"], "DRAFT_EXISTS")

        res = self.client.get(f"/api/visits/diagnostic/{self.visit.pk}/report/")
        self.assertEqual([v["version_num"] for v in res.data["versions"]], [2, 1])

    def test_amend_before_finalize_rejected(self):
        res = self.client.post(f"/api/visits/diagnostic/{self.visit.pk}/amend/")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)


class PublicAccessTest(ReportFixtureMixin, TestCase):
    databases = {"default"}

    def setUp(self):
        super().setUp()
        res = self.enter_and_finalize()
        self.token = res.data["access_token"]["token"]
        self.version_id = res.data["report_version"]["id"]
        self.public = APIClient()
        self.public.defaults["HTTP_HOST"] = "localhost"

    def test_token_link_renders_and_counts_access(self):
        res = self.public.get(f"/r/{self.token}/")
        self.assertEqual(res.status_code, 200)
        self.assertIn(b"COMPLETE BLOOD PICTURE", res.content)
        self.assertIn(b"DIFFERENTIAL COUNT", res.content)
        self.assertIn(b"btn-print", res.content)

        token = ReportAccessToken.objects.using("default").get(token=self.token)
        self.assertEqual(token.access_count, 1)
        log = ReportAccessLog.objects.using("default").get(report_version_id=self.version_id)
        self.assertEqual(log.accessed_via, ReportAccessLog.VIA_TOKEN)

    def test_preview_and_print_hide_actions(self):
        for suffix in ("preview", "print"):
            res = self.public.get(f"/r/{self.token}/{suffix}/")
            self.assertEqual(res.status_code, 200)
            self.assertNotIn(b"btn-print", res.content)

    def test_pdf_download(self):
        res = self.public.get(f"/r/{self.token}/pdf/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res["Content-Type"], "application/pdf")
        self.assertTrue(res.content.startswith(b"%PDF"))

    def test_unknown_and_expired_tokens_get_error_page(self):
        res = self.public.get("/r/doesnotexist/")
        self.assertEqual(res.status_code, 404)
        self.assertIn(b"invalid or has expired", res.content)

        ReportAccessToken.objects.using("default").filter(token=self.token).update(
            expires_at=timezone.now() - timedelta(days=1),
        )
        self.assertEqual(self.public.get(f"/r/{self.token}/").status_code, 404)

    def test_access_token_endpoint_reuses_token(self):
        res = self.client.post(f"/api/reports/versions/{self.version_id}/access-token/", {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["token"], self.token)

    def test_access_stats(self):
        self.public.get(f"/r/{self.token}/")
        self.public.get(f"/r/{self.token}/pdf/")
        res = self.client.get(f"/api/reports/versions/{self.version_id}/access-stats/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["total_accesses"], 2)
        self.assertEqual(res.data["by_type"]["DOWNLOAD"], 1)
        self.assertEqual(res.data["last_access"]["access_type"], "DOWNLOAD")

    def test_signed_view_token(self):
        res = self.client.post(
            "/api/reports/generate-token/", {"report_version_id": self.version_id}, format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)

        view = self.public.get("/api/reports/view/", {"token": res.data["token"]})
        self.assertEqual(view.status_code, status.HTTP_200_OK)
        self.assertEqual(view.data["report"]["visit"]["bill_number"], self.visit.bill_number)

        bad = self.public.get("/api/reports/view/", {"token": "not-a-jwt"})
        self.assertEqual(bad.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(bad.data["error"], "UNAUTHORIZED")

        missing = self.public.get("/api/reports/view/")
        self.assertEqual(missing.status_code, status.HTTP_400_BAD_REQUEST)

    def test_purge_removes_only_expired_tokens(self):
        version = ReportVersion.objects.using("default").get(pk=self.version_id)
        ReportAccessToken.objects.using("default").create(
            token="expiredtoken", report_version=version, expires_at=timezone.now() - timedelta(days=2),
        )
        self.assertEqual(purge_expired_access_tokens(), 1)
        self.assertTrue(ReportAccessToken.objects.using("default").filter(token=self.token).exists())
