"""Tests for the lab test catalogue (/api/lab-tests/)."""

from __future__ import annotations

from django.test import TestCase

from rest_framework import status
from rest_framework.test import APIClient

from healthhub_backend.core.models import Branch, Role, User
from healthhub_backend.lab.models import InterpretationTemplate, LabTest


class LabTestApiTest(TestCase):
    databases = {"default"}

    def setUp(self):
        branch = Branch.objects.using("default").create(name="Central", code="CNT")
        role_owner, _ = Role.objects.using("default").get_or_create(name="owner", defaults={"label": "Owner"})
        self.owner = User.objects.db_manager("default").create_user(
            username="owner_lab",
            email="owner_lab@example.com",
            password="DummyPass123!",
            role=role_owner,
            active_branch=branch,
        )
        self.client = APIClient()
        self.client.defaults["HTTP_HOST"] = "localhost"
        self.client.force_authenticate(user=self.owner)

        self.cbp = LabTest.objects.using("default").create(
            code="CBP", name="Complete Blood Picture", price_in_paise=35000, is_panel=True,
        )
        self.hb = LabTest.objects.using("default").create(
            code="HB", name="Haemoglobin", parent_test=self.cbp,
            reference_min=12, reference_max=16, reference_unit="g/dL",
        )

    def test_list_returns_top_level_tests_with_sub_tests(self):
        LabTest.objects.using("default").create(code="OLD", name="Retired", is_active=False)
        res = self.client.get("/api/lab-tests/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([t["code"] for t in res.data], ["CBP"])
        self.assertEqual([s["code"] for s in res.data[0]["sub_tests"]], ["HB"])
        self.assertEqual(res.data[0]["price"], 350.0)

        res = self.client.get("/api/lab-tests/", {"include_inactive": "true"})
        self.assertEqual({t["code"] for t in res.data}, {"CBP", "OLD"})

    def test_create_uppercases_code_and_converts_rupees(self):
        res = self.client.post(
            "/api/lab-tests/",
            {"name": "Fasting Blood Sugar", "code": "fbs", "price": "120.50",
             "reference_range": {"min": 70, "max": 100, "unit": "mg/dL"}},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(res.data["code"], "FBS")
        self.assertEqual(res.data["price_in_paise"], 12050)
        self.assertEqual(res.data["reference_range"], {"min": 70.0, "max": 100.0, "unit": "mg/dL"})

    def test_duplicate_code_conflicts(self):
        res = self.client.post("/api/lab-tests/", {"name": "Other", "code": "hb", "price": 10}, format="json")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"], "DUPLICATE_CODE")

        res = self.client.patch(f"/api/lab-tests/{self.cbp.pk}/", {"code": "hb"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)

    def test_missing_fields_rejected(self):
        res = self.client.post("/api/lab-tests/", {"name": "No Code"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"], "VALIDATION_ERROR")

    def test_update_price_and_deactivate(self):
        res = self.client.patch(f"/api/lab-tests/{self.cbp.pk}/", {"price": 400}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["price_in_paise"], 40000)

        res = self.client.delete(f"/api/lab-tests/{self.cbp.pk}/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.cbp.refresh_from_db()
        self.assertFalse(self.cbp.is_active)

    def test_unknown_test_is_404(self):
        self.assertEqual(self.client.get("/api/lab-tests/9999/").status_code, status.HTTP_404_NOT_FOUND)


class InterpretationTemplateTest(TestCase):
    databases = {"default"}

    def test_range_is_half_open_with_open_null_bounds(self):
        test = LabTest.objects.using("default").create(code="TSH", name="TSH")
        low = InterpretationTemplate(test=test, min_value=None, max_value=0.5, interpretation_text="Low")
        normal = InterpretationTemplate(test=test, min_value=0.5, max_value=5, interpretation_text="Normal")
        high = InterpretationTemplate(test=test, min_value=5, max_value=None, interpretation_text="High")

        self.assertTrue(low.matches(0.1))
        self.assertFalse(low.matches(0.5))
        self.assertTrue(normal.matches(0.5))
        self.assertFalse(normal.matches(5))
        self.assertTrue(high.matches(5))
        self.assertFalse(high.matches(None))
