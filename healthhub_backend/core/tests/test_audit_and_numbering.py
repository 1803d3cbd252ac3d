"""Tests for sequential numbering, log_action and the audit-log API."""

from __future__ import annotations

from unittest import mock

from django.db import DatabaseError
from django.test import RequestFactory, TestCase

from rest_framework import status
from rest_framework.test import APIClient

from healthhub_backend.core.exceptions import NumberSequenceExhausted
from healthhub_backend.core.models import AuditLog, Branch, NumberSequence, Role, User
from healthhub_backend.core.services import numbering
from healthhub_backend.core.utils import get_client_ip, log_action


class NumberingTest(TestCase):
    databases = {"default"}

    def test_sequences_are_gapless_and_independent(self):
        self.assertEqual(numbering.generate_patient_number(), "P-00001")
        self.assertEqual(numbering.generate_patient_number(), "P-00002")
        self.assertEqual(numbering.generate_referral_doctor_number(), "RD-00001")
        self.assertEqual(numbering.generate_clinic_doctor_number(), "CD-00001")
        self.assertEqual(numbering.generate_diagnostic_bill_number("CNT"), "D-CNT-00001")
        self.assertEqual(numbering.generate_diagnostic_bill_number("JGG"), "D-JGG-00001")
        self.assertEqual(numbering.generate_clinic_bill_number("CNT"), "C-CNT-00001")

        sequence = NumberSequence.objects.using("default").get(pk="patient")
        self.assertEqual(sequence.last_value, 2)
        self.assertEqual(sequence.prefix, "P")

    def test_backoff_is_capped(self):
        with self.settings(HEALTHHUB={
            "NUMBER_SEQUENCE_BASE_DELAY_MS": 10,
            "NUMBER_SEQUENCE_MAX_DELAY_MS": 50,
            "NUMBER_SEQUENCE_MAX_RETRIES": 3,
        }):
            self.assertGreaterEqual(numbering.backoff_delay_ms(1), 10)
            self.assertLessEqual(numbering.backoff_delay_ms(1), 20)
            self.assertEqual(numbering.backoff_delay_ms(10), 50)

    @mock.patch("healthhub_backend.core.services.numbering.time.sleep")
    def test_lock_contention_retries_then_gives_up(self, sleep):
        busy = DatabaseError("could not obtain lock on row in relation")
        with mock.patch.object(numbering, "_allocate", side_effect=busy) as allocate:
            with self.assertRaises(NumberSequenceExhausted):
                numbering.generate_next_number(sequence_id="patient", prefix="P", max_retries=3)
        self.assertEqual(allocate.call_count, 3)
        self.assertEqual(sleep.call_count, 2)

    def test_other_database_errors_propagate(self):
        with mock.patch.object(numbering, "_allocate", side_effect=DatabaseError("disk full")):
            with self.assertRaises(DatabaseError):
                numbering.generate_next_number(sequence_id="patient", prefix="P", max_retries=3)


class LogActionTest(TestCase):
    databases = {"default"}

    def setUp(self):
        self.branch = Branch.objects.using("default").create(name="Central", code="CNT")
        role, _ = Role.objects.using("default").get_or_create(name="staff", defaults={"label": "Staff"})
        self.user = User.objects.db_manager("default").create_user(
            username="audit_staff", email="audit_staff@example.com", password="DummyPass123!",
            role=role, active_branch=self.branch,
        )

    def test_records_request_metadata(self):
        request = RequestFactory().post(
            "/x/", HTTP_X_FORWARDED_FOR="203.0.113.7, 10.0.0.1", HTTP_USER_AGENT="pytest",
        )
        log_action(
            user=self.user, branch=self.branch, action_type=AuditLog.ACTION_UPDATE,
            entity_type="Patient", entity_id=7,
            old_values={"name": "A"}, new_values={"name": "B"}, request=request,
        )
        entry = AuditLog.objects.using("default").get()
        self.assertEqual(entry.entity_id, "7")
        self.assertEqual(entry.role_name, "staff")
        self.assertEqual(entry.ip_address, "203.0.113.7")
        self.assertEqual(entry.user_agent, "pytest")
        self.assertEqual(entry.new_values, {"name": "B"})

    def test_client_ip_falls_back_to_remote_addr(self):
        request = RequestFactory().get("/x/", REMOTE_ADDR="192.0.2.1")
        self.assertEqual(get_client_ip(request), "192.0.2.1")
        self.assertEqual(get_client_ip(None), "")

    def test_write_failure_is_swallowed(self):
        with mock.patch.object(AuditLog.objects, "using", side_effect=DatabaseError("boom")):
            with self.assertLogs("healthhub_backend.core.utils", level="ERROR"):
                log_action(
                    user=self.user, branch=self.branch, action_type=AuditLog.ACTION_CREATE,
                    entity_type="Patient", entity_id=1,
                )


class AuditLogApiTest(TestCase):
    databases = {"default"}

    def setUp(self):
        self.branch = Branch.objects.using("default").create(name="Central", code="CNT")
        self.other_branch = Branch.objects.using("default").create(name="Idpl", code="IDPL")
        role_owner, _ = Role.objects.using("default").get_or_create(name="owner", defaults={"label": "Owner"})
        role_staff, _ = Role.objects.using("default").get_or_create(name="staff", defaults={"label": "Staff"})
        self.owner = User.objects.db_manager("default").create_user(
            username="audit_owner", email="audit_owner@example.com", password="DummyPass123!",
            role=role_owner, active_branch=self.branch,
        )
        self.staff = User.objects.db_manager("default").create_user(
            username="audit_api_staff", email="audit_api_staff@example.com", password="DummyPass123!",
            role=role_staff, active_branch=self.branch,
        )
        self.client = APIClient()
        self.client.defaults["HTTP_HOST"] = "localhost"

        for entity_id in (1, 1, 2):
            log_action(
                user=self.staff, branch=self.branch, action_type=AuditLog.ACTION_UPDATE,
                entity_type="Patient", entity_id=entity_id,
            )
        log_action(
            user=self.staff, branch=self.other_branch, action_type=AuditLog.ACTION_CREATE,
            entity_type="Patient", entity_id=3,
        )

    def test_owner_sees_branch_trail_with_pagination(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.get("/api/audit-logs/", {"limit": 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total"], 3)
        self.assertEqual(len(response.data["results"]), 2)
        self.assertEqual(response.data["results"][0]["user_display"], "audit_api_staff")

        response = self.client.get("/api/audit-logs/", {"action_type": "CREATE"})
        self.assertEqual(response.data["total"], 0)

    def test_entity_history(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.get("/api/audit-logs/Patient/1/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_staff_is_forbidden(self):
        self.client.force_authenticate(user=self.staff)
        self.assertEqual(self.client.get("/api/audit-logs/").status_code, status.HTTP_403_FORBIDDEN)

    def test_no_active_branch(self):
        self.owner.active_branch = None
        self.owner.save()
        self.client.force_authenticate(user=self.owner)
        self.assertEqual(self.client.get("/api/audit-logs/").status_code, status.HTTP_400_BAD_REQUEST)
