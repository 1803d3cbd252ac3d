"""Tests for authentication and branch context endpoints.

Tests cover:
- Login (POST /api/auth/login/): tokens carry role and branch claims
- Refresh (POST /api/auth/refresh/)
- Me (GET /api/auth/me/)
- Register (POST /api/auth/register/, admin only)
- Switch branch (POST /api/auth/switch-branch/)
- Health (GET /api/health/)
"""

from __future__ import annotations

from django.test import TestCase

from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from healthhub_backend.core.models import AuditLog, Branch, Role, User


class AuthenticationTest(TestCase):
    databases = {"default"}

    def setUp(self):
        self.branch = Branch.objects.using("default").create(name="Central", code="CNT")
        self.other_branch = Branch.objects.using("default").create(name="Balanagar", code="BLN")
        self.closed_branch = Branch.objects.using("default").create(name="Closed", code="OLD", is_active=False)

        self.role_admin, _ = Role.objects.using("default").get_or_create(name="admin", defaults={"label": "Admin"})
        self.role_staff, _ = Role.objects.using("default").get_or_create(name="staff", defaults={"label": "Staff"})

        self.admin = User.objects.db_manager("default").create_user(
            username="admin_auth_test",
            email="admin_auth@example.com",
            password="SecurePass123!",
            role=self.role_admin,
            active_branch=self.branch,
        )
        self.staff = User.objects.db_manager("default").create_user(
            username="staff_auth_test",
            email="staff_auth@example.com",
            password="SecurePass123!",
            role=self.role_staff,
            active_branch=self.branch,
        )
        self.inactive_user = User.objects.db_manager("default").create_user(
            username="inactive_auth_test",
            email="inactive_auth@example.com",
            password="SecurePass123!",
            role=self.role_staff,
            is_active=False,
        )

        self.client = APIClient()
        self.client.defaults["HTTP_HOST"] = "localhost"

    def _login(self, username, password="SecurePass123!"):
        return self.client.post(
            "/api/auth/login/", {"username": username, "password": password}, format="json",
        )

    def test_login_returns_tokens_with_role_and_branch(self):
        response = self._login("staff_auth_test")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["user"]["username"], "staff_auth_test")
        self.assertEqual(response.data["user"]["role"]["name"], "staff")
        self.assertEqual(response.data["user"]["active_branch"]["code"], "CNT")

        access = AccessToken(response.data["access"])
        self.assertEqual(access["role"], "staff")
        self.assertEqual(access["branch_id"], self.branch.id)

    def test_login_rejects_bad_credentials_and_inactive_users(self):
        self.assertEqual(self._login("staff_auth_test", "wrong").status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self._login("inactive_auth_test").status_code, status.HTTP_400_BAD_REQUEST)

    def test_refresh_issues_new_access_token(self):
        refresh = self._login("staff_auth_test").data["refresh"]

        response = self.client.post("/api/auth/refresh/", {"refresh": refresh}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)

        response = self.client.post("/api/auth/refresh/", {"refresh": "garbage"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_me_with_bearer_token(self):
        access = self._login("staff_auth_test").data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

        response = self.client.get("/api/auth/me/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["id"], self.staff.id)

    def test_me_requires_authentication(self):
        self.assertEqual(self.client.get("/api/auth/me/").status_code, status.HTTP_401_UNAUTHORIZED)

    def test_register_is_admin_only_and_audited(self):
        payload = {
            "username": "new_owner",
            "email": "New.Owner@Example.com",
            "password": "LongEnough123",
            "role": "owner",
        }
        Role.objects.using("default").get_or_create(name="owner", defaults={"label": "Owner"})

        self.client.force_authenticate(user=self.staff)
        self.assertEqual(
            self.client.post("/api/auth/register/", payload, format="json").status_code,
            status.HTTP_403_FORBIDDEN,
        )

        self.client.force_authenticate(user=self.admin)
        response = self.client.post("/api/auth/register/", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["email"], "new.owner@example.com")
        self.assertTrue(
            AuditLog.objects.using("default")
            .filter(entity_type="User", entity_id=str(response.data["id"]), action_type=AuditLog.ACTION_CREATE)
            .exists()
        )

        response = self.client.post(
            "/api/auth/register/", {**payload, "username": "dupe"}, format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_switch_branch(self):
        self.client.force_authenticate(user=self.staff)

        response = self.client.post(
            "/api/auth/switch-branch/", {"branch_id": self.other_branch.id}, format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["active_branch"]["code"], "BLN")
        self.staff.refresh_from_db()
        self.assertEqual(self.staff.active_branch_id, self.other_branch.id)

        response = self.client.post(
            "/api/auth/switch-branch/", {"branch_id": self.closed_branch.id}, format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_branch_list_hides_inactive(self):
        self.client.force_authenticate(user=self.staff)
        response = self.client.get("/api/branches/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({b["code"] for b in response.data}, {"CNT", "BLN"})

    def test_health(self):
        response = self.client.get("/api/health/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})
