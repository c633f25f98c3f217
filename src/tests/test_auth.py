"""Authentication flows: registration, tokens, revocation and profile edits."""

from __future__ import annotations

import time
from unittest import mock

import jwt
from django.conf import settings
from django.db import DatabaseError
from django.test import TestCase
from rest_framework.test import APIClient

from access_control.roles import Role
from authentication.services import BlocklistUnavailable, TokenService
from tests.utils import PASSWORD, FakeRedisMixin, create_user


class AuthFlowTests(FakeRedisMixin, TestCase):
    """End-to-end tests covering /auth/ endpoints."""

    @classmethod
    def setUpTestData(cls):
        cls.user = create_user("contributor@example.com", Role.CONTRIBUTOR)

    def setUp(self):
        self.api_client: APIClient = APIClient()

    def _login(self, email=None, password=PASSWORD):
        return self.api_client.post(
            "/auth/login/",
            {"email": email or self.user.email, "password": password},
            format="json",
        )

    def _tokens(self):
        return self._login().json()["data"]

    def _client_with(self, access: str) -> APIClient:
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        return client

    def test_register_creates_consumer(self):
        payload = {
            "email": "new@example.com",
            "password": "NewPass123!",
            "repeat_password": "NewPass123!",
            "name": "New Person",
        }
        response = self.api_client.post("/auth/register/", payload, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 201)
        self.assertEqual(body["errors"], [])
        self.assertEqual(body["data"]["email"], payload["email"])
        self.assertEqual(body["data"]["role"], Role.CONSUMER)

    def test_register_ignores_requested_role(self):
        """Self-registration can never produce a Contributor or Administrator."""
        payload = {
            "email": "climber@example.com",
            "password": "NewPass123!",
            "repeat_password": "NewPass123!",
            "name": "Climber",
            "role": Role.ADMINISTRATOR,
        }
        response = self.api_client.post("/auth/register/", payload, format="json")

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["role"], Role.CONSUMER)

    def test_register_password_mismatch(self):
        payload = {
            "email": "new2@example.com",
            "password": "Password123",
            "repeat_password": "Mismatch123",
            "name": "Mismatch",
        }
        response = self.api_client.post("/auth/register/", payload, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 400)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_register_duplicate_email_rejected(self):
        payload = {
            "email": self.user.email.upper(),
            "password": "Password123",
            "repeat_password": "Password123",
            "name": "Dup",
        }
        response = self.api_client.post("/auth/register/", payload, format="json")
        self.assertEqual(response.status_code, 400)

    def test_login_returns_tokens_and_profile(self):
        response = self._login()
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertIn("access", body["data"])
        self.assertIn("refresh", body["data"])
        self.assertEqual(body["data"]["user"]["role"], Role.CONTRIBUTOR)

        claims = TokenService.decode_token(body["data"]["access"], expected_type="access")
        self.assertEqual(claims["sub"], str(self.user.id))
        self.assertEqual(claims["role"], Role.CONTRIBUTOR)
        self.assertEqual(claims["ver"], self.user.token_version)

    def test_login_is_case_insensitive_on_email(self):
        self.assertEqual(self._login(email=self.user.email.upper()).status_code, 200)

    def test_login_invalid_credentials_401(self):
        response = self._login(password="wrongpass")
        body = response.json()

        self.assertEqual(response.status_code, 401)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_login_inactive_user_401(self):
        self.user.is_active = False
        self.user.save(update_fields=["is_active"])

        self.assertEqual(self._login().status_code, 401)

    def test_missing_token_returns_401(self):
        response = self.api_client.get("/articles/")
        self.assertEqual(response.status_code, 401)
        self.assertIsNone(response.json()["data"])

    def test_garbage_token_returns_401(self):
        response = self._client_with("not-a-jwt").get("/articles/")
        self.assertEqual(response.status_code, 401)

    def test_refresh_with_valid_refresh_token(self):
        tokens = self._tokens()

        response = self.api_client.post("/auth/refresh/", {"refresh": tokens["refresh"]}, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertNotEqual(body["data"]["access"], tokens["access"])

    def test_refresh_with_access_token_rejected(self):
        tokens = self._tokens()

        response = self.api_client.post("/auth/refresh/", {"refresh": tokens["access"]}, format="json")
        self.assertEqual(response.status_code, 401)

    def test_expired_refresh_token_returns_401(self):
        now = int(time.time())
        payload = {
            "sub": str(self.user.id),
            "jti": "expired-jti",
            "exp": now - 60,
            "iat": now - 120,
            "role": self.user.role,
            "type": "refresh",
            "ver": self.user.token_version,
        }
        expired = jwt.encode(payload, settings.SECRET_KEY, algorithm=TokenService.ALGORITHM)

        response = self.api_client.post("/auth/refresh/", {"refresh": expired}, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 401)
        self.assertIsNone(body["data"])

    def test_logout_blocklists_token(self):
        client = self._client_with(self._tokens()["access"])

        self.assertEqual(client.post("/auth/logout/").status_code, 204)
        self.assertEqual(client.get("/auth/me/").status_code, 401)

    def test_logout_all_revokes_every_device(self):
        device_a = self._tokens()
        device_b = self._tokens()

        self.assertEqual(self._client_with(device_a["access"]).post("/auth/logout-all/").status_code, 204)

        self.assertEqual(self._client_with(device_b["access"]).get("/auth/me/").status_code, 401)
        for tokens in (device_a, device_b):
            response = self.api_client.post("/auth/refresh/", {"refresh": tokens["refresh"]}, format="json")
            self.assertEqual(response.status_code, 401)

        self.assertEqual(self._login().status_code, 200)

    def test_password_change_revokes_existing_tokens(self):
        old = self._tokens()
        client = self._client_with(old["access"])

        response = client.patch("/auth/me/", {"password": "AnotherPass456"}, format="json")
        self.assertEqual(response.status_code, 200)

        self.assertEqual(client.get("/auth/me/").status_code, 401)
        refresh = self.api_client.post("/auth/refresh/", {"refresh": old["refresh"]}, format="json")
        self.assertEqual(refresh.status_code, 401)
        self.assertEqual(self._login(password="AnotherPass456").status_code, 200)

    def test_patch_me_updates_name(self):
        client = self._client_with(self._tokens()["access"])

        response = client.patch("/auth/me/", {"name": "Renamed"}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["name"], "Renamed")

    def test_patch_me_cannot_change_email_or_role(self):
        client = self._client_with(self._tokens()["access"])

        for payload in ({"email": "new@example.com"}, {"role": Role.ADMINISTRATOR}):
            response = client.patch("/auth/me/", payload, format="json")
            self.assertEqual(response.status_code, 400)

        self.user.refresh_from_db()
        self.assertEqual(self.user.role, Role.CONTRIBUTOR)

    def test_soft_delete_blocks_token_and_future_login(self):
        tokens = self._tokens()
        client = self._client_with(tokens["access"])

        self.assertEqual(client.delete("/auth/me/").status_code, 204)
        self.assertEqual(client.get("/auth/me/").status_code, 401)
        self.assertEqual(self._login().status_code, 401)
        refresh = self.api_client.post("/auth/refresh/", {"refresh": tokens["refresh"]}, format="json")
        self.assertEqual(refresh.status_code, 401)

    def test_logout_redis_down_returns_503(self):
        client = self._client_with(self._tokens()["access"])

        with mock.patch.object(
                TokenService,
                "block_token",
                side_effect=BlocklistUnavailable("Redis unavailable while blocklisting"),
        ):
            response = client.post("/auth/logout/")

        body = response.json()
        self.assertEqual(response.status_code, 503)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_blocklist_down_during_authentication_returns_503(self):
        client = self._client_with(self._tokens()["access"])

        with mock.patch.object(
                TokenService,
                "is_token_blocked",
                side_effect=BlocklistUnavailable("Redis unavailable while checking blocklist"),
        ):
            response = client.get("/auth/me/")

        self.assertEqual(response.status_code, 503)

    def test_refresh_when_database_unavailable_returns_503_with_envelope(self):
        tokens = self._tokens()

        with mock.patch(
                "authentication.views._get_active_user",
                side_effect=DatabaseError("DB down"),
        ):
            response = self.api_client.post("/auth/refresh/", {"refresh": tokens["refresh"]}, format="json")

        body = response.json()
        self.assertEqual(response.status_code, 503)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])
