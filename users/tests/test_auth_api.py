from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from users import identity


class AuthApiTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_signup_returns_tokens(self):
        resp = self.client.post(
            "/api/auth/signup/",
            {"name": "Asha", "email": "asha@example.com", "password": "secret12"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        body = resp.json()
        self.assertEqual(body["user"]["email"], "asha@example.com")
        self.assertEqual(body["user"]["role"], "participant")
        self.assertIn("access", body)
        self.assertIn("refresh", body)

    def test_signup_collision(self):
        identity.register_account("Asha", "asha@example.com", "secret12")
        resp = self.client.post(
            "/api/auth/signup/",
            {"name": "Asha", "email": "asha@example.com", "password": "secret12"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.json()["code"], "credential_in_use")

    def test_login_and_me(self):
        identity.register_account("One", "shared@example.com", "password-one")
        two = identity.register_account("Two", "shared@example.com", "password-two")

        resp = self.client.post(
            "/api/auth/login/",
            {"email": "shared@example.com", "password": "password-two"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["user"]["id"], two.id)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.json()['access']}")
        resp = self.client.get("/api/auth/me/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["name"], "Two")

    def test_login_failure_is_generic(self):
        identity.register_account("One", "shared@example.com", "password-one")

        wrong = self.client.post(
            "/api/auth/login/", {"email": "shared@example.com", "password": "bad-pass"}, format="json"
        )
        unknown = self.client.post(
            "/api/auth/login/", {"email": "ghost@example.com", "password": "bad-pass"}, format="json"
        )
        self.assertEqual(wrong.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(unknown.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(wrong.json()["message"], unknown.json()["message"])
