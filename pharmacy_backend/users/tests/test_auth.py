# users/tests/test_auth.py

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from rest_framework.test import APIClient

from audit.models import AuditEvent, EventType

User = get_user_model()


class UserManagerTests(TestCase):
    def test_create_user_defaults_to_pharmacist(self):
        user = User.objects.create_user(username="pharma1", password="secret1")

        self.assertEqual(user.role, "pharmacist")
        self.assertTrue(user.check_password("secret1"))
        self.assertEqual(user.email, "")

    def test_short_username_and_unknown_role_rejected(self):
        with self.assertRaises(ValidationError):
            User.objects.create_user(username="ab", password="secret1")

        with self.assertRaises(ValidationError):
            User.objects.create_user(username="cashier1", password="secret1", role="cashier")

    def test_create_superuser_is_admin(self):
        user = User.objects.create_superuser(username="root-admin", password="secret1")

        self.assertEqual(user.role, "admin")
        self.assertTrue(user.is_staff)
        self.assertTrue(user.is_superuser)


class AuthApiTests(TestCase):
    """
    GUARANTEES:
    - JWT login by username returns tokens + role
    - logins (good and bad) leave USER_LOGIN events
    - only admins register staff
    """

    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(username="admin", password="secret1", role="admin")
        self.pharmacist = User.objects.create_user(username="pharma", password="secret1", role="pharmacist")
        self.auditor = User.objects.create_user(username="auditor", password="secret1", role="audit")

    def test_login_returns_tokens_and_user(self):
        res = self.client.post(
            "/api/auth/jwt/create/",
            {"username": "pharma", "password": "secret1"},
            format="json",
        )

        self.assertEqual(res.status_code, 200)
        self.assertIn("access", res.data)
        self.assertIn("refresh", res.data)
        self.assertEqual(res.data["user"]["role"], "pharmacist")

        event = AuditEvent.objects.get(type=EventType.USER_LOGIN)
        self.assertEqual(event.payload["action"], "login_success")
        self.assertEqual(event.payload["username"], "pharma")

    def test_bad_login_is_rejected_and_logged(self):
        res = self.client.post(
            "/api/auth/jwt/create/",
            {"username": "pharma", "password": "wrong-pass"},
            format="json",
        )

        self.assertEqual(res.status_code, 401)
        event = AuditEvent.objects.get(type=EventType.USER_LOGIN)
        self.assertEqual(event.payload["action"], "login_failed")

    def test_access_token_authenticates_me(self):
        res = self.client.post(
            "/api/auth/jwt/create/",
            {"username": "auditor", "password": "secret1"},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {res.data['access']}")

        me = self.client.get("/api/auth/me/")

        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.data["username"], "auditor")
        self.assertEqual(me.data["permissions"]["billing"], ["read"])

    def test_me_requires_authentication(self):
        self.assertEqual(self.client.get("/api/auth/me/").status_code, 401)

    def test_admin_registers_staff(self):
        self.client.force_authenticate(self.admin)

        res = self.client.post(
            "/api/auth/register/",
            {"username": "newpharma", "password": "secret1", "role": "pharmacist"},
            format="json",
        )

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["role"], "pharmacist")
        self.assertNotIn("password", res.data)
        self.assertTrue(User.objects.filter(username="newpharma").exists())

    def test_register_validates_username_and_password(self):
        self.client.force_authenticate(self.admin)

        res = self.client.post(
            "/api/auth/register/",
            {"username": "ab", "password": "123", "role": "pharmacist"},
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertIn("username", res.data)
        self.assertIn("password", res.data)

    def test_non_admins_cannot_register(self):
        for user in (self.pharmacist, self.auditor):
            self.client.force_authenticate(user)
            res = self.client.post(
                "/api/auth/register/",
                {"username": "intruder", "password": "secret1"},
                format="json",
            )
            self.assertEqual(res.status_code, 403)

        self.assertFalse(User.objects.filter(username="intruder").exists())
