from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase
from rest_framework.test import APIRequestFactory

from permissions.roles import (
    CAP_AUDIT_READ,
    CAP_BILLING_CANCEL,
    CAP_BILLING_CREATE,
    CAP_BILLING_READ,
    CAP_INVENTORY_UPDATE,
    CAP_REPORTS_READ,
    CAP_USERS_CREATE,
    ROLE_CAPABILITIES,
    HasAnyCapability,
    HasCapability,
    HasResourcePermission,
    has_capability,
)

User = get_user_model()


class CapabilityTableTests(TestCase):
    """
    GUARANTEES:
    - the static role table decides every capability
    - audit is read-only everywhere
    - pharmacists bill and edit stock but never manage users/vendors
    """

    def test_admin_capabilities(self):
        caps = ROLE_CAPABILITIES["admin"]

        for c in (CAP_BILLING_CREATE, CAP_BILLING_CANCEL, CAP_USERS_CREATE, CAP_AUDIT_READ):
            self.assertIn(c, caps)
        self.assertIn("audit.delete", caps)
        self.assertNotIn("reports.create", caps)
        self.assertNotIn("audit.create", caps)

    def test_pharmacist_capabilities(self):
        caps = ROLE_CAPABILITIES["pharmacist"]

        self.assertEqual(
            {c for c in caps if c.startswith("billing.")},
            {"billing.create", "billing.read"},
        )
        self.assertIn(CAP_INVENTORY_UPDATE, caps)
        self.assertNotIn("inventory.create", caps)
        self.assertIn("doctors.delete", caps)
        self.assertIn(CAP_REPORTS_READ, caps)

        for resource in ("products", "vendors", "users", "audit"):
            self.assertFalse(any(c.startswith(f"{resource}.") for c in caps), resource)

    def test_audit_role_reads_everything_writes_nothing(self):
        caps = ROLE_CAPABILITIES["audit"]

        self.assertTrue(all(c.endswith(".read") for c in caps))
        self.assertIn(CAP_BILLING_READ, caps)
        self.assertIn(CAP_AUDIT_READ, caps)

    def test_unknown_role_has_no_capabilities(self):
        ghost = SimpleNamespace(role="cashier")
        self.assertFalse(has_capability(ghost, CAP_BILLING_READ))


class PermissionClassTests(TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()
        self.admin = User.objects.create_user(username="admin", password="pass123", role="admin")
        self.pharmacist = User.objects.create_user(username="pharma", password="pass123", role="pharmacist")
        self.auditor = User.objects.create_user(username="auditor", password="pass123", role="audit")

    def _request(self, user, method="get"):
        request = getattr(self.factory, method)("/")
        request.user = user
        return request

    def test_has_capability_reads_view_attribute(self):
        view = SimpleNamespace(required_capability=CAP_BILLING_CANCEL)

        self.assertTrue(HasCapability().has_permission(self._request(self.admin), view))
        self.assertFalse(HasCapability().has_permission(self._request(self.pharmacist), view))

    def test_has_capability_denies_when_view_declares_nothing(self):
        view = SimpleNamespace()
        self.assertFalse(HasCapability().has_permission(self._request(self.admin), view))

    def test_has_any_capability(self):
        view = SimpleNamespace(required_any_capabilities={CAP_USERS_CREATE, CAP_REPORTS_READ})

        self.assertTrue(HasAnyCapability().has_permission(self._request(self.pharmacist), view))

        view = SimpleNamespace(required_any_capabilities={CAP_USERS_CREATE})
        self.assertFalse(HasAnyCapability().has_permission(self._request(self.pharmacist), view))

    def test_resource_permission_maps_methods(self):
        view = SimpleNamespace(permission_resource="inventory")
        perm = HasResourcePermission

        self.assertTrue(perm().has_permission(self._request(self.pharmacist, "get"), view))
        self.assertTrue(perm().has_permission(self._request(self.pharmacist, "patch"), view))
        self.assertFalse(perm().has_permission(self._request(self.pharmacist, "post"), view))
        self.assertFalse(perm().has_permission(self._request(self.pharmacist, "delete"), view))
        self.assertTrue(perm().has_permission(self._request(self.admin, "delete"), view))

    def test_audit_user_writes_rejected(self):
        view = SimpleNamespace(permission_resource="doctors")
        perm = HasResourcePermission()

        self.assertTrue(perm.has_permission(self._request(self.auditor, "get"), view))
        self.assertFalse(perm.has_permission(self._request(self.auditor, "post"), view))
        self.assertIn("read-only", perm.message)

    def test_anonymous_denied_everywhere(self):
        anon = AnonymousUser()
        self.assertFalse(
            HasCapability().has_permission(self._request(anon), SimpleNamespace(required_capability=CAP_BILLING_READ))
        )
        self.assertFalse(
            HasResourcePermission().has_permission(self._request(anon), SimpleNamespace(permission_resource="doctors"))
        )
