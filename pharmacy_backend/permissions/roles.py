# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import SAFE_METHODS, BasePermission


# =========================================================
# ROLE CONSTANTS (STAFF JOB ROLES)
# =========================================================
ROLE_ADMIN = "admin"
ROLE_PHARMACIST = "pharmacist"
ROLE_AUDIT = "audit"  # read-only reviewer

STAFF_ROLES = {
    ROLE_ADMIN,
    ROLE_PHARMACIST,
    ROLE_AUDIT,
}

ROLE_CHOICES = [
    (ROLE_ADMIN, "Admin"),
    (ROLE_PHARMACIST, "Pharmacist"),
    (ROLE_AUDIT, "Audit"),
]


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# A capability is "<resource>.<action>".
# Views protect capabilities, never raw roles.
RESOURCES = (
    "billing",
    "inventory",
    "products",
    "doctors",
    "vendors",
    "users",
    "reports",
    "audit",
)

ACTION_CREATE = "create"
ACTION_READ = "read"
ACTION_UPDATE = "update"
ACTION_DELETE = "delete"

CRUD = (ACTION_CREATE, ACTION_READ, ACTION_UPDATE, ACTION_DELETE)


def cap(resource: str, action: str) -> str:
    return f"{resource}.{action}"


CAP_BILLING_CREATE = cap("billing", ACTION_CREATE)
CAP_BILLING_READ = cap("billing", ACTION_READ)
CAP_BILLING_CANCEL = cap("billing", ACTION_DELETE)

CAP_INVENTORY_READ = cap("inventory", ACTION_READ)
CAP_INVENTORY_UPDATE = cap("inventory", ACTION_UPDATE)

CAP_REPORTS_READ = cap("reports", ACTION_READ)
CAP_AUDIT_READ = cap("audit", ACTION_READ)
CAP_USERS_CREATE = cap("users", ACTION_CREATE)


# =========================================================
# ROLE → RESOURCE → ACTIONS (STATIC TABLE)
# =========================================================
PERMISSIONS: dict[str, dict[str, tuple[str, ...]]] = {
    ROLE_ADMIN: {
        "billing": CRUD,
        "inventory": CRUD,
        "products": CRUD,
        "doctors": CRUD,
        "vendors": CRUD,
        "users": CRUD,
        "reports": (ACTION_READ,),
        "audit": (ACTION_READ, ACTION_DELETE),
    },
    ROLE_PHARMACIST: {
        "billing": (ACTION_CREATE, ACTION_READ),
        "inventory": (ACTION_READ, ACTION_UPDATE),
        "products": (),
        "doctors": CRUD,
        "vendors": (),
        "users": (),
        "reports": (ACTION_READ,),
        "audit": (),
    },
    ROLE_AUDIT: {resource: (ACTION_READ,) for resource in RESOURCES},
}

# Flattened once at import; permission checks are plain set lookups.
ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    role: frozenset(
        cap(resource, action)
        for resource, actions in table.items()
        for action in actions
    )
    for role, table in PERMISSIONS.items()
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def capabilities_for(user) -> frozenset[str]:
    return ROLE_CAPABILITIES.get(get_user_role(user), frozenset())


def has_capability(user, capability: str) -> bool:
    return capability in capabilities_for(user)


def permissions_for_role(role: str) -> dict[str, list[str]]:
    """Role table as plain lists, for the /me/ payload."""
    table = PERMISSIONS.get(role, {})
    return {resource: list(actions) for resource, actions in table.items()}


METHOD_ACTIONS = {
    "GET": ACTION_READ,
    "HEAD": ACTION_READ,
    "OPTIONS": ACTION_READ,
    "POST": ACTION_CREATE,
    "PUT": ACTION_UPDATE,
    "PATCH": ACTION_UPDATE,
    "DELETE": ACTION_DELETE,
}


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_BILLING_CREATE
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # deny-by-default to avoid accidental open endpoints
            return False

        return has_capability(user, required)


class HasAnyCapability(BasePermission):
    """
    Require ANY capability from a set.

    Usage:
        view.required_any_capabilities = {CAP_REPORTS_READ, CAP_AUDIT_READ}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_any_capabilities", None)
        if not required:
            return False

        caps = capabilities_for(user)
        return any(c in caps for c in set(required))


class HasResourcePermission(BasePermission):
    """
    Map the HTTP method onto the view's resource.

    Usage:
        permission_classes = [IsAuthenticated, HasResourcePermission]
        view.permission_resource = "doctors"

    GET/HEAD/OPTIONS -> read, POST -> create, PUT/PATCH -> update, DELETE -> delete.
    """

    message = "Your role does not allow this operation."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        resource = getattr(view, "permission_resource", None)
        if not resource:
            return False

        action = METHOD_ACTIONS.get(request.method)
        if action is None:
            return False

        if request.method not in SAFE_METHODS and get_user_role(user) == ROLE_AUDIT:
            self.message = "Audit users have read-only access. Write operations are not permitted."
            return False

        return has_capability(user, cap(resource, action))

