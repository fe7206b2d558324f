# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (STAFF JOB ROLES)
# =========================================================
# Mirrors users.models.User.ROLE_* so views never import the model.
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_RETURNS_CLERK = "returns_clerk"
ROLE_CASHIER = "cashier"
ROLE_WAREHOUSE = "warehouse"

STAFF_ROLES = {
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_RETURNS_CLERK,
    ROLE_CASHIER,
    ROLE_WAREHOUSE,
}


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views protect capabilities, not raw roles.
CAP_RETURNS_VIEW = "returns.view"
CAP_RETURNS_CREATE = "returns.create"
CAP_RETURNS_APPROVE = "returns.approve"      # approve / reject / cancel
CAP_RETURNS_COMPLETE = "returns.complete"    # finalize + restock
CAP_RETURNS_REPORTS = "returns.reports"

ALL_CAPABILITIES = {
    CAP_RETURNS_VIEW,
    CAP_RETURNS_CREATE,
    CAP_RETURNS_APPROVE,
    CAP_RETURNS_COMPLETE,
    CAP_RETURNS_REPORTS,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_MANAGER: {
        CAP_RETURNS_VIEW,
        CAP_RETURNS_CREATE,
        CAP_RETURNS_APPROVE,
        CAP_RETURNS_COMPLETE,
        CAP_RETURNS_REPORTS,
    },
    ROLE_RETURNS_CLERK: {
        CAP_RETURNS_VIEW,
        CAP_RETURNS_CREATE,
        CAP_RETURNS_COMPLETE,
        # approve/reject/cancel stay with managers
    },
    ROLE_CASHIER: {
        CAP_RETURNS_VIEW,
        CAP_RETURNS_CREATE,
    },
    ROLE_WAREHOUSE: {
        CAP_RETURNS_VIEW,
        CAP_RETURNS_COMPLETE,
    },
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def effective_capabilities_for(request, user) -> set[str]:
    """
    Capabilities granted by the user's role. Superusers get everything.
    """
    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)

    role = get_user_role(user)
    return set(ROLE_CAPABILITIES.get(role, set()))


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_RETURNS_APPROVE
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # If not set, deny-by-default to avoid accidental open endpoints
            return False

        caps = effective_capabilities_for(request, user)
        return required in caps


class HasAnyCapability(BasePermission):
    """
    Require ANY capability from a list.

    Usage:
        view.required_any_capabilities = {CAP_RETURNS_VIEW, CAP_RETURNS_REPORTS}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_any_capabilities", None)
        if not required:
            return False

        caps = effective_capabilities_for(request, user)
        return any(cap in caps for cap in set(required))
