from rest_framework.permissions import BasePermission

ROLE_ADMIN = "admin"


def is_admin_user(user) -> bool:
    if not (user and getattr(user, "is_authenticated", False)):
        return False
    if getattr(user, "is_staff", False):
        return True
    return getattr(user, "role", None) == ROLE_ADMIN


class IsAdminRole(BasePermission):
    """Allow access only to staff or users with the admin role."""

    def has_permission(self, request, view):
        return is_admin_user(getattr(request, "user", None))
