from rest_framework import permissions

from utils.rbac import is_admin


class IsAdminUser(permissions.BasePermission):
    """
    Permission to check if user has admin role
    Only allows admins to access admin-only endpoints
    """

    message = "Admin access required"

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False

        return is_admin(request.user)
