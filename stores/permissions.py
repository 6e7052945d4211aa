from rest_framework import permissions

from .models import User


class HasRole(permissions.BasePermission):
    """Allow authenticated users whose role matches the view's ``required_role``"""
    message = 'Unauthorized'

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return getattr(user, 'role', None) == getattr(view, 'required_role', User.ROLE_RESELLER)


def has_role(user, role):
    return bool(user and user.is_authenticated and getattr(user, 'role', None) == role)
