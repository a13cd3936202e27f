# core/permissions.py

from rest_framework.permissions import BasePermission
from rest_framework import permissions
from .constants import UserRoles


class IsAuthenticatedAndActive(BasePermission):
    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and request.user.is_active
        )


class IsPatient(permissions.BasePermission):
    def has_permission(self, request, view):
        return getattr(request.user, 'role', None) == UserRoles.PATIENT


class IsAdmin(permissions.BasePermission):
    def has_permission(self, request, view):
        return getattr(request.user, 'role', None) == UserRoles.ADMIN


class IsStaff(permissions.BasePermission):
    def has_permission(self, request, view):
        return getattr(request.user, 'role', None) in UserRoles.STAFF


class IsFrontDesk(permissions.BasePermission):
    """Receptionists and administrators run the front desk"""
    def has_permission(self, request, view):
        return getattr(request.user, 'role', None) in [
            UserRoles.RECEPTIONIST,
            UserRoles.ADMIN,
        ]
