# storefront/permissions.py
import hmac

from django.conf import settings
from rest_framework.permissions import BasePermission


class FrontendOnlyPermission(BasePermission):
    def has_permission(self, request, view):
        return request.headers.get("X-Frontend-Key") == getattr(settings, "FRONTEND_KEY", "")


class AdminOnlyPermission(BasePermission):
    """Admin dashboard calls carry X-Admin-Key; an empty ADMIN_KEY locks admin out."""

    message = "Admin key missing or invalid."

    def has_permission(self, request, view):
        expected = getattr(settings, "ADMIN_KEY", "") or ""
        supplied = request.headers.get("X-Admin-Key") or ""
        return bool(expected) and hmac.compare_digest(supplied, expected)
