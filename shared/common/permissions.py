# shared/common/permissions.py
"""
Custom Permission Classes for Role-Based Access Control (RBAC)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List

from rest_framework import permissions
from rest_framework.request import Request

if TYPE_CHECKING:
    from rest_framework.views import APIView

logger = logging.getLogger(__name__)


class BasePermission(permissions.BasePermission):
    """Base permission class with utility methods"""

    def get_user_roles(self, request: Request) -> List[str]:
        """Get roles from user object or auth payload"""
        if hasattr(request.user, 'roles'):
            return request.user.roles
        if hasattr(request, 'auth') and isinstance(request.auth, dict):
            return request.auth.get('roles', [])
        return []


class IsAuthenticated(BasePermission):
    """Verify that user is authenticated"""

    def has_permission(self, request: Request, view: APIView) -> bool:
        return bool(
            request.user and
            hasattr(request.user, 'is_authenticated') and
            request.user.is_authenticated
        )


class HasRole(BasePermission):
    """Check if user has required role(s)"""

    required_roles: List[str] = []

    def has_permission(self, request: Request, view: APIView) -> bool:
        if not request.user or not request.user.is_authenticated:
            return False

        return bool(set(self.required_roles) & set(self.get_user_roles(request)))


class IsAdmin(HasRole):
    """Portal administrators"""
    required_roles = ['admin']


class IsStaff(HasRole):
    """Trainers, examiners and administrators"""
    required_roles = ['trainer', 'examiner', 'admin']


class IsTrainerOrAdmin(HasRole):
    """Trainers and administrators"""
    required_roles = ['trainer', 'admin']
