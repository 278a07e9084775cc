# services/assessment-service/src/apps/core/api/views/base.py
"""
Shared view helpers.
"""

from rest_framework import viewsets

from ...clients import get_portal_client
from ...models import CallerContext


class EngineViewSet(viewsets.ViewSet):
    """ViewSet whose actions run engine services on behalf of the caller."""

    # Per-action permission overrides: {'action_name': [PermissionClass, ...]}
    action_permissions = {}

    def get_permissions(self):
        classes = self.action_permissions.get(self.action, self.permission_classes)
        return [permission() for permission in classes]

    def get_context(self) -> CallerContext:
        return CallerContext.from_user(self.request.user)

    def get_client(self):
        return get_portal_client()
