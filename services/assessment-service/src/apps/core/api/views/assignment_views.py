# services/assessment-service/src/apps/core/api/views/assignment_views.py
"""
Assignment Views

ViewSet for distributing exam and training requests to staff. Every
route carries the pool ('examiner' or 'trainer') as a URL kwarg.
"""

from rest_framework.response import Response

from shared.common.permissions import IsAdmin, IsStaff, IsTrainerOrAdmin

from ...services import AssignmentService
from ..serializers import (
    AssignmentRequestSerializer,
    AssignmentResultSerializer,
    ReassignSerializer,
    RequestStatusSerializer,
)
from .base import EngineViewSet


class AssignmentViewSet(EngineViewSet):
    """ViewSet for request assignment."""

    permission_classes = [IsStaff]
    action_permissions = {
        'auto_assign': [IsTrainerOrAdmin],
        'reassign': [IsAdmin],
    }

    def get_service(self) -> AssignmentService:
        return AssignmentService(self.get_client(), self.kwargs['pool'])

    def auto_assign(self, request, pool=None):
        """Round-robin every pending request over the eligible staff."""
        result = self.get_service().auto_assign(self.get_context())

        return Response(AssignmentResultSerializer(result).data)

    def pickup(self, request, pool=None, pk=None):
        """Claim a request for the calling staff member."""
        assignment = self.get_service().pickup(self.get_context(), pk)

        return Response(AssignmentRequestSerializer(assignment).data)

    def reassign(self, request, pool=None, pk=None):
        """Move a request to another staff member."""
        serializer = ReassignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        assignment = self.get_service().reassign(self.get_context(), pk, serializer.validated_data['staff_id'])

        return Response(AssignmentRequestSerializer(assignment).data)

    def update_status(self, request, pool=None, pk=None):
        """Advance or cancel a request."""
        serializer = RequestStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        assignment = self.get_service().advance_status(self.get_context(), pk, serializer.validated_data['status'])

        return Response(AssignmentRequestSerializer(assignment).data)
