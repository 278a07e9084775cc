# services/assessment-service/src/apps/core/api/views/quiz_views.py
"""
Quiz Views

Read-only quiz result endpoints.
"""

from rest_framework.decorators import action
from rest_framework.response import Response

from shared.common.permissions import IsAuthenticated

from ...services import ReviewService
from .base import EngineViewSet


class QuizViewSet(EngineViewSet):
    """ViewSet for quiz results."""

    permission_classes = [IsAuthenticated]

    @action(detail=True, methods=['get'])
    def results(self, request, pk=None):
        """Result statistics and the caller's final grade."""
        results = ReviewService(self.get_client()).quiz_results(
            self.get_context(),
            pk,
            student_id=request.query_params.get('student_id'),
        )

        return Response(results)
