# services/assessment-service/src/apps/core/api/views/attempt_views.py
"""
Attempt Views

ViewSet for quiz attempt endpoints.
"""

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response

from shared.common.permissions import IsAuthenticated, IsAdmin, IsStaff

from ...services import AttemptService, ReviewService, GradingService
from ..serializers import (
    QuizAttemptSerializer,
    AttemptStatusSerializer,
    AttemptStartSerializer,
    AnswerSaveSerializer,
    AttemptGradeSerializer,
    TestSubmissionSerializer,
)
from .base import EngineViewSet


class AttemptViewSet(EngineViewSet):
    """
    ViewSet for quiz attempts.

    Students start, autosave and submit their own attempts; staff grade
    them and administrators may abandon them.
    """

    permission_classes = [IsAuthenticated]
    action_permissions = {
        'abandon': [IsAdmin],
        'grade': [IsStaff],
    }

    def get_service(self) -> AttemptService:
        return AttemptService(self.get_client())

    def create(self, request):
        """Start an attempt, or resume the caller's open one."""
        serializer = AttemptStartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        attempt = self.get_service().start(
            self.get_context(),
            quiz_id=data.get('quiz_id'),
            token_string=data.get('token'),
            student_name=data.get('student_name'),
        )

        return Response(QuizAttemptSerializer(attempt).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        """Get an attempt with its remaining time."""
        attempt_status = self.get_service().get_status(self.get_context(), pk)

        return Response(AttemptStatusSerializer(attempt_status).data)

    @action(detail=True, methods=['post'])
    def answers(self, request, pk=None):
        """Autosave one answer."""
        serializer = AnswerSaveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        attempt = self.get_service().save_answer(self.get_context(), pk, **serializer.validated_data)

        return Response(QuizAttemptSerializer(attempt).data)

    @action(detail=True, methods=['post'])
    def submit(self, request, pk=None):
        """Grade and complete an attempt."""
        attempt = self.get_service().submit(self.get_context(), pk)

        return Response(AttemptStatusSerializer({
            'attempt': attempt,
            'time_remaining': 0,
            'percentage': GradingService.percentage(attempt.score, attempt.max_score),
            'passed': GradingService.is_passing(attempt.score, attempt.max_score),
        }).data)

    @action(detail=True, methods=['post'])
    def abandon(self, request, pk=None):
        """Close an open attempt without grading."""
        attempt = self.get_service().abandon(self.get_context(), pk)

        return Response(QuizAttemptSerializer(attempt).data)

    @action(detail=True, methods=['post'])
    def grade(self, request, pk=None):
        """Record manual grades and reviewer feedback."""
        serializer = AttemptGradeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        context = self.get_context()
        review = ReviewService(self.get_client())

        attempt = None
        for grade in data.get('grades') or []:
            attempt = review.grade_answer(context, pk, **grade)

        submission = None
        if 'feedback' in data:
            submission = review.add_feedback(context, pk, data['feedback'])

        if attempt is None:
            attempt = self.get_service().get_attempt(context, pk)

        return Response({
            'attempt': QuizAttemptSerializer(attempt).data,
            'submission': TestSubmissionSerializer(submission).data if submission else None,
        })
