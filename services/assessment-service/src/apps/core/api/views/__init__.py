# services/assessment-service/src/apps/core/api/views/__init__.py
"""
Assessment Service API Views
"""

from .token_views import TokenViewSet
from .attempt_views import AttemptViewSet
from .quiz_views import QuizViewSet
from .assignment_views import AssignmentViewSet

__all__ = [
    'TokenViewSet',
    'AttemptViewSet',
    'QuizViewSet',
    'AssignmentViewSet',
]
