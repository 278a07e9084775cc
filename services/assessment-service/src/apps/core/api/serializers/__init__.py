# services/assessment-service/src/apps/core/api/serializers/__init__.py
"""
Assessment Service API Serializers

Serializers for REST API endpoints.
"""

from .token_serializers import (
    QuizSerializer,
    TestTokenSerializer,
    TokenIssueSerializer,
    TokenAssignSerializer,
    TokenRedeemSerializer,
    RedeemedTokenSerializer,
)
from .attempt_serializers import (
    QuizAttemptSerializer,
    AttemptStatusSerializer,
    AttemptStartSerializer,
    AnswerSaveSerializer,
    AttemptGradeSerializer,
    TestSubmissionSerializer,
)
from .assignment_serializers import (
    AssignmentRequestSerializer,
    AssignmentResultSerializer,
    ReassignSerializer,
    RequestStatusSerializer,
)

__all__ = [
    # Token
    'QuizSerializer',
    'TestTokenSerializer',
    'TokenIssueSerializer',
    'TokenAssignSerializer',
    'TokenRedeemSerializer',
    'RedeemedTokenSerializer',
    # Attempt
    'QuizAttemptSerializer',
    'AttemptStatusSerializer',
    'AttemptStartSerializer',
    'AnswerSaveSerializer',
    'AttemptGradeSerializer',
    'TestSubmissionSerializer',
    # Assignment
    'AssignmentRequestSerializer',
    'AssignmentResultSerializer',
    'ReassignSerializer',
    'RequestStatusSerializer',
]
