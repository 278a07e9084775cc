# services/assessment-service/src/apps/core/services/__init__.py
"""
Assessment Service Business Logic
"""

from .grading_service import GradingService, GradedAttempt
from .token_service import TokenService, RedeemedToken
from .attempt_service import AttemptService
from .assignment_service import AssignmentService, AssignmentResult, AssignmentOutcome
from .review_service import ReviewService
from .notification_service import NotificationService

__all__ = [
    'GradingService',
    'GradedAttempt',
    'TokenService',
    'RedeemedToken',
    'AttemptService',
    'AssignmentService',
    'AssignmentResult',
    'AssignmentOutcome',
    'ReviewService',
    'NotificationService',
]
