# services/assessment-service/src/apps/core/models/__init__.py
"""
Assessment Service Models

Entities owned by the portal API. The service only holds transient copies,
so these are plain dataclasses rather than database tables.
"""

from .quiz import Quiz, QuizQuestion, QuizOption, QuizStatus, QuestionType, GradingMethod
from .token import TestToken, TokenStatus, mask_token
from .attempt import QuizAttempt, QuizAnswer, AttemptStatus
from .request import AssignmentRequest, RequestStatus, Pool
from .staff import StaffMember, StaffRole
from .submission import TestSubmission, SubmissionStatus
from .context import CallerContext

__all__ = [
    # Quiz
    'Quiz',
    'QuizQuestion',
    'QuizOption',
    'QuizStatus',
    'QuestionType',
    'GradingMethod',
    # Token
    'TestToken',
    'TokenStatus',
    'mask_token',
    # Attempt
    'QuizAttempt',
    'QuizAnswer',
    'AttemptStatus',
    # Request
    'AssignmentRequest',
    'RequestStatus',
    'Pool',
    # Staff
    'StaffMember',
    'StaffRole',
    # Submission
    'TestSubmission',
    'SubmissionStatus',
    # Context
    'CallerContext',
]
