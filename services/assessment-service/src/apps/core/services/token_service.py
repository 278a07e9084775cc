# services/assessment-service/src/apps/core/services/token_service.py
"""
Token Service

Issues, validates and retires the single-use tokens that gate a quiz.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from ..clients import PortalClient
from ..events import publish_token_issued
from ..exceptions import (
    AssessmentError,
    ValidationError,
    NotFoundError,
    ExpiredError,
    AlreadyUsedError,
    ForbiddenError,
    InvalidStateError,
)
from ..models import CallerContext, Quiz, TestToken, TokenStatus, mask_token
from ..models.base import format_timestamp
from .access import require_role, STAFF_ROLES

logger = logging.getLogger(__name__)


@dataclass
class RedeemedToken:
    """A validated token together with the quiz it unlocks."""
    token: TestToken
    quiz: Quiz


class TokenService:
    """Service for the test token lifecycle."""

    def __init__(self, client: PortalClient):
        self.client = client
        self.config = settings.ASSESSMENT

    # =========================================================================
    # ISSUING
    # =========================================================================

    def generate_token_string(self) -> str:
        alphabet = self.config.get('TOKEN_ALPHABET', 'ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789')
        length = self.config.get('TOKEN_LENGTH', 8)
        return ''.join(secrets.choice(alphabet) for _ in range(length))

    def _unique_token_string(self) -> str:
        for _ in range(self.config.get('TOKEN_MAX_GENERATION_ATTEMPTS', 5)):
            candidate = self.generate_token_string()
            if self.client.find_token(candidate) is None:
                return candidate
            logger.warning(f"Token collision on {mask_token(candidate)}, regenerating")
        raise AssessmentError(detail='Could not generate a unique token')

    def issue(
        self,
        context: CallerContext,
        quiz_id: str,
        expiration_hours: int = None,
        instructions: str = '',
        student_id: str = None,
        student_name: str = None,
    ) -> TestToken:
        """
        Issue a new token for a published quiz.

        Args:
            context: Issuing trainer, examiner or admin
            quiz_id: Quiz the token unlocks
            expiration_hours: Lifetime of the token
            instructions: Free text shown to the student
            student_id: Bind the token to this student right away
            student_name: Name the student must redeem with

        Returns:
            The stored token, 'assigned' when bound to a student
        """
        require_role(context, STAFF_ROLES, 'issue test tokens')

        if expiration_hours is None:
            expiration_hours = self.config.get('TOKEN_DEFAULT_EXPIRATION_HOURS', 24)
        if expiration_hours <= 0:
            raise ValidationError(detail='expiration_hours must be positive')

        try:
            quiz = self.client.get_quiz(quiz_id)
        except NotFoundError:
            raise ValidationError(detail=f"Quiz not found: {quiz_id}")
        if not quiz.is_published:
            raise ValidationError(detail=f"Quiz {quiz_id} is not published")

        bound = bool(student_id or student_name)
        now = timezone.now()
        token = self.client.create_token({
            'token': self._unique_token_string(),
            'quizId': quiz.id,
            'quizTitle': quiz.title,
            'trainerId': context.user_id,
            'trainerName': context.user_name,
            'status': TokenStatus.ASSIGNED if bound else TokenStatus.ACTIVE,
            'assignedStudentId': student_id,
            'assignedStudentName': student_name,
            'instructions': instructions or '',
            'createdAt': format_timestamp(now),
            'expiresAt': format_timestamp(now + timedelta(hours=expiration_hours)),
        })

        logger.info(
            f"Issued token {token.masked} for quiz {quiz.id}",
            extra={'token_id': token.id, 'trainer_id': context.user_id, 'status': token.status}
        )
        publish_token_issued(token.id, quiz.id, context.user_id, student_id)

        return token

    def assign(self, context: CallerContext, token_id: str, student_id: str, student_name: str) -> TestToken:
        """Bind an active token to one student."""
        require_role(context, STAFF_ROLES, 'assign test tokens')

        token = self.client.get_token(token_id)
        current = token.effective_status()
        if current != TokenStatus.ACTIVE:
            raise InvalidStateError(current_state=current, target_state=TokenStatus.ASSIGNED)

        self.client.update_token(token.id, {
            'status': TokenStatus.ASSIGNED,
            'assignedStudentId': student_id,
            'assignedStudentName': student_name,
        })
        token.status = TokenStatus.ASSIGNED
        token.assigned_student_id = student_id
        token.assigned_student_name = student_name

        logger.info(f"Assigned token {token.masked} to student {student_id}", extra={'token_id': token.id})
        return token

    def cancel(self, context: CallerContext, token_id: str) -> TestToken:
        """Withdraw a token that has not been used."""
        require_role(context, STAFF_ROLES, 'cancel test tokens')

        token = self.client.get_token(token_id)
        if token.status == TokenStatus.CANCELLED:
            return token
        if token.status == TokenStatus.USED:
            raise InvalidStateError(current_state=token.status, target_state=TokenStatus.CANCELLED)

        self.client.update_token(token.id, {'status': TokenStatus.CANCELLED})
        token.status = TokenStatus.CANCELLED

        logger.info(f"Cancelled token {token.masked}", extra={'token_id': token.id})
        return token

    # =========================================================================
    # REDEEMING
    # =========================================================================

    def redeem(self, context: CallerContext, token_string: str, student_name: str = None) -> RedeemedToken:
        """
        Validate a token string and load its quiz.

        The token is not consumed here; it only becomes 'used' when the
        attempt it gates is submitted.
        """
        token_string = (token_string or '').strip().upper()
        if not token_string:
            raise ValidationError(detail='Token is required')

        token = self.client.find_token(token_string)
        if token is None:
            raise NotFoundError(detail='Invalid token')

        if token.is_expired():
            logger.info(f"Rejected expired token {token.masked}", extra={'token_id': token.id})
            raise ExpiredError()

        if token.is_consumed:
            raise AlreadyUsedError(detail=f"Token has already been {token.status}")

        student_name = student_name or context.user_name
        if token.assigned_student_name and token.assigned_student_name != student_name:
            logger.warning(
                f"Token {token.masked} redeemed by the wrong student",
                extra={'token_id': token.id, 'user_id': context.user_id}
            )
            raise ForbiddenError(detail='This token is assigned to a different student')

        quiz = self.client.get_quiz(token.quiz_id)
        if not quiz.is_published:
            raise NotFoundError('Quiz', token.quiz_id)

        logger.info(f"Redeemed token {token.masked}", extra={'token_id': token.id, 'user_id': context.user_id})
        return RedeemedToken(token=token, quiz=quiz)

    def mark_used(self, token_id: str) -> TestToken:
        """Consume a token. Safe to call more than once."""
        token = self.client.get_token(token_id)
        if token.is_consumed:
            logger.debug(f"Token {token.masked} already {token.status}")
            return token

        now = timezone.now()
        self.client.update_token(token.id, {'status': TokenStatus.USED, 'usedAt': format_timestamp(now)})
        token.status = TokenStatus.USED
        token.used_at = now

        logger.info(f"Marked token {token.masked} as used", extra={'token_id': token.id})
        return token
