# services/assessment-service/src/apps/core/models/token.py
"""
Test Token Models

Single-use credentials that gate access to a quiz.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, Optional

from django.db import models
from django.utils import timezone

from .base import parse_timestamp, format_timestamp, drop_none


class TokenStatus(models.TextChoices):
    """Token status choices."""
    ACTIVE = 'active', 'Active'
    ASSIGNED = 'assigned', 'Assigned'
    USED = 'used', 'Used'
    EXPIRED = 'expired', 'Expired'
    CANCELLED = 'cancelled', 'Cancelled'


def mask_token(token: str) -> str:
    """Token strings are credentials; only a prefix goes to the logs."""
    if not token:
        return ''
    return f"{token[:2]}***"


@dataclass
class TestToken:
    """
    Test token.

    Expiry is a computed predicate: the stored status is never swept to
    'expired', so callers must use is_expired() / effective_status().
    """
    __test__ = False  # not a pytest test class

    id: str
    token: str
    quiz_id: str
    trainer_id: str
    trainer_name: str = ''
    status: str = TokenStatus.ACTIVE
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    assigned_student_id: Optional[str] = None
    assigned_student_name: Optional[str] = None
    used_at: Optional[datetime] = None
    quiz_title: str = ''
    instructions: str = ''

    @property
    def masked(self) -> str:
        return mask_token(self.token)

    @property
    def is_consumed(self) -> bool:
        """Used and cancelled tokens are never redeemable again."""
        return self.status in (TokenStatus.USED, TokenStatus.CANCELLED)

    def is_expired(self, now: datetime = None) -> bool:
        if self.status == TokenStatus.EXPIRED:
            return True
        if self.expires_at is None:
            return False
        return (now or timezone.now()) > self.expires_at

    def effective_status(self, now: datetime = None) -> str:
        if self.is_consumed:
            return self.status
        if self.is_expired(now):
            return TokenStatus.EXPIRED
        return self.status

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'TestToken':
        return cls(
            id=str(data['id']),
            token=data['token'],
            quiz_id=str(data['quizId']),
            trainer_id=str(data.get('trainerId') or ''),
            trainer_name=data.get('trainerName', ''),
            status=data.get('status') or TokenStatus.ACTIVE,
            created_at=parse_timestamp(data.get('createdAt')),
            expires_at=parse_timestamp(data.get('expiresAt')),
            assigned_student_id=data.get('assignedStudentId'),
            assigned_student_name=data.get('assignedStudentName'),
            used_at=parse_timestamp(data.get('usedAt')),
            quiz_title=data.get('quizTitle', ''),
            instructions=data.get('instructions', ''),
        )

    def to_api(self) -> Dict[str, Any]:
        return drop_none({
            'id': self.id,
            'token': self.token,
            'quizId': self.quiz_id,
            'quizTitle': self.quiz_title,
            'trainerId': self.trainer_id,
            'trainerName': self.trainer_name,
            'status': self.status,
            'createdAt': format_timestamp(self.created_at),
            'expiresAt': format_timestamp(self.expires_at),
            'assignedStudentId': self.assigned_student_id,
            'assignedStudentName': self.assigned_student_name,
            'usedAt': format_timestamp(self.used_at),
            'instructions': self.instructions,
        })
