# services/assessment-service/src/apps/core/models/submission.py
"""
Test Submission Models

Review record created when a token-gated attempt is submitted.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, Optional

from django.db import models

from .base import parse_timestamp, format_timestamp, drop_none


class SubmissionStatus(models.TextChoices):
    """Submission status choices."""
    SUBMITTED = 'submitted', 'Submitted'
    GRADED = 'graded', 'Graded'
    REVIEWED = 'reviewed', 'Reviewed'


@dataclass
class TestSubmission:
    """A submitted test awaiting (or past) trainer review."""
    __test__ = False  # not a pytest test class

    id: str
    token_id: str
    attempt_id: str
    student_id: str
    student_name: str
    trainer_id: str
    trainer_name: str
    quiz_title: str
    max_score: int
    score: Optional[int] = None
    submitted_at: Optional[datetime] = None
    status: str = SubmissionStatus.SUBMITTED
    feedback: str = ''

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'TestSubmission':
        score = data.get('score')
        return cls(
            id=str(data['id']),
            token_id=str(data.get('tokenId') or ''),
            attempt_id=str(data.get('attemptId') or ''),
            student_id=str(data.get('studentId') or ''),
            student_name=data.get('studentName', ''),
            trainer_id=str(data.get('trainerId') or ''),
            trainer_name=data.get('trainerName', ''),
            quiz_title=data.get('quizTitle', ''),
            max_score=int(data.get('maxScore') or 0),
            score=int(score) if score is not None else None,
            submitted_at=parse_timestamp(data.get('submittedAt')),
            status=data.get('status') or SubmissionStatus.SUBMITTED,
            feedback=data.get('feedback') or '',
        )

    def to_api(self) -> Dict[str, Any]:
        return drop_none({
            'id': self.id,
            'tokenId': self.token_id,
            'attemptId': self.attempt_id,
            'studentId': self.student_id,
            'studentName': self.student_name,
            'trainerId': self.trainer_id,
            'trainerName': self.trainer_name,
            'quizTitle': self.quiz_title,
            'maxScore': self.max_score,
            'score': self.score,
            'submittedAt': format_timestamp(self.submitted_at),
            'status': self.status,
            'feedback': self.feedback,
        })
