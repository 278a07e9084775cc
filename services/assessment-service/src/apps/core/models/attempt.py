# services/assessment-service/src/apps/core/models/attempt.py
"""
Quiz Attempt Models

Models for tracking quiz attempts and answers.
"""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional

from django.db import models
from django.utils import timezone

from .base import parse_timestamp, format_timestamp, drop_none


class AttemptStatus(models.TextChoices):
    """Attempt status choices."""
    IN_PROGRESS = 'in_progress', 'In Progress'
    COMPLETED = 'completed', 'Completed'
    ABANDONED = 'abandoned', 'Abandoned'


FINISHED_STATUSES = (AttemptStatus.COMPLETED, AttemptStatus.ABANDONED)


@dataclass
class QuizAnswer:
    """
    One stored answer.

    answer_text holds the option id for multiple choice, "true"/"false"
    for true/false, raw text otherwise. is_correct and points stay None
    until the answer is graded.
    """
    question_id: str
    answer_text: str
    id: Optional[str] = None
    attempt_id: Optional[str] = None
    is_correct: Optional[bool] = None
    points: Optional[int] = None
    saved_at: Optional[datetime] = None

    @property
    def is_graded(self) -> bool:
        return self.is_correct is not None

    @classmethod
    def from_api(cls, data: Dict[str, Any], attempt_id: str = None) -> 'QuizAnswer':
        points = data.get('points')
        return cls(
            id=data.get('id'),
            attempt_id=data.get('attemptId') or attempt_id,
            question_id=str(data['questionId']),
            answer_text='' if data.get('answerText') is None else str(data['answerText']),
            is_correct=data.get('isCorrect'),
            points=int(points) if points is not None else None,
            saved_at=parse_timestamp(data.get('savedAt')),
        )

    def to_api(self) -> Dict[str, Any]:
        return drop_none({
            'id': self.id,
            'attemptId': self.attempt_id,
            'questionId': self.question_id,
            'answerText': self.answer_text,
            'isCorrect': self.is_correct,
            'points': self.points,
            'savedAt': format_timestamp(self.saved_at),
        })


@dataclass
class QuizAttempt:
    """
    Quiz attempt.

    Tracks a single attempt at a quiz by a student. end_time is set
    if and only if the attempt has left in_progress.
    """
    id: str
    quiz_id: str
    student_id: str
    student_name: str = ''
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: str = AttemptStatus.IN_PROGRESS
    score: Optional[int] = None
    max_score: int = 0
    answers: List[QuizAnswer] = field(default_factory=list)
    last_saved: Optional[datetime] = None
    token_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == AttemptStatus.IN_PROGRESS

    @property
    def is_completed(self) -> bool:
        return self.status == AttemptStatus.COMPLETED

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_STATUSES

    def get_answer(self, question_id: str) -> Optional[QuizAnswer]:
        return next((a for a in self.answers if a.question_id == question_id), None)

    def with_answer(self, answer: QuizAnswer) -> 'QuizAttempt':
        """
        Return a copy with the answer upserted by question id.

        An existing answer keeps its position so the list stays in first
        insert order.
        """
        answers = list(self.answers)
        for index, existing in enumerate(answers):
            if existing.question_id == answer.question_id:
                answers[index] = answer
                break
        else:
            answers.append(answer)
        return replace(self, answers=answers, last_saved=answer.saved_at or self.last_saved)

    def deadline(self, time_limit: Optional[int]) -> Optional[datetime]:
        """Wall-clock moment the attempt runs out of time; None when untimed."""
        if not time_limit or self.start_time is None:
            return None
        return self.start_time + timedelta(minutes=time_limit)

    def time_remaining_seconds(self, time_limit: Optional[int], now: datetime = None) -> Optional[int]:
        """Calculate remaining time in seconds."""
        deadline = self.deadline(time_limit)
        if deadline is None:
            return None
        if not self.is_active:
            return 0
        remaining = (deadline - (now or timezone.now())).total_seconds()
        return max(0, math.ceil(remaining))

    def is_overdue(self, time_limit: Optional[int], now: datetime = None, grace: timedelta = timedelta(0)) -> bool:
        deadline = self.deadline(time_limit)
        return deadline is not None and self.is_active and (now or timezone.now()) >= deadline + grace

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'QuizAttempt':
        attempt_id = str(data['id'])
        score = data.get('score')
        return cls(
            id=attempt_id,
            quiz_id=str(data['quizId']),
            student_id=str(data.get('studentId') or ''),
            student_name=data.get('studentName', ''),
            start_time=parse_timestamp(data.get('startTime')),
            end_time=parse_timestamp(data.get('endTime')),
            status=data.get('status') or AttemptStatus.IN_PROGRESS,
            score=int(score) if score is not None else None,
            max_score=int(data.get('maxScore') or 0),
            answers=[QuizAnswer.from_api(a, attempt_id=attempt_id) for a in data.get('answers') or []],
            last_saved=parse_timestamp(data.get('lastSaved')),
            token_id=data.get('tokenId'),
        )

    def to_api(self) -> Dict[str, Any]:
        return drop_none({
            'id': self.id,
            'quizId': self.quiz_id,
            'studentId': self.student_id,
            'studentName': self.student_name,
            'startTime': format_timestamp(self.start_time),
            'endTime': format_timestamp(self.end_time),
            'status': self.status,
            'score': self.score,
            'maxScore': self.max_score,
            'answers': [answer.to_api() for answer in self.answers],
            'lastSaved': format_timestamp(self.last_saved),
            'tokenId': self.token_id,
        })
