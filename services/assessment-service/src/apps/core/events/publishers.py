# services/assessment-service/src/apps/core/events/publishers.py
"""
Event Publishers

Functions for publishing events to other services.
"""

import logging
from typing import Dict, Any, Optional

from django.utils import timezone

logger = logging.getLogger(__name__)


def _publish_event(event_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Publish an event to the message broker.

    Args:
        event_type: Type of event
        data: Event data payload

    Returns:
        The event envelope
    """
    event = {
        'type': event_type,
        'timestamp': timezone.now().isoformat(),
        'service': 'assessment-service',
        'data': data,
    }

    # TODO: publish to the NATS event stream once the assessment
    # service is registered as a producer; until then events are logged.
    logger.info(f"Publishing event: {event_type}", extra={'event_data': event})

    return event


def publish_token_issued(token_id: str, quiz_id: str, trainer_id: str, student_id: Optional[str] = None) -> None:
    """
    Publish token issued event.

    Args:
        token_id: Token ID
        quiz_id: Quiz the token unlocks
        trainer_id: Issuing trainer
        student_id: Student the token is bound to, if any
    """
    _publish_event('assessment.token_issued', {
        'token_id': token_id,
        'quiz_id': quiz_id,
        'trainer_id': trainer_id,
        'student_id': student_id,
    })


def publish_attempt_started(attempt_id: str, quiz_id: str, student_id: str) -> None:
    _publish_event('assessment.attempt_started', {
        'attempt_id': attempt_id,
        'quiz_id': quiz_id,
        'student_id': student_id,
    })


def publish_attempt_completed(
    attempt_id: str,
    quiz_id: str,
    student_id: str,
    score: int,
    max_score: int,
    passed: bool,
    trigger: str
) -> None:
    """
    Publish attempt completed event.

    Args:
        attempt_id: Attempt ID
        quiz_id: Quiz ID
        student_id: Student ID
        score: Auto-graded score
        max_score: Maximum score
        passed: Whether the score meets the pass threshold
        trigger: What completed the attempt ('manual' or 'timer')
    """
    _publish_event('assessment.attempt_completed', {
        'attempt_id': attempt_id,
        'quiz_id': quiz_id,
        'student_id': student_id,
        'score': score,
        'max_score': max_score,
        'passed': passed,
        'trigger': trigger,
    })


def publish_requests_assigned(pool: str, assignments: Dict[str, str]) -> None:
    """
    Publish a batch of request assignments.

    Args:
        pool: 'examiner' or 'trainer'
        assignments: Request ID to staff ID
    """
    _publish_event('assessment.requests_assigned', {
        'pool': pool,
        'assignments': assignments,
    })
