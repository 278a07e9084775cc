# services/assessment-service/src/apps/core/services/attempt_service.py
"""
Attempt Service

Lifecycle of one student's attempt at a quiz: start, autosave, submit
(explicit, timer or sweep), and administrative abandonment.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional

from django.conf import settings
from django.core.cache import cache
from django.utils import timezone

from ..clients import PortalClient
from ..events import publish_attempt_started, publish_attempt_completed
from ..exceptions import (
    AssessmentError,
    ValidationError,
    ForbiddenError,
    NotFoundError,
    InvalidStateError,
    AttemptLimitExceededError,
)
from ..models import (
    CallerContext,
    Quiz,
    QuizAttempt,
    QuizAnswer,
    AttemptStatus,
    SubmissionStatus,
    TestSubmission,
    TestToken,
)
from ..models.base import format_timestamp, drop_none
from ..timers import AttemptTimer
from .access import require_role, ADMIN_ROLES
from .grading_service import GradingService, GradedAttempt
from .notification_service import NotificationService
from .token_service import TokenService

logger = logging.getLogger(__name__)


class AttemptService:
    """Service for quiz attempts."""

    def __init__(self, client: PortalClient, tokens: TokenService = None, notifier=NotificationService):
        self.client = client
        self.tokens = tokens or TokenService(client)
        self.notifier = notifier
        self.config = settings.ASSESSMENT

    # =========================================================================
    # LOCKS
    # =========================================================================

    @contextmanager
    def _attempt_lock(self, attempt_id: str):
        """
        Cross-process lock around every write to an attempt.

        Saves, submit and abandon take it in turn, so a caller always reads
        the state the previous one left and never grades twice.
        """
        key = f'assessment:attempt-lock:{attempt_id}'
        wait_until = time.monotonic() + self.config.get('SUBMIT_LOCK_WAIT', 5)
        while not cache.add(key, '1', timeout=self.config.get('SUBMIT_LOCK_TIMEOUT', 30)):
            if time.monotonic() >= wait_until:
                raise InvalidStateError(detail='Attempt is busy, try again shortly')
            time.sleep(0.05)
        try:
            yield
        finally:
            cache.delete(key)

    # =========================================================================
    # ACCESS
    # =========================================================================

    @staticmethod
    def _ensure_owner(context: CallerContext, attempt: QuizAttempt) -> None:
        if context.user_id == attempt.student_id or context.is_admin or context.is_system:
            return
        raise ForbiddenError(detail='This attempt belongs to another student')

    def get_attempt(self, context: CallerContext, attempt_id: str) -> QuizAttempt:
        attempt = self.client.get_attempt(attempt_id)
        if not context.is_staff:
            self._ensure_owner(context, attempt)
        return attempt

    def get_status(self, context: CallerContext, attempt_id: str) -> Dict[str, Any]:
        """Attempt together with its remaining time and result figures."""
        attempt = self.get_attempt(context, attempt_id)
        quiz = self.client.get_quiz(attempt.quiz_id)
        return {
            'attempt': attempt,
            'time_remaining': attempt.time_remaining_seconds(quiz.time_limit),
            'percentage': GradingService.percentage(attempt.score, attempt.max_score) if attempt.is_completed else None,
            'passed': GradingService.is_passing(attempt.score, attempt.max_score) if attempt.is_completed else None,
        }

    # =========================================================================
    # START
    # =========================================================================

    def start(
        self,
        context: CallerContext,
        quiz_id: str = None,
        token_string: str = None,
        student_name: str = None,
    ) -> QuizAttempt:
        """
        Open an attempt, or resume the caller's open one.

        With a token string the token is validated first and the attempt is
        linked to it; the token is consumed only when the attempt is
        submitted.

        Raises:
            AttemptLimitExceededError: the student has used up quiz.attempts
        """
        token: Optional[TestToken] = None
        if token_string:
            redeemed = self.tokens.redeem(context, token_string, student_name)
            token, quiz = redeemed.token, redeemed.quiz
            if quiz_id and str(quiz_id) != quiz.id:
                raise ValidationError(detail='Token does not belong to this quiz')
        elif quiz_id:
            quiz = self.client.get_quiz(quiz_id)
            if not quiz.is_published:
                raise NotFoundError('Quiz', quiz_id)
        else:
            raise ValidationError(detail='quiz_id or token is required')

        attempts = self.client.list_attempts(quiz_id=quiz.id, student_id=context.user_id)

        open_attempt = next((a for a in attempts if a.is_active), None)
        if open_attempt is not None:
            logger.info(f"Resuming attempt {open_attempt.id}", extra={'quiz_id': quiz.id, 'student_id': context.user_id})
            return open_attempt

        taken = sum(1 for a in attempts if a.is_finished)
        if taken >= quiz.attempts:
            raise AttemptLimitExceededError(
                detail=f"Maximum number of attempts ({quiz.attempts}) reached for this quiz"
            )

        now = timezone.now()
        attempt = self.client.create_attempt(drop_none({
            'quizId': quiz.id,
            'studentId': context.user_id,
            'studentName': student_name or context.user_name,
            'startTime': format_timestamp(now),
            'status': AttemptStatus.IN_PROGRESS,
            'maxScore': quiz.max_score,
            'answers': [],
            'lastSaved': format_timestamp(now),
            'tokenId': token.id if token else None,
        }))

        logger.info(
            f"Started attempt {attempt.id} for quiz {quiz.id}",
            extra={'student_id': context.user_id, 'attempt_number': taken + 1, 'max_score': attempt.max_score}
        )
        publish_attempt_started(attempt.id, quiz.id, context.user_id)

        return attempt

    # =========================================================================
    # AUTOSAVE
    # =========================================================================

    def save_answer(
        self,
        context: CallerContext,
        attempt_id: str,
        question_id: str,
        answer_text: str,
        initiated_at: datetime = None,
    ) -> QuizAttempt:
        """
        Upsert one answer by question id.

        initiated_at is when the client started the save; a save that
        started before the stored answer's is dropped.
        """
        if not question_id:
            raise ValidationError(detail='question_id is required')

        with self._attempt_lock(attempt_id):
            attempt = self.client.get_attempt(attempt_id)
            self._ensure_owner(context, attempt)
            if not attempt.is_active:
                raise InvalidStateError(
                    detail='Answers can only be saved while the attempt is in progress',
                    current_state=attempt.status,
                )

            now = timezone.now()
            saved_at = initiated_at or now
            existing = attempt.get_answer(question_id)
            if existing is not None and existing.saved_at and saved_at < existing.saved_at:
                logger.warning(
                    f"Dropped stale save for question {question_id}",
                    extra={'attempt_id': attempt.id}
                )
                return attempt

            answer = QuizAnswer(
                question_id=str(question_id),
                answer_text='' if answer_text is None else str(answer_text),
                id=existing.id if existing else None,
                attempt_id=attempt.id,
                saved_at=saved_at,
            )
            updated = replace(attempt.with_answer(answer), last_saved=now)

            self.client.update_attempt(attempt.id, {
                'answers': [a.to_api() for a in updated.answers],
                'lastSaved': format_timestamp(now),
            })

        logger.debug(f"Saved answer for question {question_id}", extra={'attempt_id': attempt.id})
        return updated

    # =========================================================================
    # SUBMIT
    # =========================================================================

    def submit(self, context: CallerContext, attempt_id: str, trigger: str = 'manual') -> QuizAttempt:
        """
        Grade and complete an attempt.

        Safe under repeated or racing calls: a completed attempt is returned
        as it is, without grading again or touching the token.

        Args:
            context: Owner, admin, or the system context of the sweep
            attempt_id: Attempt to submit
            trigger: 'manual', 'timer' or 'sweep'
        """
        with self._attempt_lock(attempt_id):
            attempt = self.client.get_attempt(attempt_id)
            self._ensure_owner(context, attempt)

            if attempt.is_completed:
                logger.info(f"Attempt {attempt.id} already submitted", extra={'trigger': trigger})
                return attempt
            if not attempt.is_active:
                raise InvalidStateError(current_state=attempt.status, target_state=AttemptStatus.COMPLETED)

            quiz = self.client.get_quiz(attempt.quiz_id)
            graded = GradingService.grade_answers(quiz, attempt.answers, max_score=attempt.max_score or quiz.max_score)
            score = min(graded.score, graded.max_score)
            now = timezone.now()

            self.client.update_attempt(attempt.id, {
                'status': AttemptStatus.COMPLETED,
                'endTime': format_timestamp(now),
                'score': score,
                'maxScore': graded.max_score,
                'answers': [a.to_api() for a in graded.answers],
            })

            completed = replace(
                attempt,
                status=AttemptStatus.COMPLETED,
                end_time=now,
                score=score,
                max_score=graded.max_score,
                answers=graded.answers,
            )

        logger.info(
            f"Submitted attempt {completed.id}: {score}/{completed.max_score}",
            extra={'trigger': trigger, 'quiz_id': quiz.id, 'student_id': completed.student_id}
        )
        self._after_submit(completed, quiz, graded, trigger)

        return completed

    def _after_submit(self, attempt: QuizAttempt, quiz: Quiz, graded: GradedAttempt, trigger: str) -> None:
        """Token consumption, review record and events; none of them undo the submit."""
        if attempt.token_id:
            try:
                token = self.tokens.mark_used(attempt.token_id)
                self._record_submission(attempt, quiz, token)
            except AssessmentError as e:
                logger.error(
                    f"Post-submit bookkeeping failed for attempt {attempt.id}: {e.detail}",
                    extra={'token_id': attempt.token_id}
                )

        publish_attempt_completed(
            attempt.id,
            quiz.id,
            attempt.student_id,
            attempt.score,
            attempt.max_score,
            GradingService.is_passing(attempt.score, attempt.max_score),
            trigger,
        )

    def _record_submission(self, attempt: QuizAttempt, quiz: Quiz, token: TestToken) -> TestSubmission:
        submission = self.client.create_submission({
            'tokenId': token.id,
            'attemptId': attempt.id,
            'studentId': attempt.student_id,
            'studentName': attempt.student_name,
            'trainerId': token.trainer_id,
            'trainerName': token.trainer_name,
            'quizTitle': quiz.title,
            'score': attempt.score,
            'maxScore': attempt.max_score,
            'submittedAt': format_timestamp(attempt.end_time),
            'status': SubmissionStatus.SUBMITTED,
            'feedback': '',
        })
        self.notifier.notify_submission(token.trainer_id, attempt.student_name, quiz.title)
        return submission

    # =========================================================================
    # ABANDON
    # =========================================================================

    def abandon(self, context: CallerContext, attempt_id: str) -> QuizAttempt:
        """Close an open attempt without grading it."""
        require_role(context, ADMIN_ROLES, 'abandon attempts')

        with self._attempt_lock(attempt_id):
            attempt = self.client.get_attempt(attempt_id)
            if not attempt.is_active:
                raise InvalidStateError(current_state=attempt.status, target_state=AttemptStatus.ABANDONED)

            now = timezone.now()
            self.client.update_attempt(attempt.id, {
                'status': AttemptStatus.ABANDONED,
                'endTime': format_timestamp(now),
            })

        logger.info(f"Abandoned attempt {attempt.id}", extra={'admin_id': context.user_id})

        return replace(attempt, status=AttemptStatus.ABANDONED, end_time=now)

    # =========================================================================
    # TIMERS
    # =========================================================================

    def start_timer(self, context: CallerContext, attempt_id: str) -> Optional[AttemptTimer]:
        """Start the countdown for a timed attempt; None for untimed quizzes."""
        attempt = self.get_attempt(context, attempt_id)
        quiz = self.client.get_quiz(attempt.quiz_id)
        deadline = attempt.deadline(quiz.time_limit)
        if deadline is None or not attempt.is_active:
            return None

        timer = AttemptTimer(deadline, lambda: self.submit(context, attempt.id, trigger='timer'))
        return timer.start()

    def expire_overdue(self, now: datetime = None) -> List[QuizAttempt]:
        """
        Submit every in-progress attempt past its deadline.

        Untimed attempts are left alone. Failures are logged per attempt so
        one bad record does not stop the sweep.
        """
        now = now or timezone.now()
        grace = timedelta(seconds=self.config.get('SWEEP_GRACE_SECONDS', 0))
        context = CallerContext.system()
        quizzes: Dict[str, Optional[Quiz]] = {}
        submitted = []

        for attempt in self.client.list_attempts(status=AttemptStatus.IN_PROGRESS):
            if attempt.quiz_id not in quizzes:
                try:
                    quizzes[attempt.quiz_id] = self.client.get_quiz(attempt.quiz_id)
                except NotFoundError:
                    logger.warning(f"Quiz {attempt.quiz_id} of attempt {attempt.id} not found")
                    quizzes[attempt.quiz_id] = None
            quiz = quizzes[attempt.quiz_id]
            if quiz is None:
                continue

            if not attempt.is_overdue(quiz.time_limit, now=now, grace=grace):
                continue

            try:
                submitted.append(self.submit(context, attempt.id, trigger='sweep'))
            except AssessmentError as e:
                logger.error(f"Could not auto-submit attempt {attempt.id}: {e.detail}")

        return submitted
