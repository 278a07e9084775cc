# services/assessment-service/src/apps/core/services/review_service.py
"""
Review Service

Manual grading of short answer and essay questions, reviewer feedback,
and quiz result statistics.
"""

import logging
from dataclasses import replace
from typing import Dict, Any, Optional

from ..clients import PortalClient
from ..exceptions import ValidationError, NotFoundError, InvalidStateError
from ..models import CallerContext, QuizAttempt, SubmissionStatus, TestSubmission
from .access import require_role, STAFF_ROLES
from .grading_service import GradingService

logger = logging.getLogger(__name__)


class ReviewService:
    """Service for human review of submitted attempts."""

    def __init__(self, client: PortalClient):
        self.client = client

    def grade_answer(
        self,
        context: CallerContext,
        attempt_id: str,
        question_id: str,
        points: int,
        is_correct: bool = None,
    ) -> QuizAttempt:
        """
        Record a reviewer's grade for one manually graded answer.

        The attempt score is recomputed from all graded answers and the
        linked submission, if any, moves to 'graded'.

        Args:
            context: Reviewing trainer, examiner or admin
            attempt_id: Completed attempt
            question_id: Short answer or essay question
            points: Awarded points, 0..question.points
            is_correct: Defaults to points > 0
        """
        require_role(context, STAFF_ROLES, 'grade answers')

        attempt = self.client.get_attempt(attempt_id)
        if not attempt.is_completed:
            raise InvalidStateError(detail='Only completed attempts can be graded', current_state=attempt.status)

        quiz = self.client.get_quiz(attempt.quiz_id)
        question = quiz.get_question(question_id)
        if question is None:
            raise NotFoundError('Question', question_id)
        if question.is_auto_graded:
            raise ValidationError(detail='Multiple choice and true/false answers are graded automatically')
        if points is None or points < 0 or points > question.points:
            raise ValidationError(detail=f"points must be between 0 and {question.points}")

        answer = attempt.get_answer(question_id)
        if answer is None:
            raise NotFoundError('Answer', question_id)

        graded_answer = replace(answer, points=points, is_correct=points > 0 if is_correct is None else is_correct)
        answers = [graded_answer if a.question_id == answer.question_id else a for a in attempt.answers]
        score = min(GradingService.score_answers(answers), attempt.max_score)

        self.client.update_attempt(attempt.id, {
            'answers': [a.to_api() for a in answers],
            'score': score,
        })

        submission = self.client.find_submission(attempt.id)
        if submission is not None:
            fields: Dict[str, Any] = {'score': score}
            if submission.status == SubmissionStatus.SUBMITTED:
                fields['status'] = SubmissionStatus.GRADED
            self.client.update_submission(submission.id, fields)

        logger.info(
            f"Graded question {question_id} of attempt {attempt.id}: {points}/{question.points}",
            extra={'reviewer_id': context.user_id, 'score': score}
        )
        return replace(attempt, answers=answers, score=score)

    def add_feedback(self, context: CallerContext, attempt_id: str, feedback: str) -> TestSubmission:
        """Attach reviewer feedback to an attempt's submission and mark it reviewed."""
        require_role(context, STAFF_ROLES, 'review submissions')

        submission = self.client.find_submission(attempt_id)
        if submission is None:
            raise NotFoundError(detail=f"No submission for attempt {attempt_id}")

        self.client.update_submission(submission.id, {
            'feedback': feedback or '',
            'status': SubmissionStatus.REVIEWED,
        })
        submission.feedback = feedback or ''
        submission.status = SubmissionStatus.REVIEWED

        logger.info(f"Reviewed submission {submission.id}", extra={'reviewer_id': context.user_id})
        return submission

    def quiz_results(self, context: CallerContext, quiz_id: str, student_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Result statistics for a quiz.

        Staff see every student, optionally narrowed to one; anyone else
        only sees their own attempts.
        """
        quiz = self.client.get_quiz(quiz_id)
        if not context.is_staff:
            student_id = context.user_id

        attempts = self.client.list_attempts(quiz_id=quiz.id, student_id=student_id)
        results = GradingService.quiz_statistics(quiz, attempts)
        own = [a for a in attempts if a.student_id == context.user_id]
        results['final_grade'] = GradingService.final_grade(own, quiz.grading_method)
        return results
