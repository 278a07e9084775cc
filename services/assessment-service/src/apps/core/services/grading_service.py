# services/assessment-service/src/apps/core/services/grading_service.py
"""
Grading Service

Scoring of quiz answers and attempts. Everything here is a pure function
of its inputs so the submit path and the review path grade the same way.
"""

import logging
from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any, List, Optional, Tuple

from django.conf import settings

from ..models import Quiz, QuizQuestion, QuizAnswer, QuizAttempt, QuestionType, GradingMethod

logger = logging.getLogger(__name__)


@dataclass
class GradedAttempt:
    """Outcome of grading one attempt's answers."""
    answers: List[QuizAnswer]
    score: int
    max_score: int

    @property
    def percentage(self) -> int:
        return GradingService.percentage(self.score, self.max_score)

    @property
    def passed(self) -> bool:
        return GradingService.is_passing(self.score, self.max_score)


class GradingService:
    """Service for grading answers and summarising results."""

    # =========================================================================
    # ANSWERS
    # =========================================================================

    @staticmethod
    def grade_answer(question: QuizQuestion, answer_text: str) -> Tuple[Optional[bool], Optional[int]]:
        """
        Grade one answer.

        Multiple choice answers are compared against the correct option id,
        true/false answers against the stored "true"/"false" string. Other
        question types need a human and stay ungraded.

        Returns:
            (is_correct, points), both None for manually graded types
        """
        if question.question_type == QuestionType.MULTIPLE_CHOICE:
            option = question.correct_option
            is_correct = option is not None and answer_text == option.id
        elif question.question_type == QuestionType.TRUE_FALSE:
            is_correct = question.correct_answer is not None and answer_text == question.correct_answer
        else:
            return None, None

        return is_correct, question.points if is_correct else 0

    @classmethod
    def grade_answers(cls, quiz: Quiz, answers: List[QuizAnswer], max_score: int = None) -> GradedAttempt:
        """
        Grade every auto-gradable answer of an attempt.

        Manual grades already present on short answer and essay answers are
        kept as they are. Answers to questions the quiz no longer has are
        passed through untouched. max_score defaults to the quiz total.
        """
        graded = []
        for answer in answers:
            question = quiz.get_question(answer.question_id)
            if question is None or not question.is_auto_graded:
                graded.append(answer)
                continue

            is_correct, points = cls.grade_answer(question, answer.answer_text)
            graded.append(replace(answer, is_correct=is_correct, points=points))

        return GradedAttempt(
            answers=graded,
            score=cls.score_answers(graded),
            max_score=quiz.max_score if max_score is None else max_score,
        )

    @staticmethod
    def score_answers(answers: List[QuizAnswer]) -> int:
        """Sum of points over graded answers."""
        return sum(answer.points or 0 for answer in answers if answer.is_graded)

    # =========================================================================
    # SCORES
    # =========================================================================

    @staticmethod
    def percentage(score: Optional[int], max_score: int) -> int:
        """Score as a whole percentage, rounded half up; 0 when nothing is scorable."""
        if not max_score:
            return 0
        value = Decimal(score or 0) * 100 / Decimal(max_score)
        return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))

    @staticmethod
    def is_passing(score: Optional[int], max_score: int, threshold: Decimal = None) -> bool:
        """True when score reaches the pass threshold fraction of max_score."""
        if not max_score or score is None:
            return False
        if threshold is None:
            threshold = Decimal(str(settings.ASSESSMENT.get('PASS_THRESHOLD', '0.7')))
        return Decimal(score) >= Decimal(max_score) * threshold

    @staticmethod
    def final_grade(attempts: List[QuizAttempt], grading_method: str) -> Optional[int]:
        """
        Pick a student's grade from their completed attempts.

        Attempts are ordered by start time for first/last. The average is
        rounded half up. Returns None when nothing was completed.
        """
        completed = [a for a in attempts if a.is_completed and a.score is not None]
        if not completed:
            return None

        completed.sort(key=lambda a: (a.start_time is None, a.start_time))

        if grading_method == GradingMethod.FIRST:
            return completed[0].score
        if grading_method == GradingMethod.LAST:
            return completed[-1].score
        if grading_method == GradingMethod.AVERAGE:
            mean = Decimal(sum(a.score for a in completed)) / len(completed)
            return int(mean.quantize(Decimal('1'), rounding=ROUND_HALF_UP))
        return max(a.score for a in completed)

    # =========================================================================
    # STATISTICS
    # =========================================================================

    @classmethod
    def quiz_statistics(cls, quiz: Quiz, attempts: List[QuizAttempt]) -> Dict[str, Any]:
        """
        Aggregate results of a quiz.

        Returns:
            Dict with attempt counts, average score, pass rate and each
            student's final grade under the quiz's grading method
        """
        completed = [a for a in attempts if a.is_completed]
        completed_count = len(completed)

        average_score = 0
        average_percentage = 0
        pass_rate = 0
        if completed_count:
            total = Decimal(sum(a.score or 0 for a in completed))
            average_score = int((total / completed_count).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
            percentages = Decimal(sum(cls.percentage(a.score, a.max_score) for a in completed))
            average_percentage = int((percentages / completed_count).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
            passed = sum(1 for a in completed if cls.is_passing(a.score or 0, a.max_score))
            pass_rate = cls.percentage(passed, completed_count)

        by_student: Dict[str, List[QuizAttempt]] = {}
        for attempt in attempts:
            by_student.setdefault(attempt.student_id, []).append(attempt)

        students = []
        for student_id, student_attempts in by_student.items():
            grade = cls.final_grade(student_attempts, quiz.grading_method)
            students.append({
                'student_id': student_id,
                'student_name': student_attempts[0].student_name,
                'attempts': len(student_attempts),
                'final_score': grade,
                'passed': grade is not None and cls.is_passing(grade, quiz.max_score),
            })

        return {
            'quiz_id': quiz.id,
            'grading_method': quiz.grading_method,
            'max_score': quiz.max_score,
            'total_attempts': len(attempts),
            'completed_attempts': completed_count,
            'average_score': average_score,
            'average_percentage': average_percentage,
            'pass_rate': pass_rate,
            'students': students,
        }
