# services/assessment-service/src/apps/core/models/quiz.py
"""
Quiz Models

Quizzes and their questions as served by the portal API.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from django.db import models


class QuizStatus(models.TextChoices):
    """Quiz status choices."""
    DRAFT = 'draft', 'Draft'
    PUBLISHED = 'published', 'Published'
    ARCHIVED = 'archived', 'Archived'


class GradingMethod(models.TextChoices):
    """How a student's final grade is picked from their attempts."""
    HIGHEST = 'highest', 'Highest grade'
    AVERAGE = 'average', 'Average grade'
    FIRST = 'first', 'First attempt'
    LAST = 'last', 'Last attempt'


class QuestionType(models.TextChoices):
    """Question type choices."""
    MULTIPLE_CHOICE = 'multiple_choice', 'Multiple Choice'
    TRUE_FALSE = 'true_false', 'True/False'
    SHORT_ANSWER = 'short_answer', 'Short Answer'
    ESSAY = 'essay', 'Essay'


AUTO_GRADED_TYPES = (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE)


@dataclass
class QuizOption:
    """One selectable option of a multiple choice question."""
    id: str
    text: str = ''
    is_correct: bool = False

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'QuizOption':
        return cls(
            id=str(data['id']),
            text=data.get('text', ''),
            is_correct=bool(data.get('isCorrect', False)),
        )

    def to_api(self) -> Dict[str, Any]:
        return {'id': self.id, 'text': self.text, 'isCorrect': self.is_correct}


@dataclass
class QuizQuestion:
    """A question of a quiz, in quiz order."""
    id: str
    quiz_id: str
    text: str
    question_type: str
    points: int = 0
    options: List[QuizOption] = field(default_factory=list)
    correct_answer: Optional[str] = None
    order: int = 0

    @property
    def is_auto_graded(self) -> bool:
        return self.question_type in AUTO_GRADED_TYPES

    @property
    def correct_option(self) -> Optional[QuizOption]:
        return next((option for option in self.options if option.is_correct), None)

    @classmethod
    def from_api(cls, data: Dict[str, Any], quiz_id: str = None) -> 'QuizQuestion':
        correct_answer = data.get('correctAnswer')
        return cls(
            id=str(data['id']),
            quiz_id=str(data.get('quizId') or quiz_id or ''),
            text=data.get('text') or data.get('questionText', ''),
            question_type=data.get('questionType', QuestionType.MULTIPLE_CHOICE),
            points=int(data.get('points') or 0),
            options=[QuizOption.from_api(option) for option in data.get('options') or []],
            correct_answer=str(correct_answer).lower() if isinstance(correct_answer, bool) else correct_answer,
            order=int(data.get('order') or 0),
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'quizId': self.quiz_id,
            'text': self.text,
            'questionType': self.question_type,
            'points': self.points,
            'options': [option.to_api() for option in self.options],
            'correctAnswer': self.correct_answer,
            'order': self.order,
        }


@dataclass
class Quiz:
    """
    Quiz definition.

    time_limit is in minutes; None means the quiz is untimed.
    attempts is the maximum number of finished attempts per student.
    """
    id: str
    title: str
    questions: List[QuizQuestion] = field(default_factory=list)
    time_limit: Optional[int] = None
    attempts: int = 1
    grading_method: str = GradingMethod.HIGHEST
    status: str = QuizStatus.DRAFT
    description: str = ''
    course_id: Optional[str] = None

    @property
    def is_published(self) -> bool:
        return self.status == QuizStatus.PUBLISHED

    @property
    def is_timed(self) -> bool:
        return bool(self.time_limit)

    @property
    def max_score(self) -> int:
        """Sum of question points; fixed onto an attempt when it starts."""
        return sum(question.points for question in self.questions)

    def get_question(self, question_id: str) -> Optional[QuizQuestion]:
        return next((q for q in self.questions if q.id == question_id), None)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Quiz':
        quiz_id = str(data['id'])
        questions = [QuizQuestion.from_api(q, quiz_id=quiz_id) for q in data.get('questions') or []]
        questions.sort(key=lambda q: q.order)
        time_limit = data.get('timeLimit')
        return cls(
            id=quiz_id,
            title=data.get('title', ''),
            questions=questions,
            time_limit=int(time_limit) if time_limit else None,
            attempts=int(data.get('attempts') or 1),
            grading_method=data.get('gradingMethod') or GradingMethod.HIGHEST,
            status=data.get('status') or QuizStatus.DRAFT,
            description=data.get('description', ''),
            course_id=data.get('courseId'),
        )
