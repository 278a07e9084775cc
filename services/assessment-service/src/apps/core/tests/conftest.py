# services/assessment-service/src/apps/core/tests/conftest.py
"""
Pytest Configuration and Fixtures

Shared fixtures for assessment service tests.
"""

from datetime import datetime, timedelta, timezone as dt_timezone
from unittest.mock import patch

import pytest
from django.core.cache import cache

from apps.core.models import CallerContext, Pool

from .fakes import InMemoryPortalClient


class Clock:
    """Controllable stand-in for django.utils.timezone.now."""

    def __init__(self, now: datetime):
        self.now = now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def clear_cache():
    """Submit locks live in the cache."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def queued_notifications():
    """Capture notification tasks instead of delivering them."""
    with patch('apps.core.services.notification_service.send_staff_notification') as task:
        yield task.delay


@pytest.fixture
def clock():
    """Freeze timezone.now() at a known instant; advance() moves it."""
    frozen = Clock(datetime(2024, 3, 1, 9, 0, tzinfo=dt_timezone.utc))
    with patch('django.utils.timezone.now', side_effect=lambda: frozen.now):
        yield frozen


@pytest.fixture
def portal():
    return InMemoryPortalClient()


@pytest.fixture
def quiz_data():
    """Published quiz: multiple choice worth 10, true/false worth 5."""
    return {
        'id': 'quiz-1',
        'title': 'A320 Systems',
        'status': 'published',
        'timeLimit': 10,
        'attempts': 2,
        'gradingMethod': 'highest',
        'questions': [
            {
                'id': 'q-tf',
                'questionText': 'The APU can be started in flight.',
                'questionType': 'true_false',
                'points': 5,
                'correctAnswer': True,
                'order': 2,
            },
            {
                'id': 'q-mc',
                'text': 'Which hydraulic system powers the normal brakes?',
                'questionType': 'multiple_choice',
                'points': 10,
                'order': 1,
                'options': [
                    {'id': 'opt-blue', 'text': 'Blue', 'isCorrect': False},
                    {'id': 'opt-green', 'text': 'Green', 'isCorrect': True},
                    {'id': 'opt-yellow', 'text': 'Yellow', 'isCorrect': False},
                ],
            },
        ],
    }


@pytest.fixture
def essay_quiz_data():
    """Published untimed quiz mixing an auto-graded and an essay question."""
    return {
        'id': 'quiz-essay',
        'title': 'Crew Resource Management',
        'status': 'published',
        'attempts': 1,
        'gradingMethod': 'last',
        'questions': [
            {
                'id': 'q-tf',
                'text': 'Sterile cockpit applies below FL100.',
                'questionType': 'true_false',
                'points': 4,
                'correctAnswer': 'true',
                'order': 1,
            },
            {
                'id': 'q-essay',
                'text': 'Describe a threat and error management briefing.',
                'questionType': 'essay',
                'points': 6,
                'order': 2,
            },
        ],
    }


@pytest.fixture
def published_quiz(portal, quiz_data):
    portal.add_quiz(quiz_data)
    return portal.get_quiz(quiz_data['id'])


@pytest.fixture
def essay_quiz(portal, essay_quiz_data):
    portal.add_quiz(essay_quiz_data)
    return portal.get_quiz(essay_quiz_data['id'])


@pytest.fixture
def trainer_context():
    return CallerContext(user_id='trainer-1', user_name='Jane Trainer', role='trainer')


@pytest.fixture
def examiner_context():
    return CallerContext(user_id='examiner-1', user_name='Eli Examiner', role='examiner')


@pytest.fixture
def admin_context():
    return CallerContext(user_id='admin-1', user_name='Ada Admin', role='admin')


@pytest.fixture
def student_context():
    return CallerContext(user_id='pilot-7', user_name='Sam Pilot', role='pilot')


@pytest.fixture
def other_student_context():
    return CallerContext(user_id='pilot-8', user_name='Kim Pilot', role='pilot')


@pytest.fixture
def examiner_pool(portal):
    """Fills the examiner pool: portal.add_request / add_staff shortcuts."""
    def fill(requests=(), staff=()):
        for request in requests:
            portal.add_request(Pool.EXAMINER, request)
        for member in staff:
            portal.add_staff(Pool.EXAMINER, member)
    return fill
