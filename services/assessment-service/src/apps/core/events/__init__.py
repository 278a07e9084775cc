# services/assessment-service/src/apps/core/events/__init__.py
"""
Assessment Service Events

Event publishing for the assessment service.
"""

from .publishers import (
    publish_token_issued,
    publish_attempt_started,
    publish_attempt_completed,
    publish_requests_assigned,
)

__all__ = [
    'publish_token_issued',
    'publish_attempt_started',
    'publish_attempt_completed',
    'publish_requests_assigned',
]
