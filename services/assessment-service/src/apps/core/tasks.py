# services/assessment-service/src/apps/core/tasks.py
"""
Assessment Service Celery Tasks

Background delivery of staff notifications and the server-side sweep that
submits timed attempts whose clock has run out.
"""

import logging

import httpx
from celery import shared_task

from shared.common.clients import CircuitBreakerError

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def send_staff_notification(self, staff_id: str, message: str, title: str = 'Test Submission'):
    """
    Deliver a message to a staff member through the notification service.

    Args:
        staff_id: Recipient trainer or examiner
        message: Message body
        title: Notification title
    """
    from .clients import NotificationServiceClient

    try:
        NotificationServiceClient().send_message(staff_id, message, title=title)
    except (httpx.HTTPError, CircuitBreakerError) as e:
        logger.error(
            f"Failed to notify staff {staff_id}: {e}",
            extra={'staff_id': staff_id, 'retries': self.request.retries}
        )
        raise self.retry(exc=e)

    logger.info(f"Notification delivered to staff {staff_id}")
    return {'staff_id': staff_id, 'delivered': True}


@shared_task(bind=True, max_retries=3)
def auto_submit_expired_attempts(self):
    """
    Submit every in-progress timed attempt whose deadline has passed.

    Runs every minute from celery beat so attempts whose browser went away
    still complete.
    """
    from .clients import get_portal_client
    from .exceptions import CollaboratorError
    from .services import AttemptService

    try:
        submitted = AttemptService(get_portal_client()).expire_overdue()
    except CollaboratorError as e:
        logger.error(f"Error sweeping expired attempts: {e}")
        raise self.retry(countdown=60, exc=e)

    logger.info(f"Expiry sweep submitted {len(submitted)} attempts")
    return {'submitted_count': len(submitted), 'attempt_ids': [a.id for a in submitted]}
