# services/assessment-service/src/apps/core/services/notification_service.py
"""
Notification Service

Fire-and-forget messages to staff. Delivery runs in a Celery task so a
slow or failing notification backend never holds up the caller.
"""

import logging

from ..tasks import send_staff_notification

logger = logging.getLogger(__name__)


class NotificationService:
    """Service for notifying staff members."""

    @staticmethod
    def notify_staff(staff_id: str, message: str, title: str = 'Test Submission') -> bool:
        """
        Queue a message for a staff member.

        Returns:
            True if the message was queued
        """
        if not staff_id:
            logger.warning("Skipping notification without a recipient")
            return False

        try:
            send_staff_notification.delay(staff_id, message, title)
        except Exception as e:
            logger.warning(f"Could not queue notification for staff {staff_id}: {e}", extra={'staff_id': staff_id})
            return False

        logger.info(f"Queued notification for staff {staff_id}")
        return True

    @classmethod
    def notify_submission(cls, trainer_id: str, student_name: str, quiz_title: str) -> bool:
        message = (
            f'Student {student_name} has submitted their test for "{quiz_title}". '
            'Please review the submission.'
        )
        return cls.notify_staff(trainer_id, message)
