# services/assessment-service/src/apps/core/models/request.py
"""
Assignment Request Models

Exam and training requests waiting for, or owned by, a staff member.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, Optional

from django.db import models

from .base import parse_timestamp


class RequestStatus(models.TextChoices):
    """Request status choices."""
    PENDING = 'pending', 'Pending'
    ASSIGNED = 'assigned', 'Assigned'
    IN_PROGRESS = 'in-progress', 'In Progress'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


class Pool(models.TextChoices):
    """Staff pools that requests are distributed across."""
    EXAMINER = 'examiner', 'Examiner'
    TRAINER = 'trainer', 'Trainer'


# Allowed status moves once a request has an owner.
STATUS_TRANSITIONS = {
    RequestStatus.PENDING: (RequestStatus.CANCELLED,),
    RequestStatus.ASSIGNED: (RequestStatus.IN_PROGRESS, RequestStatus.COMPLETED, RequestStatus.CANCELLED),
    RequestStatus.IN_PROGRESS: (RequestStatus.COMPLETED, RequestStatus.CANCELLED),
    RequestStatus.COMPLETED: (),
    RequestStatus.CANCELLED: (),
}

# Statuses in which the owner's capacity is held.
HOLDING_STATUSES = (RequestStatus.ASSIGNED, RequestStatus.IN_PROGRESS)


def owner_payload(pool: str, staff_id: Optional[str], staff_name: Optional[str]) -> Dict[str, Any]:
    """Wire fields naming a request's owner; the key prefix depends on the pool."""
    staff_key = 'Examiner' if pool == Pool.EXAMINER else 'Trainer'
    return {
        f'assigned{staff_key}Id': staff_id,
        f'assigned{staff_key}Name': staff_name,
    }


@dataclass
class AssignmentRequest:
    """
    An exam request (examiner pool) or training request (trainer pool).

    Created by the student-facing request form; the scheduler moves it from
    pending to assigned and staff advance it from there.
    """
    id: str
    pool: str
    student_id: str
    student_name: str = ''
    requested_date: Optional[str] = None
    requested_time: Optional[str] = None
    status: str = RequestStatus.PENDING
    assigned_staff_id: Optional[str] = None
    assigned_staff_name: Optional[str] = None
    topic_id: Optional[str] = None
    topic_name: Optional[str] = None
    comments: str = ''
    created_at: Optional[datetime] = None

    def can_transition_to(self, status: str) -> bool:
        return status in STATUS_TRANSITIONS.get(self.status, ())

    @classmethod
    def from_api(cls, data: Dict[str, Any], pool: str) -> 'AssignmentRequest':
        staff_key = 'Examiner' if pool == Pool.EXAMINER else 'Trainer'
        return cls(
            id=str(data['id']),
            pool=pool,
            student_id=str(data.get('studentId') or data.get('pilotId') or ''),
            student_name=data.get('studentName') or data.get('pilotName', ''),
            requested_date=data.get('requestedDate'),
            requested_time=data.get('requestedTime'),
            status=data.get('status') or RequestStatus.PENDING,
            assigned_staff_id=data.get(f'assigned{staff_key}Id'),
            assigned_staff_name=data.get(f'assigned{staff_key}Name'),
            topic_id=data.get('topicId'),
            topic_name=data.get('topicName'),
            comments=data.get('comments') or '',
            created_at=parse_timestamp(data.get('createdAt')),
        )
