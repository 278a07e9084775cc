# services/assessment-service/src/apps/core/models/staff.py
"""
Staff Models

Trainers and examiners with their assignment capacity.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional

from django.conf import settings
from django.db import models


class StaffRole(models.TextChoices):
    """Caller roles known to the portal."""
    PILOT = 'pilot', 'Pilot'
    TRAINER = 'trainer', 'Trainer'
    EXAMINER = 'examiner', 'Examiner'
    ADMIN = 'admin', 'Administrator'
    SYSTEM = 'system', 'System'


def default_max_assignments() -> int:
    return settings.ASSESSMENT.get('DEFAULT_MAX_ASSIGNMENTS', 5)


@dataclass
class StaffMember:
    """
    Trainer or examiner.

    Eligible for new work only while active and below max_assignments.
    """
    id: str
    name: str
    jal_id: str = ''
    active: bool = False
    current_assignments: int = 0
    max_assignments: int = 5
    role: Optional[str] = None

    @property
    def capacity(self) -> int:
        return max(0, self.max_assignments - self.current_assignments)

    @property
    def is_eligible(self) -> bool:
        return self.active and self.current_assignments < self.max_assignments

    @classmethod
    def from_api(cls, data: Dict[str, Any], role: str = None) -> 'StaffMember':
        max_assignments = data.get('maxAssignments')
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            jal_id=str(data.get('jalId') or ''),
            active=data.get('active') is True,
            current_assignments=int(data.get('currentAssignments') or 0),
            max_assignments=int(max_assignments) if max_assignments is not None else default_max_assignments(),
            role=data.get('role') or role,
        )
