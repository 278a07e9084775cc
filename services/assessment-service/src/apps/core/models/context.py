# services/assessment-service/src/apps/core/models/context.py
"""
Caller Context

Identity of whoever is driving an engine operation, passed explicitly
into every service call.
"""

from dataclasses import dataclass
from typing import Optional, Iterable

from .staff import StaffRole


@dataclass(frozen=True)
class CallerContext:
    """Container for caller identity data."""

    user_id: str
    user_name: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == StaffRole.ADMIN

    @property
    def is_system(self) -> bool:
        return self.role == StaffRole.SYSTEM

    @property
    def is_staff(self) -> bool:
        return self.role in (StaffRole.TRAINER, StaffRole.EXAMINER, StaffRole.ADMIN)

    def has_any_role(self, roles: Iterable[str]) -> bool:
        return self.role in roles

    @classmethod
    def system(cls) -> 'CallerContext':
        """Context for background jobs such as the expiry sweep."""
        return cls(user_id='system', user_name='system', role=StaffRole.SYSTEM)

    @classmethod
    def from_user(cls, user) -> Optional['CallerContext']:
        """Build a context from an authenticated PortalUser."""
        if user is None or not getattr(user, 'is_authenticated', False):
            return None
        return cls(user_id=str(user.id), user_name=user.name or str(user.id), role=user.role)
