# services/assessment-service/src/apps/core/services/access.py
"""
Role checks shared by the engine services.
"""

from typing import Iterable

from ..exceptions import ForbiddenError
from ..models import CallerContext, StaffRole

STAFF_ROLES = (StaffRole.TRAINER, StaffRole.EXAMINER, StaffRole.ADMIN)
SCHEDULER_ROLES = (StaffRole.TRAINER, StaffRole.ADMIN)
ADMIN_ROLES = (StaffRole.ADMIN,)


def require_role(context: CallerContext, roles: Iterable[str], action: str) -> None:
    """Raise ForbiddenError unless the caller holds one of the roles."""
    if context is None or not context.has_any_role(roles):
        role = context.role if context else 'anonymous'
        raise ForbiddenError(detail=f"Role '{role}' may not {action}")
