# services/assessment-service/src/apps/core/services/assignment_service.py
"""
Assignment Service

Distributes pending exam and training requests across capacity-limited
staff, and handles the single-request moves (pickup, reassign, status).
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from django.conf import settings

from ..clients import PortalClient
from ..events import publish_requests_assigned
from ..exceptions import (
    AssessmentError,
    ValidationError,
    ForbiddenError,
    NotFoundError,
    InvalidStateError,
    NoPendingRequestsError,
    NoEligibleStaffError,
)
from ..models import CallerContext, AssignmentRequest, RequestStatus, StaffMember, Pool
from ..models.request import HOLDING_STATUSES, owner_payload
from .access import require_role, SCHEDULER_ROLES, ADMIN_ROLES

logger = logging.getLogger(__name__)


@dataclass
class AssignmentOutcome:
    """What happened to one request of a batch."""
    request_id: str
    staff_id: Optional[str] = None
    staff_name: Optional[str] = None
    error: Optional[str] = None


@dataclass
class AssignmentResult:
    """
    Summary of an auto-assignment batch.

    Persistence is per request, so a batch can partially succeed; failed
    requests stay pending and can be picked up by the next run.
    """
    pool: str
    assigned: List[AssignmentOutcome] = field(default_factory=list)
    failed: List[AssignmentOutcome] = field(default_factory=list)
    unassigned: List[str] = field(default_factory=list)

    @property
    def assigned_count(self) -> int:
        return len(self.assigned)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    def counts_by_staff(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for outcome in self.assigned:
            counts[outcome.staff_id] = counts.get(outcome.staff_id, 0) + 1
        return counts


class AssignmentService:
    """Service for one staff pool (examiner or trainer)."""

    def __init__(self, client: PortalClient, pool: str):
        if pool not in Pool.values:
            raise ValidationError(detail=f"Unknown pool: {pool}")
        self.client = client
        self.pool = pool

    # =========================================================================
    # ROUND-ROBIN
    # =========================================================================

    @staticmethod
    def _next_with_capacity(eligible: List[StaffMember], cursor: int, load: Dict[str, int]) -> Optional[int]:
        """Index of the first staff member at or after cursor (cyclic) still below capacity."""
        size = len(eligible)
        for offset in range(size):
            position = (cursor + offset) % size
            staff = eligible[position]
            if load[staff.id] < staff.max_assignments:
                return position
        return None

    def auto_assign(self, context: CallerContext, recheck_capacity: bool = None) -> AssignmentResult:
        """
        Assign every pending request round-robin over the eligible staff.

        Request i goes to eligible[i mod n], both lists in the order the
        portal returns them. When recheck_capacity is on, a staff member who
        fills up during the batch is skipped and requests left once everyone
        is full stay pending.

        Raises:
            NoPendingRequestsError: nothing to assign
            NoEligibleStaffError: no active staff with capacity
        """
        require_role(context, SCHEDULER_ROLES, 'run auto-assignment')
        if recheck_capacity is None:
            recheck_capacity = settings.ASSESSMENT.get('RECHECK_CAPACITY_IN_BATCH', True)

        pending = self.client.list_requests(self.pool, status=RequestStatus.PENDING)
        if not pending:
            raise NoPendingRequestsError()

        eligible = [staff for staff in self.client.list_staff(self.pool) if staff.is_eligible]
        if not eligible:
            raise NoEligibleStaffError()

        load = {staff.id: staff.current_assignments for staff in eligible}
        result = AssignmentResult(pool=self.pool)
        cursor = 0

        for request in pending:
            if recheck_capacity:
                position = self._next_with_capacity(eligible, cursor, load)
                if position is None:
                    result.unassigned.append(request.id)
                    continue
            else:
                position = cursor % len(eligible)
            staff = eligible[position]
            cursor = position + 1

            try:
                self.client.update_request(self.pool, request.id, {
                    'status': RequestStatus.ASSIGNED,
                    **owner_payload(self.pool, staff.id, staff.name),
                })
            except AssessmentError as e:
                logger.error(
                    f"Failed to assign request {request.id} to {staff.id}: {e.detail}",
                    extra={'pool': self.pool}
                )
                result.failed.append(AssignmentOutcome(request.id, staff.id, staff.name, error=str(e.detail)))
                continue

            load[staff.id] += 1
            try:
                self.client.update_staff(self.pool, staff.id, {'currentAssignments': load[staff.id]})
            except AssessmentError as e:
                logger.error(f"Assignment counter of {staff.id} not updated: {e.detail}", extra={'pool': self.pool})

            result.assigned.append(AssignmentOutcome(request.id, staff.id, staff.name))

        logger.info(
            f"Auto-assigned {result.assigned_count} {self.pool} requests",
            extra={
                'pool': self.pool,
                'assigned': result.assigned_count,
                'failed': result.failed_count,
                'unassigned': len(result.unassigned),
                'staff_count': len(eligible),
            }
        )
        if result.assigned:
            publish_requests_assigned(self.pool, {o.request_id: o.staff_id for o in result.assigned})

        return result

    # =========================================================================
    # SINGLE REQUEST MOVES
    # =========================================================================

    def _adjust_load(self, staff_id: Optional[str], delta: int) -> None:
        if not staff_id:
            return
        try:
            staff = self.client.get_staff(self.pool, staff_id)
        except NotFoundError:
            logger.warning(f"Staff member {staff_id} not found, counter unchanged", extra={'pool': self.pool})
            return
        self.client.update_staff(self.pool, staff.id, {
            'currentAssignments': max(0, staff.current_assignments + delta),
        })

    def pickup(self, context: CallerContext, request_id: str) -> AssignmentRequest:
        """The calling staff member claims a request for themselves."""
        if context.role != self.pool:
            raise ForbiddenError(detail=f"Only {self.pool}s can pick up these requests")

        request = self.client.get_request(self.pool, request_id)
        if request.status not in (RequestStatus.PENDING, RequestStatus.ASSIGNED):
            raise InvalidStateError(current_state=request.status, target_state=RequestStatus.ASSIGNED)
        if request.assigned_staff_id == context.user_id:
            return request

        try:
            staff = self.client.get_staff(self.pool, context.user_id)
        except NotFoundError:
            raise ForbiddenError(detail=f"You are not registered in the {self.pool} pool")
        if not staff.is_eligible:
            raise NoEligibleStaffError(detail='You are inactive or at maximum capacity')

        previous_owner = request.assigned_staff_id
        self.client.update_request(self.pool, request.id, {
            'status': RequestStatus.ASSIGNED,
            **owner_payload(self.pool, staff.id, staff.name),
        })
        self._adjust_load(previous_owner, -1)
        self.client.update_staff(self.pool, staff.id, {'currentAssignments': staff.current_assignments + 1})

        logger.info(
            f"Request {request.id} picked up by {staff.id}",
            extra={'pool': self.pool, 'previous_owner': previous_owner}
        )
        request.status = RequestStatus.ASSIGNED
        request.assigned_staff_id = staff.id
        request.assigned_staff_name = staff.name
        return request

    def reassign(self, context: CallerContext, request_id: str, staff_id: str) -> AssignmentRequest:
        """Move an owned request to another staff member."""
        require_role(context, ADMIN_ROLES, 'reassign requests')

        request = self.client.get_request(self.pool, request_id)
        if request.status not in HOLDING_STATUSES:
            raise InvalidStateError(detail="Only assigned requests can be reassigned", current_state=request.status)
        if request.assigned_staff_id == staff_id:
            return request

        staff = self.client.get_staff(self.pool, staff_id)
        if not staff.active:
            raise ValidationError(detail=f"Staff member {staff_id} is inactive")

        previous_owner = request.assigned_staff_id
        self.client.update_request(self.pool, request.id, owner_payload(self.pool, staff.id, staff.name))
        self._adjust_load(previous_owner, -1)
        self.client.update_staff(self.pool, staff.id, {'currentAssignments': staff.current_assignments + 1})

        logger.info(
            f"Request {request.id} reassigned from {previous_owner} to {staff.id}",
            extra={'pool': self.pool, 'admin_id': context.user_id}
        )
        request.assigned_staff_id = staff.id
        request.assigned_staff_name = staff.name
        return request

    def advance_status(self, context: CallerContext, request_id: str, status: str) -> AssignmentRequest:
        """
        Move a request along assigned -> in-progress -> completed, or cancel it.

        Completing or cancelling an owned request frees one unit of the
        owner's capacity.
        """
        request = self.client.get_request(self.pool, request_id)
        if not (context.is_admin or (request.assigned_staff_id and request.assigned_staff_id == context.user_id)):
            raise ForbiddenError(detail='Only the assigned staff member can update this request')
        if not request.can_transition_to(status):
            raise InvalidStateError(current_state=request.status, target_state=status)

        self.client.update_request(self.pool, request.id, {'status': status})
        if request.status in HOLDING_STATUSES and status not in HOLDING_STATUSES:
            self._adjust_load(request.assigned_staff_id, -1)

        logger.info(
            f"Request {request.id} moved from {request.status} to {status}",
            extra={'pool': self.pool, 'user_id': context.user_id}
        )
        request.status = status
        return request

