# services/assessment-service/src/apps/core/exceptions.py
"""
Assessment Service Exceptions

Custom exceptions for token, attempt and assignment operations. They are
DRF APIExceptions so views can let them propagate to the shared handler.
"""

from rest_framework import status

from shared.common.exceptions import BaseAPIException


class AssessmentError(BaseAPIException):
    """Base exception for assessment service errors."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The assessment operation failed.'
    default_code = 'assessment_error'
    error_code = 'ASSESSMENT_ERROR'


class ValidationError(AssessmentError):
    """Bad or missing input, e.g. issuing a token for an unpublished quiz."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'validation_error'
    error_code = 'VALIDATION_ERROR'


class ForbiddenError(AssessmentError):
    """Caller may not act on this resource."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'forbidden'
    error_code = 'FORBIDDEN'


class NotFoundError(AssessmentError):
    """Unknown id or token string."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'The requested resource was not found.'
    default_code = 'not_found'
    error_code = 'NOT_FOUND'

    def __init__(self, resource: str = None, resource_id: str = None, detail: str = None):
        if detail is None and resource:
            detail = f"{resource} not found" + (f": {resource_id}" if resource_id else '')
        extra = {'resource': resource, 'id': resource_id} if resource else None
        super().__init__(detail=detail, extra_data=extra)


class ExpiredError(AssessmentError):
    """Token is past its expiry time."""
    status_code = status.HTTP_410_GONE
    default_detail = 'Token has expired.'
    default_code = 'expired'
    error_code = 'TOKEN_EXPIRED'


class AlreadyUsedError(AssessmentError):
    """Token was already used or cancelled."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Token has already been used.'
    default_code = 'already_used'
    error_code = 'TOKEN_ALREADY_USED'


class AttemptLimitExceededError(AssessmentError):
    """Student has no attempts left for the quiz."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Maximum number of attempts reached.'
    default_code = 'attempt_limit_exceeded'
    error_code = 'ATTEMPT_LIMIT_EXCEEDED'


class InvalidStateError(AssessmentError):
    """Illegal state transition."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The operation is not allowed in the current state.'
    default_code = 'invalid_state'
    error_code = 'INVALID_STATE'

    def __init__(self, detail: str = None, current_state: str = None, target_state: str = None):
        extra = {}
        if current_state is not None:
            extra['current_state'] = str(current_state)
        if target_state is not None:
            extra['target_state'] = str(target_state)
        if detail is None and current_state is not None and target_state is not None:
            detail = f"Cannot transition from {current_state} to {target_state}"
        super().__init__(detail=detail, extra_data=extra)


class NoPendingRequestsError(AssessmentError):
    """Scheduler was invoked with an empty queue."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'No pending requests to assign.'
    default_code = 'no_pending_requests'
    error_code = 'NO_PENDING_REQUESTS'


class NoEligibleStaffError(AssessmentError):
    """No active staff member has capacity left."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'No active staff available for assignment. Check staff status and capacity.'
    default_code = 'no_eligible_staff'
    error_code = 'NO_ELIGIBLE_STAFF'


class CollaboratorError(AssessmentError):
    """The portal API failed or answered success:false."""
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'The portal API request failed.'
    default_code = 'collaborator_error'
    error_code = 'COLLABORATOR_ERROR'
