# services/assessment-service/src/apps/core/clients.py
"""
Portal API and Notification Clients

The portal API owns every entity the engine works with. All calls are
synchronous and bounded by the client timeout.
"""

import logging
from functools import lru_cache
from typing import Dict, Any, List, Optional

import httpx
from django.conf import settings

from shared.common.clients import BaseServiceClient, CircuitBreakerError

from .models import (
    Quiz,
    QuizAttempt,
    TestToken,
    TestSubmission,
    AssignmentRequest,
    StaffMember,
    Pool,
)
from .exceptions import CollaboratorError, NotFoundError

logger = logging.getLogger(__name__)


POOL_ENDPOINTS = {
    Pool.EXAMINER: {
        'requests': '/api/exam-requests',
        'staff': '/api/examiners',
        'staff_list_key': 'examiners',
        'staff_item_key': 'examiner',
    },
    Pool.TRAINER: {
        'requests': '/api/training-requests',
        'staff': '/api/trainers',
        'staff_list_key': 'trainers',
        'staff_item_key': 'trainer',
    },
}


class PortalClient(BaseServiceClient):
    """
    Client for the portal REST API.

    Responses carry a boolean `success` beside a named payload, or
    `success: false` with an `error` string.
    """

    def __init__(self, base_url: str = None, timeout: float = None, transport: httpx.BaseTransport = None):
        super().__init__(
            'portal-api',
            base_url=base_url,
            timeout=timeout or settings.ASSESSMENT.get('PORTAL_API_TIMEOUT', 10.0),
            transport=transport,
        )

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    def _call(self, method: str, path: str, key: str = None, params: Dict = None, data: Dict = None) -> Any:
        try:
            response = self._request(method, path, params=params, data=data)
        except CircuitBreakerError as e:
            raise CollaboratorError(detail=str(e))
        except httpx.HTTPError as e:
            raise CollaboratorError(detail=f"Portal API request failed: {method} {path}") from e

        return self._unwrap(response, method, path, key)

    def _unwrap(self, response: httpx.Response, method: str, path: str, key: str = None) -> Any:
        try:
            body = response.json()
        except ValueError:
            logger.error(f"Portal API returned non-JSON body for {method} {path}", extra={'status_code': response.status_code})
            raise CollaboratorError(detail='Portal API returned an invalid response')

        if not isinstance(body, dict):
            raise CollaboratorError(detail='Portal API returned an invalid response')

        error = body.get('error')
        if response.status_code == 404:
            raise NotFoundError(detail=error or f"Not found: {path}")

        if response.status_code >= 400 or not body.get('success'):
            logger.error(
                f"Portal API call failed: {method} {path}",
                extra={'status_code': response.status_code, 'error': error}
            )
            raise CollaboratorError(detail=error or 'Portal API request failed')

        return body.get(key) if key else body

    # =========================================================================
    # QUIZZES
    # =========================================================================

    def get_quiz(self, quiz_id: str) -> Quiz:
        data = self._call('GET', f'/api/quizzes/{quiz_id}', key='quiz')
        if not data:
            raise NotFoundError('Quiz', quiz_id)
        return Quiz.from_api(data)

    # =========================================================================
    # ATTEMPTS
    # =========================================================================

    def list_attempts(self, quiz_id: str = None, student_id: str = None, status: str = None) -> List[QuizAttempt]:
        params = {}
        if quiz_id:
            params['quizId'] = quiz_id
        if student_id:
            params['studentId'] = student_id
        if status:
            params['status'] = status

        data = self._call('GET', '/api/quiz-attempts', key='attempts', params=params) or []
        return [QuizAttempt.from_api(item) for item in data]

    def get_attempt(self, attempt_id: str) -> QuizAttempt:
        data = self._call('GET', f'/api/quiz-attempts/{attempt_id}', key='attempt')
        if not data:
            raise NotFoundError('Quiz attempt', attempt_id)
        return QuizAttempt.from_api(data)

    def create_attempt(self, payload: Dict[str, Any]) -> QuizAttempt:
        return QuizAttempt.from_api(self._call('POST', '/api/quiz-attempts', key='attempt', data=payload))

    def update_attempt(self, attempt_id: str, fields: Dict[str, Any]) -> None:
        self._call('PATCH', '/api/quiz-attempts', data={'attemptId': attempt_id, **fields})

    # =========================================================================
    # TOKENS
    # =========================================================================

    def get_token(self, token_id: str) -> TestToken:
        data = self._call('GET', f'/api/test-tokens/{token_id}', key='token')
        if not data:
            raise NotFoundError('Test token', token_id)
        return TestToken.from_api(data)

    def find_token(self, token_string: str) -> Optional[TestToken]:
        """Look a token up by its string; None when no token matches."""
        data = self._call('GET', '/api/test-tokens', key='testTokens', params={'token': token_string}) or []
        matches = [item for item in data if item.get('token') == token_string]
        return TestToken.from_api(matches[0]) if matches else None

    def create_token(self, payload: Dict[str, Any]) -> TestToken:
        return TestToken.from_api(self._call('POST', '/api/test-tokens', key='token', data=payload))

    def update_token(self, token_id: str, fields: Dict[str, Any]) -> None:
        self._call('PATCH', '/api/test-tokens', data={'tokenId': token_id, **fields})

    # =========================================================================
    # SUBMISSIONS
    # =========================================================================

    def create_submission(self, payload: Dict[str, Any]) -> TestSubmission:
        return TestSubmission.from_api(self._call('POST', '/api/test-submissions', key='submission', data=payload))

    def find_submission(self, attempt_id: str) -> Optional[TestSubmission]:
        data = self._call('GET', '/api/test-submissions', key='submissions', params={'attemptId': attempt_id}) or []
        matches = [item for item in data if str(item.get('attemptId')) == str(attempt_id)]
        return TestSubmission.from_api(matches[0]) if matches else None

    def update_submission(self, submission_id: str, fields: Dict[str, Any]) -> None:
        self._call('PATCH', '/api/test-submissions', data={'submissionId': submission_id, **fields})

    # =========================================================================
    # REQUESTS & STAFF
    # =========================================================================

    def list_requests(self, pool: str, status: str = None) -> List[AssignmentRequest]:
        """List a pool's requests in insertion order."""
        params = {'status': status} if status else None
        data = self._call('GET', POOL_ENDPOINTS[pool]['requests'], key='requests', params=params) or []
        requests = [AssignmentRequest.from_api(item, pool=pool) for item in data]
        if status:
            requests = [r for r in requests if r.status == status]
        return requests

    def get_request(self, pool: str, request_id: str) -> AssignmentRequest:
        data = self._call('GET', f"{POOL_ENDPOINTS[pool]['requests']}/{request_id}", key='request')
        if not data:
            raise NotFoundError('Request', request_id)
        return AssignmentRequest.from_api(data, pool=pool)

    def update_request(self, pool: str, request_id: str, fields: Dict[str, Any]) -> None:
        self._call('PATCH', POOL_ENDPOINTS[pool]['requests'], data={'requestId': request_id, **fields})

    def list_staff(self, pool: str) -> List[StaffMember]:
        endpoints = POOL_ENDPOINTS[pool]
        data = self._call('GET', endpoints['staff'], key=endpoints['staff_list_key']) or []
        return [StaffMember.from_api(item, role=pool) for item in data]

    def get_staff(self, pool: str, staff_id: str) -> StaffMember:
        endpoints = POOL_ENDPOINTS[pool]
        data = self._call('GET', f"{endpoints['staff']}/{staff_id}", key=endpoints['staff_item_key'])
        if not data:
            raise NotFoundError('Staff member', staff_id)
        return StaffMember.from_api(data, role=pool)

    def update_staff(self, pool: str, staff_id: str, fields: Dict[str, Any]) -> None:
        self._call('PATCH', POOL_ENDPOINTS[pool]['staff'], data={'staffId': staff_id, **fields})


class NotificationServiceClient(BaseServiceClient):
    """Client for Notification Service"""

    def __init__(self, transport: httpx.BaseTransport = None):
        super().__init__('notification-service', transport=transport)

    def send_message(
        self,
        user_id: str,
        message: str,
        title: str = 'Training System Notification',
        notification_type: str = 'info',
        channels: List[str] = None
    ) -> Dict:
        response = self.post('/api/v1/notifications/', {
            'user_id': user_id,
            'title': title,
            'message': message,
            'type': notification_type,
            'channels': channels or ['discord'],
        })
        response.raise_for_status()
        return response.json()


@lru_cache(maxsize=1)
def get_portal_client() -> PortalClient:
    """Shared portal client; one instance keeps one circuit breaker."""
    return PortalClient()
