# shared/common/authentication.py
"""
Gateway Header Authentication

The API gateway resolves the caller's portal API key to a user and role and
forwards the result as trusted headers. Services never see the API key.
"""

import logging
from typing import Optional, Dict, Any, Tuple

from django.conf import settings
from rest_framework import authentication, exceptions
from rest_framework.request import Request

logger = logging.getLogger(__name__)


USER_ID_HEADER = 'X-User-ID'
USER_NAME_HEADER = 'X-User-Name'
USER_ROLE_HEADER = 'X-User-Role'


class GatewayHeaderAuthentication(authentication.BaseAuthentication):
    """
    Authenticate requests from identity headers set by the gateway.

    Requests without an X-User-ID header are treated as anonymous so that
    permission classes decide the outcome.
    """

    def authenticate(self, request: Request) -> Optional[Tuple[Any, Dict]]:
        user_id = request.headers.get(USER_ID_HEADER)
        if not user_id:
            return None

        role = (request.headers.get(USER_ROLE_HEADER) or '').strip().lower()
        allowed_roles = getattr(settings, 'PORTAL_ROLES', None)
        if not role or (allowed_roles and role not in allowed_roles):
            logger.warning(f"Rejected identity headers with role '{role}'", extra={'user_id': user_id})
            raise exceptions.AuthenticationFailed('Unknown or missing role')

        name = request.headers.get(USER_NAME_HEADER) or user_id
        payload = {'sub': user_id, 'name': name, 'roles': [role]}
        return (PortalUser(payload), payload)

    def authenticate_header(self, request: Request) -> str:
        return 'Gateway'


class PortalUser:
    """
    User object created from gateway identity headers.
    Provides a consistent interface for accessing user data.
    """

    def __init__(self, payload: Dict):
        self.payload = payload
        self.id = payload.get('sub')
        self.user_id = payload.get('sub')
        self.name = payload.get('name')
        self.roles = payload.get('roles', [])
        self.is_active = True
        self.is_authenticated = True
        self.is_anonymous = False

    def __str__(self) -> str:
        return f"PortalUser({self.name})"

    @property
    def role(self) -> Optional[str]:
        return self.roles[0] if self.roles else None
