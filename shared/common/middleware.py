# shared/common/middleware.py
"""
Request Tracing Middleware

Every request gets an ID (taken from X-Request-ID or generated) that is
echoed on the response and stamped onto each log record written while the
request is handled.
"""

import uuid
import time
import logging
from contextvars import ContextVar
from typing import Callable, Optional

from django.http import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = 'X-Request-ID'
SKIP_LOGGING_PATHS = ('/health/',)

_request_id: ContextVar[Optional[str]] = ContextVar('request_id', default=None)


def get_request_id() -> Optional[str]:
    return _request_id.get()


class RequestIDFilter(logging.Filter):
    """Logging filter adding request_id to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, 'request_id'):
            record.request_id = get_request_id()
        return True


class RequestIDMiddleware:
    """
    Middleware that assigns the request ID.
    The ID is used for request tracing across services.
    """

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.request_id = request_id
        token = _request_id.set(request_id)

        try:
            response = self.get_response(request)
        finally:
            _request_id.reset(token)

        response[REQUEST_ID_HEADER] = request_id
        return response


class LoggingMiddleware:
    """
    Middleware that logs one line per API call with the caller's identity
    as forwarded by the gateway.
    """

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        if request.path in SKIP_LOGGING_PATHS:
            return self.get_response(request)

        start_time = time.monotonic()
        response = self.get_response(request)
        duration_ms = round((time.monotonic() - start_time) * 1000, 2)

        log_method = logger.warning if response.status_code >= 400 else logger.info
        log_method(
            f"{request.method} {request.path} - {response.status_code}",
            extra={
                'method': request.method,
                'path': request.path,
                'status_code': response.status_code,
                'duration_ms': duration_ms,
                'user_id': request.headers.get('X-User-ID'),
                'user_role': request.headers.get('X-User-Role'),
            }
        )

        response['X-Response-Time'] = f"{duration_ms:.2f}ms"
        return response
