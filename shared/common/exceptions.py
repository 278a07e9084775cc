# shared/common/exceptions.py
"""
API Exception Base Class and DRF Exception Handler

Services raise subclasses of BaseAPIException; the handler renders every
error in the portal envelope:

    {"success": false, "error": {"code": ..., "message": ..., "request_id": ...}}
"""

import logging
from typing import Any, Dict, Optional

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


# =============================================================================
# BASE EXCEPTION
# =============================================================================

class BaseAPIException(APIException):
    """Base exception class for all custom API exceptions"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'An unexpected error occurred.'
    default_code = 'error'
    error_code = 'INTERNAL_ERROR'

    def __init__(
        self,
        detail: Optional[str] = None,
        code: Optional[str] = None,
        error_code: Optional[str] = None,
        extra_data: Optional[Dict] = None
    ):
        super().__init__(detail=detail, code=code)
        self.error_code = error_code or self.error_code
        self.extra_data = extra_data or {}


# =============================================================================
# EXCEPTION HANDLER
# =============================================================================

STATUS_ERROR_CODES = {
    400: 'BAD_REQUEST',
    401: 'UNAUTHORIZED',
    403: 'FORBIDDEN',
    404: 'NOT_FOUND',
    405: 'METHOD_NOT_ALLOWED',
}


def custom_exception_handler(exc, context) -> Response:
    """
    DRF exception handler producing the portal error envelope.

    Unexpected exceptions are logged with their traceback and answered
    with a generic 500 so internals never leak to the caller.
    """
    request = context.get('request')
    request_id = getattr(request, 'request_id', None) if request else None

    response = exception_handler(exc, context)
    if response is None:
        logger.exception(
            f"Unhandled exception: {exc}",
            extra={'request_id': request_id, 'exception_type': type(exc).__name__}
        )
        return error_response(
            'INTERNAL_ERROR',
            'An unexpected error occurred. Please try again later.',
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            request_id,
        )

    if isinstance(exc, BaseAPIException) and response.status_code >= 500:
        logger.error(f"{exc.error_code}: {exc.detail}", extra={'request_id': request_id})

    details = getattr(exc, 'extra_data', None) or None
    if isinstance(exc, DRFValidationError):
        details = response.data

    response.data = envelope(error_code_for(exc, response.status_code), get_error_message(exc), request_id, details)
    return response


def error_code_for(exc, status_code: int) -> str:
    if isinstance(exc, BaseAPIException):
        return exc.error_code
    if isinstance(exc, DRFValidationError):
        return 'VALIDATION_ERROR'
    return STATUS_ERROR_CODES.get(status_code, 'ERROR')


def get_error_message(exc) -> str:
    """Extract a single human readable message from an exception."""
    if isinstance(exc, Http404):
        return str(exc) or 'Resource not found'
    detail = getattr(exc, 'detail', None)
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list) and detail:
        return str(detail[0])
    if isinstance(detail, dict):
        if 'non_field_errors' in detail:
            return str(detail['non_field_errors'][0])
        return 'Invalid input.'
    return str(exc)


def envelope(code: str, message: str, request_id: Optional[str] = None, details: Any = None) -> Dict[str, Any]:
    error = {'code': code, 'message': message, 'request_id': request_id}
    if details:
        error['details'] = details
    return {'success': False, 'error': error}


def error_response(code: str, message: str, status_code: int, request_id: Optional[str] = None) -> Response:
    return Response(envelope(code, message, request_id), status=status_code)
