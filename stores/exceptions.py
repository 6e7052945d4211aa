"""
Error taxonomy for the reseller API and the handler that renders every
API failure as {"error": "<message>"}
"""

import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import set_rollback

logger = logging.getLogger(__name__)


class StoreError(exceptions.APIException):
    """Base class for errors the store endpoints raise on purpose"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal server error'
    default_code = 'error'


class AuthorizationError(StoreError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Unauthorized'
    default_code = 'unauthorized'


class ValidationError(StoreError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request'
    default_code = 'invalid'


class NotFoundError(StoreError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Store not found'
    default_code = 'not_found'


class UnexpectedError(StoreError):
    """Anything else; the cause is logged, only a generic message leaves the server"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal server error'
    default_code = 'unexpected'


def first_error_message(detail):
    """Flatten DRF error details (dicts/lists of ErrorDetail) to one message"""
    if isinstance(detail, dict):
        for field, value in detail.items():
            message = first_error_message(value)
            if field in ('non_field_errors', 'detail'):
                return message
            return f"{field}: {message}"
        return ''
    if isinstance(detail, (list, tuple)):
        return first_error_message(detail[0]) if detail else ''
    return str(detail)


def api_exception_handler(exc, context):
    """
    REST framework exception handler mapping every exception to the
    nearest bucket of the taxonomy above
    """
    auth_header = getattr(exc, 'auth_header', None)

    if isinstance(exc, Http404):
        exc = NotFoundError()
    elif isinstance(exc, PermissionDenied):
        exc = AuthorizationError()
    elif isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed,
                          exceptions.PermissionDenied)):
        exc = AuthorizationError()
    elif isinstance(exc, exceptions.ValidationError):
        exc = ValidationError(first_error_message(exc.detail))
    elif isinstance(exc, exceptions.ParseError):
        exc = ValidationError(str(exc.detail))
    elif not isinstance(exc, exceptions.APIException):
        view = context.get('view')
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'API'}: {exc}")
        exc = UnexpectedError()

    headers = {}
    if auth_header:
        headers['WWW-Authenticate'] = auth_header
    if getattr(exc, 'wait', None):
        headers['Retry-After'] = '%d' % exc.wait

    set_rollback()
    return Response({'error': first_error_message(exc.detail)}, status=exc.status_code, headers=headers)
