"""
Custom exception handlers for DRF.

Every error leaving the API has the shape {'error': <message>} with optional
'errors'/'details' and the request_id of the failing request.
"""
import logging
from rest_framework.response import Response
from rest_framework import status
from rest_framework import exceptions as drf_exceptions
from django_ratelimit.exceptions import Ratelimited
from django.http import JsonResponse

logger = logging.getLogger(__name__)

RATE_LIMIT_RETRY_AFTER = 60


def _client_ip(request):
    return request.META.get('REMOTE_ADDR', 'unknown') if request else 'unknown'


def _rate_limited_payload(request):
    """Log the rate limit hit and build the 429 body."""
    from apps.core.logging import SecurityLogger

    email = None
    data = getattr(request, 'data', None)
    if isinstance(data, dict):
        email = data.get('email')

    SecurityLogger.log_rate_limit_exceeded(
        endpoint=request.path if request else 'unknown',
        ip_address=_client_ip(request),
        user_email=email,
        limit='5/m per IP'
    )

    return {
        'error': 'Rate limit exceeded. Please try again later.',
        'code': 'RATE_LIMIT_EXCEEDED',
        'retry_after': RATE_LIMIT_RETRY_AFTER,
    }


def ratelimit_view(request, exception):
    """
    Custom view for django-ratelimit to return 429 instead of 403.

    Called when a rate limit is exceeded with block=True.
    """
    response = JsonResponse(_rate_limited_payload(request), status=429)
    response['Retry-After'] = str(RATE_LIMIT_RETRY_AFTER)
    return response


def rate_limited_response(request):
    """429 response for views that check request.limited themselves."""
    response = Response(_rate_limited_payload(request), status=status.HTTP_429_TOO_MANY_REQUESTS)
    response['Retry-After'] = str(RATE_LIMIT_RETRY_AFTER)
    return response


def custom_exception_handler(exc, context):
    """
    Custom exception handler that logs errors and returns consistent format.
    """
    request = context.get('request')
    request_id = getattr(request, 'request_id', None) if request else None

    if isinstance(exc, Ratelimited):
        response = rate_limited_response(request)
        if request_id:
            response.data['request_id'] = request_id
        return response

    if isinstance(exc, InvoiceSystemException):
        body = {'error': exc.message}
        if exc.details:
            body['details'] = exc.details
        if request_id:
            body['request_id'] = request_id
        logger.info(
            f"Domain error: {exc.__class__.__name__}",
            extra={
                'request_id': request_id,
                'path': request.path if request else None,
                'status_code': exc.status_code,
            }
        )
        return Response(body, status=exc.status_code)

    # rest_framework.views resolves DEFAULT_AUTHENTICATION_CLASSES on import,
    # which imports this module back through apps.iam.tokens.
    from rest_framework.views import exception_handler

    response = exception_handler(exc, context)

    if response is None:
        logger.error(
            f"Unhandled API exception: {exc.__class__.__name__}",
            extra={
                'exception': str(exc),
                'request_id': request_id,
                'path': request.path if request else None,
                'method': request.method if request else None,
            },
            exc_info=True
        )
        body = {'error': 'Internal server error'}
        if request_id:
            body['request_id'] = request_id
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    response.data = _normalize_error_body(exc, response.data)
    if request_id:
        response.data['request_id'] = request_id

    return response


def _normalize_error_body(exc, data):
    """Map DRF's {'detail': ...} bodies onto {'error': ...}."""
    if isinstance(exc, drf_exceptions.ValidationError):
        return {'error': 'Validation error', 'errors': data}

    if isinstance(exc, drf_exceptions.NotAuthenticated):
        return {'error': 'Unauthorized'}

    if isinstance(data, dict) and 'detail' in data:
        body = {'error': str(data['detail'])}
        for key, value in data.items():
            if key != 'detail':
                body[key] = value
        return body

    if isinstance(data, list):
        return {'error': 'Request failed', 'errors': data}

    return data


class InvoiceSystemException(Exception):
    """Base exception for invoice system errors."""

    status_code = 500

    def __init__(self, message, details=None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(InvoiceSystemException):
    """Raised when authentication fails."""
    status_code = 401


class PermissionDeniedError(InvoiceSystemException):
    """Raised when user lacks required permissions."""
    status_code = 403


class ValidationError(InvoiceSystemException):
    """Raised when input validation fails."""
    status_code = 400


class NotFoundError(InvoiceSystemException):
    """Raised when a record is missing or outside the caller's scope."""
    status_code = 404


class ConflictError(InvoiceSystemException):
    """Raised when a write collides with existing data."""
    status_code = 409


class StorageError(InvoiceSystemException):
    """Raised when the object store cannot be reached."""
    status_code = 500
