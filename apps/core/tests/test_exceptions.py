"""
Tests for the API error body mapping.
"""
import pytest
from django_ratelimit.exceptions import Ratelimited
from rest_framework import exceptions as drf_exceptions
from rest_framework.test import APIRequestFactory

from apps.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    ValidationError,
    custom_exception_handler,
)


@pytest.fixture
def context():
    request = APIRequestFactory().post('/api/v1/invoices')
    request.request_id = 'req-123'
    return {'request': request}


class TestDomainErrors:

    @pytest.mark.parametrize('exc_class, status_code', [
        (AuthenticationError, 401),
        (PermissionDeniedError, 403),
        (ValidationError, 400),
        (NotFoundError, 404),
        (ConflictError, 409),
        (StorageError, 500),
    ])
    def test_status_and_body(self, context, exc_class, status_code):
        response = custom_exception_handler(exc_class('Something went wrong'), context)

        assert response.status_code == status_code
        assert response.data == {'error': 'Something went wrong', 'request_id': 'req-123'}

    def test_details_included(self, context):
        exc = ValidationError('File too large', details={'max_bytes': 10})

        response = custom_exception_handler(exc, context)

        assert response.data['details'] == {'max_bytes': 10}


class TestDrfErrors:

    def test_validation_error(self, context):
        exc = drf_exceptions.ValidationError({'email': ['Enter a valid email address.']})

        response = custom_exception_handler(exc, context)

        assert response.status_code == 400
        assert response.data['error'] == 'Validation error'
        assert response.data['errors'] == {'email': ['Enter a valid email address.']}

    def test_not_authenticated(self, context):
        response = custom_exception_handler(drf_exceptions.NotAuthenticated(), context)

        assert response.status_code == 401
        assert response.data == {'error': 'Unauthorized', 'request_id': 'req-123'}

    def test_authentication_failed(self, context):
        exc = drf_exceptions.AuthenticationFailed('Invalid or Expired Token')

        response = custom_exception_handler(exc, context)

        assert response.status_code == 401
        assert response.data['error'] == 'Invalid or Expired Token'

    def test_permission_denied(self, context):
        exc = drf_exceptions.PermissionDenied('Only Admins can create projects')

        response = custom_exception_handler(exc, context)

        assert response.status_code == 403
        assert response.data['error'] == 'Only Admins can create projects'

    def test_method_not_allowed(self, context):
        response = custom_exception_handler(drf_exceptions.MethodNotAllowed('PUT'), context)

        assert response.status_code == 405
        assert 'PUT' in response.data['error']


class TestUnexpectedErrors:

    def test_unhandled_exception_is_500(self, context):
        response = custom_exception_handler(RuntimeError('database exploded'), context)

        assert response.status_code == 500
        assert response.data == {'error': 'Internal server error', 'request_id': 'req-123'}

    def test_rate_limited(self, context):
        response = custom_exception_handler(Ratelimited(), context)

        assert response.status_code == 429
        assert response['Retry-After'] == '60'
        assert response.data['code'] == 'RATE_LIMIT_EXCEEDED'
