"""
Authentication REST API views.

Implements endpoints for:
- Email login (issues a refresh token and sets the refresh cookie)
- Token exchange (refresh token -> access token)
- Logout
"""
import logging

from django.conf import settings
from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.exceptions import AuthenticationError, ValidationError, rate_limited_response
from apps.core.logging import SecurityLogger
from apps.iam.serializers import LoginSerializer
from apps.iam.services import AuthService
from apps.iam.tokens import InvalidTokenError

logger = logging.getLogger(__name__)


def _set_refresh_cookie(response, token, expiry):
    response.set_cookie(
        settings.REFRESH_TOKEN_COOKIE_NAME,
        token,
        expires=expiry,
        httponly=True,
        secure=not settings.DEBUG,
        samesite='Strict',
    )


@extend_schema(
    tags=['Authentication'],
    summary='Login with email and password',
    description='''
Authenticate with email and password.

Returns a refresh token and also sets it as an httpOnly cookie. Exchange it
for an access token at `token`.

**No authentication required** - this is a public endpoint.

**Rate limit**: 5 requests/minute per IP
    ''',
    request=LoginSerializer,
    responses={
        200: OpenApiTypes.OBJECT,
        400: OpenApiTypes.OBJECT,
        401: OpenApiTypes.OBJECT,
        429: OpenApiTypes.OBJECT,
    },
    examples=[
        OpenApiExample(
            'Login Request',
            value={'email': 'admin@example.com', 'password': 'SecurePass123!'},
            request_only=True
        ),
        OpenApiExample(
            'Success Response',
            value={
                'refreshToken': 'eyJhbGciOiJSUzI1NiIsImtpZCI6Ii4uLiJ9...',
                'refreshTokenExpiry': '2026-11-16T10:00:00+00:00'
            },
            response_only=True
        ),
        OpenApiExample(
            'Invalid Credentials',
            value={'error': 'Invalid email or password'},
            response_only=True,
            status_codes=['401']
        ),
    ]
)
@method_decorator(ratelimit(key='ip', rate='5/m', method='POST', block=False), name='dispatch')
class EmailLoginView(APIView):
    """
    POST /iam/v1/authenticate/email

    Rate limited to 5 requests per minute per IP.
    """
    authentication_classes = []
    permission_classes = []

    def post(self, request):
        if getattr(request, 'limited', False):
            return rate_limited_response(request)

        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        email = serializer.validated_data['email']
        result = AuthService.login(
            email=email,
            password=serializer.validated_data['password'],
            request=request,
        )

        if result is None:
            SecurityLogger.log_failed_login(
                email=email,
                ip_address=request.META.get('REMOTE_ADDR', 'unknown'),
                user_agent=request.META.get('HTTP_USER_AGENT'),
                reason='invalid credentials or inactive account'
            )
            raise AuthenticationError('Invalid email or password')

        expiry = result['refresh_token_expiry']
        response = Response(
            {
                'refreshToken': result['refresh_token'],
                'refreshTokenExpiry': expiry.isoformat(),
            },
            status=status.HTTP_200_OK
        )
        _set_refresh_cookie(response, result['refresh_token'], expiry)
        return response


@extend_schema(
    tags=['Authentication'],
    summary='Exchange refresh token for access token',
    description='''
Issue a short-lived access token.

The refresh token is read from `refreshToken` in the body, or from the
refresh cookie when the body has none.
    ''',
    request=OpenApiTypes.OBJECT,
    responses={
        200: OpenApiTypes.OBJECT,
        400: OpenApiTypes.OBJECT,
        401: OpenApiTypes.OBJECT,
        403: OpenApiTypes.OBJECT,
    },
    examples=[
        OpenApiExample(
            'Success Response',
            value={
                'accessToken': 'eyJhbGciOiJSUzI1NiIsImtpZCI6Ii4uLiJ9...',
                'accessTokenExpiry': '2026-10-17T10:15:00+00:00'
            },
            response_only=True
        ),
    ]
)
class TokenView(APIView):
    """POST /iam/v1/authenticate/token"""
    authentication_classes = []
    permission_classes = []

    def post(self, request):
        token = None
        if isinstance(request.data, dict):
            token = request.data.get('refreshToken')
        if not token:
            token = request.COOKIES.get(settings.REFRESH_TOKEN_COOKIE_NAME)
        if not token:
            raise ValidationError('Refresh token is required')

        try:
            result = AuthService.exchange_refresh_token(token)
        except InvalidTokenError as e:
            SecurityLogger.log_invalid_token(
                token_type='refresh',
                ip_address=request.META.get('REMOTE_ADDR', 'unknown'),
                reason=e.reason,
                path=request.path,
            )
            raise AuthenticationError('Invalid refresh token')

        return Response({
            'accessToken': result['access_token'],
            'accessTokenExpiry': result['access_token_expiry'].isoformat(),
        })


@extend_schema(
    tags=['Authentication'],
    summary='Logout',
    description='Clear the refresh token cookie.',
    request=None,
    responses={200: OpenApiTypes.OBJECT}
)
class LogoutView(APIView):
    """POST /iam/v1/authenticate/logout"""
    authentication_classes = []
    permission_classes = []

    def post(self, request):
        response = Response({'message': 'Logged out successfully'})
        response.delete_cookie(settings.REFRESH_TOKEN_COOKIE_NAME, samesite='Strict')
        return response
