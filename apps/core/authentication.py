"""
Custom DRF authentication classes.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication

from apps.core.logging import SecurityLogger
from apps.iam.tokens import AccessTokenClaims, InvalidTokenError, parse_access_token

logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = 'Invalid or Expired Token'


@dataclass(frozen=True)
class RequestContext:
    """
    Account context of an authenticated request.

    Built from access token claims and exposed to views as request.auth.
    """
    user_id: str
    role: str
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    permissions: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_claims(cls, claims: AccessTokenClaims) -> 'RequestContext':
        return cls(
            user_id=claims.user_id,
            role=claims.account.role,
            project_id=claims.account.project_id,
            project_name=claims.account.project_name,
            permissions=claims.account.permissions,
        )

    @property
    def is_admin(self):
        return self.role == 'admin'


class BearerTokenAuthentication(BaseAuthentication):
    """
    Authenticate requests carrying 'Authorization: Bearer <access token>'.

    Requests without the header fall through unauthenticated, which DRF turns
    into a 401 'Unauthorized' on protected views. A present but bad token
    fails immediately.
    """

    keyword = 'Bearer'

    def authenticate(self, request):
        header = request.META.get('HTTP_AUTHORIZATION', '')
        if not header.startswith(f'{self.keyword} '):
            return None

        token = header[len(self.keyword) + 1:].strip()
        try:
            claims = parse_access_token(token)
        except InvalidTokenError as e:
            SecurityLogger.log_invalid_token(
                token_type='access',
                ip_address=request.META.get('REMOTE_ADDR', 'unknown'),
                reason=e.reason,
                path=request.path,
            )
            raise exceptions.AuthenticationFailed(INVALID_TOKEN_MESSAGE)

        user = self._get_user(claims.user_id)
        if user is None or not user.is_active:
            logger.info(
                "Access token for missing or inactive user",
                extra={'user_id': claims.user_id, 'path': request.path}
            )
            raise exceptions.AuthenticationFailed(INVALID_TOKEN_MESSAGE)

        return (user, RequestContext.from_claims(claims))

    def authenticate_header(self, request):
        # A value here makes DRF answer 401 rather than 403
        return self.keyword

    @staticmethod
    def _get_user(user_id):
        from apps.iam.models import User

        try:
            return User.objects.filter(id=user_id).select_related('project').first()
        except (ValueError, DjangoValidationError):
            return None
