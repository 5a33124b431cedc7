"""
IAM services: account context, login/token exchange and user management.
"""
import logging
from typing import Any, Dict, Optional

from django.contrib.auth import authenticate
from django.db import IntegrityError, transaction

from apps.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from apps.core.services.email_service import EmailService
from apps.iam.models import User
from apps.iam.tokens import (
    AccountInfo,
    issue_access_token,
    issue_refresh_token,
    parse_refresh_token,
)

logger = logging.getLogger(__name__)


class AccountInactiveError(PermissionDeniedError):
    """Raised when a refresh token belongs to a missing or non-active user."""

    def __init__(self, message='User account not active or found', details=None):
        super().__init__(message, details)


class AccountService:
    """
    Builds the authorization context carried in access tokens.
    """

    @staticmethod
    def get_account_info(user: Optional[User]) -> Optional[AccountInfo]:
        """
        Return role, project and override strings for user.

        Returns None for missing or non-active users.
        """
        if user is None or not user.is_active:
            return None

        project = user.project
        return AccountInfo(
            role=user.role,
            project_id=str(project.id) if project else None,
            project_name=project.name if project else None,
            permissions=tuple(user.permission_overrides or ()),
        )


class AuthService:
    """
    Service for authentication operations: email login and token exchange.
    """

    @classmethod
    def login(cls, email: str, password: str, request=None) -> Optional[Dict[str, Any]]:
        """
        Authenticate by email and password and issue a refresh token.

        Returns:
            Dict with user, refresh_token and refresh_token_expiry, or None if
            the credentials are wrong or the account is not active.
        """
        user = authenticate(request, email=email, password=password)
        if user is None:
            return None

        user.update_last_login()
        refresh_token, expiry = issue_refresh_token(user.id)

        logger.info("User logged in", extra={'user_id': str(user.id)})

        return {
            'user': user,
            'refresh_token': refresh_token,
            'refresh_token_expiry': expiry,
        }

    @classmethod
    def exchange_refresh_token(cls, refresh_token: str) -> Dict[str, Any]:
        """
        Trade a refresh token for an access token.

        Raises:
            InvalidTokenError: bad signature, expired, or wrong token type
            AccountInactiveError: user missing or not active
        """
        claims = parse_refresh_token(refresh_token)

        user = User.objects.select_related('project').filter(id=claims.user_id).first()
        account = AccountService.get_account_info(user)
        if account is None:
            raise AccountInactiveError()

        access_token, expiry = issue_access_token(
            refresh=claims,
            full_name=user.full_name,
            account=account,
        )
        return {
            'user': user,
            'access_token': access_token,
            'access_token_expiry': expiry,
        }


class UserService:
    """
    User management used by the admin endpoints.
    """

    LISTABLE_ROLES = {User.ROLE_ADMIN, User.ROLE_STAFF, User.ROLE_ACCOUNTANT}

    @classmethod
    def list_users(cls, role: Optional[str] = None):
        queryset = User.objects.select_related('project').order_by('-created_at')
        if role in cls.LISTABLE_ROLES:
            queryset = queryset.filter(role=role)
        return queryset

    @staticmethod
    def get_user(user_id) -> User:
        user = User.objects.select_related('project').filter(id=user_id).first()
        if user is None:
            raise NotFoundError('User not found')
        return user

    @staticmethod
    def _email_in_use(email: str) -> bool:
        return User.objects.filter(email__iexact=email).exists()

    @classmethod
    def create_user(cls, data: Dict[str, Any]) -> User:
        """
        Create a user and send the welcome email with their password.

        Raises:
            ConflictError: email already registered
        """
        email = User.objects.normalize_email(data['email'])
        if cls._email_in_use(email):
            raise ConflictError('Email already in use')

        password = data['password']
        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    email=email,
                    password=password,
                    full_name=data['full_name'],
                    role=data['role'],
                    project=data.get('project'),
                    user_notes=data.get('user_notes'),
                    user_photo_url=data.get('user_photo_url'),
                    date_of_birth=data.get('date_of_birth'),
                    status=User.STATUS_ACTIVE,
                )
        except IntegrityError:
            # A concurrent create took the address after the check above
            raise ConflictError('Email already in use')

        if not EmailService.send_user_credentials(user, password):
            logger.warning("Welcome email not delivered", extra={'user_id': str(user.id)})

        logger.info("User created", extra={'user_id': str(user.id), 'role': user.role})
        return user

    @staticmethod
    def update_user(user: User, data: Dict[str, Any]) -> User:
        """Apply a partial profile update."""
        for attr in ('full_name', 'project', 'user_notes', 'user_photo_url', 'date_of_birth'):
            if attr in data:
                setattr(user, attr, data[attr])
        user.save()
        return user

    @staticmethod
    def assign_project(user: User, project) -> User:
        user.project = project
        user.save(update_fields=['project', 'updated_at'])
        return user

    @staticmethod
    def set_status(user: User, status: str) -> User:
        user.status = status
        user.save(update_fields=['status', 'updated_at'])
        logger.info("User status changed", extra={'user_id': str(user.id), 'status': status})
        return user

    @classmethod
    def deactivate(cls, user: User) -> User:
        """Soft delete: the row stays, the account can no longer log in."""
        return cls.set_status(user, User.STATUS_INACTIVE)

    @staticmethod
    def set_permission_overrides(user: User, permissions) -> User:
        user.permission_overrides = list(permissions)
        user.save(update_fields=['permission_overrides', 'updated_at'])
        return user
