"""
Email-based authentication backend.
"""
from django.contrib.auth.backends import BaseBackend
from django.contrib.auth.hashers import make_password

from apps.iam.models import User


class EmailAuthBackend(BaseBackend):
    """
    Authenticate using email address and password.

    Only users with status 'active' can authenticate.
    """

    def authenticate(self, request, username=None, password=None, email=None, **kwargs):
        email = email or username

        if not email or not password:
            return None

        user = User.objects.by_email(email)
        if user is None:
            # Run the password hasher once to reduce timing
            # difference between existing and non-existing users
            make_password(password)
            return None

        if user.check_password(password) and user.is_active:
            return user

        return None

    def get_user(self, user_id):
        return User.objects.filter(pk=user_id).first()
