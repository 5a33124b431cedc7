"""
Identity model for the invoice system.

A User carries its own credentials, a role, an optional project assignment
and a list of permission override strings that flow into access tokens.
"""
import logging
from django.db import models
from django.contrib.auth.hashers import make_password, check_password
from django.utils import timezone
from apps.core.models import BaseModel

logger = logging.getLogger(__name__)


class UserManager(models.Manager):
    """
    Manager for User queries.

    Compatible with Django's authentication system.
    """

    def by_email(self, email):
        """Find user by email."""
        return self.filter(email__iexact=self.normalize_email(email)).first()

    def create_user(self, email, password=None, **extra_fields):
        """Create a new user with hashed password."""
        if not email:
            raise ValueError('Email address is required')

        email = self.normalize_email(email)
        extra_fields.setdefault('status', User.STATUS_ACTIVE)
        extra_fields.setdefault('role', User.ROLE_OTHER)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.password_hash = make_password(None)
        user.save(using=self._db)
        return user

    def create_admin(self, email, password, full_name, **extra_fields):
        """Create an active admin user."""
        extra_fields['role'] = User.ROLE_ADMIN
        return self.create_user(email, password, full_name=full_name, **extra_fields)

    @classmethod
    def normalize_email(cls, email):
        """
        Normalize the email address by trimming it and lowercasing the domain.
        """
        email = (email or '').strip()
        try:
            email_name, domain_part = email.rsplit('@', 1)
        except ValueError:
            return email
        return email_name + '@' + domain_part.lower()


class User(BaseModel):
    """
    Application user and AUTH_USER_MODEL.

    Authentication is by email and password. Authorization comes from role,
    project and permission_overrides, which are copied into access tokens.
    """

    ROLE_ADMIN = 'admin'
    ROLE_STAFF = 'staff'
    ROLE_ACCOUNTANT = 'accountant'
    ROLE_OTHER = 'other'

    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Admin'),
        (ROLE_STAFF, 'Staff'),
        (ROLE_ACCOUNTANT, 'Accountant'),
        (ROLE_OTHER, 'Other'),
    ]

    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUS_SUSPENDED = 'suspended'

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
        (STATUS_SUSPENDED, 'Suspended'),
    ]

    email = models.EmailField(
        unique=True,
        db_index=True,
        help_text="Primary email address, used to log in"
    )
    password_hash = models.CharField(
        max_length=255,
        help_text="Hashed password",
        db_column='password_hash'
    )
    full_name = models.CharField(max_length=120)
    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default=ROLE_OTHER,
        db_index=True
    )
    project = models.ForeignKey(
        'projects.Project',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='users',
        db_column='project_id',
        help_text="Project the user is scoped to"
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_ACTIVE,
        db_index=True
    )
    user_photo_url = models.CharField(max_length=1024, null=True, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    user_notes = models.TextField(null=True, blank=True)
    last_login_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Last login timestamp"
    )
    permission_overrides = models.JSONField(
        default=list,
        blank=True,
        help_text="Override strings such as 'invoice:entity:4'"
    )

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        db_table = 'users'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['role', 'created_at']),
        ]

    def __str__(self):
        return self.email

    @property
    def password(self):
        """Alias for password_hash, as Django's auth helpers expect."""
        return self.password_hash

    @password.setter
    def password(self, value):
        self.password_hash = value

    def check_password(self, raw_password):
        """Check if provided password matches stored hash."""
        return check_password(raw_password, self.password_hash)

    def set_password(self, raw_password):
        """Set user password (hashes automatically)."""
        self.password_hash = make_password(raw_password)

    def update_last_login(self):
        """Update last_login_at to current time."""
        self.last_login_at = timezone.now()
        self.save(update_fields=['last_login_at', 'updated_at'])

    @property
    def is_active(self):
        return self.status == self.STATUS_ACTIVE

    @property
    def is_authenticated(self):
        """Always True for User instances."""
        return True

    @property
    def is_anonymous(self):
        """Always False for User instances."""
        return False
