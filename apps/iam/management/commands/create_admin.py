"""
Management command to create an admin user.

Used to bootstrap a fresh installation: every user management endpoint
requires an admin.
"""
from django.core.management.base import BaseCommand, CommandError

from apps.iam.models import User


class Command(BaseCommand):
    help = 'Create an admin user'

    def add_arguments(self, parser):
        parser.add_argument(
            '--email',
            type=str,
            required=True,
            help='Admin email address',
        )
        parser.add_argument(
            '--password',
            type=str,
            required=True,
            help='Admin password (min 8 characters)',
        )
        parser.add_argument(
            '--full-name',
            type=str,
            default='Administrator',
            help='Display name',
        )

    def handle(self, *args, **options):
        email = options['email']
        password = options['password']

        if len(password) < 8:
            raise CommandError('Password must be at least 8 characters')

        if User.objects.filter(email__iexact=User.objects.normalize_email(email)).exists():
            raise CommandError(f'User with email {email} already exists')

        user = User.objects.create_admin(
            email=email,
            password=password,
            full_name=options['full_name'],
        )

        self.stdout.write(self.style.SUCCESS(f'✓ Created admin user: {user.email}'))
