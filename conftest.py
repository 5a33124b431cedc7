"""
Pytest configuration and fixtures.
"""
import json

import pytest
from django.conf import settings
from django.core.management import call_command


@pytest.fixture(scope='session')
def django_db_setup(django_db_setup, django_db_blocker):
    """Set up test database; apps without migrations are synced."""
    with django_db_blocker.unblock():
        call_command('migrate', '--run-syncdb', verbosity=0)


@pytest.fixture(scope='session', autouse=True)
def jwk_keys(tmp_path_factory):
    """Throwaway RS256 key pair for the whole run."""
    from apps.iam.tokens import generate_jwk_pair, reset_key_cache

    key_dir = tmp_path_factory.mktemp('jwk')
    public_jwk, private_jwk = generate_jwk_pair(kid='test-key')
    public_path = key_dir / 'jwk.public.json'
    private_path = key_dir / 'jwk.private.json'
    public_path.write_text(json.dumps(public_jwk))
    private_path.write_text(json.dumps(private_jwk))

    settings.IAM_JWK_PUBLIC_KEY_PATH = str(public_path)
    settings.IAM_JWK_PRIVATE_KEY_PATH = str(private_path)
    reset_key_cache()

    yield {'public': public_jwk, 'private': private_jwk}

    reset_key_cache()


@pytest.fixture
def api_client():
    """Return DRF API client."""
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def statuses(db):
    """Draft, Submitted and Paid statuses keyed by name."""
    from apps.master_data.models import InvoiceStatus
    return {
        name: InvoiceStatus.objects.create(name=name)
        for name in InvoiceStatus.WELL_KNOWN
    }


@pytest.fixture
def project(db):
    """Create a test project."""
    from apps.projects.models import Project
    return Project.objects.create(name='Metro Line 3')


@pytest.fixture
def other_project(db):
    """A second project for scoping tests."""
    from apps.projects.models import Project
    return Project.objects.create(name='Harbour Bridge')


@pytest.fixture
def make_user(db):
    """Factory for users with a role and optional project."""
    from apps.iam.models import User

    def _make(email, role='staff', project=None, password='testpass123', **extra):
        extra.setdefault('full_name', email.split('@')[0].title())
        return User.objects.create_user(
            email=email,
            password=password,
            role=role,
            project=project,
            **extra
        )
    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user('admin@example.com', role='admin', full_name='Ada Admin')


@pytest.fixture
def staff_user(make_user, project):
    return make_user('staff@example.com', role='staff', project=project, full_name='Sam Staff')


@pytest.fixture
def accountant_user(make_user, project):
    return make_user('accountant@example.com', role='accountant', project=project, full_name='Alex Accountant')


@pytest.fixture
def other_user(make_user):
    return make_user('other@example.com', role='other', full_name='Olive Other')


@pytest.fixture
def access_token_for(db):
    """Mint a real access token for a user."""
    from apps.iam.services import AccountService
    from apps.iam.tokens import issue_access_token, issue_refresh_token, parse_refresh_token

    def _token(user):
        refresh, _ = issue_refresh_token(user.id)
        access, _ = issue_access_token(
            refresh=parse_refresh_token(refresh),
            full_name=user.full_name,
            account=AccountService.get_account_info(user),
        )
        return access
    return _token


@pytest.fixture
def auth_client(access_token_for):
    """Factory returning an APIClient authenticated as the given user."""
    from rest_framework.test import APIClient

    def _client(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {access_token_for(user)}')
        return client
    return _client
