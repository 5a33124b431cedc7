"""
Tests for the user management endpoints.
"""
from unittest.mock import patch

import pytest
from django.core import mail

from apps.iam.models import User

USERS_URL = '/api/v1/users'


def user_url(user, suffix=''):
    return f'{USERS_URL}/{user.id}{suffix}'


@pytest.mark.django_db
class TestUserList:
    """GET/POST /api/v1/users"""

    def test_admin_lists_users(self, auth_client, admin_user, staff_user, accountant_user):
        response = auth_client(admin_user).get(USERS_URL)

        assert response.status_code == 200
        emails = {row['email'] for row in response.data['data']}
        assert emails == {'admin@example.com', 'staff@example.com', 'accountant@example.com'}

    def test_filter_by_role(self, auth_client, admin_user, staff_user, accountant_user):
        response = auth_client(admin_user).get(USERS_URL, {'role': 'accountant'})

        assert [row['email'] for row in response.data['data']] == ['accountant@example.com']

    def test_unknown_role_filter_ignored(self, auth_client, admin_user, staff_user):
        response = auth_client(admin_user).get(USERS_URL, {'role': 'wizard'})
        assert len(response.data['data']) == 2

    def test_list_representation(self, auth_client, admin_user, staff_user, project):
        response = auth_client(admin_user).get(USERS_URL, {'role': 'staff'})

        row = response.data['data'][0]
        assert row['fullName'] == 'Sam Staff'
        assert row['projectId'] == str(project.id)
        assert row['projectName'] == 'Metro Line 3'
        assert row['status'] == 'active'
        assert 'password' not in row
        assert 'password_hash' not in row

    @pytest.mark.parametrize('role', ['staff', 'accountant', 'other'])
    def test_non_admin_forbidden(self, auth_client, make_user, role):
        user = make_user(f'{role}-user@example.com', role=role)

        response = auth_client(user).get(USERS_URL)

        assert response.status_code == 403
        assert response.data['error'] == 'Admin access required'

    def test_create_user_sends_credentials(self, auth_client, admin_user, project):
        response = auth_client(admin_user).post(
            USERS_URL,
            {
                'fullName': 'Priya Sharma',
                'email': 'priya@example.com',
                'role': 'staff',
                'projectId': str(project.id),
                'password': 'Welcome123!',
            },
            format='json'
        )

        assert response.status_code == 201
        assert response.data['message'] == 'User created successfully'
        assert response.data['user']['email'] == 'priya@example.com'

        user = User.objects.get(email='priya@example.com')
        assert user.check_password('Welcome123!')
        assert user.project == project

        assert len(mail.outbox) == 1
        message = mail.outbox[0]
        assert message.to == ['priya@example.com']
        assert 'Welcome123!' in message.body
        assert 'http://console.test/login' in message.body

    def test_create_user_survives_mail_failure(self, auth_client, admin_user):
        with patch(
            'apps.core.services.email_service.EmailMultiAlternatives.send',
            side_effect=ConnectionRefusedError('smtp down')
        ):
            response = auth_client(admin_user).post(
                USERS_URL,
                {'fullName': 'No Mail', 'email': 'nomail@example.com', 'role': 'other', 'password': 'Welcome123!'},
                format='json'
            )

        assert response.status_code == 201
        assert User.objects.filter(email='nomail@example.com').exists()

    def test_duplicate_email(self, auth_client, admin_user, staff_user):
        response = auth_client(admin_user).post(
            USERS_URL,
            {'fullName': 'Another Sam', 'email': 'staff@example.com', 'role': 'staff', 'password': 'Welcome123!'},
            format='json'
        )

        assert response.status_code == 409
        assert response.data['error'] == 'Email already in use'

    def test_email_taken_between_check_and_insert(self, auth_client, admin_user, staff_user):
        with patch('apps.iam.services.UserService._email_in_use', return_value=False):
            response = auth_client(admin_user).post(
                USERS_URL,
                {'fullName': 'Racing Sam', 'email': 'staff@example.com', 'role': 'staff', 'password': 'Welcome123!'},
                format='json'
            )

        assert response.status_code == 409
        assert response.data['error'] == 'Email already in use'
        assert User.objects.filter(email='staff@example.com').count() == 1
        assert len(mail.outbox) == 0

    @pytest.mark.parametrize('payload, field', [
        ({'fullName': 'A', 'email': 'a@example.com', 'role': 'staff', 'password': 'Welcome123!'}, 'fullName'),
        ({'fullName': 'Ann', 'email': 'not-an-email', 'role': 'staff', 'password': 'Welcome123!'}, 'email'),
        ({'fullName': 'Ann', 'email': 'a@example.com', 'role': 'wizard', 'password': 'Welcome123!'}, 'role'),
        ({'fullName': 'Ann', 'email': 'a@example.com', 'role': 'staff', 'password': 'short'}, 'password'),
    ])
    def test_create_validation(self, auth_client, admin_user, payload, field):
        response = auth_client(admin_user).post(USERS_URL, payload, format='json')

        assert response.status_code == 400
        assert field in response.data['errors']


@pytest.mark.django_db
class TestUserDetail:
    """GET/PUT/DELETE /api/v1/users/<id>"""

    def test_get_user(self, auth_client, admin_user, staff_user):
        response = auth_client(admin_user).get(user_url(staff_user))

        assert response.status_code == 200
        assert response.data['email'] == 'staff@example.com'

    def test_unknown_user(self, auth_client, admin_user):
        response = auth_client(admin_user).get(f'{USERS_URL}/00000000-0000-0000-0000-000000000000')

        assert response.status_code == 404
        assert response.data['error'] == 'User not found'

    def test_update_profile(self, auth_client, admin_user, staff_user):
        response = auth_client(admin_user).put(
            user_url(staff_user),
            {'fullName': 'Samuel Staff', 'userNotes': 'Site engineer'},
            format='json'
        )

        assert response.status_code == 200
        staff_user.refresh_from_db()
        assert staff_user.full_name == 'Samuel Staff'
        assert staff_user.user_notes == 'Site engineer'
        assert staff_user.project is not None

    def test_delete_deactivates(self, auth_client, admin_user, staff_user):
        response = auth_client(admin_user).delete(user_url(staff_user))

        assert response.status_code == 200
        assert response.data['success'] is True
        staff_user.refresh_from_db()
        assert staff_user.status == 'inactive'


@pytest.mark.django_db
class TestUserAdministration:
    """Project assignment, status and override endpoints."""

    def test_assign_project(self, auth_client, admin_user, staff_user, other_project):
        response = auth_client(admin_user).patch(
            user_url(staff_user, '/assign-project'),
            {'projectId': str(other_project.id)},
            format='json'
        )

        assert response.status_code == 200
        assert response.data['projectName'] == 'Harbour Bridge'

    def test_assign_unknown_project(self, auth_client, admin_user, staff_user):
        response = auth_client(admin_user).patch(
            user_url(staff_user, '/assign-project'),
            {'projectId': '00000000-0000-0000-0000-000000000000'},
            format='json'
        )
        assert response.status_code == 400

    def test_change_status(self, auth_client, admin_user, staff_user):
        response = auth_client(admin_user).patch(
            user_url(staff_user, '/status'), {'status': 'suspended'}, format='json'
        )

        assert response.status_code == 200
        assert response.data['status'] == 'suspended'

    def test_invalid_status(self, auth_client, admin_user, staff_user):
        response = auth_client(admin_user).patch(
            user_url(staff_user, '/status'), {'status': 'banished'}, format='json'
        )
        assert response.status_code == 400

    def test_replace_permissions(self, auth_client, admin_user, staff_user):
        response = auth_client(admin_user).put(
            user_url(staff_user, '/permissions'),
            {'permissions': ['invoice:entity:4', 'project:entity:0']},
            format='json'
        )

        assert response.status_code == 200
        assert response.data['permissions'] == ['invoice:entity:4', 'project:entity:0']

    def test_reject_malformed_permissions(self, auth_client, admin_user, staff_user):
        response = auth_client(admin_user).put(
            user_url(staff_user, '/permissions'),
            {'permissions': ['invoice:4']},
            format='json'
        )

        assert response.status_code == 400
        staff_user.refresh_from_db()
        assert staff_user.permission_overrides == []


@pytest.mark.django_db
class TestCurrentUser:
    """GET /api/v1/users/me"""

    @pytest.mark.parametrize('role', ['admin', 'staff', 'accountant', 'other'])
    def test_every_role_reads_own_profile(self, auth_client, make_user, role):
        user = make_user(f'{role}-me@example.com', role=role)

        response = auth_client(user).get('/api/v1/users/me')

        assert response.status_code == 200
        assert response.data['id'] == str(user.id)
        assert response.data['role'] == role
