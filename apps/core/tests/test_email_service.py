"""
Tests for templated email delivery.
"""
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from django.core import mail

from apps.core.services.email_service import EmailService, EmailServiceError

CONTEXT = {
    'recipient_name': 'Priya Sharma',
    'email_to': 'priya@example.com',
    'password': 'Welcome123!',
    'login_link': 'http://console.test/login',
}


class TestValidateContext:

    def test_complete_context(self):
        assert EmailService.validate_context('user_credentials', CONTEXT) == CONTEXT

    def test_missing_keys_named(self):
        context = dict(CONTEXT, password='', login_link=None)

        with pytest.raises(EmailServiceError, match='password, login_link'):
            EmailService.validate_context('user_credentials', context)

    def test_unknown_template(self):
        with pytest.raises(EmailServiceError, match='not found'):
            EmailService.validate_context('invoice_paid', CONTEXT)


class TestRender:

    def test_html_and_text(self, settings):
        settings.APP_NAME = 'Invoice Console'

        html_content, text_content = EmailService.render_template('user_credentials', CONTEXT)

        for content in (html_content, text_content):
            assert 'Priya Sharma' in content
            assert 'priya@example.com' in content
            assert 'http://console.test/login' in content
            assert 'Invoice Console' in content
        assert '<html' in html_content.lower()

    def test_html_escapes_values(self):
        html_content, _ = EmailService.render_template(
            'user_credentials', dict(CONTEXT, recipient_name='<b>Eve</b>')
        )

        assert '<b>Eve</b>' not in html_content
        assert '&lt;b&gt;Eve&lt;/b&gt;' in html_content


class TestSend:

    def test_sends_multipart_message(self, settings):
        settings.DEFAULT_FROM_EMAIL = 'noreply@invoices.test'

        assert EmailService.send_template_email(
            ['priya@example.com'], 'Welcome', 'user_credentials', CONTEXT
        ) is True

        message = mail.outbox[0]
        assert message.subject == 'Welcome'
        assert message.from_email == 'noreply@invoices.test'
        assert message.alternatives[0][1] == 'text/html'

    def test_invalid_context_not_sent(self):
        assert EmailService.send_template_email(
            ['priya@example.com'], 'Welcome', 'user_credentials', {}
        ) is False
        assert mail.outbox == []

    def test_backend_failure_returns_false(self):
        with patch(
            'apps.core.services.email_service.EmailMultiAlternatives.send',
            side_effect=OSError('connection refused')
        ):
            assert EmailService.send_template_email(
                ['priya@example.com'], 'Welcome', 'user_credentials', CONTEXT
            ) is False

    def test_user_credentials(self, settings):
        settings.FRONTEND_URL = 'https://console.example.com/'
        user = SimpleNamespace(full_name='Priya Sharma', email='priya@example.com')

        assert EmailService.send_user_credentials(user, 'Welcome123!') is True

        message = mail.outbox[0]
        assert message.to == ['priya@example.com']
        assert 'https://console.example.com/login' in message.body
        assert 'Welcome123!' in message.body
