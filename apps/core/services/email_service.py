"""
Templated email delivery through Django's mail backend.

Templates live in templates/emails/<name>.html and <name>.txt. Each template
declares the context keys it needs; a context missing any of them is
rejected before anything is rendered or sent.
"""
import logging
from typing import Any, Dict, List, Optional
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils import timezone

logger = logging.getLogger(__name__)


class EmailServiceError(Exception):
    """Base exception for email service errors."""
    pass


class EmailService:
    """
    Email service with template rendering and context validation.
    """

    # template name -> required context keys
    TEMPLATES = {
        'user_credentials': ('recipient_name', 'email_to', 'password', 'login_link'),
    }

    @classmethod
    def validate_context(cls, template_name: str, context: Dict[str, Any]) -> Dict[str, Any]:
        """
        Check that context has a non-empty value for every required key.

        Raises:
            EmailServiceError: unknown template or missing values
        """
        required = cls.TEMPLATES.get(template_name)
        if required is None:
            raise EmailServiceError(f"Template {template_name} not found")

        missing = [key for key in required if not context.get(key)]
        if missing:
            raise EmailServiceError(
                f"Missing template data for '{template_name}': {', '.join(missing)}"
            )
        return context

    @classmethod
    def render_template(cls, template_name: str, context: Dict[str, Any]) -> tuple:
        """
        Render HTML and text email templates.

        Returns:
            Tuple of (html_content, text_content)
        """
        view = {
            'app_name': getattr(settings, 'APP_NAME', 'Invoice Management System'),
            'year': timezone.now().year,
            **context,
        }
        html_content = render_to_string(f'emails/{template_name}.html', view)
        text_content = render_to_string(f'emails/{template_name}.txt', view)
        return html_content, text_content

    @classmethod
    def send_template_email(
        cls,
        to_emails: List[str],
        subject: str,
        template_name: str,
        context: Dict[str, Any],
        from_email: Optional[str] = None,
    ) -> bool:
        """
        Validate, render and send a templated email.

        Returns:
            True if the email was handed to the backend, False otherwise.
            Failures are logged, never raised.
        """
        try:
            cls.validate_context(template_name, context)
            html_content, text_content = cls.render_template(template_name, context)

            message = EmailMultiAlternatives(
                subject=subject,
                body=text_content,
                from_email=from_email or settings.DEFAULT_FROM_EMAIL,
                to=to_emails,
            )
            message.attach_alternative(html_content, 'text/html')
            message.send(fail_silently=False)

            logger.info(
                "Email sent",
                extra={'template': template_name, 'recipients': len(to_emails)}
            )
            return True

        except EmailServiceError as e:
            logger.error(f"Email data validation failed: {e}", extra={'template': template_name})
            return False
        except Exception as e:
            logger.error(
                f"Failed to send email: {e}",
                extra={'template': template_name},
                exc_info=True
            )
            return False

    @classmethod
    def send_user_credentials(cls, user, password: str) -> bool:
        """Send the welcome email with login details to a new user."""
        return cls.send_template_email(
            to_emails=[user.email],
            subject='Welcome to Invoice Management System',
            template_name='user_credentials',
            context={
                'recipient_name': user.full_name,
                'email_to': user.email,
                'password': password,
                'login_link': f"{settings.FRONTEND_URL.rstrip('/')}/login",
            },
        )
