from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
import logging
import sys

logger = logging.getLogger(__name__)

SERVER_COMMANDS = {'runserver', 'test'}


def is_server_process(argv=None):
    """
    True when running as a server (runserver, gunicorn, uvicorn) or test run.

    Management commands such as migrate or generate_jwks skip startup checks
    so they can run before the environment is fully configured.
    """
    argv = sys.argv if argv is None else argv
    if not argv:
        return False
    program = argv[0]
    if 'gunicorn' in program or 'uvicorn' in program:
        return True
    return len(argv) > 1 and argv[1] in SERVER_COMMANDS


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.core'
    verbose_name = 'Core'

    def ready(self):
        """
        Perform startup validation checks when Django initializes.

        This ensures critical security configuration is in place before the
        application starts accepting requests.
        """
        if not is_server_process():
            return

        self._validate_security_settings()
        self._validate_jwk_configuration()

        logger.info("All startup validations passed")

    def _validate_jwk_configuration(self):
        """Load both JWK files once so bad keys fail at boot, not on first login."""
        from apps.iam.tokens import get_key_pair

        key_pair = get_key_pair()
        logger.info("JWK configuration validated", extra={'kid': key_pair.kid})

    def _validate_security_settings(self):
        """Validate general security settings."""
        debug = getattr(settings, 'DEBUG', False)
        secret_key = getattr(settings, 'SECRET_KEY', None)

        if not secret_key:
            raise ImproperlyConfigured(
                "SECRET_KEY must be set in environment variables. "
                "Generate with: "
                "python -c \"import secrets; print(secrets.token_urlsafe(50))\""
            )

        if len(secret_key) < 50:
            logger.warning(
                f"SECRET_KEY is shorter than recommended (current: {len(secret_key)}, recommended: 50+)"
            )

        if not debug:
            weak_patterns = [
                'your-secret-key',
                'change-me',
                'insecure',
                'django-insecure',
            ]

            secret_lower = secret_key.lower()
            for pattern in weak_patterns:
                if pattern in secret_lower:
                    raise ImproperlyConfigured(
                        f"SECRET_KEY appears to be a default or weak value (contains '{pattern}')."
                    )

            if not getattr(settings, 'SECURE_SSL_REDIRECT', False):
                logger.warning(
                    "SECURE_SSL_REDIRECT is not enabled in production. "
                    "HTTPS should be enforced so refresh cookies stay secure."
                )

        logger.info("Security settings validated")
