"""
Structured JSON logging and security event logging.

Every value that reaches a log record passes through PIIMasker, so email
addresses, passwords, tokens and signing keys never land in log files.
"""
import json
import logging
import re
import traceback
from datetime import datetime, timezone as dt_timezone

import sentry_sdk
from django.utils import timezone

MASK = '********'


class PIIMasker:
    """
    Masks personal data and credentials in strings and dicts.
    """

    EMAIL_PATTERN = re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b')
    SECRET_PATTERN = re.compile(
        r'(password|secret|token|authorization|api[_-]?key)["\']?\s*[:=]\s*["\']?([^"\'\s,}]+)',
        re.IGNORECASE
    )
    JWT_PATTERN = re.compile(r'eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+')

    # keys whose values are replaced wholesale, compared lowercased
    SENSITIVE_FIELDS = frozenset({
        'password', 'password_hash', 'passwd',
        'access_token', 'refresh_token', 'accesstoken', 'refreshtoken',
        'authorization', 'secret', 'secret_key', 'private_key',
        'minio_secret_key', 'email_host_password',
    })

    @staticmethod
    def _mask_local_part(match):
        local, _, domain = match.group(0).partition('@')
        if len(local) > 1:
            local = local[0] + '*' * (len(local) - 1)
        return f"{local}@{domain}"

    @classmethod
    def mask_email(cls, text):
        """'priya@example.com' -> 'p****@example.com'."""
        if not isinstance(text, str):
            return text
        return cls.EMAIL_PATTERN.sub(cls._mask_local_part, text)

    @classmethod
    def mask_secrets(cls, text):
        """Replace JWTs and key=value credentials."""
        if not isinstance(text, str):
            return text
        text = cls.JWT_PATTERN.sub('[JWT]', text)
        return cls.SECRET_PATTERN.sub(rf'\1: {MASK}', text)

    @classmethod
    def mask_text(cls, text):
        return cls.mask_email(cls.mask_secrets(text))

    @classmethod
    def mask_value(cls, value):
        if isinstance(value, dict):
            return cls.mask_dict(value)
        if isinstance(value, (list, tuple)):
            return [cls.mask_value(item) for item in value]
        if isinstance(value, str):
            return cls.mask_text(value)
        return value

    @classmethod
    def mask_dict(cls, data):
        """Mask a dict recursively; sensitive keys lose their value entirely."""
        if not isinstance(data, dict):
            return data
        return {
            key: (MASK if value else value) if str(key).lower() in cls.SENSITIVE_FIELDS
            else cls.mask_value(value)
            for key, value in data.items()
        }


# LogRecord attributes that are not user supplied context
_RECORD_ATTRS = frozenset(
    logging.LogRecord('', 0, '', 0, '', None, None).__dict__
) | {'message', 'asctime', 'request_id', 'user_id'}


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Carries request_id (see RequestIDLogFilter), user_id and any `extra`
    context passed to the logging call, all masked.
    """

    def format(self, record):
        entry = {
            'timestamp': datetime.now(dt_timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': PIIMasker.mask_text(record.getMessage()),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        request_id = getattr(record, 'request_id', None)
        if request_id:
            entry['request_id'] = request_id
        if hasattr(record, 'user_id'):
            entry['user_id'] = str(record.user_id)

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry['exception'] = {
                'type': exc_type.__name__,
                'message': PIIMasker.mask_text(str(exc_value)),
                'traceback': PIIMasker.mask_value(traceback.format_exception(*record.exc_info)),
            }

        entry.update(self._context(record))
        return json.dumps(entry)

    @staticmethod
    def _context(record):
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith('_'):
                continue
            masked = PIIMasker.mask_value(value)
            try:
                json.dumps(masked)
            except (TypeError, ValueError):
                masked = PIIMasker.mask_text(str(value))
            yield key, masked


class SecurityLogger:
    """
    Security events on the 'security' logger.

    Token type confusion and suspicious requests are also reported to Sentry.
    """

    ALERT_EVENTS = frozenset({'token_type_mismatch', 'suspicious_activity'})

    @classmethod
    def log_event(cls, event_type: str, level: str = 'warning', **context):
        """
        Log one event with masked context.

        Args:
            event_type: e.g. 'failed_login', 'permission_denied'
            level: 'info', 'warning', 'error' or 'critical'
        """
        context = PIIMasker.mask_dict({
            'event_type': event_type,
            'event_timestamp': timezone.now().isoformat(),
            **context,
        })

        logger = logging.getLogger('security')
        getattr(logger, level, logger.warning)(f"Security event: {event_type}", extra=context)

        if event_type in cls.ALERT_EVENTS:
            sentry_sdk.capture_message(f"Security alert: {event_type}", level='error')

    @classmethod
    def log_failed_login(cls, email: str, ip_address: str, user_agent: str = None, reason: str = None):
        cls.log_event('failed_login', email=email, ip_address=ip_address, user_agent=user_agent, reason=reason)

    @classmethod
    def log_invalid_token(cls, token_type: str, ip_address: str, reason: str = None, path: str = None):
        """A refresh or access token failed verification."""
        event_type = 'token_type_mismatch' if reason == 'wrong token type' else 'invalid_token'
        cls.log_event(event_type, token_type=token_type, ip_address=ip_address, reason=reason, path=path)

    @classmethod
    def log_permission_denied(cls, user_id, role: str, resource: str, action: str, ip_address: str):
        cls.log_event(
            'permission_denied',
            user_id=str(user_id) if user_id else None,
            role=role,
            resource=resource,
            action=action,
            ip_address=ip_address,
        )

    @classmethod
    def log_rate_limit_exceeded(cls, endpoint: str, ip_address: str, user_email: str = None, limit: str = None):
        cls.log_event(
            'rate_limit_exceeded', endpoint=endpoint, ip_address=ip_address, user_email=user_email, limit=limit
        )

    @classmethod
    def log_suspicious_activity(cls, activity_type: str, description: str, ip_address: str = None, **context):
        cls.log_event(
            'suspicious_activity',
            level='error',
            activity_type=activity_type,
            description=description,
            ip_address=ip_address,
            **context
        )
