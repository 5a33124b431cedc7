"""
Django settings for the Invoice Management System API.
"""
import os
from pathlib import Path
import environ
import sentry_sdk
from sentry_sdk.integrations.django import DjangoIntegration

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent.parent

# Initialize environment variables
env = environ.Env(
    DEBUG=(bool, False),
    ALLOWED_HOSTS=(list, []),
    DB_CONN_MAX_AGE=(int, 600),
    RATE_LIMIT_ENABLED=(bool, True),
    JSON_LOGS=(bool, False),
    LOG_LEVEL=(str, 'INFO'),
)

# Read .env file if it exists
environ.Env.read_env(os.path.join(BASE_DIR, '.env'))

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = env('SECRET_KEY')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = env('DEBUG')

ALLOWED_HOSTS = env('ALLOWED_HOSTS')

USE_X_FORWARDED_HOST = True
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')

# Application definition
INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.staticfiles',

    # Third-party apps
    'rest_framework',
    'drf_spectacular',
    'corsheaders',
    'django_ratelimit',

    # Invoice system apps
    'apps.core',
    'apps.master_data',
    'apps.projects',
    'apps.iam',
    'apps.invoices',
    'apps.storage',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',

    # Custom middleware
    'apps.core.middleware.RequestIDMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'

# Database
DATABASES = {
    'default': env.db('DATABASE_URL'),
}
DATABASES['default']['CONN_MAX_AGE'] = env('DB_CONN_MAX_AGE')

# Configure based on database engine
if 'postgresql' in DATABASES['default']['ENGINE']:
    DATABASES['default']['OPTIONS'] = {
        'connect_timeout': 10,
    }

# Password hashing: Argon2 for new hashes, PBKDF2 still verifies
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.Argon2PasswordHasher',
    'django.contrib.auth.hashers.PBKDF2PasswordHasher',
    'django.contrib.auth.hashers.PBKDF2SHA1PasswordHasher',
]

# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Custom User Model
# Credentials, role, project and permission overrides all live on apps.iam.User
AUTH_USER_MODEL = 'iam.User'

# Authentication Backends
AUTHENTICATION_BACKENDS = [
    'apps.iam.backends.EmailAuthBackend',
]

# REST Framework
REST_FRAMEWORK = {
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
    ],
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'apps.core.authentication.BearerTokenAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'EXCEPTION_HANDLER': 'apps.core.exceptions.custom_exception_handler',
}

# DRF Spectacular (OpenAPI)
SPECTACULAR_SETTINGS = {
    'TITLE': 'Invoice Management System API',
    'DESCRIPTION': '''
Invoice tracking for project-based billing: invoices, projects, users and
the lookup tables they reference.

## Authentication

1. `POST /iam/v1/authenticate/email` with email and password returns a
   refresh token (also set as an httpOnly cookie).
2. `POST /iam/v1/authenticate/token` exchanges it for a short-lived access
   token.
3. Send `Authorization: Bearer <access token>` on every `/api/v1/` call.

Login is rate limited to 5 requests/minute per IP. When exceeded the API
returns `429 Too Many Requests` with a `Retry-After` header.

## Authorization

Each role has a CRUD bitmask per resource (create=8, read=4, update=2,
delete=1). Some grants are conditional: staff only see invoices they
created, accountants only see Paid invoices, and both are limited to their
assigned project.

Admins can adjust a user's access with override strings such as
`invoice:entity:4` (read only) via `PUT /api/v1/users/{id}/permissions`.

## Errors

Every error body has an `error` message; validation errors add `errors`.
    ''',
    'VERSION': '1.0.0',
    'SERVE_INCLUDE_SCHEMA': False,
    'COMPONENT_SPLIT_REQUEST': True,
    'SWAGGER_UI_SETTINGS': {
        'deepLinking': True,
        'persistAuthorization': True,
        'displayOperationId': True,
        'filter': True,
    },
    'SECURITY': [
        {
            'JWTAuth': []
        }
    ],
    'APPEND_COMPONENTS': {
        'securitySchemes': {
            'JWTAuth': {
                'type': 'http',
                'scheme': 'bearer',
                'bearerFormat': 'JWT',
                'description': 'Access token from /iam/v1/authenticate/token. Include as: Authorization: Bearer <token>.',
            }
        }
    },
    'TAGS': [
        {'name': 'Authentication', 'description': 'Login, token exchange and logout'},
        {'name': 'Invoices', 'description': 'Invoice CRUD and status history'},
        {'name': 'Projects', 'description': 'Projects and the states they cover'},
        {'name': 'Users', 'description': 'User management (admin only) and own profile'},
        {'name': 'Master Data', 'description': 'Lookup tables: statuses, milestones, states, GST rates'},
        {'name': 'Storage', 'description': 'File upload and download'},
        {'name': 'Health', 'description': 'Service health'},
    ],
}

# ============================================================================
# SECURITY SETTINGS
# ============================================================================

# HTTPS Enforcement (Production Only)
if not DEBUG:
    # Redirect all HTTP requests to HTTPS
    SECURE_SSL_REDIRECT = env.bool('SECURE_SSL_REDIRECT', default=True)

    # HSTS (HTTP Strict Transport Security)
    SECURE_HSTS_SECONDS = 31536000  # 1 year
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_HSTS_PRELOAD = True
else:
    # Development settings - no HTTPS enforcement
    SECURE_SSL_REDIRECT = False
    SECURE_HSTS_SECONDS = 0

# Security Headers (All Environments)
SECURE_CONTENT_TYPE_NOSNIFF = True  # Prevent MIME type sniffing
X_FRAME_OPTIONS = 'DENY'            # Prevent clickjacking

# CORS Configuration
CORS_ALLOW_ALL_ORIGINS = False

if not DEBUG:
    # Production: Require explicit CORS origins
    cors_origins = env.list('CORS_ALLOWED_ORIGINS', default=[])

    # Validate all origins are HTTPS
    for origin in cors_origins:
        if not origin.startswith('https://'):
            raise ValueError(
                f"CORS origin must use HTTPS in production: {origin}. "
                f"Update CORS_ALLOWED_ORIGINS in .env"
            )

    CORS_ALLOWED_ORIGINS = cors_origins

    # Require CORS origins to be configured
    if not CORS_ALLOWED_ORIGINS:
        import warnings
        warnings.warn(
            "CORS_ALLOWED_ORIGINS not configured. "
            "Set CORS_ALLOWED_ORIGINS in .env for production deployment."
        )
else:
    # Development: the console runs on a separate origin
    CORS_ALLOWED_ORIGINS = env.list('CORS_ALLOWED_ORIGINS', default=['http://localhost:5173'])

# The refresh cookie is sent cross-origin, so credentials must be allowed
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_HEADERS = [
    'accept',
    'accept-encoding',
    'authorization',
    'content-type',
    'dnt',
    'origin',
    'user-agent',
    'x-requested-with',
    'x-request-id',
]
CORS_EXPOSE_HEADERS = ['x-request-id']

# Redis Cache
CACHES = {
    'default': {
        'BACKEND': 'django_redis.cache.RedisCache',
        'LOCATION': env('REDIS_URL'),
        'OPTIONS': {
            'CLIENT_CLASS': 'django_redis.client.DefaultClient',
            'SOCKET_CONNECT_TIMEOUT': 5,
            'SOCKET_TIMEOUT': 5,
            'CONNECTION_POOL_KWARGS': {
                'max_connections': 50,
                'retry_on_timeout': True,
            },
        },
        'KEY_PREFIX': 'invoices',
        'TIMEOUT': 300,
    }
}

# Rate Limiting
RATE_LIMIT_ENABLED = env('RATE_LIMIT_ENABLED')

# django-ratelimit configuration
RATELIMIT_USE_CACHE = 'default'  # Use the default Redis cache
RATELIMIT_ENABLE = RATE_LIMIT_ENABLED  # Enable/disable rate limiting

# Custom view for rate limit exceeded (returns 429 instead of 403)
RATELIMIT_VIEW = 'apps.core.exceptions.ratelimit_view'

# Logging Configuration
LOG_LEVEL = env('LOG_LEVEL')
JSON_LOGS = env('JSON_LOGS')
LOG_DIR = Path(env('LOG_DIR', default=str(BASE_DIR / 'logs')))
LOG_DIR.mkdir(parents=True, exist_ok=True)

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'json': {
            '()': 'apps.core.logging.JSONFormatter',
        },
        'verbose': {
            '()': 'apps.core.log_sanitizer.SanitizingFormatter',
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
        'simple': {
            '()': 'apps.core.log_sanitizer.SanitizingFormatter',
            'format': '{levelname} {message}',
            'style': '{',
        },
    },
    'filters': {
        'sanitize': {
            '()': 'apps.core.log_sanitizer.SanitizingFilter',
        },
        'request_id': {
            '()': 'apps.core.middleware.RequestIDLogFilter',
        },
    },
    'handlers': {
        'console': {
            'level': LOG_LEVEL,
            'class': 'logging.StreamHandler',
            'formatter': 'json' if JSON_LOGS else 'verbose',
            'filters': ['request_id', 'sanitize'],
        },
        'file': {
            'level': 'INFO',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': LOG_DIR / 'invoices.log',
            'maxBytes': 1024 * 1024 * 10,  # 10 MB
            'backupCount': 5,
            'formatter': 'json' if JSON_LOGS else 'verbose',
            'filters': ['request_id', 'sanitize'],
        },
        'security': {
            'level': 'INFO',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': LOG_DIR / 'security.log',
            'maxBytes': 1024 * 1024 * 10,  # 10 MB
            'backupCount': 10,
            'formatter': 'json' if JSON_LOGS else 'verbose',
            'filters': ['request_id', 'sanitize'],
        },
    },
    'root': {
        'handlers': ['console'],
        'level': LOG_LEVEL,
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'django.request': {
            'handlers': ['console', 'file'],
            'level': 'ERROR',
            'propagate': False,
        },
        'apps': {
            'handlers': ['console', 'file'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'security': {
            'handlers': ['security', 'console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}

# Sentry Configuration
SENTRY_DSN = env('SENTRY_DSN', default=None)
SENTRY_ENVIRONMENT = env('SENTRY_ENVIRONMENT', default='development')
SENTRY_RELEASE = env('SENTRY_RELEASE', default=None)

if SENTRY_DSN:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        integrations=[
            DjangoIntegration(),
        ],
        environment=SENTRY_ENVIRONMENT,
        release=SENTRY_RELEASE,
        traces_sample_rate=0.1 if not DEBUG else 1.0,
        send_default_pii=False,
        before_send=lambda event, hint: event if not DEBUG else None,
        # Attach stack traces to all messages
        attach_stacktrace=True,
        # Maximum breadcrumbs to capture
        max_breadcrumbs=50,
    )

# Email Configuration
# SMTP_* names are accepted as fallbacks
EMAIL_BACKEND = env('EMAIL_BACKEND', default='django.core.mail.backends.smtp.EmailBackend')
EMAIL_HOST = env('EMAIL_HOST', default=env('SMTP_HOST', default='localhost'))
EMAIL_PORT = env.int('EMAIL_PORT', default=env.int('SMTP_PORT', default=587))
EMAIL_USE_TLS = env.bool('EMAIL_USE_TLS', default=True)
EMAIL_HOST_USER = env('EMAIL_HOST_USER', default=env('SMTP_USER', default=''))
EMAIL_HOST_PASSWORD = env('EMAIL_HOST_PASSWORD', default=env('SMTP_PASS', default=''))
DEFAULT_FROM_EMAIL = env('DEFAULT_FROM_EMAIL', default=env('SMTP_FROM', default='noreply@invoice-system.local'))
EMAIL_TIMEOUT = 10

APP_NAME = env('APP_NAME', default='Invoice Management System')

# Frontend Configuration
FRONTEND_URL = env('FRONTEND_URL', default='http://localhost:5173')

# Token Configuration
# RS256 keys are JWK files; generate with `manage.py generate_jwks`
IAM_JWK_PUBLIC_KEY_PATH = env('IAM_JWK_PUBLIC_KEY_PATH', default='keys/jwk.public.json')
IAM_JWK_PRIVATE_KEY_PATH = env('IAM_JWK_PRIVATE_KEY_PATH', default='keys/jwk.private.json')
IAM_APPLICATION = env('IAM_APPLICATION', default='invoice-system')
ACCESS_TOKEN_LIFETIME_MINUTES = env.int('ACCESS_TOKEN_LIFETIME_MINUTES', default=15)
REFRESH_TOKEN_LIFETIME_DAYS = env.int('REFRESH_TOKEN_LIFETIME_DAYS', default=30)
REFRESH_TOKEN_COOKIE_NAME = env('REFRESH_TOKEN_COOKIE_NAME', default='refresh_token')

# Object Storage (MinIO / S3-compatible)
MINIO_ENDPOINT = env('MINIO_ENDPOINT', default='localhost')
MINIO_PORT = env.int('MINIO_PORT', default=9000)
MINIO_USE_SSL = env.bool('MINIO_USE_SSL', default=False)
MINIO_ACCESS_KEY = env('MINIO_ACCESS_KEY', default='minioadmin')
MINIO_SECRET_KEY = env('MINIO_SECRET_KEY', default='minioadmin')
MINIO_BUCKET_NAME = env('MINIO_BUCKET_NAME', default='invoice-system-files')
MINIO_ENSURE_BUCKET = env.bool('MINIO_ENSURE_BUCKET', default=True)
STORAGE_MAX_UPLOAD_BYTES = env.int('STORAGE_MAX_UPLOAD_BYTES', default=5 * 1024 * 1024)

# Uploads above this size are streamed to a temporary file
FILE_UPLOAD_MAX_MEMORY_SIZE = STORAGE_MAX_UPLOAD_BYTES
