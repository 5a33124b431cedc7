"""
RS256 refresh and access tokens.

Keys are RSA JWKs read from the paths in IAM_JWK_PUBLIC_KEY_PATH and
IAM_JWK_PRIVATE_KEY_PATH. A refresh token identifies the user for the
lifetime of a login; an access token is minted from it and carries the
account context (role, project, override strings) the API authorizes with.
"""
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from apps.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

ALGORITHM = 'RS256'
REFRESH_TOKEN_TYPE = 'refresh'
ACCESS_TOKEN_TYPE = 'access'

PUBLIC_JWK_FIELDS = ('kid', 'kty', 'n', 'e')
PRIVATE_JWK_FIELDS = PUBLIC_JWK_FIELDS + ('d', 'p', 'q', 'dp', 'dq', 'qi')

REFRESH_CLAIMS = ('token_uuid', 'application', 'user_id')
ACCESS_CLAIMS = REFRESH_CLAIMS + ('parent_token_uuid', 'full_name', 'account')


class InvalidTokenError(AuthenticationError):
    """Raised when a token fails signature, expiry, type or claim checks."""

    def __init__(self, message='Invalid token', reason=None):
        self.reason = reason or message
        super().__init__(message)


@dataclass(frozen=True)
class KeyPair:
    kid: str
    private_key: Any
    public_key: Any


@dataclass(frozen=True)
class AccountInfo:
    """Authorization context embedded in every access token."""
    role: str
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    permissions: Tuple[str, ...] = field(default_factory=tuple)

    def to_claims(self) -> Dict[str, Any]:
        return {
            'role': self.role,
            'project_id': self.project_id,
            'project_name': self.project_name,
            'permissions': list(self.permissions),
        }

    @classmethod
    def from_claims(cls, data: Dict[str, Any]) -> 'AccountInfo':
        if not isinstance(data, dict) or not data.get('role'):
            raise InvalidTokenError('Invalid token', reason='malformed account claim')
        permissions = data.get('permissions') or []
        if not isinstance(permissions, list):
            raise InvalidTokenError('Invalid token', reason='malformed permissions claim')
        return cls(
            role=data['role'],
            project_id=data.get('project_id'),
            project_name=data.get('project_name'),
            permissions=tuple(str(p) for p in permissions),
        )


@dataclass(frozen=True)
class RefreshTokenClaims:
    token_uuid: str
    application: str
    user_id: str
    expires_at: datetime


@dataclass(frozen=True)
class AccessTokenClaims:
    token_uuid: str
    parent_token_uuid: str
    application: str
    user_id: str
    full_name: str
    account: AccountInfo
    expires_at: datetime


# ---------------------------------------------------------------------------
# Key loading
# ---------------------------------------------------------------------------

def _resolve_path(path) -> Path:
    path = Path(path)
    if not path.is_absolute():
        path = Path(settings.BASE_DIR) / path
    return path


def validate_jwk(data: Dict[str, Any], private: bool = False) -> Dict[str, Any]:
    """
    Check that a JWK has every member an RSA key of its kind needs.

    Raises ImproperlyConfigured naming the missing members.
    """
    if not isinstance(data, dict):
        raise ImproperlyConfigured('JWK must be a JSON object')

    required = PRIVATE_JWK_FIELDS if private else PUBLIC_JWK_FIELDS
    missing = [name for name in required if not data.get(name)]
    if missing:
        kind = 'private' if private else 'public'
        raise ImproperlyConfigured(f"{kind} JWK is missing: {', '.join(missing)}")

    if data['kty'] != 'RSA':
        raise ImproperlyConfigured(f"JWK kty must be RSA, got {data['kty']!r}")

    return data


def load_jwk(path, private: bool = False) -> Dict[str, Any]:
    """Read and validate a JWK file."""
    if not path:
        setting = 'IAM_JWK_PRIVATE_KEY_PATH' if private else 'IAM_JWK_PUBLIC_KEY_PATH'
        raise ImproperlyConfigured(f"{setting} must be set")

    resolved = _resolve_path(path)
    try:
        with open(resolved, encoding='utf-8') as fh:
            data = json.load(fh)
    except FileNotFoundError:
        raise ImproperlyConfigured(f"JWK file not found: {resolved}")
    except json.JSONDecodeError as e:
        raise ImproperlyConfigured(f"JWK file {resolved} is not valid JSON: {e}")

    return validate_jwk(data, private=private)


def key_pair_from_jwks(public_jwk: Dict[str, Any], private_jwk: Dict[str, Any]) -> KeyPair:
    if public_jwk['kid'] != private_jwk['kid']:
        raise ImproperlyConfigured('Public and private JWK kid values differ')

    return KeyPair(
        kid=public_jwk['kid'],
        private_key=RSAAlgorithm.from_jwk(private_jwk),
        public_key=RSAAlgorithm.from_jwk(public_jwk),
    )


@lru_cache(maxsize=1)
def get_key_pair() -> KeyPair:
    """Load the configured key pair once per process."""
    public_jwk = load_jwk(settings.IAM_JWK_PUBLIC_KEY_PATH)
    private_jwk = load_jwk(settings.IAM_JWK_PRIVATE_KEY_PATH, private=True)

    key_pair = key_pair_from_jwks(public_jwk, private_jwk)
    logger.info("Loaded IAM signing keys", extra={'kid': key_pair.kid})
    return key_pair


def generate_jwk_pair(kid: Optional[str] = None, key_size: int = 2048) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Generate a new RSA key pair as (public JWK, private JWK) dicts.

    Both halves share the same kid.
    """
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    kid = kid or uuid.uuid4().hex

    private_jwk = json.loads(RSAAlgorithm.to_jwk(private_key))
    public_jwk = json.loads(RSAAlgorithm.to_jwk(private_key.public_key()))
    for jwk_data in (private_jwk, public_jwk):
        jwk_data['kid'] = kid
        jwk_data['alg'] = ALGORITHM
        jwk_data['use'] = 'sig'

    return public_jwk, private_jwk


def reset_key_cache():
    """Forget cached keys, e.g. after the key files are rotated."""
    get_key_pair.cache_clear()


# ---------------------------------------------------------------------------
# Issue
# ---------------------------------------------------------------------------

def _now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def _encode(claims: Dict[str, Any], key_pair: Optional[KeyPair] = None) -> str:
    """Sign with key_pair, or the configured keys when none is given."""
    key_pair = key_pair or get_key_pair()
    return jwt.encode(
        claims,
        key_pair.private_key,
        algorithm=ALGORITHM,
        headers={'kid': key_pair.kid},
    )


def issue_refresh_token(
    user_id,
    application: Optional[str] = None,
    key_pair: Optional[KeyPair] = None,
    now: Optional[datetime] = None,
) -> Tuple[str, datetime]:
    """
    Issue a refresh token for user_id.

    Returns (token, expiry).
    """
    issued_at = now or _now()
    expiry = issued_at + timedelta(days=settings.REFRESH_TOKEN_LIFETIME_DAYS)

    claims = {
        'token_uuid': str(uuid.uuid4()),
        'application': application or settings.IAM_APPLICATION,
        'user_id': str(user_id),
        'token_type': REFRESH_TOKEN_TYPE,
        'iat': issued_at,
        'exp': expiry,
    }
    return _encode(claims, key_pair), expiry


def issue_access_token(
    refresh: RefreshTokenClaims,
    full_name: str,
    account: AccountInfo,
    key_pair: Optional[KeyPair] = None,
    now: Optional[datetime] = None,
) -> Tuple[str, datetime]:
    """
    Issue an access token derived from a parsed refresh token.

    Returns (token, expiry).
    """
    issued_at = now or _now()
    expiry = issued_at + timedelta(minutes=settings.ACCESS_TOKEN_LIFETIME_MINUTES)

    claims = {
        'token_uuid': str(uuid.uuid4()),
        'parent_token_uuid': refresh.token_uuid,
        'application': refresh.application,
        'user_id': refresh.user_id,
        'full_name': full_name,
        'account': account.to_claims(),
        'token_type': ACCESS_TOKEN_TYPE,
        'iat': issued_at,
        'exp': expiry,
    }
    return _encode(claims, key_pair), expiry


# ---------------------------------------------------------------------------
# Parse
# ---------------------------------------------------------------------------

def _decode(token: str, expected_type: str, required: Tuple[str, ...], public_key=None) -> Dict[str, Any]:
    if not token or not isinstance(token, str):
        raise InvalidTokenError('Invalid token', reason='empty token')

    try:
        payload = jwt.decode(
            token,
            public_key or get_key_pair().public_key,
            algorithms=[ALGORITHM],
            options={'require': ['exp', 'iat']},
        )
    except jwt.ExpiredSignatureError:
        raise InvalidTokenError('Token has expired', reason='expired')
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError('Invalid token', reason=str(e))

    if payload.get('token_type') != expected_type:
        raise InvalidTokenError('Invalid token', reason='wrong token type')

    missing = [claim for claim in required if payload.get(claim) is None]
    if missing:
        raise InvalidTokenError('Invalid token', reason=f"missing claims: {', '.join(missing)}")

    if payload['application'] != settings.IAM_APPLICATION:
        raise InvalidTokenError('Invalid token', reason='application mismatch')

    return payload


def _expiry(payload) -> datetime:
    return datetime.fromtimestamp(payload['exp'], tz=timezone.utc)


def parse_refresh_token(token: str, public_key=None) -> RefreshTokenClaims:
    """Verify a refresh token and return its claims."""
    payload = _decode(token, REFRESH_TOKEN_TYPE, REFRESH_CLAIMS, public_key)
    return RefreshTokenClaims(
        token_uuid=payload['token_uuid'],
        application=payload['application'],
        user_id=payload['user_id'],
        expires_at=_expiry(payload),
    )


def parse_access_token(token: str, public_key=None) -> AccessTokenClaims:
    """Verify an access token and return its claims."""
    payload = _decode(token, ACCESS_TOKEN_TYPE, ACCESS_CLAIMS, public_key)
    return AccessTokenClaims(
        token_uuid=payload['token_uuid'],
        parent_token_uuid=payload['parent_token_uuid'],
        application=payload['application'],
        user_id=payload['user_id'],
        full_name=payload['full_name'],
        account=AccountInfo.from_claims(payload['account']),
        expires_at=_expiry(payload),
    )
