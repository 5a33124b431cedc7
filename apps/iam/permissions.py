"""
Bitmask permission evaluation.

Every resource has, per role, three 4-bit masks laid out as
Create(8) | Read(4) | Update(2) | Delete(1):

- base: what the role may do at all
- can_override: which bits a per-user override string may change
- conditional: which bits only apply to rows the caller owns

Override strings look like ``"invoice:entity:4"``; the part after the last
colon is read as hex.
"""
import re
from dataclasses import dataclass
from typing import Dict, Iterable, NamedTuple, Optional

CREATE = 0b1000
READ = 0b0100
UPDATE = 0b0010
DELETE = 0b0001
NONE = 0b0000
FULL = CREATE | READ | UPDATE | DELETE

ACTION_MASKS = {
    'create': CREATE,
    'read': READ,
    'update': UPDATE,
    'delete': DELETE,
}

ROLES = ('admin', 'staff', 'accountant', 'other')
FALLBACK_ROLE = 'other'

INVOICE_RESOURCE = 'invoice:entity'
PROJECT_RESOURCE = 'project:entity'
USER_RESOURCE = 'user:entity'
MASTER_DATA_RESOURCE = 'master-data:entity'


@dataclass(frozen=True)
class RolePermission:
    base: int = NONE
    can_override: int = NONE
    conditional: int = NONE


class PermissionResult(NamedTuple):
    allowed: bool
    conditional: bool


DEFAULT_PERMISSIONS: Dict[str, Dict[str, RolePermission]] = {
    INVOICE_RESOURCE: {
        'admin': RolePermission(base=FULL),
        'staff': RolePermission(base=FULL, conditional=FULL),
        'accountant': RolePermission(base=FULL, conditional=FULL),
        'other': RolePermission(),
    },
    PROJECT_RESOURCE: {
        'admin': RolePermission(base=FULL),
        'staff': RolePermission(base=READ, conditional=READ),
        'accountant': RolePermission(base=READ),
        'other': RolePermission(),
    },
    USER_RESOURCE: {
        'admin': RolePermission(base=FULL),
        'staff': RolePermission(base=READ, conditional=READ),
        'accountant': RolePermission(base=READ, conditional=READ),
        'other': RolePermission(base=READ, conditional=READ),
    },
    MASTER_DATA_RESOURCE: {
        'admin': RolePermission(base=FULL),
        'staff': RolePermission(base=READ),
        'accountant': RolePermission(base=READ),
        'other': RolePermission(base=READ),
    },
}

# Leading hex digits with optional sign and 0x prefix, like parseInt(s, 16)
_OVERRIDE_VALUE = re.compile(r'\s*([+-]?)(0[xX])?([0-9a-fA-F]*)')

_METHOD_ACTIONS = {
    'GET': 'read',
    'HEAD': 'read',
    'OPTIONS': 'read',
    'POST': 'create',
    'PUT': 'update',
    'PATCH': 'update',
    'DELETE': 'delete',
}


def normalize_role(role) -> str:
    """Lower-case the role and map anything unknown to 'other'."""
    role = str(role or '').lower()
    return role if role in ROLES else FALLBACK_ROLE


def method_to_action(method: str) -> Optional[str]:
    """Map an HTTP method onto a CRUD action name."""
    return _METHOD_ACTIONS.get((method or '').upper())


def parse_permission_override(value, resource_key: str) -> Optional[int]:
    """
    Parse one override string for resource_key.

    Returns the 4-bit override mask, or None when the string belongs to a
    different resource or its last segment holds no hex digits.
    """
    if not isinstance(value, str) or not value.startswith(resource_key):
        return None

    segment = value.split(':')[-1]
    sign, _prefix, digits = _OVERRIDE_VALUE.match(segment).groups()
    if not digits:
        return None

    parsed = int(digits, 16)
    if sign == '-':
        parsed = -parsed
    return parsed & FULL


def find_override(permissions: Iterable[str], resource_key: str) -> Optional[int]:
    """Return the last valid override for resource_key, if any."""
    override = None
    for value in permissions or ():
        parsed = parse_permission_override(value, resource_key)
        if parsed is not None:
            override = parsed
    return override


def evaluate_permission(
    resource_key: str,
    role: str,
    action: str,
    permissions: Optional[Iterable[str]] = None,
    directory: Optional[Dict[str, Dict[str, RolePermission]]] = None,
) -> PermissionResult:
    """
    Decide whether role may perform action on resource_key.

    Returns PermissionResult(allowed, conditional). When conditional is true
    the caller must restrict the query to rows the user owns.
    """
    directory = DEFAULT_PERMISSIONS if directory is None else directory

    resource = directory.get(resource_key)
    if resource is None:
        return PermissionResult(False, False)

    defaults = resource.get(normalize_role(role))
    if defaults is None:
        return PermissionResult(False, False)

    mask = ACTION_MASKS.get(action)
    if mask is None:
        return PermissionResult(False, False)

    allowed = bool(defaults.base & mask)
    can_override = bool(defaults.can_override & mask)
    conditional = bool(defaults.conditional & mask)

    permissions = list(permissions or ())
    if not can_override or not permissions:
        return PermissionResult(allowed, conditional)

    override = find_override(permissions, resource_key)
    if override is None:
        return PermissionResult(allowed, allowed and conditional)

    override_allowed = bool(override & mask)
    return PermissionResult(override_allowed, override_allowed and conditional)


def is_valid_override_string(value) -> bool:
    """Check the '<resource>:<entity>:<hex>' shape used for stored overrides."""
    if not isinstance(value, str):
        return False
    parts = value.split(':')
    if len(parts) < 3 or not all(parts[:-1]):
        return False
    return parse_permission_override(value, ':'.join(parts[:-1])) is not None
