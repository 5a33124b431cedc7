"""
Tests for the bitmask permission evaluator.
"""
import pytest
from hypothesis import given, strategies as st, settings

from apps.iam.permissions import (
    ACTION_MASKS,
    CREATE,
    DEFAULT_PERMISSIONS,
    FULL,
    INVOICE_RESOURCE,
    MASTER_DATA_RESOURCE,
    PROJECT_RESOURCE,
    READ,
    ROLES,
    USER_RESOURCE,
    PermissionResult,
    RolePermission,
    evaluate_permission,
    find_override,
    is_valid_override_string,
    method_to_action,
    normalize_role,
    parse_permission_override,
)

ACTIONS = list(ACTION_MASKS)
RESOURCES = list(DEFAULT_PERMISSIONS)

# staff may have their invoice read/update bits overridden; reads stay conditional
OVERRIDABLE_DIRECTORY = {
    INVOICE_RESOURCE: {
        'admin': RolePermission(base=FULL),
        'staff': RolePermission(base=READ, can_override=READ | 0b0010, conditional=READ),
        'accountant': RolePermission(base=READ),
        'other': RolePermission(can_override=FULL),
    },
}


class TestDefaultDirectory:
    """Role defaults without overrides."""

    @pytest.mark.parametrize('action', ACTIONS)
    def test_admin_has_unconditional_access_everywhere(self, action):
        for resource in RESOURCES:
            assert evaluate_permission(resource, 'admin', action) == PermissionResult(True, False)

    @pytest.mark.parametrize('action', ACTIONS)
    def test_staff_invoice_access_is_conditional(self, action):
        assert evaluate_permission(INVOICE_RESOURCE, 'staff', action) == PermissionResult(True, True)

    @pytest.mark.parametrize('action', ACTIONS)
    def test_accountant_invoice_access_is_conditional(self, action):
        assert evaluate_permission(INVOICE_RESOURCE, 'accountant', action) == PermissionResult(True, True)

    @pytest.mark.parametrize('action', ACTIONS)
    def test_other_role_has_no_invoice_access(self, action):
        assert evaluate_permission(INVOICE_RESOURCE, 'other', action) == PermissionResult(False, False)

    def test_staff_reads_projects_conditionally(self):
        assert evaluate_permission(PROJECT_RESOURCE, 'staff', 'read') == PermissionResult(True, True)
        assert evaluate_permission(PROJECT_RESOURCE, 'staff', 'create') == PermissionResult(False, False)

    def test_accountant_reads_all_projects(self):
        assert evaluate_permission(PROJECT_RESOURCE, 'accountant', 'read') == PermissionResult(True, False)
        assert evaluate_permission(PROJECT_RESOURCE, 'accountant', 'delete') == PermissionResult(False, False)

    @pytest.mark.parametrize('role', ['staff', 'accountant', 'other'])
    def test_non_admins_read_own_user_only(self, role):
        assert evaluate_permission(USER_RESOURCE, role, 'read') == PermissionResult(True, True)
        assert evaluate_permission(USER_RESOURCE, role, 'update') == PermissionResult(False, False)

    @pytest.mark.parametrize('role', ['staff', 'accountant', 'other'])
    def test_everyone_reads_master_data(self, role):
        assert evaluate_permission(MASTER_DATA_RESOURCE, role, 'read') == PermissionResult(True, False)
        assert evaluate_permission(MASTER_DATA_RESOURCE, role, 'create') == PermissionResult(False, False)

    def test_unknown_resource_denied(self):
        assert evaluate_permission('payroll:entity', 'admin', 'read') == PermissionResult(False, False)

    def test_unknown_action_denied(self):
        assert evaluate_permission(INVOICE_RESOURCE, 'admin', 'approve') == PermissionResult(False, False)

    def test_role_is_case_insensitive(self):
        assert evaluate_permission(INVOICE_RESOURCE, 'ADMIN', 'delete') == PermissionResult(True, False)
        assert evaluate_permission(INVOICE_RESOURCE, 'Staff', 'read') == PermissionResult(True, True)

    def test_defaults_ignore_overrides(self):
        """No default bit is overridable, so override strings change nothing."""
        result = evaluate_permission(INVOICE_RESOURCE, 'other', 'read', ['invoice:entity:f'])
        assert result == PermissionResult(False, False)


class TestOverrides:
    """Override strings against a directory that allows them."""

    def test_override_grants_overridable_bit(self):
        result = evaluate_permission(
            INVOICE_RESOURCE, 'other', 'create', ['invoice:entity:8'], directory=OVERRIDABLE_DIRECTORY
        )
        assert result == PermissionResult(True, False)

    def test_override_revokes_overridable_bit(self):
        result = evaluate_permission(
            INVOICE_RESOURCE, 'staff', 'read', ['invoice:entity:0'], directory=OVERRIDABLE_DIRECTORY
        )
        assert result == PermissionResult(False, False)

    def test_override_keeps_conditional_flag(self):
        result = evaluate_permission(
            INVOICE_RESOURCE, 'staff', 'read', ['invoice:entity:4'], directory=OVERRIDABLE_DIRECTORY
        )
        assert result == PermissionResult(True, True)

    def test_non_overridable_bit_ignores_override(self):
        # staff create bit is not overridable
        result = evaluate_permission(
            INVOICE_RESOURCE, 'staff', 'create', ['invoice:entity:f'], directory=OVERRIDABLE_DIRECTORY
        )
        assert result == PermissionResult(False, False)

    def test_last_valid_override_wins(self):
        permissions = ['invoice:entity:4', 'invoice:entity:0', 'invoice:entity:zz']
        result = evaluate_permission(
            INVOICE_RESOURCE, 'staff', 'read', permissions, directory=OVERRIDABLE_DIRECTORY
        )
        assert result == PermissionResult(False, False)

    def test_overrides_for_other_resources_ignored(self):
        result = evaluate_permission(
            INVOICE_RESOURCE, 'staff', 'read', ['project:entity:0'], directory=OVERRIDABLE_DIRECTORY
        )
        assert result == PermissionResult(True, True)

    def test_only_invalid_overrides_keep_defaults(self):
        result = evaluate_permission(
            INVOICE_RESOURCE, 'staff', 'read', ['invoice:entity:', 'invoice:entity:xyz'],
            directory=OVERRIDABLE_DIRECTORY
        )
        assert result == PermissionResult(True, True)


class TestOverrideParsing:
    """Hex parsing of the last segment."""

    @pytest.mark.parametrize('value, expected', [
        ('invoice:entity:4', 4),
        ('invoice:entity:F', 15),
        ('invoice:entity:0xc', 12),
        ('invoice:entity:  a', 10),
        ('invoice:entity:8zz', 8),
        ('invoice:entity:1f', 15),
        ('invoice:entity:-4', 12),
        ('invoice:entity:10', 0),
    ])
    def test_parses_leading_hex_digits(self, value, expected):
        assert parse_permission_override(value, INVOICE_RESOURCE) == expected

    @pytest.mark.parametrize('value', [
        'invoice:entity:',
        'invoice:entity:zz',
        'project:entity:4',
        None,
        4,
    ])
    def test_unparseable_or_foreign_strings(self, value):
        assert parse_permission_override(value, INVOICE_RESOURCE) is None

    def test_find_override_returns_last_valid(self):
        assert find_override(['invoice:entity:2', 'invoice:entity:x', 'invoice:entity:c'], INVOICE_RESOURCE) == 12
        assert find_override([], INVOICE_RESOURCE) is None

    @pytest.mark.parametrize('value, expected', [
        ('invoice:entity:4', True),
        ('master-data:entity:f', True),
        ('invoice:entity:', False),
        ('invoice:4', False),
        ('::4', False),
        ('invoice:entity:zz', False),
        (None, False),
    ])
    def test_is_valid_override_string(self, value, expected):
        assert is_valid_override_string(value) is expected


class TestHelpers:

    @pytest.mark.parametrize('method, action', [
        ('GET', 'read'), ('HEAD', 'read'), ('OPTIONS', 'read'),
        ('POST', 'create'), ('PUT', 'update'), ('PATCH', 'update'),
        ('DELETE', 'delete'), ('get', 'read'), ('TRACE', None),
    ])
    def test_method_to_action(self, method, action):
        assert method_to_action(method) == action

    @pytest.mark.parametrize('role, expected', [
        ('admin', 'admin'), ('Accountant', 'accountant'), ('auditor', 'other'), (None, 'other'), ('', 'other'),
    ])
    def test_normalize_role(self, role, expected):
        assert normalize_role(role) == expected


override_strings = st.one_of(
    st.builds(lambda n: f'invoice:entity:{n:x}', st.integers(min_value=0, max_value=0xff)),
    st.text(max_size=20),
)


class TestEvaluatorProperties:
    """Properties that hold for any role, action and override list."""

    @given(role=st.text(max_size=12), action=st.sampled_from(ACTIONS), resource=st.sampled_from(RESOURCES))
    @settings(max_examples=100, deadline=None)
    def test_unknown_role_behaves_like_other(self, role, action, resource):
        if role.lower() in ROLES:
            return
        assert evaluate_permission(resource, role, action) == evaluate_permission(resource, 'other', action)

    @given(
        role=st.sampled_from(ROLES),
        action=st.sampled_from(ACTIONS),
        permissions=st.lists(override_strings, max_size=5),
    )
    @settings(max_examples=200, deadline=None)
    def test_conditional_implies_allowed_after_override(self, role, action, permissions):
        result = evaluate_permission(
            INVOICE_RESOURCE, role, action, permissions, directory=OVERRIDABLE_DIRECTORY
        )
        if not result.allowed and permissions:
            assert result.conditional is False

    @given(
        role=st.sampled_from(ROLES),
        resource=st.sampled_from(RESOURCES),
        action=st.sampled_from(ACTIONS),
        permissions=st.lists(override_strings, max_size=5),
    )
    @settings(max_examples=200, deadline=None)
    def test_default_directory_ignores_overrides(self, role, resource, action, permissions):
        assert evaluate_permission(resource, role, action, permissions) == evaluate_permission(resource, role, action)

    @given(values=st.lists(st.integers(min_value=0, max_value=0xf), min_size=1, max_size=6))
    @settings(max_examples=100, deadline=None)
    def test_last_override_decides(self, values):
        permissions = [f'invoice:entity:{v:x}' for v in values]
        result = evaluate_permission(
            INVOICE_RESOURCE, 'other', 'create', permissions, directory=OVERRIDABLE_DIRECTORY
        )
        assert result.allowed is bool(values[-1] & CREATE)

    @given(value=st.text(max_size=30))
    @settings(max_examples=200, deadline=None)
    def test_parsed_override_fits_four_bits(self, value):
        parsed = parse_permission_override(f'invoice:entity:{value}', INVOICE_RESOURCE)
        assert parsed is None or 0 <= parsed <= FULL
