from matcha_trade.constants.permissions import ROLE_PERMISSIONS, ALL_PERMISSION_CODES
from matcha_trade.services.policy import (
    get_role_permissions, has_permission, has_any_permission, has_all_permissions, capabilities_for,
    get_visible_nav_items, can_access_route,
)


def test_super_admin_holds_every_permission():
    assert set(get_role_permissions('super_admin')) == set(ALL_PERMISSION_CODES)


def test_unknown_role_has_nothing():
    assert get_role_permissions('ghost') == []
    assert get_role_permissions(None) == []
    assert not has_permission('ghost', 'suppliers:view')
    assert not any(capabilities_for('ghost').values())


def test_every_matrix_permission_is_a_known_code():
    for perms in ROLE_PERMISSIONS.values():
        assert set(perms) <= set(ALL_PERMISSION_CODES)


def test_any_and_all_helpers():
    assert has_any_permission('employee', ['pricing:view', 'inventory:update'])
    assert not has_all_permissions('employee', ['pricing:view', 'inventory:update'])
    assert has_all_permissions('manager', ['pricing:view', 'pricing:update'])
    assert has_all_permissions('employee', [])


def test_capability_flags_per_role():
    emp = capabilities_for('employee')
    assert emp['can_view_costs'] is False
    assert emp['can_view_margins'] is False
    assert emp['can_edit_inventory'] is True
    assert emp['can_export_data'] is True
    mgr = capabilities_for('manager')
    assert mgr['can_view_margins'] is True
    assert mgr['can_manage_settings'] is False
    buyer = capabilities_for('business_client')
    assert buyer['can_access_ai'] is True
    assert buyer['can_export_data'] is False
    assert buyer['can_view_costs'] is False


def test_navigation_filtering():
    ids = lambda role: [i['id'] for i in get_visible_nav_items(role)]
    assert ids('super_admin')[0] == 'dashboard'
    assert len(ids('super_admin')) == 13
    assert ids('business_client') == ['dashboard', 'analytics', 'ai-predictions']
    emp = ids('employee')
    assert 'pricing' not in emp and 'inventory' in emp and 'users' not in emp
    audit = next(i for i in get_visible_nav_items('manager') if i['id'] == 'audit-log')
    assert audit['badge'] == 'Log'


def test_can_access_route():
    assert can_access_route('business_client', '/')
    assert not can_access_route('business_client', '/pricing')
    assert can_access_route('manager', '/pricing')
    # paths outside the navigation table are not gated here
    assert can_access_route('employee', '/unlisted')
