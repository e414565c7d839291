"""Static role -> permission matrix.

Permission strings follow the `resource:action` convention. Roles are fixed; extend
the matrix here rather than at call sites so route guards, navigation and capability
flags stay consistent.
"""
from __future__ import annotations
from typing import Dict, List

ROLE_SUPER_ADMIN = 'super_admin'
ROLE_MANAGER = 'manager'
ROLE_EMPLOYEE = 'employee'
ROLE_BUSINESS_CLIENT = 'business_client'
ALL_ROLES = (ROLE_SUPER_ADMIN, ROLE_MANAGER, ROLE_EMPLOYEE, ROLE_BUSINESS_CLIENT)

RESOURCE_ACTIONS = {
    'users': ['view', 'create', 'update', 'delete', 'manage_roles'],
    'settings': ['view', 'update'],
    'suppliers': ['view', 'create', 'update', 'delete'],
    'clients': ['view', 'create', 'update', 'delete'],
    'products': ['view', 'create', 'update', 'delete'],
    'inventory': ['view', 'update'],
    'orders': ['view', 'create', 'update', 'delete'],
    'pricing': ['view', 'update'],
    'analytics': ['view', 'financial'],
    'ai': ['chat', 'predictions'],
    'audit': ['view'],
    'notifications': ['view', 'manage'],
}


def build_all_permission_codes() -> List[str]:
    codes: List[str] = []
    for resource, actions in RESOURCE_ACTIONS.items():
        for act in actions:
            codes.append(f"{resource}:{act}")
    return codes

ALL_PERMISSION_CODES = build_all_permission_codes()

ROLE_PERMISSIONS: Dict[str, List[str]] = {
    ROLE_SUPER_ADMIN: list(ALL_PERMISSION_CODES),
    # Operational data, financial reports, staff visibility (no system config)
    ROLE_MANAGER: [
        'users:view',
        'suppliers:view', 'suppliers:create', 'suppliers:update',
        'clients:view', 'clients:create', 'clients:update',
        'products:view', 'products:create', 'products:update',
        'inventory:view', 'inventory:update',
        'orders:view', 'orders:create', 'orders:update', 'orders:delete',
        'pricing:view', 'pricing:update',
        'analytics:view', 'analytics:financial',
        'ai:chat',
        'audit:view',
        'notifications:view',
    ],
    # No financial data, user management or AI
    ROLE_EMPLOYEE: [
        'suppliers:view',
        'clients:view',
        'products:view',
        'inventory:view', 'inventory:update',
        'orders:view', 'orders:create', 'orders:update',
        'notifications:view',
    ],
    # External account: own analytics and predictions only
    ROLE_BUSINESS_CLIENT: [
        'analytics:view',
        'ai:predictions',
        'notifications:view',
    ],
}

ROLE_DISPLAY_NAMES: Dict[str, str] = {
    ROLE_SUPER_ADMIN: 'Super Admin',
    ROLE_MANAGER: 'Manager',
    ROLE_EMPLOYEE: 'Employee',
    ROLE_BUSINESS_CLIENT: 'Business Client',
}

ROLE_DESCRIPTIONS: Dict[str, str] = {
    ROLE_SUPER_ADMIN: 'Unrestricted access to all features. Can manage users, system settings, and delete any record.',
    ROLE_MANAGER: 'Access to operational data, financial reports, and staff management. Cannot change system-wide configurations.',
    ROLE_EMPLOYEE: 'Restricted operational access. Can view/update inventory and create/process orders. No access to financial data, user management, or AI analytics.',
    ROLE_BUSINESS_CLIENT: 'External client with view-only dashboard access. Can see AI Usage Predictions and analytics for their account only.',
}

# Procedure tiers used by require_roles
TIER_ADMIN = (ROLE_SUPER_ADMIN,)
TIER_FINANCE = (ROLE_SUPER_ADMIN, ROLE_MANAGER)
TIER_OPERATIONS = (ROLE_SUPER_ADMIN, ROLE_MANAGER, ROLE_EMPLOYEE)
TIER_PREDICTIONS = (ROLE_SUPER_ADMIN, ROLE_BUSINESS_CLIENT)

# Capability flag -> permissions (any-of) that grant it
CAPABILITY_RULES: Dict[str, List[str]] = {
    'can_view_costs': ['pricing:view'],
    'can_view_margins': ['analytics:financial'],
    'can_view_supplier_terms': ['pricing:view'],
    'can_edit_pricing': ['pricing:update'],
    'can_edit_inventory': ['inventory:update'],
    'can_manage_users': ['users:manage_roles'],
    'can_export_data': ['orders:view', 'analytics:financial'],
    'can_access_ai': ['ai:chat', 'ai:predictions'],
    'can_view_audit_log': ['audit:view'],
    'can_manage_settings': ['settings:update'],
}
