from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Set
from flask import g, abort

from matcha_trade.constants.permissions import (
    ROLE_PERMISSIONS, ROLE_BUSINESS_CLIENT, ROLE_DISPLAY_NAMES, ROLE_DESCRIPTIONS, CAPABILITY_RULES,
)
from matcha_trade.constants.navigation import NAVIGATION_ITEMS


def get_role_permissions(role: Optional[str]) -> List[str]:
    """Permissions granted to role; unknown roles get none."""
    return list(ROLE_PERMISSIONS.get(role or '', []))


def has_permission(role: Optional[str], perm: str) -> bool:
    return perm in ROLE_PERMISSIONS.get(role or '', [])


def has_any_permission(role: Optional[str], perms: Iterable[str]) -> bool:
    granted = set(ROLE_PERMISSIONS.get(role or '', []))
    return any(p in granted for p in perms)


def has_all_permissions(role: Optional[str], perms: Iterable[str]) -> bool:
    granted = set(ROLE_PERMISSIONS.get(role or '', []))
    return all(p in granted for p in perms)


def capabilities_for(role: Optional[str]) -> Dict[str, bool]:
    return {flag: has_any_permission(role, perms) for flag, perms in CAPABILITY_RULES.items()}


def get_visible_nav_items(role: Optional[str]) -> List[dict]:
    return [
        dict(item) for item in NAVIGATION_ITEMS
        if not item['permissions'] or has_any_permission(role, item['permissions'])
    ]


def can_access_route(role: Optional[str], path: str) -> bool:
    item = next((i for i in NAVIGATION_ITEMS if i['path'] == path), None)
    if item is None or not item['permissions']:
        return True
    return has_any_permission(role, item['permissions'])


def role_metadata(role: str) -> dict:
    return {
        'role': role,
        'display_name': ROLE_DISPLAY_NAMES.get(role, role),
        'description': ROLE_DESCRIPTIONS.get(role, ''),
    }


# --- request-bound helpers (valid after a guard ran) ---

def current_user():
    return g.get('current_user')


def current_user_id() -> Optional[int]:
    user = g.get('current_user')
    return user.id if user is not None else None


def current_role() -> Optional[str]:
    user = g.get('current_user')
    return user.role if user is not None else None


def current_permissions() -> Set[str]:
    return set(get_role_permissions(current_role()))


def linked_client_scope() -> Optional[int]:
    """Client id a business client is confined to; None for internal roles.

    A business client without a linked client has nothing to see and gets a 403.
    """
    user = g.get('current_user')
    if user is None or user.role != ROLE_BUSINESS_CLIENT:
        return None
    if user.linked_client_id is None:
        abort(403, description='No client linked to this account')
    return user.linked_client_id

__all__ = [
    'get_role_permissions', 'has_permission', 'has_any_permission', 'has_all_permissions',
    'capabilities_for', 'get_visible_nav_items', 'can_access_route', 'role_metadata',
    'current_user', 'current_user_id', 'current_role', 'current_permissions', 'linked_client_scope',
]
