"""Dashboard navigation entries with the permissions that reveal them.

An entry with an empty permission list is visible to every role; otherwise holding
any one of the listed permissions is enough.
"""
from __future__ import annotations
from typing import Any, Dict, List

NAVIGATION_ITEMS: List[Dict[str, Any]] = [
    {'id': 'dashboard', 'label': 'Dashboard', 'icon': 'LayoutDashboard', 'path': '/', 'permissions': []},
    {'id': 'clients', 'label': 'Clients', 'icon': 'Users', 'path': '/clients', 'permissions': ['clients:view']},
    {'id': 'suppliers', 'label': 'Suppliers', 'icon': 'Building2', 'path': '/suppliers', 'permissions': ['suppliers:view']},
    {'id': 'products', 'label': 'Products', 'icon': 'Package', 'path': '/products', 'permissions': ['products:view']},
    {'id': 'pricing', 'label': 'Pricing', 'icon': 'DollarSign', 'path': '/pricing', 'permissions': ['pricing:view']},
    {'id': 'inventory', 'label': 'Inventory', 'icon': 'Warehouse', 'path': '/inventory', 'permissions': ['inventory:view']},
    {'id': 'orders', 'label': 'Orders', 'icon': 'ShoppingCart', 'path': '/orders', 'permissions': ['orders:view']},
    {'id': 'analytics', 'label': 'Analytics', 'icon': 'BarChart3', 'path': '/analytics', 'permissions': ['analytics:view']},
    {'id': 'ai-chat', 'label': 'AI Assistant', 'icon': 'MessageSquare', 'path': '/ai-chat', 'permissions': ['ai:chat']},
    {'id': 'ai-predictions', 'label': 'AI Predictions', 'icon': 'Brain', 'path': '/ai-predictions', 'permissions': ['ai:predictions']},
    {'id': 'audit-log', 'label': 'Audit Log', 'icon': 'FileText', 'path': '/audit-log', 'permissions': ['audit:view'], 'badge': 'Log'},
    {'id': 'users', 'label': 'User Management', 'icon': 'UserCog', 'path': '/users', 'permissions': ['users:view']},
    {'id': 'settings', 'label': 'Settings', 'icon': 'Settings', 'path': '/settings', 'permissions': ['settings:view']},
]

__all__ = ['NAVIGATION_ITEMS']
