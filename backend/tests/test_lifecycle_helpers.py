"""Reusable test helpers for order lifecycles and authenticated requests.

Patterns unified:
 - Auth header creation using direct JWT claims (bypassing /login) or a real login.
 - Creation + status transition sequencing with assertion helpers.

Role guards read the role from the database row, so the claims minted here only
mirror what /iam/auth/login would put in the token.
"""
from __future__ import annotations
from typing import Dict, Optional
from flask_jwt_extended import create_access_token
from matcha_trade.services.policy import get_role_permissions
from tests.test_utils_seed import ensure_user, reset_security

# ---------- Generic Auth Helpers ---------- #

def jwt_headers(user_id: int, role: str, linked_client_id: Optional[int] = None):
    """Bearer header for user_id; call inside an app context."""
    token = create_access_token(identity=str(user_id), additional_claims={
        'role': role,
        'perms': get_role_permissions(role),
        'linked_client_id': linked_client_id,
    })
    return {'Authorization': f'Bearer {token}'}


def seed_user_headers(email: str, role: str, linked_client_id: Optional[int] = None):
    """Ensure a user with role (security flags cleared) and return (user, headers)."""
    user = ensure_user(email, role=role, linked_client_id=linked_client_id)
    reset_security(user)
    return user, jwt_headers(user.id, role, linked_client_id)


def login_headers(client, email: str, password: str = 'pw'):
    r = client.post('/iam/auth/login', json={'email': email, 'password': password})
    assert r.status_code == 200, r.get_json()
    return {'Authorization': f"Bearer {r.get_json()['access_token']}"}

# ---------- Assertion Helpers ---------- #

def assert_transition(client, url: str, headers: Dict[str, str], target: str, expected_status: int = 200):
    resp = client.put(url, json={'status': target}, headers=headers)
    assert resp.status_code == expected_status, resp.get_json()
    if expected_status < 400:
        assert resp.get_json()['status'] == target
    return resp


def create_resource_and_assert(client, url: str, payload: dict, headers: Dict[str, str],
                               expected_status_field: str = 'status', expected_initial_status: str = None):
    resp = client.post(url, json=payload, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    if expected_initial_status:
        assert body[expected_status_field] == expected_initial_status
    return body
