from sqlalchemy import select
from matcha_trade import get_db
from matcha_trade.models.audit import AuditLog
from matcha_trade.models.authz import User
from tests.test_utils_seed import ensure_user, ensure_client
from tests.test_lifecycle_helpers import login_headers


def test_login_and_me(client):
    ensure_user('auth_me@example.com', role='manager', name='Mina')
    resp = client.post('/iam/auth/login', json={'email': 'auth_me@example.com', 'password': 'pw'})
    assert resp.status_code == 200, resp.get_json()
    body = resp.get_json()
    assert body['user']['role'] == 'manager'
    token = body['access_token']

    me = client.get('/iam/auth/me', headers={'Authorization': f'Bearer {token}'})
    assert me.status_code == 200
    body = me.get_json()
    assert body['email'] == 'auth_me@example.com'
    assert body['display_name'] == 'Manager'
    assert 'pricing:view' in body['permissions']
    assert 'settings:update' not in body['permissions']
    assert body['capabilities']['can_view_costs'] is True
    assert body['capabilities']['can_manage_users'] is False


def test_login_records_audit_entry(client):
    user = ensure_user('auth_audit@example.com')
    login_headers(client, 'auth_audit@example.com')
    session = get_db()
    rows = session.execute(
        select(AuditLog).where(AuditLog.user_id == user.id, AuditLog.action == 'LOGIN')
    ).scalars().all()
    assert rows
    assert rows[-1].role_snapshot == 'employee'


def test_login_rejects_bad_credentials(client):
    ensure_user('auth_bad@example.com')
    r = client.post('/iam/auth/login', json={'email': 'auth_bad@example.com', 'password': 'nope'})
    assert r.status_code == 401
    assert r.get_json()['error']['status'] == 401
    r = client.post('/iam/auth/login', json={'email': 'nobody@example.com', 'password': 'pw'})
    assert r.status_code == 401
    r = client.post('/iam/auth/login', json={'email': 'auth_bad@example.com'})
    assert r.status_code == 400


def test_inactive_user_cannot_login_or_use_token(client):
    ensure_user('auth_inactive@example.com')
    headers = login_headers(client, 'auth_inactive@example.com')
    session = get_db()
    u = session.execute(select(User).where(User.email == 'auth_inactive@example.com')).scalar_one()
    u.is_active = False
    session.commit()
    assert client.get('/iam/auth/me', headers=headers).status_code == 401
    r = client.post('/iam/auth/login', json={'email': 'auth_inactive@example.com', 'password': 'pw'})
    assert r.status_code == 401


def test_missing_token_is_unauthorized(client):
    assert client.get('/iam/auth/me').status_code == 401
    assert client.get('/catalog/suppliers').status_code == 401


def test_logout_revokes_token(client):
    ensure_user('auth_logout@example.com')
    headers = login_headers(client, 'auth_logout@example.com')
    r = client.post('/iam/auth/logout', headers=headers)
    assert r.status_code == 200
    assert r.get_json() == {'revoked': True}
    assert client.get('/iam/auth/me', headers=headers).status_code == 401


def test_business_client_login_carries_linked_client(client):
    acct = ensure_client('Auth Kissa')
    ensure_user('auth_buyer@example.com', role='business_client', linked_client_id=acct.id)
    r = client.post('/iam/auth/login', json={'email': 'auth_buyer@example.com', 'password': 'pw'})
    assert r.status_code == 200
    assert r.get_json()['user']['linked_client_id'] == acct.id
