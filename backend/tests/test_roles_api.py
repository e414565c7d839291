from sqlalchemy import select, update
from matcha_trade import get_db
from matcha_trade.models.authz import User
from tests.test_utils_seed import ensure_user, ensure_client
from tests.test_lifecycle_helpers import seed_user_headers


def test_roles_listing_exposes_matrix(app_context):
    client = app_context.test_client()
    _, headers = seed_user_headers('roles_list@example.com', 'employee')
    r = client.get('/iam/roles', headers=headers)
    assert r.status_code == 200
    roles = {row['role']: row for row in r.get_json()['data']}
    assert set(roles) == {'super_admin', 'manager', 'employee', 'business_client'}
    assert 'settings:update' in roles['super_admin']['permissions']
    assert 'pricing:view' not in roles['employee']['permissions']
    assert roles['business_client']['permissions'] == ['analytics:view', 'ai:predictions', 'notifications:view']


def test_users_listing_requires_users_view(app_context):
    client = app_context.test_client()
    _, emp = seed_user_headers('roles_emp@example.com', 'employee')
    _, mgr = seed_user_headers('roles_mgr@example.com', 'manager')
    assert client.get('/iam/users', headers=emp).status_code == 403
    r = client.get('/iam/users?role=manager', headers=mgr)
    assert r.status_code == 200
    assert all(u['role'] == 'manager' for u in r.get_json()['data'])
    assert client.get('/iam/users?role=wizard', headers=mgr).status_code == 400


def test_set_user_role(app_context):
    client = app_context.test_client()
    _, admin = seed_user_headers('roles_admin@example.com', 'super_admin')
    _, mgr = seed_user_headers('roles_mgr2@example.com', 'manager')
    target = ensure_user('roles_target@example.com')
    acct = ensure_client('Roles Cafe')

    # managers lack users:manage_roles
    assert client.put(f'/iam/users/{target.id}/role', json={'role': 'manager'}, headers=mgr).status_code == 403

    r = client.put(f'/iam/users/{target.id}/role', json={'role': 'manager'}, headers=admin)
    assert r.status_code == 200
    assert r.get_json()['role'] == 'manager'

    bad = client.put(f'/iam/users/{target.id}/role', json={'role': 'overlord'}, headers=admin)
    assert bad.status_code == 400
    unlinked = client.put(f'/iam/users/{target.id}/role', json={'role': 'business_client'}, headers=admin)
    assert unlinked.status_code == 400
    missing = client.put(f'/iam/users/{target.id}/role',
                         json={'role': 'business_client', 'linked_client_id': 999999}, headers=admin)
    assert missing.status_code == 400

    linked = client.put(f'/iam/users/{target.id}/role',
                        json={'role': 'business_client', 'linked_client_id': acct.id}, headers=admin)
    assert linked.status_code == 200
    assert linked.get_json()['linked_client_id'] == acct.id

    # leaving business_client drops the link
    back = client.put(f'/iam/users/{target.id}/role', json={'role': 'employee'}, headers=admin)
    assert back.get_json()['linked_client_id'] is None

    logs = client.get(f'/iam/audit/logs?action=USER.ROLE.SET&entity_id={target.id}', headers=admin).get_json()
    assert logs['pagination']['total'] >= 3
    assert 'role' in logs['data'][0]['meta']['changes']


def test_set_role_unknown_user(app_context):
    client = app_context.test_client()
    _, admin = seed_user_headers('roles_admin2@example.com', 'super_admin')
    assert client.put('/iam/users/999999/role', json={'role': 'employee'}, headers=admin).status_code == 404


def test_inactive_super_admin_demotion_beside_last_active(app_context):
    client = app_context.test_client()
    admin, admin_h = seed_user_headers('roles_admin3@example.com', 'super_admin')
    dormant = ensure_user('roles_dormant@example.com', 'super_admin')
    session = get_db()
    others = session.execute(
        select(User.id).where(User.role == 'super_admin', User.is_active.is_(True), User.id != admin.id)
    ).scalars().all()
    session.execute(update(User).where(User.id.in_(others)).values(is_active=False))
    session.commit()
    try:
        # dormant is not counted as active, so demoting it leaves the active admin alone
        r = client.put(f'/iam/users/{dormant.id}/role', json={'role': 'employee'}, headers=admin_h)
        assert r.status_code == 200
        assert r.get_json()['role'] == 'employee'
        last = client.put(f'/iam/users/{admin.id}/role', json={'role': 'manager'}, headers=admin_h)
        assert last.status_code == 400
    finally:
        session = get_db()
        session.execute(update(User).where(User.id.in_(others)).values(is_active=True))
        session.commit()
