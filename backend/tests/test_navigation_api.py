from tests.test_utils_seed import ensure_client
from tests.test_lifecycle_helpers import seed_user_headers


def test_navigation_endpoint_matches_role(app_context):
    client = app_context.test_client()
    acct = ensure_client('Nav Cafe')
    _, buyer = seed_user_headers('nav_buyer@example.com', 'business_client', linked_client_id=acct.id)
    _, admin = seed_user_headers('nav_admin@example.com', 'super_admin')
    items = client.get('/iam/auth/navigation', headers=buyer).get_json()['data']
    assert [i['path'] for i in items] == ['/', '/analytics', '/ai-predictions']
    assert len(client.get('/iam/auth/navigation', headers=admin).get_json()['data']) == 13


def test_can_access_endpoint(app_context):
    client = app_context.test_client()
    _, emp = seed_user_headers('nav_emp@example.com', 'employee')
    r = client.get('/iam/auth/can-access?path=/pricing', headers=emp)
    assert r.get_json() == {'path': '/pricing', 'allowed': False}
    r = client.get('/iam/auth/can-access?path=/inventory', headers=emp)
    assert r.get_json()['allowed'] is True
    assert client.get('/iam/auth/can-access', headers=emp).status_code == 400
