from tests.test_utils_seed import ensure_supplier
from tests.test_lifecycle_helpers import seed_user_headers


def _names(client, headers, sort=None):
    url = '/catalog/suppliers?name=Sorted&limit=200'
    if sort:
        url += f'&sort={sort}'
    resp = client.get(url, headers=headers)
    assert resp.status_code == 200
    return [s['name'] for s in resp.get_json()['data']]


def test_suppliers_multi_sort(app_context):
    client = app_context.test_client()
    _, mgr = seed_user_headers('sort_sup@example.com', 'manager')
    for name in ('Sorted Gamma', 'Sorted Beta', 'Sorted Alpha'):
        ensure_supplier(name)
    assert _names(client, mgr) == ['Sorted Alpha', 'Sorted Beta', 'Sorted Gamma']
    assert _names(client, mgr, '-name') == ['Sorted Gamma', 'Sorted Beta', 'Sorted Alpha']
    by_id = _names(client, mgr, '-id')
    assert by_id == ['Sorted Alpha', 'Sorted Beta', 'Sorted Gamma']
    assert _names(client, mgr, 'created_at,-name')[0] == 'Sorted Gamma'


def test_invalid_sort_field(app_context):
    client = app_context.test_client()
    _, mgr = seed_user_headers('sort_sup2@example.com', 'manager')
    resp = client.get('/catalog/suppliers?sort=-payment_terms', headers=mgr)
    assert resp.status_code == 400
    assert 'payment_terms' in resp.get_json()['error']['detail']
    assert client.get('/catalog/skus?sort=name,,-id', headers=mgr).status_code == 200
