import pytest
from matcha_trade.config.pagination import normalize_pagination, DEFAULT_LIMIT, MAX_LIMIT
from tests.test_utils_seed import ensure_supplier
from tests.test_lifecycle_helpers import seed_user_headers


def test_normalize_pagination_clamps():
    assert normalize_pagination(None, None) == (DEFAULT_LIMIT, 0)
    assert normalize_pagination('500', '-3') == (MAX_LIMIT, 0)
    assert normalize_pagination('0', '7') == (1, 7)
    with pytest.raises(ValueError):
        normalize_pagination('ten', None)


def test_supplier_pagination_meta(app_context):
    client = app_context.test_client()
    _, mgr = seed_user_headers('page_sup@example.com', 'manager')
    for i in range(3):
        ensure_supplier(f'Paged Supplier {i}')
    first = client.get('/catalog/suppliers?name=Paged&limit=2&offset=0', headers=mgr).get_json()
    assert first['pagination'] == {'total': 3, 'limit': 2, 'offset': 0, 'returned': 2}
    second = client.get('/catalog/suppliers?name=Paged&limit=2&offset=2', headers=mgr).get_json()
    assert second['pagination']['returned'] == 1
    assert second['data'][0]['name'] == 'Paged Supplier 2'
    clamped = client.get('/catalog/suppliers?limit=1000', headers=mgr).get_json()
    assert clamped['pagination']['limit'] == MAX_LIMIT
    assert client.get('/catalog/suppliers?limit=abc', headers=mgr).status_code == 400
    assert client.get('/catalog/suppliers?offset=1.5', headers=mgr).status_code == 400


def test_audit_log_default_limit(app_context):
    client = app_context.test_client()
    _, mgr = seed_user_headers('page_audit@example.com', 'manager')
    assert client.get('/iam/audit/logs', headers=mgr).get_json()['pagination']['limit'] == 100
