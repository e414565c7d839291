from tests.test_utils_seed import ensure_sku
from tests.test_lifecycle_helpers import seed_user_headers


def test_head_inventory_validators(app_context):
    client = app_context.test_client()
    _, emp = seed_user_headers('head_inv@example.com', 'employee')
    ensure_sku('Head Inventory SKU')
    r = client.head('/inventory?limit=5', headers=emp)
    assert r.status_code == 200
    assert r.get_data() == b''
    etag = r.headers.get('ETag')
    assert etag and r.headers.get('Last-Modified') and r.headers.get('X-Last-Modified-ISO')
    assert client.get('/inventory?limit=5', headers={**emp, 'If-None-Match': etag}).status_code == 304
    assert client.head('/inventory?limit=5', headers={**emp, 'If-None-Match': etag}).status_code == 304
    # GET and HEAD agree on the validator
    assert client.get('/inventory?limit=5', headers=emp).headers['ETag'] == etag


def test_head_audit_logs_validators(app_context):
    client = app_context.test_client()
    _, mgr = seed_user_headers('head_audit@example.com', 'manager')
    client.post('/catalog/suppliers', json={'name': 'Head Audit Supplier'}, headers=mgr)
    r = client.head('/iam/audit/logs?limit=5', headers=mgr)
    assert r.status_code == 200
    etag = r.headers.get('ETag')
    assert etag and r.headers.get('Last-Modified') and r.headers.get('X-Last-Modified-ISO')
    assert client.get('/iam/audit/logs?limit=5', headers={**mgr, 'If-None-Match': etag}).status_code == 304
    assert client.head('/iam/audit/logs?limit=5', headers={**mgr, 'If-None-Match': etag}).status_code == 304


def test_head_respects_permissions(app_context):
    client = app_context.test_client()
    _, emp = seed_user_headers('head_emp@example.com', 'employee')
    assert client.head('/iam/audit/logs', headers=emp).status_code == 403
