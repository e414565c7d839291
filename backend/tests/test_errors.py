from tests.test_lifecycle_helpers import seed_user_headers


def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    assert resp.status_code == 404
    body = resp.get_json()
    assert body['error']['status'] == 404
    assert body['error']['title'] == 'Not Found'
    assert 'detail' in body['error']


def test_validation_errors_carry_detail(app_context):
    client = app_context.test_client()
    _, mgr = seed_user_headers('err_mgr@example.com', 'manager')
    resp = client.post('/catalog/suppliers', json={}, headers=mgr)
    assert resp.status_code == 400
    assert resp.get_json()['error']['title'] == 'Bad Request'
    assert 'name' in resp.get_json()['error']['detail']


def test_internal_error_shape(app_context, monkeypatch):
    client = app_context.test_client()
    _, mgr = seed_user_headers('err_boom@example.com', 'manager')
    import matcha_trade.routes.catalog as catalog_mod

    class BoomSession:
        def query(self, *a, **k):
            raise RuntimeError('explode')

    monkeypatch.setattr(catalog_mod, 'get_db', lambda: BoomSession())
    resp = client.get('/catalog/suppliers', headers=mgr)
    assert resp.status_code == 500
    body = resp.get_json()
    assert body['error'] == {'status': 500, 'title': 'Internal Server Error', 'detail': 'Unexpected error'}


def test_missing_token_is_unauthorized(client):
    resp = client.get('/catalog/suppliers')
    assert resp.status_code == 401
    assert 'msg' in resp.get_json()
